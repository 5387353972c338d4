"""Entity records and storage models for the registration store."""

from __future__ import annotations

import json
import uuid
from dataclasses import asdict, dataclass, field, fields
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Self, TypeVar

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from coursereg.registry.exceptions import CorruptStateError


class CollectionKey(StrEnum):
    """Storage key of each persisted collection."""

    COURSE_TYPES = "courseTypes"
    COURSES = "courses"
    OFFERINGS = "offerings"
    STUDENTS = "students"
    REGISTRATIONS = "registrations"


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all storage models."""

    pass


class StoredCollection(Base):
    """One keyed blob holding a serialized entity collection."""

    __tablename__ = "collections"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<StoredCollection(key={self.key!r}, size={len(self.payload)})>"


_FIELD_TYPES: dict[str, type] = {"str": str, "bool": bool}


class Record:
    """Mixin converting a frozen dataclass to and from a plain record."""

    def to_record(self) -> dict[str, Any]:
        record = asdict(self)  # type: ignore[call-overload]
        record["created_at"] = self.created_at.isoformat()  # type: ignore[attr-defined]
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Self:
        # Annotations are strings under postponed evaluation
        types = {f.name: f.type for f in fields(cls)}  # type: ignore[arg-type]
        unknown = set(record) - set(types)
        if unknown:
            raise ValueError(f"unexpected fields: {', '.join(sorted(unknown))}")
        missing = set(types) - set(record)
        if missing:
            raise ValueError(f"missing fields: {', '.join(sorted(missing))}")
        for name, annotation in types.items():
            expected = _FIELD_TYPES.get(str(annotation))
            if expected is not None and not isinstance(record[name], expected):
                raise ValueError(f"'{name}' must be a {annotation}")
        values = dict(record)
        created_at = datetime.fromisoformat(values["created_at"])
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)
        values["created_at"] = created_at
        return cls(**values)


@dataclass(frozen=True)
class CourseType(Record):
    """Category label applied to an offering (e.g. Individual, Group)."""

    name: str
    id: str = field(default_factory=generate_uuid)
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class Course(Record):
    """A subject that can be taught under one or more course types."""

    name: str
    id: str = field(default_factory=generate_uuid)
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class CourseOffering(Record):
    """A course taught under a course type.

    ``course_name`` and ``course_type_name`` are snapshots of the referenced
    entities' names, refreshed by the store whenever those are renamed.
    """

    course_id: str
    course_type_id: str
    course_name: str
    course_type_name: str
    id: str = field(default_factory=generate_uuid)
    created_at: datetime = field(default_factory=utcnow)

    @property
    def label(self) -> str:
        """Display label, e.g. ``"Individual - Hindi"``."""
        return f"{self.course_type_name} - {self.course_name}"


@dataclass(frozen=True)
class Student(Record):
    """A student, created on first registration."""

    name: str
    email: str
    phone: str
    registration_number: str
    email_verified: bool = False
    phone_verified: bool = False
    id: str = field(default_factory=generate_uuid)
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class Registration(Record):
    """Binding of one student to one offering."""

    student_id: str
    course_offering_id: str
    student_name: str
    offering_name: str
    id: str = field(default_factory=generate_uuid)
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class RegistrySnapshot:
    """Read-only view of all five collections."""

    course_types: tuple[CourseType, ...]
    courses: tuple[Course, ...]
    offerings: tuple[CourseOffering, ...]
    students: tuple[Student, ...]
    registrations: tuple[Registration, ...]


@dataclass
class RegistryStats:
    """Entity counts per collection."""

    total_course_types: int
    total_courses: int
    total_offerings: int
    total_students: int
    total_registrations: int


RecordT = TypeVar("RecordT", bound=Record)


def dump_collection(entities: list[RecordT] | tuple[RecordT, ...]) -> str:
    """Serialize a collection to a JSON array, preserving order."""
    return json.dumps([entity.to_record() for entity in entities], indent=2, ensure_ascii=False)


def load_collection(payload: str, record_type: type[RecordT]) -> list[RecordT]:
    """Decode a JSON array produced by :func:`dump_collection`.

    Raises:
        CorruptStateError: If the payload is not a list of valid records
    """
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise CorruptStateError(f"Invalid JSON for {record_type.__name__} collection") from e
    if not isinstance(data, list):
        raise CorruptStateError(f"Expected a list of {record_type.__name__} records")

    entities: list[RecordT] = []
    for index, record in enumerate(data):
        if not isinstance(record, dict):
            raise CorruptStateError(f"{record_type.__name__} record #{index} is not an object")
        try:
            entities.append(record_type.from_record(record))
        except (KeyError, TypeError, ValueError) as e:
            raise CorruptStateError(f"{record_type.__name__} record #{index} is invalid: {e}") from e
    return entities
