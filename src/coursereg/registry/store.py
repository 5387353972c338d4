"""RegistrationStore - Main API for registration store operations."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from coursereg.registry.database import Database
from coursereg.registry.exceptions import (
    CourseNotFoundError,
    CourseTypeNotFoundError,
    DuplicateRegistrationError,
    DuplicateRegistrationNumberError,
    OfferingNotFoundError,
    ReferentialConflictError,
    RegistrationNotFoundError,
    StudentNotFoundError,
)
from coursereg.registry.models import (
    CollectionKey,
    Course,
    CourseOffering,
    CourseType,
    Registration,
    RegistryStats,
    RegistrySnapshot,
    Student,
    dump_collection,
    load_collection,
)
from coursereg.registry.validation import normalize_name

if TYPE_CHECKING:
    from collections.abc import Callable

    from coursereg.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_COURSE_TYPES = ("Individual", "Group", "Special")
DEFAULT_COURSES = ("Hindi", "English", "Urdu")


class RegistrationStore:
    """Main API for registration store operations.

    Sole owner of the course type, course, offering, student and registration
    collections. Every operation checks referential rules before touching
    state, so a rejected call leaves all collections unchanged. Each
    successful mutation writes the affected collections back to storage.
    """

    def __init__(self, db_path: str = "coursereg.db", seed_defaults: bool = True) -> None:
        """Open the store and load persisted collections.

        Collections missing from storage start from their defaults
        (three course types and three courses when ``seed_defaults`` is set,
        empty otherwise) and are written back immediately.

        Args:
            db_path: Path to SQLite database file. Use ":memory:" for in-memory DB.
            seed_defaults: Seed default course types and courses on first run
        """
        self._db = Database(db_path)
        self._db.create_tables()
        self._seed_defaults = seed_defaults

        self._course_types: list[CourseType] = []
        self._courses: list[Course] = []
        self._offerings: list[CourseOffering] = []
        self._students: list[Student] = []
        self._registrations: list[Registration] = []
        try:
            self.reload()
        except Exception:
            self._db.close()
            raise

    @classmethod
    def from_settings(cls, settings: Settings) -> RegistrationStore:
        """Create a store from loaded settings."""
        return cls(db_path=settings.db_path, seed_defaults=settings.seed_defaults)

    def close(self) -> None:
        """Close the database connection."""
        self._db.close()

    def reload(self) -> None:
        """Replace in-memory state with what is in storage.

        Raises:
            CorruptStateError: If a stored collection cannot be decoded
        """
        missing: list[CollectionKey] = []

        def load(key: CollectionKey, record_type: type[Any], defaults: list[Any]) -> list[Any]:
            payload = self._db.read_blob(key.value)
            if payload is None:
                missing.append(key)
                return defaults
            return load_collection(payload, record_type)

        seed = self._seed_defaults
        course_types = load(
            CollectionKey.COURSE_TYPES,
            CourseType,
            [CourseType(name=name) for name in DEFAULT_COURSE_TYPES] if seed else [],
        )
        courses = load(
            CollectionKey.COURSES,
            Course,
            [Course(name=name) for name in DEFAULT_COURSES] if seed else [],
        )
        offerings = load(CollectionKey.OFFERINGS, CourseOffering, [])
        students = load(CollectionKey.STUDENTS, Student, [])
        registrations = load(CollectionKey.REGISTRATIONS, Registration, [])

        # Only swap state in once every collection decoded
        self._course_types = course_types
        self._courses = courses
        self._offerings = offerings
        self._students = students
        self._registrations = registrations

        if missing:
            logger.info("Initializing collections: %s", ", ".join(k.value for k in missing))
            self._persist(*missing)

    # --- Read access ---

    @property
    def course_types(self) -> tuple[CourseType, ...]:
        return tuple(self._course_types)

    @property
    def courses(self) -> tuple[Course, ...]:
        return tuple(self._courses)

    @property
    def offerings(self) -> tuple[CourseOffering, ...]:
        return tuple(self._offerings)

    @property
    def students(self) -> tuple[Student, ...]:
        return tuple(self._students)

    @property
    def registrations(self) -> tuple[Registration, ...]:
        return tuple(self._registrations)

    def snapshot(self) -> RegistrySnapshot:
        """Return a read-only view of all collections."""
        return RegistrySnapshot(
            course_types=self.course_types,
            courses=self.courses,
            offerings=self.offerings,
            students=self.students,
            registrations=self.registrations,
        )

    def stats(self) -> RegistryStats:
        """Return the number of entities in each collection."""
        return RegistryStats(
            total_course_types=len(self._course_types),
            total_courses=len(self._courses),
            total_offerings=len(self._offerings),
            total_students=len(self._students),
            total_registrations=len(self._registrations),
        )

    def get_course_type(self, course_type_id: str) -> CourseType:
        """Get course type by ID.

        Raises:
            CourseTypeNotFoundError: If course type doesn't exist
        """
        for course_type in self._course_types:
            if course_type.id == course_type_id:
                return course_type
        raise CourseTypeNotFoundError(f"Course type with id '{course_type_id}' not found")

    def get_course(self, course_id: str) -> Course:
        """Get course by ID.

        Raises:
            CourseNotFoundError: If course doesn't exist
        """
        for course in self._courses:
            if course.id == course_id:
                return course
        raise CourseNotFoundError(f"Course with id '{course_id}' not found")

    def get_offering(self, offering_id: str) -> CourseOffering:
        """Get offering by ID.

        Raises:
            OfferingNotFoundError: If offering doesn't exist
        """
        for offering in self._offerings:
            if offering.id == offering_id:
                return offering
        raise OfferingNotFoundError(f"Offering with id '{offering_id}' not found")

    def get_student(self, student_id: str) -> Student:
        """Get student by ID.

        Raises:
            StudentNotFoundError: If student doesn't exist
        """
        for student in self._students:
            if student.id == student_id:
                return student
        raise StudentNotFoundError(f"Student with id '{student_id}' not found")

    def get_registration(self, registration_id: str) -> Registration:
        """Get registration by ID.

        Raises:
            RegistrationNotFoundError: If registration doesn't exist
        """
        for registration in self._registrations:
            if registration.id == registration_id:
                return registration
        raise RegistrationNotFoundError(f"Registration with id '{registration_id}' not found")

    def find_student_by_registration_number(self, registration_number: str) -> Student | None:
        """Return the student holding ``registration_number``, if any."""
        for student in self._students:
            if student.registration_number == registration_number:
                return student
        return None

    def list_registrations(
        self,
        student_id: str | None = None,
        offering_id: str | None = None,
    ) -> list[Registration]:
        """List registrations with optional filters, in insertion order."""
        return [
            r
            for r in self._registrations
            if (student_id is None or r.student_id == student_id)
            and (offering_id is None or r.course_offering_id == offering_id)
        ]

    # --- Course Type Operations ---

    def add_course_type(self, name: str) -> CourseType:
        """Create a new course type.

        Raises:
            ValidationError: If name is blank
        """
        course_type = CourseType(name=normalize_name(name))
        self._course_types.append(course_type)
        self._persist(CollectionKey.COURSE_TYPES)
        logger.info("Added course type %s (%s)", course_type.name, course_type.id)
        return course_type

    def update_course_type(self, course_type_id: str, name: str) -> CourseType:
        """Rename a course type.

        The new name is copied into every offering of this type and into the
        labels of registrations for those offerings.

        Raises:
            CourseTypeNotFoundError: If course type doesn't exist
            ValidationError: If name is blank
        """
        name = normalize_name(name)
        course_type = self.get_course_type(course_type_id)

        updated = replace(course_type, name=name)
        self._replace(self._course_types, updated)
        changed = self._rewrite_offerings(
            lambda o: o.course_type_id == course_type_id,
            course_type_name=name,
        )
        self._persist(CollectionKey.COURSE_TYPES, *changed)
        logger.info("Renamed course type %s to %s", course_type_id, name)
        return updated

    def delete_course_type(self, course_type_id: str) -> None:
        """Delete a course type. Fails if any offering uses it.

        Raises:
            CourseTypeNotFoundError: If course type doesn't exist
            ReferentialConflictError: If an offering references the course type
        """
        course_type = self.get_course_type(course_type_id)
        if any(o.course_type_id == course_type_id for o in self._offerings):
            logger.warning("Refused to delete course type %s: in use", course_type_id)
            raise ReferentialConflictError(
                f"Course type '{course_type.name}' is in use by one or more offerings"
            )

        self._course_types.remove(course_type)
        self._persist(CollectionKey.COURSE_TYPES)
        logger.info("Deleted course type %s", course_type_id)

    # --- Course Operations ---

    def add_course(self, name: str) -> Course:
        """Create a new course.

        Raises:
            ValidationError: If name is blank
        """
        course = Course(name=normalize_name(name))
        self._courses.append(course)
        self._persist(CollectionKey.COURSES)
        logger.info("Added course %s (%s)", course.name, course.id)
        return course

    def update_course(self, course_id: str, name: str) -> Course:
        """Rename a course, cascading the name into its offerings.

        Raises:
            CourseNotFoundError: If course doesn't exist
            ValidationError: If name is blank
        """
        name = normalize_name(name)
        course = self.get_course(course_id)

        updated = replace(course, name=name)
        self._replace(self._courses, updated)
        changed = self._rewrite_offerings(lambda o: o.course_id == course_id, course_name=name)
        self._persist(CollectionKey.COURSES, *changed)
        logger.info("Renamed course %s to %s", course_id, name)
        return updated

    def delete_course(self, course_id: str) -> None:
        """Delete a course. Fails if any offering uses it.

        Raises:
            CourseNotFoundError: If course doesn't exist
            ReferentialConflictError: If an offering references the course
        """
        course = self.get_course(course_id)
        if any(o.course_id == course_id for o in self._offerings):
            logger.warning("Refused to delete course %s: in use", course_id)
            raise ReferentialConflictError(
                f"Course '{course.name}' is in use by one or more offerings"
            )

        self._courses.remove(course)
        self._persist(CollectionKey.COURSES)
        logger.info("Deleted course %s", course_id)

    # --- Offering Operations ---

    def add_offering(self, course_id: str, course_type_id: str) -> CourseOffering:
        """Create an offering of a course under a course type.

        Raises:
            CourseNotFoundError: If course doesn't exist
            CourseTypeNotFoundError: If course type doesn't exist
        """
        course = self.get_course(course_id)
        course_type = self.get_course_type(course_type_id)

        offering = CourseOffering(
            course_id=course.id,
            course_type_id=course_type.id,
            course_name=course.name,
            course_type_name=course_type.name,
        )
        self._offerings.append(offering)
        self._persist(CollectionKey.OFFERINGS)
        logger.info("Added offering %s (%s)", offering.label, offering.id)
        return offering

    def update_offering(self, offering_id: str, course_id: str, course_type_id: str) -> CourseOffering:
        """Point an offering at a different course and/or course type.

        Raises:
            OfferingNotFoundError: If offering doesn't exist
            CourseNotFoundError: If course doesn't exist
            CourseTypeNotFoundError: If course type doesn't exist
        """
        offering = self.get_offering(offering_id)
        course = self.get_course(course_id)
        course_type = self.get_course_type(course_type_id)

        updated = replace(
            offering,
            course_id=course.id,
            course_type_id=course_type.id,
            course_name=course.name,
            course_type_name=course_type.name,
        )
        self._replace(self._offerings, updated)
        keys = [CollectionKey.OFFERINGS]
        if self._relabel_registrations({updated.id: updated.label}):
            keys.append(CollectionKey.REGISTRATIONS)
        self._persist(*keys)
        logger.info("Updated offering %s to %s", offering_id, updated.label)
        return updated

    def delete_offering(self, offering_id: str) -> None:
        """Delete an offering. Fails if any student is registered for it.

        Raises:
            OfferingNotFoundError: If offering doesn't exist
            ReferentialConflictError: If a registration references the offering
        """
        offering = self.get_offering(offering_id)
        if any(r.course_offering_id == offering_id for r in self._registrations):
            logger.warning("Refused to delete offering %s: has registrations", offering_id)
            raise ReferentialConflictError(
                f"Offering '{offering.label}' has student registrations"
            )

        self._offerings.remove(offering)
        self._persist(CollectionKey.OFFERINGS)
        logger.info("Deleted offering %s", offering_id)

    # --- Student Operations ---

    def add_student(
        self,
        name: str,
        email: str,
        phone: str,
        registration_number: str,
        email_verified: bool = False,
        phone_verified: bool = False,
    ) -> Student:
        """Create a new student.

        Args:
            name: Student's full name
            email: Contact email
            phone: Contact phone number
            registration_number: Unique registration number
            email_verified: Whether the email was verified
            phone_verified: Whether the phone was verified

        Returns:
            Created Student object with generated ID

        Raises:
            ValidationError: If name is blank
            DuplicateRegistrationNumberError: If the registration number is taken
        """
        name = normalize_name(name)
        if self.find_student_by_registration_number(registration_number) is not None:
            logger.warning("Refused to add student: registration number taken")
            raise DuplicateRegistrationNumberError(
                f"Registration number '{registration_number}' is already in use"
            )

        student = Student(
            name=name,
            email=email,
            phone=phone,
            registration_number=registration_number,
            email_verified=email_verified,
            phone_verified=phone_verified,
        )
        self._students.append(student)
        self._persist(CollectionKey.STUDENTS)
        logger.info("Added student %s", student.id)
        return student

    # --- Registration Operations ---

    def register_student(self, student_id: str, course_offering_id: str) -> Registration:
        """Register a student for an offering.

        Raises:
            StudentNotFoundError: If student doesn't exist
            OfferingNotFoundError: If offering doesn't exist
            DuplicateRegistrationError: If the student is already registered
        """
        student = self.get_student(student_id)
        offering = self.get_offering(course_offering_id)

        if self.list_registrations(student_id=student_id, offering_id=course_offering_id):
            logger.warning(
                "Refused duplicate registration of %s for %s", student_id, course_offering_id
            )
            raise DuplicateRegistrationError(
                f"Student '{student.name}' is already registered for '{offering.label}'"
            )

        registration = Registration(
            student_id=student.id,
            course_offering_id=offering.id,
            student_name=student.name,
            offering_name=offering.label,
        )
        self._registrations.append(registration)
        self._persist(CollectionKey.REGISTRATIONS)
        logger.info("Registered student %s for %s", student_id, offering.label)
        return registration

    def delete_registration(self, registration_id: str) -> None:
        """Delete a registration.

        Raises:
            RegistrationNotFoundError: If registration doesn't exist
        """
        registration = self.get_registration(registration_id)
        self._registrations.remove(registration)
        self._persist(CollectionKey.REGISTRATIONS)
        logger.info("Deleted registration %s", registration_id)

    # --- Internals ---

    @staticmethod
    def _replace(collection: list[Any], updated: Any) -> None:
        for index, entity in enumerate(collection):
            if entity.id == updated.id:
                collection[index] = updated
                return

    def _rewrite_offerings(
        self, matches: Callable[[CourseOffering], bool], **names: str
    ) -> list[CollectionKey]:
        """Apply denormalized name changes to matching offerings.

        Returns the collection keys that changed.
        """
        labels: dict[str, str] = {}
        for index, offering in enumerate(self._offerings):
            if matches(offering):
                updated = replace(offering, **names)
                self._offerings[index] = updated
                labels[updated.id] = updated.label
        if not labels:
            return []

        keys = [CollectionKey.OFFERINGS]
        if self._relabel_registrations(labels):
            keys.append(CollectionKey.REGISTRATIONS)
        return keys

    def _relabel_registrations(self, labels: dict[str, str]) -> bool:
        """Refresh ``offering_name`` on registrations; True if any changed."""
        changed = False
        for index, registration in enumerate(self._registrations):
            label = labels.get(registration.course_offering_id)
            if label is not None and label != registration.offering_name:
                self._registrations[index] = replace(registration, offering_name=label)
                changed = True
        return changed

    def _persist(self, *keys: CollectionKey) -> None:
        collections = {
            CollectionKey.COURSE_TYPES: self._course_types,
            CollectionKey.COURSES: self._courses,
            CollectionKey.OFFERINGS: self._offerings,
            CollectionKey.STUDENTS: self._students,
            CollectionKey.REGISTRATIONS: self._registrations,
        }
        self._db.write_blobs({key.value: dump_collection(collections[key]) for key in keys})
