"""Registration store - course types, courses, offerings, students and registrations."""

from coursereg.registry.desk import RegistrationDesk
from coursereg.registry.exceptions import (
    CorruptStateError,
    CourseNotFoundError,
    CourseTypeNotFoundError,
    DuplicateRegistrationError,
    DuplicateRegistrationNumberError,
    NotFoundError,
    OfferingNotFoundError,
    ReferentialConflictError,
    RegistrationNotFoundError,
    RegistryError,
    StudentNotFoundError,
    UnverifiedStudentError,
    ValidationError,
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
)
from coursereg.registry.store import RegistrationStore

__all__ = [
    "CollectionKey",
    "CorruptStateError",
    "Course",
    "CourseNotFoundError",
    "CourseOffering",
    "CourseType",
    "CourseTypeNotFoundError",
    "DuplicateRegistrationError",
    "DuplicateRegistrationNumberError",
    "NotFoundError",
    "OfferingNotFoundError",
    "ReferentialConflictError",
    "Registration",
    "RegistrationDesk",
    "RegistrationNotFoundError",
    "RegistrationStore",
    "RegistryError",
    "RegistrySnapshot",
    "RegistryStats",
    "Student",
    "StudentNotFoundError",
    "UnverifiedStudentError",
    "ValidationError",
]
