"""Custom exceptions for the registration store."""


class RegistryError(Exception):
    """Base exception for registration store errors."""


class NotFoundError(RegistryError):
    """Referenced entity does not exist."""


class CourseTypeNotFoundError(NotFoundError):
    """Course type with given ID does not exist."""


class CourseNotFoundError(NotFoundError):
    """Course with given ID does not exist."""


class OfferingNotFoundError(NotFoundError):
    """Course offering with given ID does not exist."""


class StudentNotFoundError(NotFoundError):
    """Student with given ID does not exist."""


class RegistrationNotFoundError(NotFoundError):
    """Registration with given ID does not exist."""


class ReferentialConflictError(RegistryError):
    """Cannot delete an entity that other records still reference."""


class DuplicateRegistrationError(RegistryError):
    """Student is already registered for this offering."""


class DuplicateRegistrationNumberError(RegistryError):
    """Registration number is already assigned to another student."""


class UnverifiedStudentError(RegistryError):
    """Email or phone has not been verified before registering."""


class ValidationError(RegistryError):
    """A field value is blank or malformed."""


class CorruptStateError(RegistryError):
    """A persisted collection could not be decoded."""
