"""Registration desk - the enrollment workflow built on top of the store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from coursereg.logging import mask_contact
from coursereg.registry.exceptions import UnverifiedStudentError, ValidationError
from coursereg.registry.validation import (
    is_valid_email,
    is_valid_phone,
    is_valid_registration_number,
)

if TYPE_CHECKING:
    from coursereg.registry.models import Registration, Student
    from coursereg.registry.store import RegistrationStore

logger = logging.getLogger(__name__)


class RegistrationDesk:
    """Enrolls students into offerings.

    A new student must have a verified email and phone and a well-formed,
    unused registration number before they are created and registered.
    Verification itself is simulated: only the format is checked.
    """

    def __init__(self, store: RegistrationStore) -> None:
        self._store = store

    def verify_email(self, email: str) -> bool:
        """Check an email address before marking it verified.

        Raises:
            ValidationError: If the address is malformed
        """
        email = email.strip()
        if not is_valid_email(email):
            raise ValidationError("Please enter a valid email address")
        logger.info("Verified email %s", mask_contact(email))
        return True

    def verify_phone(self, phone: str) -> bool:
        """Check a phone number before marking it verified.

        Raises:
            ValidationError: If the number is malformed
        """
        phone = phone.strip()
        if not is_valid_phone(phone):
            raise ValidationError("Please enter a valid phone number")
        logger.info("Verified phone %s", mask_contact(phone))
        return True

    def enroll_new_student(
        self,
        name: str,
        email: str,
        phone: str,
        registration_number: str,
        offering_id: str,
        email_verified: bool,
        phone_verified: bool,
    ) -> tuple[Student, Registration]:
        """Create a student and register them for an offering.

        The offering is resolved before the student is created, so an unknown
        offering does not leave an orphan student behind.

        Returns:
            The new student and their registration

        Raises:
            UnverifiedStudentError: If email or phone is not verified
            ValidationError: If the registration number is malformed
            DuplicateRegistrationNumberError: If the registration number is taken
            OfferingNotFoundError: If the offering doesn't exist
        """
        if not (email_verified and phone_verified):
            raise UnverifiedStudentError(
                "Please verify both email and phone number before registering"
            )
        if not is_valid_registration_number(registration_number):
            raise ValidationError(
                "Registration number must be at least 6 characters long and contain "
                "only uppercase letters and numbers"
            )
        self._store.get_offering(offering_id)

        student = self._store.add_student(
            name,
            email.strip(),
            phone.strip(),
            registration_number,
            email_verified,
            phone_verified,
        )
        registration = self._store.register_student(student.id, offering_id)
        return student, registration

    def enroll_existing_student(self, student_id: str, offering_id: str) -> Registration:
        """Register an already created student for another offering."""
        return self._store.register_student(student_id, offering_id)
