"""Shared pytest fixtures and configuration."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from coursereg.registry import Course, CourseType, RegistrationStore


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: tests that touch the filesystem")


# Shared fixtures


@pytest.fixture
def store() -> Iterator[RegistrationStore]:
    """Create an in-memory RegistrationStore seeded with the defaults."""
    registration_store = RegistrationStore(":memory:")
    yield registration_store
    registration_store.close()


@pytest.fixture
def individual(store: RegistrationStore) -> CourseType:
    """The seeded 'Individual' course type."""
    return next(t for t in store.course_types if t.name == "Individual")


@pytest.fixture
def group(store: RegistrationStore) -> CourseType:
    """The seeded 'Group' course type."""
    return next(t for t in store.course_types if t.name == "Group")


@pytest.fixture
def hindi(store: RegistrationStore) -> Course:
    """The seeded 'Hindi' course."""
    return next(c for c in store.courses if c.name == "Hindi")


@pytest.fixture
def english(store: RegistrationStore) -> Course:
    """The seeded 'English' course."""
    return next(c for c in store.courses if c.name == "English")
