"""Unit tests for coursereg logging configuration."""

import logging
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest

from coursereg.logging import get_logger, mask_contact, setup_logging


@pytest.fixture(autouse=True)
def reset_coursereg_logger() -> Iterator[None]:
    """Detach handlers so later tests don't write into removed directories."""
    yield
    logger = logging.getLogger("coursereg")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.mark.unit
class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_creates_log_directory(self) -> None:
        """Log directory is created if it doesn't exist."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_dir = Path(tmpdir) / "nested" / "logs"
            setup_logging(log_dir=log_dir, console=False)

            assert log_dir.exists()

    def test_writes_to_log_file(self) -> None:
        """Log messages are written to the file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            logger = setup_logging(log_dir=tmpdir, console=False)
            logger.info("test message 123")

            content = (Path(tmpdir) / "coursereg.log").read_text()
            assert "test message 123" in content

    def test_log_format(self) -> None:
        """Entries carry level and logger name."""
        with tempfile.TemporaryDirectory() as tmpdir:
            setup_logging(log_dir=tmpdir, console=False)
            logging.getLogger("coursereg.registry.store").info("component test")

            content = (Path(tmpdir) / "coursereg.log").read_text()
            # Format: 2026-01-28 16:30:45 | INFO     | coursereg.registry.store | message
            assert " | INFO" in content
            assert " | coursereg.registry.store | component test" in content

    def test_store_operations_are_logged(self) -> None:
        """Store mutations and rejections reach the log file."""
        from coursereg.registry import ReferentialConflictError, RegistrationStore

        with tempfile.TemporaryDirectory() as tmpdir:
            setup_logging(log_dir=tmpdir, console=False)
            store = RegistrationStore(":memory:")
            course_type = store.add_course_type("Weekend")
            in_use = store.course_types[0]
            store.add_offering(store.courses[0].id, in_use.id)
            with pytest.raises(ReferentialConflictError):
                store.delete_course_type(in_use.id)
            store.close()

            content = (Path(tmpdir) / "coursereg.log").read_text()
            assert f"Added course type Weekend ({course_type.id})" in content
            assert "WARNING  | coursereg.registry.store | Refused to delete course type" in content

    def test_log_level_configurable(self) -> None:
        """Log level filters messages appropriately."""
        with tempfile.TemporaryDirectory() as tmpdir:
            setup_logging(log_dir=tmpdir, level="WARNING", console=False)
            logger = logging.getLogger("coursereg")
            logger.info("should not appear")
            logger.warning("should appear")

            content = (Path(tmpdir) / "coursereg.log").read_text()
            assert "should not appear" not in content
            assert "should appear" in content

    @patch.dict(os.environ, {"COURSEREG_LOG_LEVEL": "DEBUG"})
    def test_log_level_from_env(self) -> None:
        """Log level can be set via environment variable."""
        with tempfile.TemporaryDirectory() as tmpdir:
            logger = setup_logging(log_dir=tmpdir, console=False)

            assert logger.level == logging.DEBUG

    def test_log_dir_from_env(self) -> None:
        """Log directory can be set via environment variable."""
        with (
            tempfile.TemporaryDirectory() as tmpdir,
            patch.dict(os.environ, {"COURSEREG_LOG_DIR": tmpdir}),
        ):
            setup_logging(console=False)

            assert (Path(tmpdir) / "coursereg.log").exists()

    def test_no_duplicate_handlers_on_repeated_setup(self) -> None:
        """Repeated setup_logging calls don't add duplicate handlers."""
        with tempfile.TemporaryDirectory() as tmpdir:
            setup_logging(log_dir=tmpdir, console=False)
            setup_logging(log_dir=tmpdir, console=False)

            logger = logging.getLogger("coursereg")
            assert len(logger.handlers) == 1

    def test_rotation_configured(self) -> None:
        """RotatingFileHandler is configured with the given limits."""
        with tempfile.TemporaryDirectory() as tmpdir:
            logger = setup_logging(log_dir=tmpdir, max_bytes=1024, backup_count=3, console=False)

            file_handler = next(h for h in logger.handlers if hasattr(h, "maxBytes"))
            assert file_handler.maxBytes == 1024
            assert file_handler.backupCount == 3


@pytest.mark.unit
class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_prefixes_coursereg(self) -> None:
        assert get_logger("registry.store").name == "coursereg.registry.store"

    def test_get_logger_no_double_prefix(self) -> None:
        assert get_logger("coursereg.registry").name == "coursereg.registry"


@pytest.mark.unit
class TestMaskContact:
    """Tests for mask_contact function."""

    def test_masks_email(self) -> None:
        assert mask_contact("asha@x.com") == "a***@x.com"

    def test_masks_phone(self) -> None:
        assert mask_contact("+1-555-0100") == "***00"

    def test_masks_inside_sentence(self) -> None:
        result = mask_contact("Verified asha@x.com and 9876543210 today")
        assert "asha@" not in result
        assert "98765432" not in result
        assert result == "Verified a***@x.com and ***10 today"

    def test_plain_text_unchanged(self) -> None:
        assert mask_contact("Registered for Individual - Hindi") == "Registered for Individual - Hindi"
