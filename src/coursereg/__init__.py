"""coursereg - course offering and student registration store."""

__version__ = "0.1.0"
