"""coursegate utilities."""

from .config import Settings, load_settings
from .course_loader import load_course, write_course

__all__ = ["Settings", "load_settings", "load_course", "write_course"]
