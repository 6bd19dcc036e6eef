"""
Resource Portal Backend Package

This package contains the FastAPI application that stores uploaded
resource files on local disk and removes them again, keeping the
grade/subject/medium directory tree free of empty folders.
"""

from .main import app  # noqa: F401
