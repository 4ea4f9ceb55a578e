"""Shared helpers for document persistence and progress reporting."""

from .jsonio import atomic_write_text, write_document
from .models import Document
from .progress import (
    CancelCheck,
    ProgressCallback,
    ProgressEvent,
    ProgressReporter,
    is_cancelled,
)

__all__ = [
    "CancelCheck",
    "Document",
    "ProgressCallback",
    "ProgressEvent",
    "ProgressReporter",
    "atomic_write_text",
    "is_cancelled",
    "write_document",
]
