"""Model-level validation utilities for data integrity.

Reusable validators that enforce shape rules at the ORM level, so invalid
documents never reach the database regardless of which service writes them.
"""


def validate_dict(key: str, value):
    """Validate that a JSON column value is a dict."""
    if not isinstance(value, dict):
        raise ValueError(f"{key} must be a dict, got {type(value).__name__}")
    return value


def validate_document_path(key: str, value):
    """Validate a document path: non-empty segments, even segment count."""
    if not isinstance(value, str) or not value:
        raise ValueError(f"{key} must be a non-empty string")
    segments = value.split("/")
    if any(not s for s in segments):
        raise ValueError(f"{key} contains an empty segment: {value!r}")
    if len(segments) % 2 != 0:
        raise ValueError(f"{key} must point at a document, got collection path {value!r}")
    return value
