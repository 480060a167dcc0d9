"""Path normalization primitives."""

from .paths import (
    PARENT_TRAVERSAL_TOKEN,
    is_external_path,
    is_parent_traversal,
    path_key,
    resolve_reference_path,
)

__all__ = [
    "PARENT_TRAVERSAL_TOKEN",
    "is_external_path",
    "is_parent_traversal",
    "path_key",
    "resolve_reference_path",
]
