"""Detect and remove unreferenced projects from solution manifests."""

from .graph import DetectionResult, IncompleteGraphError, ReferenceCycleError, detect_unused
from .manifest import ManifestParseError, RemovalResult, SurgeryWarning, apply_removal

__version__ = "0.1.0"

__all__ = [
    "DetectionResult",
    "IncompleteGraphError",
    "ManifestParseError",
    "ReferenceCycleError",
    "RemovalResult",
    "SurgeryWarning",
    "__version__",
    "apply_removal",
    "detect_unused",
]
