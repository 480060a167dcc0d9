"""Project reference graph and reachability."""

from .reachability import (
    DescriptorReader,
    DetectionResult,
    IncompleteGraphError,
    ReachabilityResult,
    ReferenceCycleError,
    classify_roots,
    compute_reachability,
    detect_unused,
    read_descriptor_file,
)
from .references import ReferenceEdge, extract_references

__all__ = [
    "DescriptorReader",
    "DetectionResult",
    "IncompleteGraphError",
    "ReachabilityResult",
    "ReferenceCycleError",
    "ReferenceEdge",
    "classify_roots",
    "compute_reachability",
    "detect_unused",
    "extract_references",
    "read_descriptor_file",
]
