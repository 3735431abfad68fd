"""Domain value objects."""

from .provenance import ProvenanceClassifier, is_under
from .stable_identity import StableId, compute_stable_id

__all__ = [
    "StableId",
    "compute_stable_id",
    "ProvenanceClassifier",
    "is_under",
]
