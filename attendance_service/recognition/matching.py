"""
Descriptor matching module.

Matches a face descriptor against enrolled students by Euclidean distance.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional

import numpy as np

from .descriptor import descriptor_distance


DEFAULT_MATCH_THRESHOLD = 100.0


@dataclass(frozen=True, eq=False)
class GalleryEntry:
    """An enrolled student and the descriptor captured at enrollment."""

    student_id: Any
    name: str
    roll_number: str
    descriptor: np.ndarray = field(repr=False)

    def to_dict(self) -> Dict[str, Any]:
        """Public view of the entry (descriptor omitted)."""
        return {
            'id': self.student_id,
            'name': self.name,
            'rollNumber': self.roll_number,
            'descriptorLength': int(len(self.descriptor)),
        }


@dataclass(frozen=True)
class MatchResult:
    """
    Best gallery match for a descriptor.

    confidence = 1 - distance / threshold, so it is 1.0 for an exact match
    and approaches 0.0 as the distance approaches the threshold.
    """

    entry: GalleryEntry
    distance: float
    confidence: float

    @property
    def confidence_percent(self) -> int:
        return confidence_to_percent(self.confidence)


def confidence_to_percent(confidence: float) -> int:
    """Round a [.., 1] confidence to a whole percentage, halves rounding up."""
    return int(np.floor(confidence * 100 + 0.5))


def find_best_match(
    descriptor: Optional[np.ndarray],
    gallery: Iterable[GalleryEntry],
    threshold: float = DEFAULT_MATCH_THRESHOLD
) -> Optional[MatchResult]:
    """
    Find the enrolled student closest to ``descriptor``.

    Every entry is compared; the first entry with the strictly smallest
    distance wins, so ties resolve to gallery order. Entries whose
    descriptor cannot be compared (empty or different length) get the
    maximal distance and can never match.

    Args:
        descriptor: Descriptor of the current face
        gallery: Enrolled students, in iteration order
        threshold: A match requires distance < threshold

    Returns:
        MatchResult for the winner, or None if nothing is below threshold
    """
    best_entry: Optional[GalleryEntry] = None
    best_distance = float('inf')

    for entry in gallery:
        if entry.descriptor is None or len(entry.descriptor) == 0:
            continue

        distance = descriptor_distance(descriptor, entry.descriptor, scale=threshold)
        if distance < best_distance:
            best_distance = distance
            best_entry = entry

    if best_entry is None or not best_distance < threshold:
        return None

    return MatchResult(
        entry=best_entry,
        distance=best_distance,
        confidence=1.0 - best_distance / threshold,
    )
