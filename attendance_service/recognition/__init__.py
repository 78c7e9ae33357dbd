"""
Recognition algorithms package.

Contains modules for:
- Descriptor extraction and distance
- Gallery matching
- Attendance gating (cooldown)
"""

from .descriptor import extract_descriptor, descriptor_distance
from .matching import (
    GalleryEntry,
    MatchResult,
    confidence_to_percent,
    find_best_match,
)
from .gate import AttendanceGate, GateState

__all__ = [
    'extract_descriptor',
    'descriptor_distance',
    'GalleryEntry',
    'MatchResult',
    'confidence_to_percent',
    'find_best_match',
    'AttendanceGate',
    'GateState',
]
