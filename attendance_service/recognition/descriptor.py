"""
Face descriptor module.

Turns detected face landmarks into a flat numeric descriptor and measures
dissimilarity between descriptors.
"""

from typing import Optional, Sequence, Any

import numpy as np


def extract_descriptor(
    landmarks: Optional[Sequence[Any]],
    key_points: Sequence[int],
    policy: str = 'skip'
) -> Optional[np.ndarray]:
    """
    Build a descriptor from the x, y coordinates of selected landmarks.

    Args:
        landmarks: Ordered landmark points (x, y[, z]) for one face, or None
        key_points: Ordered landmark indices to sample
        policy: 'skip' leaves out indices missing from this frame (the
            descriptor gets shorter), 'reject' returns None instead

    Returns:
        Descriptor of length 2 * len(key_points) (shorter under 'skip'),
        or None when there is nothing to describe
    """
    if landmarks is None or len(landmarks) == 0:
        return None

    values = []
    for index in key_points:
        point = landmarks[index] if 0 <= index < len(landmarks) else None
        if point is None or len(point) < 2:
            if policy == 'reject':
                return None
            continue
        values.append(float(point[0]))
        values.append(float(point[1]))

    if not values:
        return None

    return np.asarray(values, dtype=np.float64)


def descriptor_distance(
    desc1: Optional[np.ndarray],
    desc2: Optional[np.ndarray],
    scale: float = 1.0
) -> float:
    """
    Euclidean distance between two descriptors.

    Descriptors that are missing, empty or of different lengths are not
    comparable. For those the maximal distance (1.0 * scale) is returned
    instead of raising, so passing the caller's threshold as ``scale``
    guarantees such a pair never counts as a match.

    Args:
        desc1: First descriptor
        desc2: Second descriptor
        scale: Units of the maximal distance (use the match threshold)

    Returns:
        Non-negative distance
    """
    if desc1 is None or desc2 is None:
        return 1.0 * scale

    a = np.asarray(desc1, dtype=np.float64)
    b = np.asarray(desc2, dtype=np.float64)

    if a.size == 0 or b.size == 0 or a.shape != b.shape:
        return 1.0 * scale

    return float(np.linalg.norm(a - b))
