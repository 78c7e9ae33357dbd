"""
Student gallery module.

Loads enrolled students and their face descriptors from the backend.
"""

from typing import Any, Dict, Iterable, List, Optional

import numpy as np

from .backend import BackendClient, BackendError
from .logging_config import get_logger
from .recognition.matching import GalleryEntry
from .utils.timing import retry_with_backoff

logger = get_logger(__name__)


def entry_from_record(record: Dict[str, Any]) -> Optional[GalleryEntry]:
    """
    Build a gallery entry from a backend student record.

    Returns:
        GalleryEntry or None if the student has no usable descriptor
    """
    raw = record.get('face_descriptor')
    if not raw:
        return None

    try:
        descriptor = np.asarray(raw, dtype=np.float64).ravel()
    except (TypeError, ValueError):
        return None

    return GalleryEntry(
        student_id=record.get('id'),
        name=record.get('name', 'Unknown'),
        roll_number=str(record.get('roll_number', '')),
        descriptor=descriptor,
    )


def load_gallery(client: BackendClient, attempts: int = 3) -> List[GalleryEntry]:
    """
    Load the gallery snapshot used for recognition.

    Args:
        client: Authenticated backend client
        attempts: Fetch attempts before giving up

    Returns:
        Gallery entries in backend order

    Raises:
        BackendError: If the students cannot be fetched
    """
    logger.info('Loading students from backend...')

    records = retry_with_backoff(
        client.list_students, max_attempts=attempts, retry_on=(BackendError,)
    )
    logger.info(f'Fetched {len(records)} students from backend')

    gallery: List[GalleryEntry] = []
    for record in records:
        entry = entry_from_record(record)
        if entry is None:
            logger.warning(f"Student {record.get('id')} has no usable face descriptor, skipping")
            continue
        gallery.append(entry)

    logger.info(f'✅ Loaded {len(gallery)} students with face descriptors')
    return gallery


def find_by_roll_number(
    gallery: Iterable[GalleryEntry],
    roll_number: str
) -> Optional[GalleryEntry]:
    roll_number = str(roll_number).strip()
    for entry in gallery:
        if entry.roll_number == roll_number:
            return entry
    return None
