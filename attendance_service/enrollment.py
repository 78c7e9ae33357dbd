"""
Student enrollment module.

Captures a face descriptor from the camera and registers a new student
with it.
"""

from typing import Any, Callable, Iterable, Optional, Sequence

import numpy as np

from .backend import BackendError
from .camera import CaptureError
from .logging_config import get_logger
from .recognition.descriptor import extract_descriptor
from .recognition.matching import GalleryEntry
from .students import find_by_roll_number

logger = get_logger(__name__)


class EnrollmentError(ValueError):
    """Enrollment rejected; the message is meant for the operator."""


def capture_descriptor(
    frame_source: Any,
    detector: Any,
    key_points: Sequence[int],
    policy: str = 'skip'
) -> np.ndarray:
    """
    Analyse the current camera frame and build its descriptor.

    Raises:
        EnrollmentError: Camera failure or no face in the frame
    """
    try:
        frame = frame_source.get_current_frame()
    except CaptureError as e:
        raise EnrollmentError(f'Error accessing camera: {e}') from e

    try:
        landmarks = detector.detect(frame)
    except Exception as e:
        logger.error(f'Error analyzing face: {e}')
        raise EnrollmentError(f'Error analyzing face: {e}') from e

    descriptor = extract_descriptor(landmarks, key_points, policy)
    if descriptor is None:
        raise EnrollmentError('No face detected. Please ensure your face is clearly visible.')

    logger.info(f'Face analyzed, descriptor length {len(descriptor)}')
    return descriptor


def enroll_student(
    name: str,
    roll_number: str,
    descriptor: Optional[np.ndarray],
    gallery: Iterable[GalleryEntry],
    save_face: Callable[[str, str, Sequence[float]], dict]
) -> GalleryEntry:
    """
    Register a student with a captured descriptor.

    The roll number is checked against ``gallery`` before anything is
    sent to ``save_face``.

    Args:
        name: Student name
        roll_number: Unique roll number
        descriptor: Descriptor from capture_descriptor
        gallery: Students already enrolled
        save_face: Enrollment sink, e.g. BackendClient.save_face

    Returns:
        Gallery entry of the new student

    Raises:
        EnrollmentError: Missing fields, duplicate roll number, or the
            backend rejected the student
    """
    name = (name or '').strip()
    roll_number = str(roll_number or '').strip()

    if not name or not roll_number or descriptor is None or len(descriptor) == 0:
        raise EnrollmentError('Please enter student details and analyze face')

    if find_by_roll_number(gallery, roll_number) is not None:
        logger.warning(f'Enrollment rejected, roll number {roll_number} already exists')
        raise EnrollmentError('Roll number already exists')

    try:
        data = save_face(name, roll_number, descriptor)
    except BackendError as e:
        logger.warning(f'Enrollment of {name} ({roll_number}) rejected: {e.message}')
        raise EnrollmentError(e.message) from e

    student = (data or {}).get('student') or {}
    entry = GalleryEntry(
        student_id=student.get('id'),
        name=name,
        roll_number=roll_number,
        descriptor=np.asarray(descriptor, dtype=np.float64),
    )
    logger.info(f'✅ Student registered: {name} ({roll_number})')
    return entry
