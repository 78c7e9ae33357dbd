"""
Attendance recording module.

Sends accepted attendance marks to the backend.
"""

from dataclasses import dataclass

from .backend import BackendClient, BackendError
from .logging_config import get_logger
from .recognition.matching import GalleryEntry

logger = get_logger(__name__)


@dataclass(frozen=True)
class RecordResult:
    ok: bool
    message: str


class AttendanceRecorder:
    """Records attendance through the backend; never raises."""

    def __init__(self, client: BackendClient):
        self.client = client

    def record(self, entry: GalleryEntry) -> RecordResult:
        """
        Mark ``entry`` present for today.

        Args:
            entry: Recognized student

        Returns:
            RecordResult; duplicates ("Attendance already marked today") and
            network failures come back as ok=False
        """
        logger.info(f'📤 Marking attendance for {entry.name} ({entry.roll_number})')

        try:
            data = self.client.mark_attendance(entry.student_id)
        except BackendError as e:
            if e.status_code is None:
                logger.error(f'❌ Error marking attendance: {e.message}')
                return RecordResult(False, 'Error marking attendance')
            logger.warning(f'❌ Attendance rejected for {entry.name}: {e.message}')
            return RecordResult(False, e.message)

        message = (data or {}).get('message') or 'Attendance marked successfully'
        logger.info(f'✅ {message}')
        return RecordResult(True, message)
