"""
Attendance gate module.

Decides whether a recognized match should be marked present, and
suppresses repeated marks during a cooldown window:

- IDLE: no recent mark, the next qualifying match is accepted
- COOLDOWN: marks are suppressed until the window elapses

The window is global by default, so a second student recognized within
the cooldown is not marked either. Scope 'identity' keeps one window per
student instead.
"""

import time
from enum import Enum
from typing import Any, Callable, Dict, Optional

from ..logging_config import get_logger
from .matching import MatchResult

logger = get_logger(__name__)


DEFAULT_CONFIDENCE_THRESHOLD = 70.0
DEFAULT_COOLDOWN_SECONDS = 5.0

_GLOBAL_KEY = '*'


class GateState(str, Enum):
    IDLE = 'IDLE'
    COOLDOWN = 'COOLDOWN'


class AttendanceGate:
    """
    Debounced decision layer between the matcher and the recorder.

    Owned by a single recognition loop; not shared between loops.
    """

    def __init__(
        self,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        scope: str = 'global',
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize attendance gate.

        Args:
            confidence_threshold: Percentage a match must exceed
            cooldown_seconds: Length of the suppression window
            scope: 'global' or 'identity'
            clock: Monotonic time source in seconds
        """
        if scope not in ('global', 'identity'):
            raise ValueError(f'Unknown cooldown scope: {scope!r}')

        self.confidence_threshold = confidence_threshold
        self.cooldown_seconds = cooldown_seconds
        self.scope = scope
        self._clock = clock
        self._last_accepted: Dict[Any, float] = {}

    def _key(self, student_id: Any) -> Any:
        return _GLOBAL_KEY if self.scope == 'global' else student_id

    def state(self, student_id: Any = None) -> GateState:
        """
        Current state, for the whole gate or for one student.

        The COOLDOWN -> IDLE transition happens by itself once the window
        has elapsed.
        """
        last = self._last_accepted.get(self._key(student_id))
        if last is not None and self._clock() - last < self.cooldown_seconds:
            return GateState.COOLDOWN
        return GateState.IDLE

    def offer(self, match: Optional[MatchResult]) -> bool:
        """
        Offer a match to the gate.

        Args:
            match: Match from the matcher (None is ignored)

        Returns:
            True if attendance should be marked for ``match.entry``.
            The gate enters COOLDOWN as a side effect.
        """
        if match is None:
            return False

        if not match.confidence_percent > self.confidence_threshold:
            return False

        student_id = match.entry.student_id
        if self.state(student_id) is GateState.COOLDOWN:
            logger.debug(f'Suppressed mark for {student_id} (cooldown)')
            return False

        self._last_accepted[self._key(student_id)] = self._clock()
        logger.info(
            f'Accepted {match.entry.name} ({match.entry.roll_number}) '
            f'at {match.confidence_percent}% confidence'
        )
        return True

    def reset(self) -> None:
        """Drop all cooldowns (back to IDLE)."""
        self._last_accepted.clear()
