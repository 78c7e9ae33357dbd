"""
Recognition loop.

Drives the attendance pipeline on a fixed interval:
- Frame capture
- Landmark detection
- Descriptor matching against the gallery snapshot
- Attendance gating and recording
"""

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, List, Optional, Protocol

import numpy as np

from .camera import CaptureError
from .config import Config
from .events import RecordResult
from .logging_config import get_logger
from .recognition.descriptor import extract_descriptor
from .recognition.gate import AttendanceGate
from .recognition.matching import GalleryEntry, MatchResult, find_best_match
from .streaming import RecognitionStatus, draw_face_landmarks

logger = get_logger(__name__)


class FrameProvider(Protocol):
    def open(self) -> None: ...
    def get_current_frame(self) -> Any: ...
    def release(self) -> None: ...


class Detector(Protocol):
    def detect(self, frame: Any) -> Optional[np.ndarray]: ...


class Recorder(Protocol):
    def record(self, entry: GalleryEntry) -> RecordResult: ...


class RecognitionLoop:
    """
    Periodic recognition driver for one attendance station.

    Ticks run one after another on a single worker thread, which is also
    the only place the gate is mutated. Attendance recording is handed to
    a small pool so a slow backend does not delay the next tick.
    """

    def __init__(
        self,
        config: Config,
        frame_source: FrameProvider,
        detector: Detector,
        gallery_source: Callable[[], List[GalleryEntry]],
        recorder: Recorder,
        status: Optional[RecognitionStatus] = None,
        gate: Optional[AttendanceGate] = None
    ):
        self.config = config
        self.frame_source = frame_source
        self.detector = detector
        self.gallery_source = gallery_source
        self.recorder = recorder
        self.status = status or RecognitionStatus()
        self.gate = gate or AttendanceGate(
            confidence_threshold=config.confidence_threshold,
            cooldown_seconds=config.cooldown_seconds,
            scope=config.cooldown_scope,
        )

        self._gallery: List[GalleryEntry] = []
        self._lifecycle_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_flag: Optional[threading.Event] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._pending: Optional[Future] = None

    @property
    def gallery(self) -> List[GalleryEntry]:
        return list(self._gallery)

    @property
    def is_running(self) -> bool:
        return self._stop_flag is not None and not self._stop_flag.is_set()

    def start(self) -> bool:
        """
        Start recognition.

        Opens the camera and loads the gallery snapshot once; neither is
        refreshed while running.

        Returns:
            True if started; False if already running or start failed
            (the reason is shown on the status surface)
        """
        with self._lifecycle_lock:
            if self.is_running:
                logger.warning('Recognition already running, start ignored')
                return False

            try:
                self.frame_source.open()
            except CaptureError as e:
                logger.error(f'Camera unavailable: {e}')
                self.status.show(f'Error accessing camera: {e}', 'error')
                return False

            try:
                gallery = list(self.gallery_source())
            except Exception as e:
                logger.error(f'Failed to load students: {e}')
                self.status.show(f'Error loading students: {e}', 'error')
                self.frame_source.release()
                return False

            if not gallery:
                self.status.show('No students registered for recognition', 'error')
                self.frame_source.release()
                return False

            self._gallery = gallery
            self.gate.reset()
            self._pending = None
            self._executor = ThreadPoolExecutor(
                max_workers=2, thread_name_prefix='attendance-record'
            )
            self._stop_flag = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_flag,),
                daemon=True,
                name=f'Recognition-{self.config.station_id}',
            )
            self._thread.start()

            self.status.set_running(True)
            self.status.show('🔍 Starting real-time face recognition...', 'info')
            logger.info(
                f'🎬 Recognition started: {len(gallery)} students, '
                f'every {self.config.recognition_interval_seconds}s'
            )
            return True

    def stop(self) -> None:
        """
        Stop recognition.

        No tick runs after this returns. A recording already in flight is
        left to finish; the gate goes back to IDLE, the displayed
        confidence to 0, and the camera is released.
        """
        with self._lifecycle_lock:
            if self._stop_flag is not None:
                self._stop_flag.set()

            thread = self._thread
            if thread is not None and thread is not threading.current_thread():
                thread.join()
            self._thread = None

            if self._executor is not None:
                self._executor.shutdown(wait=False)
                self._executor = None

            self.frame_source.release()
            self.gate.reset()
            self.status.set_confidence(0)
            self.status.set_frame(None)
            self.status.set_running(False)
            self.status.show('Recognition stopped', 'info')
            logger.info('Recognition stopped')

    def _run(self, stop_flag: threading.Event) -> None:
        interval = self.config.recognition_interval_seconds
        next_at = time.monotonic() + interval
        while not stop_flag.wait(max(0.0, next_at - time.monotonic())):
            try:
                self.tick()
            except Exception as e:
                logger.error(f'Recognition tick failed: {e}', exc_info=True)

            next_at += interval
            now = time.monotonic()
            if next_at <= now:
                # overran; resync instead of firing the missed ticks in a burst
                skipped = int((now - next_at) // interval) + 1
                next_at += skipped * interval
                logger.debug(f'Tick overran the interval, skipped {skipped} tick(s)')

    def tick(self) -> Optional[MatchResult]:
        """
        Run one recognition step.

        Returns:
            The match found in this tick, if any
        """
        stop_flag = self._stop_flag
        if stop_flag is None or stop_flag.is_set():
            return None

        if self.config.skip_tick_while_recording and self._recording_in_flight():
            logger.debug('Previous attendance call still in flight, skipping tick')
            return None

        try:
            frame = self.frame_source.get_current_frame()
        except CaptureError as e:
            logger.warning(f'Frame capture failed: {e}')
            self.status.show(f'Error accessing camera: {e}', 'error')
            return None

        try:
            landmarks = self.detector.detect(frame)
        except Exception as e:
            logger.warning(f'Face detection failed: {e}')
            landmarks = None

        if landmarks is None or len(landmarks) == 0:
            self.status.set_frame(frame)
            return None

        self.status.set_frame(draw_face_landmarks(np.array(frame, copy=True), landmarks))

        descriptor = extract_descriptor(
            landmarks,
            self.config.key_point_indices,
            self.config.missing_landmark_policy,
        )
        match = find_best_match(descriptor, self._gallery, self.config.match_threshold)

        if match is None:
            self.status.set_confidence(0)
            return None

        self.status.set_confidence(match.confidence_percent)
        logger.debug(
            f'Best match {match.entry.name}: distance={match.distance:.1f}, '
            f'confidence={match.confidence_percent}%'
        )

        if self.gate.offer(match):
            self._dispatch(match.entry)

        return match

    def _recording_in_flight(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def _dispatch(self, entry: GalleryEntry) -> None:
        executor = self._executor
        if executor is None:
            return
        try:
            self._pending = executor.submit(self._record, entry)
        except RuntimeError:
            # executor shut down by a concurrent stop()
            logger.debug(f'Recognition stopping, mark for {entry.name} dropped')

    def _record(self, entry: GalleryEntry) -> RecordResult:
        try:
            result = self.recorder.record(entry)
        except Exception as e:
            logger.error(f'Error marking attendance for {entry.name}: {e}')
            result = RecordResult(False, 'Error marking attendance')

        if result.ok:
            self.status.show(f'✅ {result.message}', 'success')
        else:
            self.status.show(f'❌ {result.message}', 'error')
        return result

    def wait_for_recording(self, timeout: Optional[float] = None) -> Optional[RecordResult]:
        """Block until the latest attendance call settles and return its result."""
        pending = self._pending
        if pending is None:
            return None
        return pending.result(timeout=timeout)
