import threading

import numpy as np
import pytest

from attendance_service.camera import CaptureError
from attendance_service.config import load_config
from attendance_service.events import RecordResult
from attendance_service.recognition.matching import GalleryEntry


FRAME_SHAPE = (480, 640, 3)


def landmarks_from_descriptor(descriptor, padding=5):
    """Landmark points whose first len(descriptor)/2 entries spell out ``descriptor``."""
    points = np.asarray(descriptor, dtype=np.float64).reshape(-1, 2)
    extra = np.full((padding, 2), 300.0)
    return np.vstack([points, extra])


def make_entry(student_id, descriptor, name=None, roll_number=None):
    return GalleryEntry(
        student_id=student_id,
        name=name or f'Student {student_id}',
        roll_number=roll_number or f'R-{student_id}',
        descriptor=np.asarray(descriptor, dtype=np.float64),
    )


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeFrameSource:
    def __init__(self, fail_open=False):
        self.fail_open = fail_open
        self.fail_read = False
        self.open_calls = 0
        self.release_calls = 0
        self.reads = 0

    def open(self):
        self.open_calls += 1
        if self.fail_open:
            raise CaptureError('Permission denied')

    def get_current_frame(self):
        self.reads += 1
        if self.fail_read:
            raise CaptureError('Failed to read frame from camera')
        return np.zeros(FRAME_SHAPE, dtype=np.uint8)

    def release(self):
        self.release_calls += 1


class FakeDetector:
    def __init__(self, landmarks=None):
        self.landmarks = landmarks
        self.error = None
        self.calls = 0

    def detect(self, frame):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.landmarks


class FakeRecorder:
    def __init__(self, result=None):
        self.result = result or RecordResult(True, 'Attendance marked successfully')
        self.recorded = []
        self.release = None

    def record(self, entry):
        if self.release is not None:
            self.release.wait(5)
        self.recorded.append(entry.student_id)
        return self.result


class GallerySource:
    def __init__(self, gallery):
        self.gallery = gallery
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return list(self.gallery)


@pytest.fixture
def config():
    return load_config(
        key_point_indices=(0, 1),
        recognition_interval_seconds=60.0,
        match_threshold=100.0,
        confidence_threshold=70.0,
        cooldown_seconds=5.0,
        cooldown_scope='global',
        skip_tick_while_recording=False,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def blocking_recorder():
    recorder = FakeRecorder()
    recorder.release = threading.Event()
    yield recorder
    recorder.release.set()
