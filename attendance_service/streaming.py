"""
Status and video streaming module.

Holds what the operator sees (displayed confidence, last status message,
annotated frame) and generates the MJPEG stream for Flask.
Thread-safe access using locks.
"""

import threading
import time
from dataclasses import dataclass
from typing import Dict, Generator, Optional, Sequence

import cv2
import numpy as np


LANDMARK_COLOR = (69, 167, 40)  # BGR for #28a745
MARKER_POINTS: Sequence[int] = tuple(range(11))


@dataclass(frozen=True)
class StatusSnapshot:
    running: bool
    confidence: int
    message: str
    level: str

    def to_dict(self) -> Dict:
        return {
            'running': self.running,
            'confidence': self.confidence,
            'confidenceText': f'{self.confidence}%',
            'message': self.message,
            'level': self.level,
        }


class RecognitionStatus:
    """Operator-facing state written by the recognition loop."""

    def __init__(self):
        self._lock = threading.Lock()
        self._running = False
        self._confidence = 0
        self._message = ''
        self._level = 'info'
        self._frame: Optional[np.ndarray] = None

    def set_running(self, running: bool) -> None:
        with self._lock:
            self._running = running

    def set_confidence(self, percent: int) -> None:
        with self._lock:
            self._confidence = int(percent)

    def show(self, message: str, level: str = 'info') -> None:
        """Show a status message ('info', 'success' or 'error')."""
        with self._lock:
            self._message = message
            self._level = level

    def set_frame(self, frame: Optional[np.ndarray]) -> None:
        with self._lock:
            self._frame = frame.copy() if frame is not None else None

    def get_frame_copy(self) -> Optional[np.ndarray]:
        with self._lock:
            return self._frame.copy() if self._frame is not None else None

    def snapshot(self) -> StatusSnapshot:
        with self._lock:
            return StatusSnapshot(
                running=self._running,
                confidence=self._confidence,
                message=self._message,
                level=self._level,
            )


def draw_face_landmarks(
    frame: np.ndarray,
    landmarks: np.ndarray,
    marker_points: Sequence[int] = MARKER_POINTS
) -> np.ndarray:
    """
    Draw face bounding box and key landmarks on frame.

    Args:
        frame: Frame to draw on (modified in place)
        landmarks: (N, 2+) landmark points
        marker_points: Landmark indices to mark with a dot

    Returns:
        Frame with visualization
    """
    points = np.asarray(landmarks)[:, :2]
    x1, y1 = points.min(axis=0).astype(int)
    x2, y2 = points.max(axis=0).astype(int)

    cv2.rectangle(frame, (x1, y1), (x2, y2), LANDMARK_COLOR, 2)

    for index in marker_points:
        if 0 <= index < len(points):
            x, y = points[index].astype(int)
            cv2.circle(frame, (x, y), 3, LANDMARK_COLOR, cv2.FILLED)

    cv2.putText(frame, 'Face Detected!', (x1, max(y1 - 10, 15)),
                cv2.FONT_HERSHEY_SIMPLEX, 0.6, LANDMARK_COLOR, 2)

    return frame


def generate_mjpeg_frames(status: RecognitionStatus) -> Generator[bytes, None, None]:
    """
    Generate MJPEG frames from the latest annotated frame.

    Yields:
        JPEG frame bytes with multipart headers
    """
    while True:
        frame = status.get_frame_copy()

        if frame is None:
            time.sleep(0.1)
            continue

        ret, buffer = cv2.imencode('.jpg', frame, [cv2.IMWRITE_JPEG_QUALITY, 85])

        if not ret:
            time.sleep(0.033)
            continue

        yield (b'--frame\r\n'
               b'Content-Type: image/jpeg\r\n\r\n' + buffer.tobytes() + b'\r\n')

        # ~30 FPS
        time.sleep(0.033)
