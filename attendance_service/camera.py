"""
Camera capture module.

Provides frames from a local webcam (index 0, 1, 2) or a stream URL.
"""

import threading
import time
from typing import Optional, Union

import cv2
import numpy as np

from .config import Config
from .logging_config import get_logger

logger = get_logger(__name__)


class CaptureError(RuntimeError):
    """Camera unavailable or a frame could not be read."""


class FrameSource:
    """
    Camera wrapper handing out the current frame on demand.

    Reads are serialized so the recognition loop and an enrollment request
    can share one camera.
    """

    def __init__(
        self,
        camera_source: str,
        frame_width: int = 640,
        frame_height: int = 480
    ):
        self.camera_source = camera_source
        self.frame_width = frame_width
        self.frame_height = frame_height
        self._capture: Optional[cv2.VideoCapture] = None
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Config) -> 'FrameSource':
        return cls(config.camera_source, config.frame_width, config.frame_height)

    @property
    def source(self) -> Union[int, str]:
        if self.camera_source.strip().isdigit():
            return int(self.camera_source)
        return self.camera_source

    def is_open(self) -> bool:
        return self._capture is not None and self._capture.isOpened()

    def open(self, max_retries: int = 3) -> None:
        """
        Connect to camera with retry logic.

        Args:
            max_retries: Maximum connection attempts

        Raises:
            CaptureError: If connection fails after max_retries
        """
        with self._lock:
            if self.is_open():
                return

            source = self.source
            label = source if isinstance(source, int) else _sanitize_url(source)

            for attempt in range(max_retries):
                logger.info(f'Connecting to camera {label} (attempt {attempt + 1}/{max_retries})...')

                capture = cv2.VideoCapture(source)
                if isinstance(source, int):
                    capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.frame_width)
                    capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.frame_height)

                if capture.isOpened():
                    ret, frame = capture.read()
                    if ret and frame is not None:
                        logger.info(f'✅ Camera connected, frame size: {frame.shape[1]}x{frame.shape[0]}')
                        self._capture = capture
                        return
                    logger.warning('Camera opened but failed to read frame')
                else:
                    logger.warning('Failed to open camera')
                capture.release()

                if attempt < max_retries - 1:
                    wait_time = 2 ** attempt
                    logger.info(f'Retrying in {wait_time} seconds...')
                    time.sleep(wait_time)

        raise CaptureError(f'Cannot access camera {label} after {max_retries} attempts')

    def get_current_frame(self) -> np.ndarray:
        """
        Read the current frame.

        Returns:
            BGR frame

        Raises:
            CaptureError: Camera not open or read failed
        """
        with self._lock:
            if not self.is_open():
                raise CaptureError('Camera is not open')
            ret, frame = self._capture.read()

        if not ret or frame is None:
            raise CaptureError('Failed to read frame from camera')
        return frame

    def release(self) -> None:
        with self._lock:
            if self._capture is not None:
                self._capture.release()
                self._capture = None
                logger.info('Camera released')


def _sanitize_url(url: str) -> str:
    """
    Remove password from URL for logging.

    Args:
        url: URL with potential password

    Returns:
        Sanitized URL
    """
    if '://' not in url:
        return url

    protocol, rest = url.split('://', 1)
    if '@' not in rest:
        return url

    creds, host = rest.rsplit('@', 1)
    username = creds.split(':', 1)[0]
    return f'{protocol}://{username}@{host}'
