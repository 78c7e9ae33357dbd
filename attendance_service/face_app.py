"""
InsightFace landmark detection module.

Provides face landmarks for a frame using InsightFace models.
"""

from typing import Optional

import numpy as np
from insightface.app import FaceAnalysis

from .config import Config
from .logging_config import get_logger

logger = get_logger(__name__)


def initialize_face_app(config: Config) -> FaceAnalysis:
    """
    Initialize InsightFace FaceAnalysis with detection and 2D landmarks.

    Args:
        config: Service configuration

    Returns:
        Initialized FaceAnalysis instance
    """
    logger.info('Initializing InsightFace landmark model...')

    face_app = FaceAnalysis(
        allowed_modules=['detection', 'landmark_2d_106'],
        providers=['CPUExecutionProvider'],
    )
    face_app.prepare(ctx_id=0, det_size=config.det_size)

    logger.info(f'✅ InsightFace initialized (det_size={config.det_size})')

    return face_app


class LandmarkDetector:
    """Returns the 106 landmark points of the most prominent face."""

    def __init__(self, face_app: FaceAnalysis):
        self.face_app = face_app

    @classmethod
    def from_config(cls, config: Config) -> 'LandmarkDetector':
        return cls(initialize_face_app(config))

    def detect(self, frame: np.ndarray) -> Optional[np.ndarray]:
        """
        Detect one face in ``frame``.

        Args:
            frame: BGR frame

        Returns:
            (106, 2) array of pixel coordinates, or None if no face
        """
        faces = self.face_app.get(frame)
        if not faces:
            return None

        face = max(
            faces,
            key=lambda f: (f.bbox[2] - f.bbox[0]) * (f.bbox[3] - f.bbox[1])
        )
        landmarks = getattr(face, 'landmark_2d_106', None)
        if landmarks is None:
            return None
        return np.asarray(landmarks, dtype=np.float64)
