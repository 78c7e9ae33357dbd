"""
Configuration module for Attendance Service.

Loads configuration from environment variables with sensible defaults.
All settings are immutable after initialization.
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple


MISSING_LANDMARK_POLICIES = ('skip', 'reject')
COOLDOWN_SCOPES = ('global', 'identity')

DEFAULT_KEY_POINTS: Tuple[int, ...] = tuple(range(20))


@dataclass(frozen=True)
class Config:
    """
    Immutable configuration for Attendance Service.

    Backend Integration:
        backend_url: Base URL of the attendance API (e.g., http://localhost:5000)
        api_email / api_password: Credentials used to obtain a session token
        api_token: Pre-issued token (skips login when set)
        request_timeout_seconds: Timeout for every backend request

    Camera Settings:
        camera_source: Integer index for a local webcam or a stream URL
        station_id: Logical identifier for this attendance station (logging)
        frame_width / frame_height: Requested capture size

    Service Identity:
        service_name: Name of this service instance
        http_port: Port for the Flask control server

    Descriptor:
        key_point_indices: Ordered landmark indices used for the descriptor
        missing_landmark_policy: 'skip' drops missing indices (descriptor
            shrinks), 'reject' discards the whole frame

    Matching and Gate:
        match_threshold: Euclidean distance threshold in landmark pixel units
        confidence_threshold: Percentage a match must exceed to be marked
        cooldown_seconds: Suppression window after an accepted mark
        cooldown_scope: 'global' (one window for everybody) or 'identity'

    Recognition Loop:
        recognition_interval_seconds: Tick period
        skip_tick_while_recording: Skip ticks while a mark is in flight

    System:
        det_size: Detection size for the landmark model (width, height)
        gallery_load_attempts: Attempts to fetch the gallery at start
        debug_mode: Enable debug logging
        log_file: Optional path for a log file
    """

    # Backend
    backend_url: str
    api_email: Optional[str]
    api_password: Optional[str]
    api_token: Optional[str]
    request_timeout_seconds: float

    # Camera
    camera_source: str
    station_id: str
    frame_width: int
    frame_height: int

    # Service
    service_name: str
    http_port: int

    # Descriptor
    key_point_indices: Tuple[int, ...]
    missing_landmark_policy: str

    # Matching / gate
    match_threshold: float
    confidence_threshold: float
    cooldown_seconds: float
    cooldown_scope: str

    # Loop
    recognition_interval_seconds: float
    skip_tick_while_recording: bool

    # System
    det_size: Tuple[int, int]
    gallery_load_attempts: int
    debug_mode: bool
    log_file: Optional[str]

    def __post_init__(self):
        if self.missing_landmark_policy not in MISSING_LANDMARK_POLICIES:
            raise ValueError(
                f'missing_landmark_policy must be one of {MISSING_LANDMARK_POLICIES}, '
                f'got {self.missing_landmark_policy!r}'
            )
        if self.cooldown_scope not in COOLDOWN_SCOPES:
            raise ValueError(
                f'cooldown_scope must be one of {COOLDOWN_SCOPES}, '
                f'got {self.cooldown_scope!r}'
            )
        if self.match_threshold <= 0:
            raise ValueError('match_threshold must be positive')
        if self.recognition_interval_seconds <= 0:
            raise ValueError('recognition_interval_seconds must be positive')


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _parse_indices(raw: Optional[str]) -> Tuple[int, ...]:
    if not raw:
        return DEFAULT_KEY_POINTS
    return tuple(int(part) for part in raw.split(',') if part.strip())


def load_config(**overrides) -> Config:
    """
    Load configuration from environment variables.

    Args:
        **overrides: Field values taking precedence over the environment

    Returns:
        Config: Immutable configuration object

    Raises:
        ValueError: If a value cannot be parsed or is out of range
    """
    camera_source_raw = os.getenv('CAMERA_SOURCE', '0')

    values = dict(
        # Backend
        backend_url=os.getenv('BACKEND_URL', 'http://localhost:5000'),
        api_email=os.getenv('API_EMAIL') or None,
        api_password=os.getenv('API_PASSWORD') or None,
        api_token=os.getenv('API_TOKEN') or None,
        request_timeout_seconds=float(os.getenv('REQUEST_TIMEOUT', '10')),

        # Camera
        camera_source=camera_source_raw,
        station_id=os.getenv('STATION_ID', camera_source_raw),
        frame_width=int(os.getenv('FRAME_WIDTH', '640')),
        frame_height=int(os.getenv('FRAME_HEIGHT', '480')),

        # Service
        service_name=os.getenv('SERVICE_NAME', 'attendance'),
        http_port=int(os.getenv('HTTP_PORT', '5001')),

        # Descriptor
        key_point_indices=_parse_indices(os.getenv('KEY_POINTS')),
        missing_landmark_policy=os.getenv('MISSING_LANDMARKS', 'skip').lower(),

        # Matching / gate
        match_threshold=float(os.getenv('MATCH_THRESHOLD', '100')),
        confidence_threshold=float(os.getenv('CONFIDENCE_THRESHOLD', '70')),
        cooldown_seconds=float(os.getenv('COOLDOWN', '5.0')),
        cooldown_scope=os.getenv('COOLDOWN_SCOPE', 'global').lower(),

        # Loop
        recognition_interval_seconds=float(os.getenv('RECOGNITION_INTERVAL', '1.0')),
        skip_tick_while_recording=_parse_bool(os.getenv('SKIP_BUSY_TICKS', 'false')),

        # System
        det_size=(640, 640),
        gallery_load_attempts=int(os.getenv('GALLERY_LOAD_ATTEMPTS', '3')),
        debug_mode=_parse_bool(os.getenv('DEBUG', 'false')),
        log_file=os.getenv('LOG_FILE') or None,
    )
    values.update(overrides)

    return Config(**values)
