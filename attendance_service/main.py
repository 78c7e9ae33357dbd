"""
Attendance Service - Main Entry Point

Face-landmark attendance station: recognizes enrolled students from the
camera and records their attendance in the backend.
"""

import argparse
import os
import sys
from functools import partial
from pathlib import Path
from typing import Optional

from .backend import BackendClient, BackendError
from .config import Config, load_config
from .logging_config import setup_logging, get_logger

logger = get_logger(__name__)


def _load_local_env() -> None:
    """Load environment variables from attendance_service/.env if present."""
    env_path = Path(__file__).resolve().parent / '.env'
    if not env_path.exists():
        return

    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        key, value = line.split('=', 1)
        os.environ.setdefault(key.strip(), value.strip())


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Attendance Service - Face Landmark Attendance Station'
    )

    parser.add_argument(
        '--backend-url',
        type=str,
        help='Backend API URL (or set BACKEND_URL)'
    )

    parser.add_argument(
        '--email',
        type=str,
        help='Backend account email (or set API_EMAIL)'
    )

    parser.add_argument(
        '--password',
        type=str,
        help='Backend account password (or set API_PASSWORD)'
    )

    parser.add_argument(
        '--port',
        type=int,
        help='HTTP port for the control server (or set HTTP_PORT)'
    )

    parser.add_argument(
        '--register',
        action='store_true',
        help='Create the backend account first (requires --name)'
    )

    parser.add_argument(
        '--name',
        type=str,
        help='Display name for --register'
    )

    parser.add_argument(
        '--autostart',
        action='store_true',
        help='Start recognition immediately'
    )

    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )

    args = parser.parse_args(argv)

    if args.register and not (args.name or '').strip():
        parser.error('--register requires --name')

    return args


def build_config(args: argparse.Namespace) -> Config:
    overrides = {}
    if args.backend_url:
        overrides['backend_url'] = args.backend_url
    if args.email:
        overrides['api_email'] = args.email
    if args.password:
        overrides['api_password'] = args.password
    if args.port:
        overrides['http_port'] = args.port
    if args.debug:
        overrides['debug_mode'] = True
    return load_config(**overrides)


def authenticate(
    client: BackendClient,
    config: Config,
    register_name: Optional[str] = None
) -> None:
    """
    Obtain a session token unless one was configured.

    Args:
        client: Backend client to authenticate
        config: Service configuration (credentials)
        register_name: Create the account with this name instead of logging in

    Raises:
        BackendError: Login or registration failed
        ValueError: No token and no credentials
    """
    if client.token and not register_name:
        logger.info('Using configured API token')
        return
    if not (config.api_email and config.api_password):
        raise ValueError('Missing credentials. Provide --email/--password or set API_TOKEN.')
    if register_name:
        client.register(config.api_email, config.api_password, register_name)
    else:
        client.login(config.api_email, config.api_password)


def main(argv=None) -> None:
    """Main entry point."""
    _load_local_env()
    args = parse_args(argv)

    try:
        config = build_config(args)
    except ValueError as e:
        print(f'Invalid configuration: {e}', file=sys.stderr)
        sys.exit(2)

    setup_logging(config.station_id, config.debug_mode, config.log_file)

    logger.info('=' * 60)
    logger.info('Attendance Service')
    logger.info('=' * 60)
    logger.info(f'Backend: {config.backend_url}')
    logger.info(f'Camera: {config.station_id}')
    logger.info(f'Match threshold: {config.match_threshold} | '
                f'Confidence: >{config.confidence_threshold:.0f}% | '
                f'Cooldown: {config.cooldown_seconds}s ({config.cooldown_scope})')
    logger.info('=' * 60)

    client = BackendClient.from_config(config)

    try:
        authenticate(client, config, args.name.strip() if args.register else None)
        logger.info(f"Backend health: {client.health().get('message', 'ok')}")
    except (BackendError, ValueError) as e:
        logger.error(f'Cannot authenticate with backend: {e}')
        sys.exit(1)

    # Heavy imports (OpenCV capture, InsightFace) only once authenticated
    from .app import create_app
    from .camera import FrameSource
    from .events import AttendanceRecorder
    from .face_app import LandmarkDetector
    from .recognition_loop import RecognitionLoop
    from .students import load_gallery

    frame_source = FrameSource.from_config(config)
    loop = RecognitionLoop(
        config,
        frame_source=frame_source,
        detector=LandmarkDetector.from_config(config),
        gallery_source=partial(load_gallery, client, config.gallery_load_attempts),
        recorder=AttendanceRecorder(client),
    )

    if args.autostart:
        loop.start()

    app = create_app(config, loop, client)
    logger.info(f'Control server: http://localhost:{config.http_port}/status')

    try:
        app.run(
            host='0.0.0.0',
            port=config.http_port,
            threaded=True,
            debug=False,
            use_reloader=False
        )
    except KeyboardInterrupt:
        logger.info('Received keyboard interrupt, shutting down...')
    finally:
        loop.stop()
        frame_source.release()


if __name__ == '__main__':
    main()
