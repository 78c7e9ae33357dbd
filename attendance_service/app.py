"""
Flask application for HTTP API.

Provides:
- GET /health: Service health check
- GET /status: Displayed confidence and last status message
- GET /video_feed: MJPEG video stream with landmarks
- POST /recognition/start, POST /recognition/stop: Recognition control
- GET /students: Enrolled students
- POST /enroll: Capture a face and register a student
- GET /attendance: Recent attendance records
"""

import time

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from .backend import BackendClient, BackendError
from .camera import CaptureError
from .config import Config
from .enrollment import EnrollmentError, capture_descriptor, enroll_student
from .logging_config import get_logger
from .recognition_loop import RecognitionLoop
from .streaming import generate_mjpeg_frames
from .utils.timing import format_uptime

logger = get_logger(__name__)


def create_app(config: Config, loop: RecognitionLoop, client: BackendClient) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config: Service configuration
        loop: Recognition loop of this station
        client: Authenticated backend client

    Returns:
        Configured Flask app
    """
    app = Flask(__name__)
    CORS(app)
    started_at = time.time()

    def _error(message: str, code: int):
        return jsonify({'error': message}), code

    @app.route('/health')
    def health():
        """Health check endpoint."""
        return jsonify({
            'status': 'ok',
            'service': config.service_name,
            'stationId': config.station_id,
            'running': loop.is_running,
            'students': len(loop.gallery),
            'uptime': format_uptime(time.time() - started_at),
        })

    @app.route('/status')
    def status():
        return jsonify(loop.status.snapshot().to_dict())

    @app.route('/video_feed')
    def video_feed():
        """Stream MJPEG video feed."""
        return Response(
            generate_mjpeg_frames(loop.status),
            mimetype='multipart/x-mixed-replace; boundary=frame'
        )

    @app.route('/recognition/start', methods=['POST'])
    def start_recognition():
        if loop.is_running:
            return _error('Recognition already running', 409)
        if not loop.start():
            return _error(loop.status.snapshot().message, 503)
        return jsonify(loop.status.snapshot().to_dict())

    @app.route('/recognition/stop', methods=['POST'])
    def stop_recognition():
        loop.stop()
        return jsonify(loop.status.snapshot().to_dict())

    @app.route('/students')
    def students():
        if loop.is_running:
            return jsonify([entry.to_dict() for entry in loop.gallery])
        try:
            gallery = loop.gallery_source()
        except BackendError as e:
            return _error(e.message, 502)
        return jsonify([entry.to_dict() for entry in gallery])

    @app.route('/enroll', methods=['POST'])
    def enroll():
        body = request.get_json(silent=True) or {}
        name = body.get('name', '')
        roll_number = body.get('rollNumber', '')

        if not str(name).strip() or not str(roll_number).strip():
            return _error('Please enter student details and analyze face', 400)

        try:
            loop.frame_source.open()
        except CaptureError as e:
            return _error(f'Error accessing camera: {e}', 503)

        try:
            gallery = loop.gallery if loop.is_running else loop.gallery_source()
            descriptor = capture_descriptor(
                loop.frame_source,
                loop.detector,
                config.key_point_indices,
                config.missing_landmark_policy,
            )
            entry = enroll_student(name, roll_number, descriptor, gallery, client.save_face)
        except EnrollmentError as e:
            return _error(str(e), 400)
        except BackendError as e:
            return _error(e.message, 502)
        finally:
            if not loop.is_running:
                loop.frame_source.release()

        return jsonify({
            'message': 'Student registered successfully',
            'student': entry.to_dict(),
        }), 201

    @app.route('/attendance')
    def attendance():
        try:
            records = client.list_attendance()
        except BackendError as e:
            return _error(e.message, 502)
        return jsonify(records)

    return app
