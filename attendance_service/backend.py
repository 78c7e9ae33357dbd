"""
Backend API client.

Talks to the attendance REST backend (users, students, attendance) with
Bearer-token authentication.
"""

from typing import Any, Dict, List, Optional, Sequence

import requests

from .config import Config
from .logging_config import get_logger

logger = get_logger(__name__)


class BackendError(RuntimeError):
    """Backend request failed or returned an error response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class BackendClient:
    """
    Thin client for the attendance backend.

    Every call raises BackendError on transport failure or non-2xx status,
    carrying the server's ``error`` text when it sent one.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None
    ):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.timeout = timeout
        self.user: Optional[Dict[str, Any]] = None
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: Config) -> 'BackendClient':
        return cls(
            config.backend_url,
            token=config.api_token,
            timeout=config.request_timeout_seconds,
        )

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        auth: bool = True
    ) -> Any:
        url = f'{self.base_url}{path}'
        headers = {'Accept': 'application/json'}
        if auth:
            if not self.token:
                raise BackendError('Access token required', 401)
            headers['Authorization'] = f'Bearer {self.token}'

        try:
            response = self.session.request(
                method, url, json=json, headers=headers, timeout=self.timeout
            )
        except requests.exceptions.Timeout:
            logger.error(f'Timeout calling {method} {url}')
            raise BackendError(f'Timeout connecting to {self.base_url}')
        except requests.exceptions.ConnectionError:
            logger.error(f'Connection error calling {method} {url}')
            raise BackendError(f'Cannot connect to {self.base_url}')
        except requests.exceptions.RequestException as e:
            logger.error(f'Request error calling {method} {url}: {e}')
            raise BackendError(f'Error calling {self.base_url}: {e}')

        try:
            data = response.json()
        except ValueError:
            data = None

        if not response.ok:
            message = None
            if isinstance(data, dict):
                message = data.get('error') or data.get('message')
            message = message or f'{response.status_code} {response.reason}'
            logger.debug(f'{method} {path} failed: {response.status_code} {message}')
            raise BackendError(message, response.status_code)

        return data

    def _store_session(self, data: Dict[str, Any]) -> Dict[str, Any]:
        self.token = data.get('token')
        self.user = data.get('user')
        if self.user:
            logger.info(f"Authenticated as {self.user.get('name')} <{self.user.get('email')}>")
        return data

    # Auth

    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self._request(
            'POST', '/api/login', json={'email': email, 'password': password}, auth=False
        )
        return self._store_session(data)

    def register(self, email: str, password: str, name: str) -> Dict[str, Any]:
        data = self._request(
            'POST', '/api/register',
            json={'email': email, 'password': password, 'name': name},
            auth=False,
        )
        return self._store_session(data)

    def health(self) -> Dict[str, Any]:
        return self._request('GET', '/api/health', auth=False)

    # Students

    def list_students(self) -> List[Dict[str, Any]]:
        return self._request('GET', '/api/students') or []

    def save_face(
        self,
        name: str,
        roll_number: str,
        descriptor: Sequence[float]
    ) -> Dict[str, Any]:
        """Persist a new student with its face descriptor."""
        payload = {
            'name': name,
            'rollNumber': roll_number,
            'faceDescriptor': [float(v) for v in descriptor],
        }
        return self._request('POST', '/api/save-face', json=payload)

    # Attendance

    def mark_attendance(self, student_id: Any) -> Dict[str, Any]:
        return self._request('POST', '/api/mark-attendance', json={'studentId': student_id})

    def list_attendance(self) -> List[Dict[str, Any]]:
        """Latest attendance records joined with student name and roll number."""
        return self._request('GET', '/api/attendance') or []
