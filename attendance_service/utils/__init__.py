"""
Utility modules package.
"""

from .timing import format_uptime, retry_with_backoff

__all__ = [
    'format_uptime',
    'retry_with_backoff',
]
