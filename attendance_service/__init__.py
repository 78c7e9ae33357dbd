"""
Attendance Service - Face Landmark Attendance Station

A modular Python service that recognizes enrolled students from face
landmarks and records their attendance through the backend API.
"""

__version__ = "1.0.0"
__author__ = "Attendance Service Team"
