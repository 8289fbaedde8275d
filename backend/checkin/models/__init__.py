"""Models package with all models."""
from .base import BaseModel
from .user import User, UserRole
from .lecture_session import LectureSession, RosterEntry
from .attendance import AttendanceRecord, AttendanceStatus, VerificationMethod

__all__ = [
    'BaseModel', 'User', 'UserRole',
    'LectureSession', 'RosterEntry',
    'AttendanceRecord', 'AttendanceStatus', 'VerificationMethod'
]
