"""Attendance model with verification details."""
from datetime import datetime
from enum import Enum
from checkin import db
from checkin.models.base import BaseModel

class AttendanceStatus(Enum):
    """Attendance status enumeration."""
    PRESENT = 'present'
    ABSENT = 'absent'
    LATE = 'late'

class VerificationMethod(Enum):
    """How the student proved attendance."""
    QR = 'qr'
    PIN = 'pin'

class AttendanceRecord(BaseModel):
    """Attendance record model. Immutable once created."""
    
    __tablename__ = 'attendance_records'
    __table_args__ = (
        db.UniqueConstraint('session_id', 'student_id', name='uq_attendance_session_student'),
    )
    
    session_id = db.Column(db.Integer, db.ForeignKey('lecture_sessions.id'), nullable=False, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    student_name = db.Column(db.String(255), nullable=False)
    
    # Denormalized course metadata
    course_id = db.Column(db.String(50), nullable=False)
    course_name = db.Column(db.String(255), nullable=False)
    
    check_in_time = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    status = db.Column(db.Enum(AttendanceStatus), nullable=False, default=AttendanceStatus.PRESENT)
    verification_method = db.Column(db.Enum(VerificationMethod), nullable=False)
    
    # Location where check-in happened
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    
    def __repr__(self):
        return f'<AttendanceRecord {self.student_id}-{self.session_id}>'
