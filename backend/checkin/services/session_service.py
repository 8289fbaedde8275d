"""Lecture session management service."""
import logging
from typing import Dict, List, Optional

from flask import current_app

from checkin import db
from checkin.models.attendance import AttendanceRecord
from checkin.models.lecture_session import LectureSession
from checkin.models.user import User
from checkin.services.gps_service import LocationSample, DEFAULT_ALLOWED_RADIUS
from checkin.services.qr_service import QRService

logger = logging.getLogger(__name__)

class SessionService:
    """Service for creating and reading lecture sessions."""

    @staticmethod
    def create_session(
        lecturer: User,
        data: Dict,
        anchor: LocationSample
    ) -> LectureSession:
        """
        Create a session anchored at the lecturer's position.

        Construction is two-phase: the token is drafted without an id, the
        session is persisted, then the token is finalized with the real id.
        Both writes share one transaction so a session never exists with a
        placeholder token.
        """
        pin_length = current_app.config.get('SESSION_PIN_LENGTH', 6)
        radius = data.get('allowed_radius')
        if radius is None:
            radius = current_app.config.get('DEFAULT_ALLOWED_RADIUS', DEFAULT_ALLOWED_RADIUS)

        draft = {
            'course_id': str(data['course_id']).strip(),
            'course_name': str(data['course_name']).strip(),
            'lecturer_name': lecturer.name,
            'room_location': str(data['room_location']).strip(),
            'date': data['date'],
            'start_time': data['start_time'],
            'end_time': data['end_time'],
            'latitude': anchor.latitude,
            'longitude': anchor.longitude,
            'allowed_radius': float(radius),
            'pin': QRService.generate_pin(pin_length)
        }
        draft_token = QRService.encode(draft)

        session = LectureSession(
            lecturer_id=lecturer.id,
            is_active=True,
            **draft
        )

        try:
            db.session.add(session)
            db.session.flush()  # Assigns session.id
            session.qr_data = QRService.finalize(draft_token, session.id)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info("Lecturer %s created session %s for %s", lecturer.id, session.id, session.course_id)
        return session

    @staticmethod
    def get_session(session_id: int) -> Optional[LectureSession]:
        return LectureSession.get_by_id(session_id)

    @staticmethod
    def get_lecturer_sessions(lecturer_id: int) -> List[LectureSession]:
        """All sessions owned by a lecturer, newest first."""
        return LectureSession.query.filter_by(
            lecturer_id=lecturer_id
        ).order_by(LectureSession.created_at.desc(), LectureSession.id.desc()).all()

    @staticmethod
    def end_session(session: LectureSession) -> LectureSession:
        """Stop accepting check-ins for a session."""
        session.is_active = False
        db.session.commit()
        logger.info("Session %s ended", session.id)
        return session

    @staticmethod
    def get_session_attendance(session_id: int) -> List[AttendanceRecord]:
        """Attendance for one session in check-in order."""
        return AttendanceRecord.query.filter_by(
            session_id=session_id
        ).order_by(AttendanceRecord.check_in_time.asc(), AttendanceRecord.id.asc()).all()

    @staticmethod
    def get_student_attendance(student_id: int) -> List[AttendanceRecord]:
        """A student's attendance history, newest first."""
        return AttendanceRecord.query.filter_by(
            student_id=student_id
        ).order_by(AttendanceRecord.check_in_time.desc(), AttendanceRecord.id.desc()).all()

    @staticmethod
    def summarize_history(records: List[AttendanceRecord]) -> Dict:
        """Counts per status for a history listing."""
        total = len(records)
        present = len([r for r in records if r.status.value == 'present'])
        late = len([r for r in records if r.status.value == 'late'])

        return {
            'total_sessions': total,
            'present': present,
            'late': late,
            'absent': total - present - late
        }
