"""Check-in verification pipeline for QR scans and PIN entry."""
import hmac
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from checkin import db
from checkin.models.attendance import AttendanceRecord, AttendanceStatus, VerificationMethod
from checkin.models.lecture_session import LectureSession, RosterEntry
from checkin.services.errors import (
    MalformedTokenError, InvalidPayloadError, LocationUnavailableError
)
from checkin.services.gps_service import GPSService, LocationSample
from checkin.services.qr_service import QRService, QRPayload
from checkin.services import session_clock
from checkin.services.session_clock import is_session_active, DATE_FORMAT

logger = logging.getLogger(__name__)

class RejectionReason(Enum):
    """Why a check-in attempt was turned down."""
    MALFORMED_TOKEN = "malformed_token"
    INVALID_PAYLOAD = "invalid_payload"
    SESSION_NOT_ACTIVE = "session_not_active"
    LOCATION_UNAVAILABLE = "location_unavailable"
    OUT_OF_RANGE = "out_of_range"
    SESSION_NOT_FOUND = "session_not_found"
    ALREADY_CHECKED_IN = "already_checked_in"
    PERSISTENCE_FAILED = "persistence_failed"

@dataclass
class CheckInContext:
    """Who is checking in. Built from the authenticated user per request."""
    student_id: int
    student_name: str

    @classmethod
    def from_user(cls, user) -> 'CheckInContext':
        return cls(student_id=user.id, student_name=user.name)

@dataclass
class CheckInResult:
    """Terminal state of one check-in attempt."""
    accepted: bool
    message: str
    reason: Optional[RejectionReason] = None
    record: Optional[AttendanceRecord] = None
    distance: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'accepted': self.accepted,
            'reason': self.reason.value if self.reason else None,
            'message': self.message,
            'distance': round(self.distance, 1) if self.distance is not None else None,
            'record': self.record.to_dict() if self.record else None
        }

# Positioning collaborator: returns a fix, None, or raises LocationUnavailableError
Locator = Callable[[], Optional[LocationSample]]

class CheckInService:
    """
    Runs a check-in attempt through its verification steps.

    QR path: decode -> validate -> time window -> geofence -> resolve session
    -> duplicate check -> commit. The PIN path resolves the session from the
    PIN first and then runs the same window, geofence, duplicate and commit
    steps against the live session.

    Every step either passes or ends the attempt with a RejectionReason.
    Nothing is written to the store before the commit step.
    """

    @classmethod
    def check_in_with_qr(
        cls,
        token: str,
        context: CheckInContext,
        locate: Locator,
        now: Optional[datetime] = None
    ) -> CheckInResult:
        """Check a student in from a scanned QR token."""
        now = now or session_clock.local_now()
        try:
            return cls._qr_pipeline(token, context, locate, now)
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Store failure during QR check-in for student %s", context.student_id)
            return cls._reject(RejectionReason.PERSISTENCE_FAILED,
                               "Attendance could not be saved. Please try again", context)

    @classmethod
    def check_in_with_pin(
        cls,
        pin: str,
        context: CheckInContext,
        locate: Locator,
        session_id: Optional[Any] = None,
        now: Optional[datetime] = None
    ) -> CheckInResult:
        """Check a student in from a PIN, optionally scoped to one session."""
        now = now or session_clock.local_now()
        try:
            return cls._pin_pipeline(pin, context, locate, session_id, now)
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Store failure during PIN check-in for student %s", context.student_id)
            return cls._reject(RejectionReason.PERSISTENCE_FAILED,
                               "Attendance could not be saved. Please try again", context)

    # =================== PIPELINES ===================

    @classmethod
    def _qr_pipeline(cls, token, context, locate, now) -> CheckInResult:
        try:
            payload = QRService.parse(token)
        except MalformedTokenError as e:
            return cls._reject(RejectionReason.MALFORMED_TOKEN, str(e), context)
        except InvalidPayloadError as e:
            return cls._reject(RejectionReason.INVALID_PAYLOAD, str(e), context)

        # Older tokens carry no end time; take it from the live session
        session = None
        end_time = payload.end_time
        if end_time is None:
            session = cls._resolve_payload_session(payload)
            if session is None:
                return cls._reject(RejectionReason.SESSION_NOT_FOUND, "Session not found", context)
            end_time = session.end_time

        if not is_session_active(payload.start_time, end_time, payload.date, now):
            return cls._reject(RejectionReason.SESSION_NOT_ACTIVE,
                               "This session is no longer active", context)

        sample, rejection = cls._check_location(
            locate, context,
            payload.latitude, payload.longitude, payload.allowed_radius
        )
        if rejection:
            return rejection

        if session is None:
            session = cls._resolve_payload_session(payload)
            if session is None:
                return cls._reject(RejectionReason.SESSION_NOT_FOUND, "Session not found", context)

        if not cls._payload_matches_session(payload, session):
            return cls._reject(RejectionReason.INVALID_PAYLOAD,
                               "This QR code does not belong to the session", context)

        if not session.is_active:
            return cls._reject(RejectionReason.SESSION_NOT_ACTIVE,
                               "This session has been ended by the lecturer", context)

        return cls._commit(session, context, sample, VerificationMethod.QR)

    @classmethod
    def _pin_pipeline(cls, pin, context, locate, session_id, now) -> CheckInResult:
        pin = str(pin or '').strip()
        if not pin:
            return cls._reject(RejectionReason.SESSION_NOT_FOUND, "PIN is required", context)

        if session_id is not None:
            session = cls._resolve_session(session_id)
            if session is None or not hmac.compare_digest(session.pin.encode(), pin.encode()):
                return cls._reject(RejectionReason.SESSION_NOT_FOUND,
                                   "No session matches this PIN", context)
        else:
            session, error = cls._find_session_by_pin(pin, now)
            if session is None:
                return cls._reject(RejectionReason.SESSION_NOT_FOUND, error, context)

        if not session.is_active or not is_session_active(
            session.start_time, session.end_time, session.date, now
        ):
            return cls._reject(RejectionReason.SESSION_NOT_ACTIVE,
                               "This session is no longer active", context)

        sample, rejection = cls._check_location(
            locate, context,
            session.latitude, session.longitude, session.allowed_radius
        )
        if rejection:
            return rejection

        return cls._commit(session, context, sample, VerificationMethod.PIN)

    # =================== STEPS ===================

    @staticmethod
    def _resolve_session(session_id: Any) -> Optional[LectureSession]:
        """Fetch a session by id; ids no row could have never resolve."""
        return LectureSession.get_by_id(session_id)

    @classmethod
    def _resolve_payload_session(cls, payload: QRPayload) -> Optional[LectureSession]:
        # Draft tokens still carry the placeholder id
        if not payload.has_real_session_id:
            return None
        return cls._resolve_session(payload.session_id)

    @staticmethod
    def _payload_matches_session(payload: QRPayload, session: LectureSession) -> bool:
        """The token's PIN and schedule must agree with the stored session."""
        return (
            hmac.compare_digest(session.pin.encode(), payload.pin.encode())
            and payload.date == session.date
            and payload.start_time == session.start_time
        )

    @staticmethod
    def _find_session_by_pin(pin: str, now: datetime) -> Tuple[Optional[LectureSession], str]:
        """Find the one running session that uses this PIN."""
        candidates = LectureSession.query.filter_by(
            pin=pin,
            is_active=True,
            date=now.strftime(DATE_FORMAT)
        ).order_by(LectureSession.created_at.desc()).all()

        running = [
            s for s in candidates
            if is_session_active(s.start_time, s.end_time, s.date, now)
        ]

        if not running:
            return None, "No active session matches this PIN"
        if len(running) > 1:
            return None, "Several sessions share this PIN. Please specify the session"
        return running[0], ""

    @classmethod
    def _check_location(
        cls,
        locate: Locator,
        context: CheckInContext,
        latitude: float,
        longitude: float,
        allowed_radius: Optional[float]
    ) -> Tuple[Optional[LocationSample], Optional[CheckInResult]]:
        """Acquire the student's position and test it against the geofence."""
        try:
            sample = locate()
        except LocationUnavailableError as e:
            return None, cls._reject(RejectionReason.LOCATION_UNAVAILABLE, str(e), context)

        if sample is None:
            return None, cls._reject(
                RejectionReason.LOCATION_UNAVAILABLE,
                "Unable to get your location. Please enable location services",
                context
            )

        verification = GPSService.verify_location(sample, latitude, longitude, allowed_radius)
        if not verification['is_inside']:
            result = cls._reject(
                RejectionReason.OUT_OF_RANGE,
                f"You must be within {verification['allowed_radius']:g} meters "
                f"of the class location to check in",
                context
            )
            result.distance = verification['distance']
            return None, result

        return sample, None

    @classmethod
    def _commit(
        cls,
        session: LectureSession,
        context: CheckInContext,
        sample: LocationSample,
        method: VerificationMethod
    ) -> CheckInResult:
        """Write the attendance record and roster entry in one transaction."""
        if session.has_checked_in(context.student_id):
            return cls._reject(RejectionReason.ALREADY_CHECKED_IN,
                               "You have already checked in for this session", context)

        record = AttendanceRecord(
            session_id=session.id,
            student_id=context.student_id,
            student_name=context.student_name,
            course_id=session.course_id,
            course_name=session.course_name,
            check_in_time=datetime.utcnow(),
            status=AttendanceStatus.PRESENT,
            verification_method=method,
            latitude=sample.latitude,
            longitude=sample.longitude
        )
        db.session.add(record)
        db.session.add(RosterEntry(session_id=session.id, student_id=context.student_id))

        try:
            db.session.commit()
        except IntegrityError:
            # A concurrent attempt committed first; neither row survives
            db.session.rollback()
            return cls._reject(RejectionReason.ALREADY_CHECKED_IN,
                               "You have already checked in for this session", context)

        logger.info(
            "Student %s checked in to session %s via %s",
            context.student_id, session.id, method.value
        )
        return CheckInResult(
            accepted=True,
            message=f"You have successfully checked in for {session.course_name}",
            record=record
        )

    @staticmethod
    def _reject(reason: RejectionReason, message: str, context: CheckInContext) -> CheckInResult:
        logger.warning(
            "Check-in rejected for student %s: %s (%s)",
            context.student_id, reason.value, message
        )
        return CheckInResult(accepted=False, message=message, reason=reason)
