"""Attendance API endpoints for student check-in."""
from flask import Blueprint, request
from flask_jwt_extended import jwt_required, get_jwt_identity
from checkin import limiter
from checkin.services.auth_service import AuthService
from checkin.services.checkin_service import CheckInService, CheckInContext, RejectionReason
from checkin.services.gps_service import LocationSample
from checkin.services.session_service import SessionService
from checkin.utils.decorators import student_required
from checkin.utils.helpers import success_response, error_response

attendance_bp = Blueprint('attendance', __name__)

REJECTION_STATUS = {
    RejectionReason.MALFORMED_TOKEN: 400,
    RejectionReason.INVALID_PAYLOAD: 400,
    RejectionReason.LOCATION_UNAVAILABLE: 400,
    RejectionReason.SESSION_NOT_ACTIVE: 403,
    RejectionReason.OUT_OF_RANGE: 403,
    RejectionReason.SESSION_NOT_FOUND: 404,
    RejectionReason.ALREADY_CHECKED_IN: 409,
    RejectionReason.PERSISTENCE_FAILED: 503,
}

def _context():
    return CheckInContext.from_user(AuthService.get_user_by_id(get_jwt_identity()))

def _respond(result):
    if result.accepted:
        return success_response(data=result.to_dict(), message=result.message, status_code=201)
    return error_response(result.message, REJECTION_STATUS[result.reason], data=result.to_dict())

@attendance_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Attendance service is running')

@attendance_bp.route('/scan', methods=['POST'])
@jwt_required()
@student_required
@limiter.limit("30 per hour")
def scan_check_in():
    """Check in with a scanned QR token and the device location."""
    data = request.get_json(silent=True) or {}

    if 'qr_data' not in data:
        return error_response("Missing required field: qr_data", 400)

    result = CheckInService.check_in_with_qr(
        data['qr_data'],
        _context(),
        locate=lambda: LocationSample.from_dict(data)
    )
    return _respond(result)

@attendance_bp.route('/pin', methods=['POST'])
@jwt_required()
@student_required
@limiter.limit("10 per minute")
def pin_check_in():
    """Check in with a session PIN and the device location."""
    data = request.get_json(silent=True) or {}

    if not data.get('pin'):
        return error_response("Missing required field: pin", 400)

    result = CheckInService.check_in_with_pin(
        data['pin'],
        _context(),
        locate=lambda: LocationSample.from_dict(data),
        session_id=data.get('session_id')
    )
    return _respond(result)

@attendance_bp.route('/history', methods=['GET'])
@jwt_required()
@student_required
def get_my_attendance():
    """Get the student's attendance records, newest first."""
    records = SessionService.get_student_attendance(int(get_jwt_identity()))

    return success_response(
        data={
            'records': [r.to_dict() for r in records],
            'statistics': SessionService.summarize_history(records)
        }
    )
