"""Lecture session API endpoints for lecturers."""
from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from checkin import limiter
from checkin.services.auth_service import AuthService
from checkin.services.errors import LocationUnavailableError
from checkin.services.gps_service import LocationSample
from checkin.services.qr_service import QRService
from checkin.services.session_service import SessionService
from checkin.utils.decorators import lecturer_required
from checkin.utils.helpers import success_response, error_response
from checkin.utils.validators import Validator

sessions_bp = Blueprint('sessions', __name__)

def _owned_session(session_id: int):
    """Load a session and check the JWT user owns it."""
    session = SessionService.get_session(session_id)
    if not session:
        return None, error_response("Session not found", 404)

    if session.lecturer_id != int(get_jwt_identity()):
        return None, error_response("You can only manage your own sessions", 403)

    return session, None

@sessions_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Sessions service is running')

@sessions_bp.route('/', methods=['POST'])
@jwt_required()
@lecturer_required
@limiter.limit("30 per hour")
def create_session():
    """Create a lecture session anchored at the lecturer's current location."""
    data = request.get_json(silent=True)
    if not data:
        return error_response("Request body must be JSON", 400)

    validation = Validator.validate_session_data(data)
    if not validation['is_valid']:
        return error_response(validation['errors'][0], 400, data={'errors': validation['errors']})

    try:
        anchor = LocationSample.from_dict(data)
    except LocationUnavailableError as e:
        return error_response(f"Unable to get location. {e}", 400)

    try:
        lecturer = AuthService.get_user_by_id(get_jwt_identity())
        session = SessionService.create_session(lecturer, data, anchor)
    except Exception as e:
        current_app.logger.exception("Session creation failed")
        return error_response(f"Error creating session: {str(e)}", 500)

    return success_response(
        data=session.to_dict(include_secrets=True),
        message="Session created successfully",
        status_code=201
    )

@sessions_bp.route('/', methods=['GET'])
@jwt_required()
@lecturer_required
def get_my_sessions():
    """List the lecturer's sessions, newest first."""
    sessions = SessionService.get_lecturer_sessions(int(get_jwt_identity()))

    return success_response(
        data=[s.to_dict(include_secrets=True) for s in sessions],
        message=f"Found {len(sessions)} sessions"
    )

@sessions_bp.route('/<int:session_id>', methods=['GET'])
@jwt_required()
def get_session(session_id):
    """Get session details; the owner also sees PIN, token and roster."""
    session = SessionService.get_session(session_id)
    if not session:
        return error_response("Session not found", 404)

    is_owner = session.lecturer_id == int(get_jwt_identity())
    return success_response(data=session.to_dict(include_secrets=is_owner))

@sessions_bp.route('/<int:session_id>/qr', methods=['GET'])
@jwt_required()
@lecturer_required
def get_session_qr(session_id):
    """Get the session's check-in token rendered as a QR image."""
    session, error = _owned_session(session_id)
    if error:
        return error

    return success_response(
        data={
            'session_id': session.id,
            'qr_data': session.qr_data,
            'qr_image': QRService.render_image(session.qr_data),
            'pin': session.pin
        }
    )

@sessions_bp.route('/<int:session_id>/end', methods=['POST'])
@jwt_required()
@lecturer_required
def end_session(session_id):
    """Stop accepting check-ins for a session."""
    session, error = _owned_session(session_id)
    if error:
        return error

    SessionService.end_session(session)

    return success_response(
        data=session.to_dict(include_secrets=True),
        message="Session ended"
    )

@sessions_bp.route('/<int:session_id>/attendance', methods=['GET'])
@jwt_required()
@lecturer_required
def get_session_attendance(session_id):
    """List attendance records for a session in check-in order."""
    session, error = _owned_session(session_id)
    if error:
        return error

    records = SessionService.get_session_attendance(session.id)

    return success_response(
        data={
            'session': session.to_dict(include_secrets=True),
            'records': [r.to_dict() for r in records]
        },
        message=f"{len(records)} students checked in"
    )
