"""Authentication API: registration, login and token refresh."""
from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from checkin import limiter
from checkin.services.auth_service import AuthService
from checkin.utils.helpers import success_response, error_response

auth_bp = Blueprint("auth", __name__)

@auth_bp.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint."""
    return success_response(message="Auth service is running")

@auth_bp.route("/register", methods=["POST"])
@limiter.limit("10 per hour")
def register():
    """Register a lecturer or student account."""
    try:
        data = request.get_json(silent=True)

        if not data:
            return error_response("Request body must be JSON", 400)

        result, error = AuthService.register(
            email=data.get("email", ""),
            password=data.get("password", ""),
            name=data.get("name", ""),
            role=data.get("role", "student"),
            student_number=data.get("student_number"),
            department=data.get("department")
        )

        if error:
            return error_response(error, 400)

        return success_response(
            data=result,
            message="Registration successful",
            status_code=201
        )

    except Exception as e:
        current_app.logger.exception("Registration failed")
        return error_response(f"Registration error: {str(e)}", 500)

@auth_bp.route("/login", methods=["POST"])
@limiter.limit("5 per minute")
def login():
    """Exchange credentials for access and refresh tokens."""
    try:
        data = request.get_json(silent=True)

        if not data:
            return error_response("Request body must be JSON", 400)

        email = data.get("email", "").strip()
        password = data.get("password", "")

        if not email or not password:
            return error_response("Email and password are required", 400)

        result, error = AuthService.login(email, password)

        if error:
            return error_response(error, 401)

        return success_response(
            data=result,
            message="Login successful"
        )

    except Exception as e:
        current_app.logger.exception("Login failed")
        return error_response(f"Login error: {str(e)}", 500)

@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def get_current_user():
    """Get current user profile."""
    user = AuthService.get_user_by_id(get_jwt_identity())

    if not user:
        return error_response("User not found", 404)

    return success_response(data=user.to_dict())

@auth_bp.route("/refresh", methods=["POST"])
@jwt_required(refresh=True)
def refresh_token():
    """Refresh access token."""
    result, error = AuthService.refresh_token(get_jwt_identity())

    if error:
        return error_response(error, 401)

    return success_response(
        data=result,
        message="Token refreshed successfully"
    )
