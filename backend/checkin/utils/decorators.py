"""Custom decorators for authorization."""
from functools import wraps
from flask_jwt_extended import get_jwt_identity
from checkin.models.user import UserRole
from checkin.services.auth_service import AuthService
from checkin.utils.helpers import error_response

def role_required(role: UserRole):
    """Decorator factory requiring the JWT user to hold a role."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = AuthService.get_user_by_id(get_jwt_identity())
            
            if not user:
                return error_response("User not found", 404)
            
            if not user.is_active:
                return error_response("Account is deactivated", 403)
            
            if user.role != role:
                return error_response(f"{role.value.title()} access required", 403)
            
            return f(*args, **kwargs)
        return decorated_function
    return decorator

lecturer_required = role_required(UserRole.LECTURER)
student_required = role_required(UserRole.STUDENT)
