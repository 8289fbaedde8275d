"""Authentication service for user management."""
from datetime import datetime
from typing import Optional

from flask_jwt_extended import create_access_token, create_refresh_token

from checkin import db
from checkin.models.user import User, UserRole
from checkin.utils.validators import Validator

class AuthService:
    """Issues tokens and resolves the current user; the identity boundary."""
    
    @staticmethod
    def login(email: str, password: str) -> tuple[dict, str]:
        """Authenticate user and return tokens."""
        if not email or not password:
            return None, "Email and password are required"
        
        if not Validator.validate_email(email):
            return None, "Invalid email format"
        
        user = User.query.filter_by(email=email.lower().strip()).first()
        
        if not user or not user.check_password(password):
            return None, "Invalid email or password"
        
        if not user.is_active:
            return None, "Account is deactivated"
        
        user.last_login = datetime.utcnow()
        db.session.commit()
        
        return {
            "access_token": create_access_token(identity=str(user.id)),
            "refresh_token": create_refresh_token(identity=str(user.id)),
            "user": user.to_dict()
        }, None
    
    @staticmethod
    def register(
        email: str,
        password: str,
        name: str,
        role: str = "student",
        student_number: str = None,
        department: str = None
    ) -> tuple[dict, str]:
        """Register new user."""
        if not all([email, password, name]):
            return None, "Email, password and name are required"
        
        if not Validator.validate_email(email):
            return None, "Invalid email format"
        
        password_check = Validator.validate_password(password)
        if not password_check["is_valid"]:
            return None, password_check["errors"][0]
        
        if len(name.strip()) < 2:
            return None, "Name must be at least 2 characters long"
        
        email = email.lower().strip()
        if User.query.filter_by(email=email).first():
            return None, "Email already exists"
        
        try:
            user_role = UserRole(str(role).lower())
        except ValueError:
            return None, f"Invalid role: {role}"
        
        if student_number and User.query.filter_by(student_number=student_number).first():
            return None, "Student number already registered"
        
        user = User(
            email=email,
            name=name.strip(),
            role=user_role,
            student_number=student_number,
            department=department
        )
        user.set_password(password)
        user.save()
        
        return user.to_dict(), None
    
    @staticmethod
    def get_user_by_id(user_id) -> Optional[User]:
        """Get user by ID; JWT identities arrive as strings."""
        return User.get_by_id(user_id)
    
    @staticmethod
    def refresh_token(user_id) -> tuple[dict, str]:
        """Generate new access token."""
        user = AuthService.get_user_by_id(user_id)
        if not user or not user.is_active:
            return None, "User not found or inactive"
        
        return {
            "access_token": create_access_token(identity=str(user.id)),
            "user": user.to_dict()
        }, None
