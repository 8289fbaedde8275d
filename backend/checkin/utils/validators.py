"""Validation utilities for the application."""
import re
from typing import Dict, List, Any

from checkin.services.session_clock import parse_date, parse_time

TIME_PATTERN = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')
DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')

class Validator:
    """Validation helper class."""

    @staticmethod
    def validate_email(email: str) -> bool:
        """Validate email format."""
        if not email:
            return False
        pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        return bool(re.match(pattern, email))

    @staticmethod
    def validate_password(password: str) -> Dict[str, Any]:
        """Validate password strength."""
        errors = []

        if not password:
            errors.append("Password is required")
        elif len(password) < 6:
            errors.append("Password must be at least 6 characters long")
        elif len(password) > 128:
            errors.append("Password is too long")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_required_fields(data: Dict, required_fields: List[str]) -> Dict[str, Any]:
        """Validate required fields in data."""
        errors = []

        for field in required_fields:
            if field not in data or data[field] is None or str(data[field]).strip() == '':
                errors.append(f"{field} is required")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_session_data(data: Dict) -> Dict[str, Any]:
        """Validate a lecturer's new session request."""
        result = Validator.validate_required_fields(
            data,
            ['course_id', 'course_name', 'room_location', 'date', 'start_time', 'end_time']
        )
        errors = result['errors']
        if errors:
            return result

        # Numbers are accepted and stored as text
        for field in ('course_id', 'course_name', 'room_location'):
            if isinstance(data[field], (bool, dict, list)):
                errors.append(f"{field} must be text")
        if errors:
            return result

        if not DATE_PATTERN.match(str(data['date'])):
            errors.append("date must be in YYYY-MM-DD format")
        else:
            try:
                parse_date(data['date'])
            except ValueError:
                errors.append("date is not a valid calendar date")

        times_valid = True
        for field in ('start_time', 'end_time'):
            if not TIME_PATTERN.match(str(data[field])):
                errors.append(f"{field} must be in HH:MM format")
                times_valid = False

        if times_valid and parse_time(data['start_time']) >= parse_time(data['end_time']):
            errors.append("End time must be after start time")

        radius = data.get('allowed_radius')
        if radius is not None:
            try:
                if float(radius) <= 0:
                    errors.append("allowed_radius must be positive")
            except (TypeError, ValueError):
                errors.append("allowed_radius must be a number")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }
