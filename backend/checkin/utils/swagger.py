"""Swagger/OpenAPI configuration for the application."""
from flask_swagger_ui import get_swaggerui_blueprint

# Swagger UI configuration
SWAGGER_URL = '/api/docs'
API_URL = '/api/swagger.json'

def get_swagger_blueprint():
    """Create and return swagger UI blueprint."""
    return get_swaggerui_blueprint(
        SWAGGER_URL,
        API_URL,
        config={
            'app_name': "Lecture Check-in Service API",
            'docExpansion': 'list',
            'validatorUrl': None,
        }
    )

def _json_body(schema: dict) -> dict:
    return {"required": True, "content": {"application/json": {"schema": schema}}}

def _ok(description: str) -> dict:
    return {"description": description}

LOCATION_PROPERTIES = {
    "latitude": {"type": "number"},
    "longitude": {"type": "number"},
    "accuracy": {"type": "number"},
    "timestamp": {"type": "integer", "description": "ms since epoch"}
}

REJECTIONS = {
    "400": _ok("Malformed token, invalid payload or location unavailable"),
    "403": _ok("Session not active or student out of range"),
    "404": _ok("Session not found"),
    "409": _ok("Already checked in"),
    "503": _ok("Attendance could not be saved")
}

def generate_swagger_spec():
    """Generate OpenAPI/Swagger specification."""
    secured = [{"bearerAuth": []}]

    return {
        "openapi": "3.0.0",
        "info": {
            "title": "Lecture Check-in Service API",
            "description": "Lecture attendance with QR code or PIN check-in and geofencing",
            "version": "1.0.0"
        },
        "servers": [
            {"url": "http://127.0.0.1:5000", "description": "Development server"}
        ],
        "components": {
            "securitySchemes": {
                "bearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}
            },
            "schemas": {
                "LectureSession": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer"},
                        "course_id": {"type": "string"},
                        "course_name": {"type": "string"},
                        "lecturer_id": {"type": "integer"},
                        "lecturer_name": {"type": "string"},
                        "room_location": {"type": "string"},
                        "latitude": {"type": "number"},
                        "longitude": {"type": "number"},
                        "allowed_radius": {"type": "number"},
                        "date": {"type": "string", "example": "2026-10-18"},
                        "start_time": {"type": "string", "example": "09:00"},
                        "end_time": {"type": "string", "example": "10:00"},
                        "pin": {"type": "string"},
                        "qr_data": {"type": "string"},
                        "is_active": {"type": "boolean"},
                        "checked_in_students": {"type": "array", "items": {"type": "integer"}}
                    }
                },
                "AttendanceRecord": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer"},
                        "session_id": {"type": "integer"},
                        "student_id": {"type": "integer"},
                        "student_name": {"type": "string"},
                        "course_id": {"type": "string"},
                        "course_name": {"type": "string"},
                        "check_in_time": {"type": "string", "format": "date-time"},
                        "latitude": {"type": "number"},
                        "longitude": {"type": "number"},
                        "status": {"type": "string", "enum": ["present", "absent", "late"]},
                        "verification_method": {"type": "string", "enum": ["qr", "pin"]}
                    }
                }
            }
        },
        "paths": {
            "/api/auth/register": {
                "post": {
                    "tags": ["Authentication"],
                    "summary": "Register a lecturer or student",
                    "requestBody": _json_body({
                        "type": "object",
                        "required": ["email", "password", "name"],
                        "properties": {
                            "email": {"type": "string"},
                            "password": {"type": "string"},
                            "name": {"type": "string"},
                            "role": {"type": "string", "enum": ["lecturer", "student"]},
                            "student_number": {"type": "string"},
                            "department": {"type": "string"}
                        }
                    }),
                    "responses": {"201": _ok("Registered"), "400": _ok("Validation error")}
                }
            },
            "/api/auth/login": {
                "post": {
                    "tags": ["Authentication"],
                    "summary": "Log in and receive JWT tokens",
                    "requestBody": _json_body({
                        "type": "object",
                        "required": ["email", "password"],
                        "properties": {"email": {"type": "string"}, "password": {"type": "string"}}
                    }),
                    "responses": {"200": _ok("Tokens issued"), "401": _ok("Invalid credentials")}
                }
            },
            "/api/sessions/": {
                "post": {
                    "tags": ["Sessions"],
                    "summary": "Create a lecture session at the lecturer's location",
                    "security": secured,
                    "requestBody": _json_body({
                        "type": "object",
                        "required": ["course_id", "course_name", "room_location", "date",
                                     "start_time", "end_time", "latitude", "longitude"],
                        "properties": dict({
                            "course_id": {"type": "string"},
                            "course_name": {"type": "string"},
                            "room_location": {"type": "string"},
                            "date": {"type": "string"},
                            "start_time": {"type": "string"},
                            "end_time": {"type": "string"},
                            "allowed_radius": {"type": "number"}
                        }, **LOCATION_PROPERTIES)
                    }),
                    "responses": {"201": _ok("Session created"), "400": _ok("Validation error")}
                },
                "get": {
                    "tags": ["Sessions"],
                    "summary": "List the lecturer's sessions",
                    "security": secured,
                    "responses": {"200": _ok("Sessions")}
                }
            },
            "/api/sessions/{session_id}/qr": {
                "get": {
                    "tags": ["Sessions"],
                    "summary": "QR token and PNG image for a session",
                    "security": secured,
                    "responses": {"200": _ok("QR code"), "404": _ok("Session not found")}
                }
            },
            "/api/sessions/{session_id}/end": {
                "post": {
                    "tags": ["Sessions"],
                    "summary": "Stop accepting check-ins",
                    "security": secured,
                    "responses": {"200": _ok("Session ended")}
                }
            },
            "/api/attendance/scan": {
                "post": {
                    "tags": ["Attendance"],
                    "summary": "Check in with a scanned QR token",
                    "security": secured,
                    "requestBody": _json_body({
                        "type": "object",
                        "required": ["qr_data", "latitude", "longitude"],
                        "properties": dict({"qr_data": {"type": "string"}}, **LOCATION_PROPERTIES)
                    }),
                    "responses": dict({"201": _ok("Checked in")}, **REJECTIONS)
                }
            },
            "/api/attendance/pin": {
                "post": {
                    "tags": ["Attendance"],
                    "summary": "Check in with a session PIN",
                    "security": secured,
                    "requestBody": _json_body({
                        "type": "object",
                        "required": ["pin", "latitude", "longitude"],
                        "properties": dict({
                            "pin": {"type": "string"},
                            "session_id": {"type": "integer"}
                        }, **LOCATION_PROPERTIES)
                    }),
                    "responses": dict({"201": _ok("Checked in")}, **REJECTIONS)
                }
            },
            "/api/attendance/history": {
                "get": {
                    "tags": ["Attendance"],
                    "summary": "The student's attendance history",
                    "security": secured,
                    "responses": {"200": _ok("Records and statistics")}
                }
            }
        },
        "tags": [
            {"name": "Authentication", "description": "User authentication"},
            {"name": "Sessions", "description": "Lecture session management"},
            {"name": "Attendance", "description": "Student check-in"}
        ]
    }
