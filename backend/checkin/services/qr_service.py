"""QR Code generation and validation service."""
import qrcode
import io
import base64
import json
import logging
import secrets
import time
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from checkin.services.errors import MalformedTokenError, InvalidPayloadError

logger = logging.getLogger(__name__)

PLACEHOLDER_SESSION_ID = 'temp_id'

REQUIRED_FIELDS = [
    'courseId', 'courseName', 'lecturerName',
    'roomLocation', 'date', 'startTime',
    'latitude', 'longitude', 'pin', 'timestamp'
]

class QRPayload(BaseModel):
    """Session snapshot carried inside a check-in QR code."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: Optional[str] = Field(default=PLACEHOLDER_SESSION_ID, alias='sessionId')
    course_id: str = Field(alias='courseId')
    course_name: str = Field(alias='courseName')
    lecturer_name: str = Field(alias='lecturerName')
    room_location: str = Field(alias='roomLocation')
    date: str
    start_time: str = Field(alias='startTime')
    end_time: Optional[str] = Field(default=None, alias='endTime')
    latitude: float
    longitude: float
    allowed_radius: Optional[float] = Field(default=None, alias='allowedRadius')
    pin: str
    timestamp: int

    @field_validator('session_id', 'course_id', 'pin', mode='before')
    @classmethod
    def _numbers_as_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def has_real_session_id(self) -> bool:
        return bool(self.session_id) and self.session_id != PLACEHOLDER_SESSION_ID

    def to_token(self) -> str:
        return json.dumps(
            self.model_dump(by_alias=True, exclude_none=True),
            separators=(',', ':')
        )

class QRService:
    """Service for QR code operations."""

    @staticmethod
    def generate_pin(length: int = 6) -> str:
        """Generate a numeric session PIN with no leading zero."""
        low = 10 ** (length - 1)
        return str(low + secrets.randbelow(9 * low))

    @staticmethod
    def encode(session_draft: Dict[str, Any]) -> str:
        """
        Serialize a session draft into a QR token.

        The draft has no id yet, so the token carries a placeholder that
        must be swapped for the real id with ``finalize`` once the session
        is persisted.
        """
        payload = {
            'sessionId': PLACEHOLDER_SESSION_ID,
            'courseId': session_draft['course_id'],
            'courseName': session_draft['course_name'],
            'lecturerName': session_draft['lecturer_name'],
            'roomLocation': session_draft['room_location'],
            'date': session_draft['date'],
            'startTime': session_draft['start_time'],
            'endTime': session_draft.get('end_time'),
            'latitude': session_draft['latitude'],
            'longitude': session_draft['longitude'],
            'allowedRadius': session_draft.get('allowed_radius'),
            'pin': session_draft['pin'],
            'timestamp': int(time.time() * 1000)
        }
        payload = {key: value for key, value in payload.items() if value is not None}

        return json.dumps(payload, separators=(',', ':'))

    @staticmethod
    def finalize(token: str, session_id: Any) -> str:
        """Replace the placeholder id in a draft token with the persisted id."""
        payload = QRService.parse(token)
        return payload.model_copy(update={'session_id': str(session_id)}).to_token()

    @staticmethod
    def decode(token: str) -> Dict[str, Any]:
        """Parse token text into a mapping."""
        try:
            payload = json.loads(token)
        except (TypeError, ValueError):
            raise MalformedTokenError("Invalid QR code format")

        if not isinstance(payload, dict):
            raise MalformedTokenError("Invalid QR code format")

        return payload

    @staticmethod
    def validate(payload: Dict[str, Any]) -> bool:
        """Check that every required field is present; falsy values count."""
        if not isinstance(payload, dict):
            return False
        return all(field in payload for field in REQUIRED_FIELDS)

    @staticmethod
    def parse(token: str) -> QRPayload:
        """Decode, validate and type a scanned token in one step."""
        payload = QRService.decode(token)

        if not QRService.validate(payload):
            missing = [field for field in REQUIRED_FIELDS if field not in payload]
            raise InvalidPayloadError(f"Missing field: {', '.join(missing)}")

        try:
            return QRPayload.model_validate(payload)
        except ValidationError as e:
            logger.debug("QR payload failed schema validation: %s", e)
            fields = sorted({'.'.join(str(p) for p in err['loc']) for err in e.errors()})
            raise InvalidPayloadError(f"Invalid field: {', '.join(fields)}")

    @staticmethod
    def render_image(token: str) -> str:
        """Render a token as a base64 PNG data URI."""
        qr = qrcode.QRCode(
            version=None,  # Auto-determine size
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=4,
        )
        qr.add_data(token)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffered = io.BytesIO()
        img.save(buffered, format="PNG")
        img_str = base64.b64encode(buffered.getvalue()).decode()

        return f"data:image/png;base64,{img_str}"
