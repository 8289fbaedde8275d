"""Shared columns and helpers for the check-in tables."""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from checkin import db

# Largest value a 64-bit signed INTEGER primary key can hold
MAX_ID = 2 ** 63 - 1

def coerce_id(value: Any) -> Optional[int]:
    """
    Turn an untrusted id (JSON number, token text, JWT identity) into a key.

    Returns None for anything that could not be a stored row id: booleans,
    fractional numbers, non-numeric text, and integers outside 1..MAX_ID.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and not value.is_integer():
        return None

    try:
        key = int(value)
    except (TypeError, ValueError, OverflowError):
        return None

    if not 0 < key <= MAX_ID:
        return None
    return key

class BaseModel(db.Model):
    """Id and creation time for every check-in table."""

    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def save(self) -> 'BaseModel':
        db.session.add(self)
        db.session.commit()
        return self

    def to_dict(self, exclude: list = None) -> Dict[str, Any]:
        """Column values as JSON-ready data; enums become their values."""
        skipped = set(exclude or [])
        data = {}

        for column in self.__table__.columns:
            if column.name in skipped:
                continue
            value = getattr(self, column.name)
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, Enum):
                value = value.value
            data[column.name] = value

        return data

    @classmethod
    def get_by_id(cls, id: Any) -> Optional['BaseModel']:
        """Look up a row; ids that cannot exist return None without a query."""
        key = coerce_id(id)
        if key is None:
            return None
        return db.session.get(cls, key)

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} {self.id}>'
