"""Opaque cursors for keyset pagination.

A cursor is base64-encoded JSON holding the last row's identifier and its
``created_at`` timestamp, e.g. ``{"userId": "42", "timestamp": "2024-...Z"}``.
"""

import base64
import binascii
import json
from datetime import datetime
from typing import Optional, Tuple

from app.core.enums import ErrorMessage
from app.core.errors import APIError


class CursorUtils:

    @staticmethod
    def encode_cursor(user_id, timestamp: datetime) -> str:
        cursor_data = {
            "userId": str(user_id),
            "timestamp": timestamp.isoformat(),
        }
        return base64.b64encode(json.dumps(cursor_data).encode("utf-8")).decode("ascii")

    @staticmethod
    def decode_cursor(cursor: str) -> Tuple[str, datetime]:
        """Return ``(id, timestamp)`` or raise a 400 for a malformed cursor."""
        try:
            decoded = base64.b64decode(cursor.encode("ascii"), validate=True).decode("utf-8")
            data = json.loads(decoded)
            return str(data["userId"]), datetime.fromisoformat(data["timestamp"])
        except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError) as e:
            raise APIError.bad_request(ErrorMessage.INVALID_CURSOR) from e

    @classmethod
    def create_cursor(cls, user_id, created_at: datetime) -> str:
        return cls.encode_cursor(user_id, created_at)

    @classmethod
    def parse_cursor(cls, cursor: Optional[str]) -> Optional[Tuple[int, datetime]]:
        """Decode a client cursor into ``(id, timestamp)``; ``None`` when absent."""
        if not cursor:
            return None
        cursor_id, timestamp = cls.decode_cursor(cursor)
        if not (cursor_id.isascii() and cursor_id.isdigit()):
            raise APIError.bad_request(ErrorMessage.INVALID_CURSOR)
        return int(cursor_id), timestamp


def validate_limit(limit: Optional[int], default: int, maximum: int) -> int:
    if limit is None:
        return default
    if limit < 1 or limit > maximum:
        raise APIError.bad_request(ErrorMessage.INVALID_LIMIT)
    return limit
