import base64
import json
from datetime import datetime, timezone

import pytest

from app.core.enums import ErrorMessage
from app.core.errors import APIError
from app.utils.cursor import CursorUtils, validate_limit


class TestCursorUtils:

    def test_cursor_round_trip(self):
        timestamp = datetime(2025, 3, 1, 12, 30, 15, 123000, tzinfo=timezone.utc)

        cursor = CursorUtils.create_cursor(42, timestamp)
        cursor_id, decoded = CursorUtils.decode_cursor(cursor)

        assert cursor_id == "42"
        assert decoded == timestamp

    def test_cursor_payload_shape(self):
        timestamp = datetime(2025, 3, 1, tzinfo=timezone.utc)

        payload = json.loads(base64.b64decode(CursorUtils.encode_cursor(7, timestamp)))

        assert payload == {"userId": "7", "timestamp": timestamp.isoformat()}

    @pytest.mark.parametrize(
        "cursor",
        [
            "not base64!",
            base64.b64encode(b"not json").decode(),
            base64.b64encode(json.dumps({"timestamp": "2025-01-01T00:00:00"}).encode()).decode(),
            base64.b64encode(json.dumps({"userId": "1", "timestamp": "yesterday"}).encode()).decode(),
        ],
    )
    def test_malformed_cursor_is_bad_request(self, cursor):
        with pytest.raises(APIError) as exc_info:
            CursorUtils.decode_cursor(cursor)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == ErrorMessage.INVALID_CURSOR

    def test_parse_cursor(self):
        timestamp = datetime(2025, 3, 1, tzinfo=timezone.utc)

        assert CursorUtils.parse_cursor(None) is None
        assert CursorUtils.parse_cursor(CursorUtils.create_cursor(9, timestamp)) == (9, timestamp)

    def test_parse_cursor_rejects_non_numeric_id(self):
        cursor = CursorUtils.encode_cursor("abc", datetime(2025, 3, 1, tzinfo=timezone.utc))

        with pytest.raises(APIError) as exc_info:
            CursorUtils.parse_cursor(cursor)

        assert exc_info.value.message == ErrorMessage.INVALID_CURSOR


class TestValidateLimit:

    def test_missing_limit_uses_default(self):
        assert validate_limit(None, 50, 100) == 50

    def test_limit_within_bounds(self):
        assert validate_limit(1, 50, 100) == 1
        assert validate_limit(100, 50, 100) == 100

    @pytest.mark.parametrize("limit", [0, -1, 101])
    def test_limit_out_of_bounds(self, limit):
        with pytest.raises(APIError) as exc_info:
            validate_limit(limit, 50, 100)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == ErrorMessage.INVALID_LIMIT
