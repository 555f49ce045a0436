"""
Unit tests for document validators and identifier conversion.
"""

from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import IdentifierCastError
from app.entities.event import validate_event, validate_user_events
from app.entities.social import validate_group
from app.entities.user_profile import validate_user_profile
from app.repositories.base import BaseRepository


class TestValidateGroup:

    def test_valid_group(self):
        assert validate_group({"group_name": "Runners", "owners": [1], "members": [2], "requests": [3]}) == []

    def test_group_needs_name_and_owner(self):
        errors = validate_group({"group_name": "  ", "owners": []})

        assert {e.field for e in errors} == {"group_name", "owners"}

    def test_user_in_two_lists(self):
        errors = validate_group({"group_name": "Runners", "owners": [1], "members": [1, 2]})

        assert len(errors) == 1
        assert errors[0].field == "members"
        assert errors[0].value == 1

    def test_unknown_account_type(self):
        errors = validate_group({"group_name": "Runners", "owners": [1], "account_type": 5})

        assert errors[0].field == "account_type"


class TestValidateEvent:

    def test_end_before_start(self):
        start = datetime(2025, 6, 1, 10, tzinfo=timezone.utc)

        errors = validate_event(
            {"title": "Long run", "start_time": start, "end_time": start - timedelta(hours=1), "admin": [1]}
        )

        assert [e.field for e in errors] == ["end_time"]

    def test_event_needs_admin(self):
        start = datetime(2025, 6, 1, 10, tzinfo=timezone.utc)

        errors = validate_event({"title": "Long run", "start_time": start, "end_time": start, "admin": []})

        assert [e.field for e in errors] == ["admin"]

    def test_user_event_status(self):
        errors = validate_user_events({"user_id": 1, "events": [{"event_id": 1, "status": 1}, {"event_id": 2, "status": 9}]})

        assert [e.field for e in errors] == ["events.1.status"]


class TestValidateUserProfile:

    def test_duplicate_custom_section_titles(self):
        errors = validate_user_profile(
            {
                "user_id": 1,
                "username": "runner",
                "name": "Runner",
                "custom_sections": [
                    {"title": "goals", "details": []},
                    {"title": "goals", "details": []},
                ],
            }
        )

        assert [e.field for e in errors] == ["custom_sections.1.title"]

    def test_section_details_must_be_a_list(self):
        errors = validate_user_profile(
            {
                "user_id": 1,
                "username": "runner",
                "name": "Runner",
                "custom_sections": [{"title": "stats", "details": "fast"}],
            }
        )

        assert [e.field for e in errors] == ["custom_sections.0.details"]


class TestToObjectId:

    @pytest.mark.parametrize("value, expected", [(5, 5), ("17", 17), (" 3 ", 3)])
    def test_valid_ids(self, value, expected):
        assert BaseRepository.to_object_id(value) == expected

    @pytest.mark.parametrize("value", ["abc", "", "0", 0, -4, "1.5", True, None, "٣"])
    def test_invalid_ids(self, value):
        with pytest.raises(IdentifierCastError) as exc_info:
            BaseRepository.to_object_id(value, "group_id")

        assert exc_info.value.field == "group_id"
