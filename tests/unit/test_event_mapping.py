"""
Unit tests for the event repository mappers.

Rows are built in memory; no session is involved.
"""

from datetime import datetime, timezone

import pytest

from app.core.enums import EventStatus
from app.core.errors import IdentifierCastError
from app.entities.event import UserEventDetails
from app.models.event import Event as EventModel
from app.models.event import UserEvent as UserEventModel
from app.repositories.event import EventRepository, UserEventRepository
from app.schemas.event import EventCreate

START = datetime(2025, 6, 1, 7, 0, tzinfo=timezone.utc)
END = datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc)


def event_row(**overrides):
    values = dict(
        id=7,
        title="Track session",
        admin=[1],
        invitees=[2, 3],
        start_time=START.replace(tzinfo=None),
        end_time=END.replace(tzinfo=None),
        tags=["track"],
        alerts=[{"alert_time": "2025-06-01T06:30:00+00:00", "is_completed": False}],
        created_at=START,
        updated_at=START,
    )
    values.update(overrides)
    return EventModel(**values)


class TestEventMapping:

    def test_document_strips_title_and_dedupes_people(self):
        request = EventCreate(
            title="  Track session ",
            admin=["1", "1"],
            invitees=["2", "1", "3"],
            start_time=START,
            end_time=END,
        )

        document = EventRepository().to_document(request)

        assert document["title"] == "Track session"
        assert document["admin"] == [1]
        assert document["invitees"] == [2, 3]

    def test_document_rejects_malformed_ids(self):
        request = EventCreate(title="Run", admin=["abc"], start_time=START, end_time=END)

        with pytest.raises(IdentifierCastError):
            EventRepository().to_document(request)

    def test_entity_restores_utc_and_alerts(self):
        event = EventRepository().to_entity(event_row())

        assert event.start_time.tzinfo is not None
        assert event.start_time == START
        assert event.alerts[0].alert_time == datetime(2025, 6, 1, 6, 30, tzinfo=timezone.utc)
        assert event.participants == [1, 2, 3]

    def test_missing_row(self):
        assert EventRepository().to_entity(None) is None

    def test_response_uses_string_ids(self):
        repository = EventRepository()

        response = repository.to_response(repository.to_entity(event_row()))

        assert response.id == "7"
        assert response.admin == ["1"]
        assert response.invitees == ["2", "3"]


class TestUserEventMapping:

    def test_entries_carry_status(self):
        row = UserEventModel(id=1, user_id=2, events=[{"event_id": 7, "status": 1}, {"event_id": 8, "status": 2}])

        user_events = UserEventRepository().to_entity(row)

        assert user_events.find(7).status is EventStatus.Pending
        assert user_events.find(8).status is EventStatus.Accepted
        assert user_events.find(9) is None

    def test_response_nests_event(self):
        event = EventRepository().to_entity(event_row())

        response = UserEventRepository.to_response(UserEventDetails(event=event, status=EventStatus.Rejected))

        assert response.event.title == "Track session"
        assert response.status == EventStatus.Rejected
