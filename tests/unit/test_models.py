"""
Unit tests for the declarative model layer.
"""

from sqlalchemy import inspect

from app import models
from app.db.base_class import Base

TABLES = {
    "users",
    "password_resets",
    "user_profiles",
    "follows",
    "groups",
    "user_groups",
    "events",
    "user_events",
    "programs",
    "weeks",
    "meals",
    "notes",
    "workout_logs",
    "nutrition_programs",
    "meal_templates",
    "meal_logs",
}


def test_every_model_is_mapped():
    assert set(Base.metadata.tables) == TABLES


def test_common_columns_come_from_base():
    for name in models.__all__:
        columns = inspect(getattr(models, name)).columns
        assert columns["id"].primary_key
        assert columns["created_at"].default is not None
        assert columns["updated_at"].onupdate is not None
