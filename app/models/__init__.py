"""Database models."""

# Import all models here to ensure they're recognized by SQLAlchemy
from app.models.auth import PasswordReset
from app.models.event import Event, UserEvent
from app.models.follow import Follow
from app.models.group import Group, UserGroups
from app.models.nutrition import MealLog, MealTemplate, NutritionProgram
from app.models.program import Meal, Note, Program, Week, WorkoutLog
from app.models.user import User
from app.models.user_profile import UserProfile

__all__ = [
    "User",
    "UserProfile",
    "PasswordReset",
    "Follow",
    "Group",
    "UserGroups",
    "Event",
    "UserEvent",
    "Program",
    "Week",
    "Meal",
    "Note",
    "WorkoutLog",
    "NutritionProgram",
    "MealTemplate",
    "MealLog",
]
