from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from app.db.base_class import Base, JSONDocument


class Program(Base):
    __tablename__ = "programs"

    name = Column(String, nullable=False)
    types = Column(JSONDocument, default=list, nullable=False)
    num_weeks = Column(Integer, nullable=False)
    has_nutrition_program = Column(Boolean, default=False, nullable=False)
    # [{name, start_week, end_week}]
    phases = Column(JSONDocument, default=list, nullable=False)
    access_type = Column(Integer, default=0, nullable=False)
    admins = Column(JSONDocument, default=list, nullable=False)
    members = Column(JSONDocument, default=list, nullable=False)
    created_by = Column(Integer, nullable=False, index=True)
    weeks = Column(JSONDocument, default=list, nullable=False)


class Week(Base):
    __tablename__ = "weeks"

    program_id = Column(Integer, nullable=False, index=True)
    week_number = Column(Integer, nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text)
    image_path = Column(String)
    start_date = Column(DateTime(timezone=True))
    end_date = Column(DateTime(timezone=True))
    # workout -> exercises -> sets, embedded
    workouts = Column(JSONDocument, default=list, nullable=False)
    meals = Column(JSONDocument, default=list, nullable=False)


class Meal(Base):
    __tablename__ = "meals"

    created_by = Column(Integer, nullable=False, index=True)
    meal_name = Column(String, nullable=False)
    macros = Column(JSONDocument, default=dict, nullable=False)
    ingredients = Column(JSONDocument, default=list, nullable=False)
    instructions = Column(Text)
    version_id = Column(Integer, default=1, nullable=False)


class Note(Base):
    __tablename__ = "notes"

    week_id = Column(Integer, nullable=False, index=True)
    title = Column(String, nullable=False)
    content = Column(Text)
    created_by = Column(Integer)


class WorkoutLog(Base):
    __tablename__ = "workout_logs"

    user_id = Column(Integer, nullable=False, index=True)
    week_id = Column(Integer, nullable=False, index=True)
    workout_id = Column(String, nullable=False)
    workout_version_id = Column(Integer, nullable=False)
    workout_snapshot = Column(JSONDocument, nullable=False)
    status = Column(String, default="in_progress", nullable=False)
    block_logs = Column(JSONDocument, default=list, nullable=False)
    notes = Column(Text)
