from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String, Text

from app.db.base_class import Base, JSONDocument


class NutritionProgram(Base):
    __tablename__ = "nutrition_programs"

    name = Column(String, nullable=False)
    description = Column(Text)
    category = Column(String)
    difficulty = Column(String)
    total_duration_weeks = Column(Integer, nullable=False)
    has_phases = Column(Boolean, default=False, nullable=False)
    phases = Column(JSONDocument, default=list, nullable=False)
    owner_type = Column(String, nullable=False)  # user, group
    owner_id = Column(Integer, nullable=False, index=True)
    created_by = Column(Integer)
    is_public = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    version = Column(String, default="1.0", nullable=False)
    version_history = Column(JSONDocument, default=list, nullable=False)
    tags = Column(JSONDocument, default=list, nullable=False)
    estimated_calories_per_day = Column(Integer)


class MealTemplate(Base):
    __tablename__ = "meal_templates"

    name = Column(String, nullable=False)
    description = Column(Text)
    meal_type = Column(String, nullable=False)
    ingredients = Column(JSONDocument, default=list, nullable=False)
    instructions = Column(Text)
    servings = Column(Integer, default=1, nullable=False)
    totals = Column(JSONDocument, default=dict, nullable=False)
    per_serving = Column(JSONDocument, default=dict, nullable=False)
    created_by = Column(Integer, index=True)
    is_public = Column(Boolean, default=False, nullable=False)
    version = Column(String, default="1.0", nullable=False)
    version_history = Column(JSONDocument, default=list, nullable=False)
    tags = Column(JSONDocument, default=list, nullable=False)


class MealLog(Base):
    __tablename__ = "meal_logs"

    user_id = Column(Integer, nullable=False, index=True)
    meal_id = Column(Integer)
    meal_version_id = Column(Integer)
    meal_template_id = Column(Integer)
    nutrition_program_id = Column(Integer)
    phase_number = Column(Integer)
    meal_name = Column(String, nullable=False)
    meal_type = Column(String)
    consumed_at = Column(DateTime(timezone=True), nullable=False)
    template_version = Column(String)
    template_snapshot = Column(JSONDocument)
    servings_consumed = Column(Float, default=1, nullable=False)
    ingredients = Column(JSONDocument, default=list, nullable=False)
    actual = Column(JSONDocument, default=dict, nullable=False)
    planned = Column(JSONDocument)
    variance = Column(JSONDocument)
    notes = Column(Text)
    was_completed = Column(Boolean, default=True, nullable=False)
