"""Enumerations and fixed message strings shared across services."""

import enum


class EventStatus(enum.IntEnum):
    Pending = 1
    Accepted = 2
    Rejected = 3


class ProfileAccess(enum.IntEnum):
    Public = 0
    Private = 1


class AuthProvider(str, enum.Enum):
    local = "local"
    google = "google"


class CustomSectionTitle(str, enum.Enum):
    achievements = "achievements"
    goals = "goals"
    stats = "stats"
    specializations = "specializations"
    certifications = "certifications"
    identity = "identity"
    other = "other"


class Gender(str, enum.Enum):
    male = "male"
    female = "female"


class ActivityLevel(str, enum.Enum):
    sedentary = "sedentary"
    lightly_active = "lightly_active"
    moderately_active = "moderately_active"
    very_active = "very_active"
    extremely_active = "extremely_active"


class PhaseType(str, enum.Enum):
    bulking = "bulking"
    cutting = "cutting"
    maintenance = "maintenance"
    custom = "custom"


class WeightChangeType(str, enum.Enum):
    gain = "gain"
    lose = "lose"


class MealType(str, enum.Enum):
    breakfast = "breakfast"
    lunch = "lunch"
    dinner = "dinner"
    snack = "snack"
    pre_workout = "pre_workout"
    post_workout = "post_workout"


class OwnerType(str, enum.Enum):
    user = "user"
    group = "group"


class ProgramDifficulty(str, enum.Enum):
    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"


class WorkoutLogStatus(str, enum.Enum):
    in_progress = "in_progress"
    completed = "completed"


class StorageErrorType(str, enum.Enum):
    """Error codes attached to translated storage failures."""

    ValidationError = "ValidationError"
    CastError = "CastError"
    DocumentNotFoundError = "DocumentNotFoundError"
    DuplicateKeyError = "DuplicateKeyError"
    DatabaseServerError = "DatabaseServerError"


class ErrorMessage:
    """Caller-facing messages for domain errors."""

    # Users and auth
    USER_NOT_FOUND = "User not found"
    USER_ALREADY_EXISTS = "User already exists"
    USER_PROFILE_NOT_FOUND = "User profile not found"
    LOGIN_PROFILE_NOT_FOUND = "User Profile not found"
    INVALID_PASSWORD = "Invalid password"
    INVALID_REFRESH_TOKEN = "Invalid refresh token"
    REFRESH_TOKEN_EXPIRED = "Refresh token expired"
    TOKEN_NOT_FOUND = "Token not found"
    GOOGLE_ACCOUNT_CONFLICT = (
        "Account with this email/username already exists but not linked to this authentication provider"
    )
    GOOGLE_PASSWORD_RESET = "Google auth users cannot reset password"
    INVALID_CODE = "Invalid Code"
    EXPIRED_CODE = "Expired Code"
    INACTIVE_USER = "Inactive user"

    # Profile
    CUSTOM_SECTION_ALREADY_EXISTS = "Custom section already exists"
    CUSTOM_SECTION_NOT_FOUND = "Custom section not found"
    USER_GROUPS_NOT_FOUND = "User groups not found"

    # Follow graph
    FOLLOWER_NOT_FOUND = "Follower not found"
    FOLLOWEE_NOT_FOUND = "User to follow not found"
    ALREADY_FOLLOWING = "Already following this user"
    CANNOT_FOLLOW_SELF = "Cannot follow yourself"
    PRIVATE_ACCOUNT_FOLLOW_REQUEST = "Cannot follow private account directly"
    FOLLOW_REQUEST_ALREADY_SENT = "Follow request already sent"
    FOLLOW_REQUEST_NOT_FOUND = "Follow request not found"
    NOT_CURRENTLY_FOLLOWING = "Not currently following this user"
    FOLLOWER_NOT_CURRENTLY_FOLLOWING = "Follower is not currently following this user"

    # Groups
    GROUP_NOT_FOUND = "Group not found"
    ALREADY_GROUP_MEMBER = "User is already part of this group"
    ALREADY_REQUESTED_TO_JOIN = "User has already requested to join this group"
    NO_PENDING_JOIN_REQUEST = "User has no pending join request"
    NOT_GROUP_MEMBER = "User is not a member of this group"
    OWNER_CANNOT_LEAVE = "Group owners cannot leave the group"
    CANNOT_REMOVE_OWNER = "Cannot remove group owner"
    OWNER_ONLY = "Only group owners can perform this action"
    CANNOT_JOIN_PRIVATE_GROUP = "Cannot join private group"
    CANNOT_REQUEST_PUBLIC_GROUP = "Cannot request to join public group"
    GROUP_MODIFIED_CONCURRENTLY = "Group was modified concurrently"

    # Events
    EVENT_NOT_FOUND = "Event not found"
    EVENT_ADMIN_ONLY = "Only event admins can perform this action"

    # Programs
    PROGRAM_NOT_FOUND = "Program not found"
    WEEK_NOT_FOUND = "Week not found"
    WORKOUT_NOT_FOUND = "Workout not found"
    WORKOUT_LOG_NOT_FOUND = "Workout log not found"
    MEAL_NOT_FOUND = "Meal not found"
    NOTE_NOT_FOUND = "Note not found"

    # Nutrition
    NUTRITION_PROGRAM_NOT_FOUND = "Nutrition program not found"
    MEAL_TEMPLATE_NOT_FOUND = "Meal template not found"
    PHASE_NOT_FOUND = "Phase not found"
    PHASES_REQUIRED = "Phases are required when has_phases is true"
    PHASES_NOT_ALLOWED = "Phases must be empty when has_phases is false"
    PHASES_OVERLAP = "Phase week ranges must not overlap"

    # Pagination
    INVALID_CURSOR = "Invalid cursor format"
    INVALID_LIMIT = "Invalid pagination parameter"
