"""SQLAlchemy models."""
from models.base import Base, TimestampMixin, UUIDv7Mixin
from models.state_requirement import StateRequirement
from models.user import User
from models.student import Student
from models.daily_log import DailyLog
from models.one_time_code import OneTimeCode

__all__ = [
    "Base",
    "DailyLog",
    "OneTimeCode",
    "StateRequirement",
    "Student",
    "TimestampMixin",
    "UUIDv7Mixin",
    "User",
]
