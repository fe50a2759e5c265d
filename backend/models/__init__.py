# Import all models so they register with SQLAlchemy Base.metadata
# This ensures Base.metadata.create_all() creates all tables

from models.user import User
from models.habit import Habit
from models.streak_entry import StreakEntry

__all__ = [
    "User",
    "Habit",
    "StreakEntry",
]
