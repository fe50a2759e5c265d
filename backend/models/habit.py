from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from database import Base


class Habit(Base):
    __tablename__ = "habits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, default="")
    category = Column(String(20), default="other")  # health/work/learning/sport/other
    frequency = Column(String(20), default="daily")  # daily/weekly/monthly
    goal = Column(Integer, default=1)
    color = Column(String(20), default="#3B82F6")
    icon = Column(String(10), default="📝")  # emoji
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = {"sqlite_autoincrement": True}

    streaks = relationship(
        "StreakEntry",
        back_populates="habit",
        cascade="all, delete-orphan",
        order_by="StreakEntry.id",
    )
