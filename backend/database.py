import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from config import DATABASE_URL
import logging

logger = logging.getLogger(__name__)

# Only use connect_args if we are using SQLite
engine_args = {}
if DATABASE_URL.startswith("sqlite"):
    engine_args["connect_args"] = {"check_same_thread": False}
else:
    # Production settings for PostgreSQL
    engine_args.update({
        "pool_size": 5,
        "max_overflow": 10,
        "pool_timeout": 30,
        "pool_recycle": 1800,
    })

try:
    engine = create_engine(
        DATABASE_URL,
        **engine_args,
        echo=False,
    )
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
except Exception as e:
    logger.error(f"Failed to create engine: {e}")
    raise e

Base = declarative_base()


def init_db(bind=None):
    """Create the data/ directory for the default SQLite file, then create all tables."""
    bind = bind or engine
    if str(bind.url).startswith("sqlite:///./"):
        os.makedirs("data", exist_ok=True)

    # Import all models so they register with Base.metadata
    from models.user import User
    from models.habit import Habit
    from models.streak_entry import StreakEntry

    Base.metadata.create_all(bind=bind)
    logger.info("Database initialized successfully.")
