import os
from dotenv import load_dotenv

load_dotenv()

# --- JWT Configuration ---
JWT_SECRET = os.getenv("JWT_SECRET", "change-this-secret-key")
JWT_ALGORITHM = "HS256"
JWT_EXPIRY_HOURS = int(os.getenv("JWT_EXPIRY_HOURS", "168"))  # 7 days

# --- Storage ---
# "memory" keeps everything for the lifetime of the process, "sql" uses DATABASE_URL
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "memory").strip().lower()
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/habits.db")

# Fix for common SQLAlchemy issues with postgres:// vs postgresql://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

# --- Server ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
PORT = int(os.getenv("PORT", "5001"))
