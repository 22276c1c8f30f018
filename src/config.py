"""Configuration module for the Ecoterra learning platform backend.

This module provides centralized configuration management, including directory
paths, API server settings, authentication, pagination, and push notification
settings. All configuration values can be overridden via environment variables.
"""

import os
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.resolve()

# Data directory name
DATA_DIR_NAME = "data"
DATA_DIR = ROOT_DIR / DATA_DIR_NAME

# --- Database Configuration ---

# Any SQLAlchemy URL. Defaults to a SQLite file inside DATA_DIR.
DATABASE_URL: str = os.getenv(
    "DATABASE_URL", f"sqlite:///{DATA_DIR}/ecoterra.db"
)

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "3001"))

# CORS allowed origins (comma-separated list)
# Default includes the Expo/Metro development addresses. For production, set
# via CORS_ALLOWED_ORIGINS environment variable.
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:3000,http://127.0.0.1:3000,http://localhost:8081,"
    "http://127.0.0.1:8081,http://localhost:19006",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# --- Logging Configuration ---

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# --- Authentication Configuration ---

JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "your-secret-key-change-in-production")
JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
    os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7))  # 7 days
)

# Bcrypt rounds for password hashing (higher = more secure but slower)
BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

# --- Roles ---

ROLE_SUPERADMIN = "superadmin"
ROLE_TEACHER = "guru"
ROLE_STUDENT = "murid"
ROLE_COMMUNITY = "masyarakat"

ALL_ROLES: List[str] = [ROLE_SUPERADMIN, ROLE_TEACHER, ROLE_STUDENT, ROLE_COMMUNITY]

# Roles that may register themselves through the public endpoint
REGISTRABLE_ROLES: List[str] = [ROLE_TEACHER, ROLE_STUDENT, ROLE_COMMUNITY]

# Roles bound to a school through their email domain
SCHOOL_ROLES: List[str] = [ROLE_TEACHER, ROLE_STUDENT]

# Roles whose posts and comments skip the moderation queue and who may
# moderate other users' content
PRIVILEGED_ROLES: List[str] = [ROLE_TEACHER, ROLE_SUPERADMIN]

# --- Pagination Configuration ---

DEFAULT_PAGE_LIMIT: int = int(os.getenv("DEFAULT_PAGE_LIMIT", "10"))
MAX_PAGE_LIMIT: int = int(os.getenv("MAX_PAGE_LIMIT", "100"))

# --- Quiz Defaults ---

DEFAULT_MAX_ATTEMPTS: int = 3
DEFAULT_DIFFICULTY: str = "medium"

# --- Push Notification Configuration (Firebase Cloud Messaging) ---

FIREBASE_CREDENTIALS_PATH: Optional[str] = os.getenv("FIREBASE_CREDENTIALS_PATH")
FIREBASE_PROJECT_ID: Optional[str] = os.getenv("FIREBASE_PROJECT_ID")

# Android notification channel registered by the mobile app
NOTIFICATION_CHANNEL_ID: str = os.getenv(
    "NOTIFICATION_CHANNEL_ID", "ecoterra_notifications"
)
NOTIFICATION_TIMEOUT_SECONDS: float = float(
    os.getenv("NOTIFICATION_TIMEOUT_SECONDS", "10")
)

# Topic names used for broadcast notifications
COMMUNITY_TOPIC: str = "community"

# --- Real-time Configuration ---

# Room name prefixes used by the WebSocket relay
ROOM_PREFIXES: Dict[str, str] = {
    "user": "user:",
    "school": "school:",
    "quiz": "quiz:",
}
COMMUNITY_ROOM: str = "community"


def get_school_topic(school_id: str) -> str:
    """Get the FCM topic name used for school-wide broadcasts."""
    return f"school_{school_id}"

# --- Client SDK Configuration ---

# Where the Python client reaches the API, and where it keeps the signed-in session
API_BASE_URL: str = os.getenv("API_BASE_URL", f"http://localhost:{API_PORT}")
CLIENT_AUTH_FILE: Path = Path(
    os.getenv("CLIENT_AUTH_FILE", str(DATA_DIR / "client_auth.json"))
)
CLIENT_TIMEOUT_SECONDS: float = float(os.getenv("CLIENT_TIMEOUT_SECONDS", "10"))
