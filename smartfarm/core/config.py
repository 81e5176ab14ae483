"""Configuration and environment variables."""
from dotenv import load_dotenv
import os

load_dotenv()

# Database
DATABASE_URL = os.getenv("DATABASE_URL") or "sqlite+aiosqlite:///./smartfarm.db"
DATABASE_URL = DATABASE_URL.replace("mariadb+mariadbconnector", "mariadb+aiomysql")
SQL_TIMEOUT_SECONDS = float(os.getenv("SQL_TIMEOUT_SECONDS", "10"))

# Security
SECRET = os.getenv("SECRET_KEY") or "secret"
SERVER_URL = os.getenv("SERVER_URL")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")

# Language model
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL") or "gpt-4o-mini"
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL")
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "30"))
CHAT_HISTORY_TURNS = int(os.getenv("CHAT_HISTORY_TURNS", "5"))

# Dashboard
DASHBOARD_ALERT_LIMIT = int(os.getenv("DASHBOARD_ALERT_LIMIT", "20"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# CORS Origins
CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:8000",
    SERVER_URL
] if SERVER_URL else ["http://localhost:3000", "http://localhost:8000"]
