# backend/config.py
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables early
load_dotenv()

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_AI_API_KEY") or ""
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

# Uploaded images live here and are served under /uploads
UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR") or Path.cwd() / "uploads")
MAX_UPLOAD_BYTES = 5 * 1024 * 1024
MAX_PORTFOLIO_IMAGES = 10
MAX_PRODUCT_IMAGES = 5

# "memory" or "sql"
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "memory").strip().lower()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
