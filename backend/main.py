# backend/main.py
# Run with: uvicorn backend.main:app --reload
from .app import create_app

app = create_app()
