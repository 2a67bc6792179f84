"""
Runtime settings for the settlement service.

Values come from the environment, with a local .env file loaded first.
"""
import os

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# ---------------- HTTP ----------------------------------------------------- #

API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8000"))
CORS_ORIGINS = [o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()]

# Used by the settle-up console to reach the API
API_BASE_URL = os.environ.get("API_BASE_URL", "http://localhost:8000")

# ---------------- Ledger --------------------------------------------------- #

DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "INR").upper()
