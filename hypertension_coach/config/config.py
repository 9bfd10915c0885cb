# hypertension_coach/config/config.py
import os
from dotenv import load_dotenv

# ====================================================
# Load Environment Variables - MUST BE FIRST
# ====================================================
load_dotenv()

# ====================================================
# Completion gateway (OpenAI-compatible chat/completions)
# ====================================================
GATEWAY_URL = os.getenv("GATEWAY_URL", "https://ai.gateway.lovable.dev/v1/chat/completions")
GATEWAY_API_KEY = os.getenv("GATEWAY_API_KEY", "")
GATEWAY_MODEL = os.getenv("GATEWAY_MODEL", "google/gemini-3-flash-preview")

# Completion endpoint the chat client talks to (this server's /api/coach by default)
COACH_API_URL = os.getenv("COACH_API_URL", "http://127.0.0.1:5000/api/coach")
COACH_API_KEY = os.getenv("COACH_API_KEY", "")

# ====================================================
# API Configuration
# ====================================================
API_TIMEOUT = int(os.getenv("API_TIMEOUT", 60))  # seconds, also bounds a stalled stream read
MAX_RETRIES = int(os.getenv("MAX_RETRIES", 3))
RETRY_DELAY = int(os.getenv("RETRY_DELAY", 2))

# ====================================================
# Trend analysis
# ====================================================
# Systolic change (mmHg) beyond which a history is labelled improving/worsening
TREND_THRESHOLD_MMHG = int(os.getenv("TREND_THRESHOLD_MMHG", 5))

# ====================================================
# Server
# ====================================================
DEBUG = os.getenv("DEBUG", "False").lower() == "true"
PORT = int(os.getenv("PORT", 5000))
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
SESSION_TIMEOUT_HOURS = int(os.getenv("SESSION_TIMEOUT_HOURS", 24))

# ====================================================
# Paths
# ====================================================
CONFIG_DIR = os.path.dirname(os.path.abspath(__file__))
PACKAGE_DIR = os.path.dirname(CONFIG_DIR)
BASE_DIR = os.path.dirname(PACKAGE_DIR)

# Reading and assessment history (JSON Lines, one file per session)
DATA_DIR = os.getenv("DATA_DIR", os.path.join(BASE_DIR, "data"))
