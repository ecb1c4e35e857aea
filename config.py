"""
Configuration

Environment-driven settings for the video channels backend. Values are read
once at import time; a local .env file is loaded first when present.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()

# -------------------- Database --------------------
DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

# -------------------- Server --------------------
PORT = int(os.getenv("PORT", 8000))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# -------------------- Feed & discovery --------------------
RECOMMENDED_CHANNELS_LIMIT = int(os.getenv("RECOMMENDED_CHANNELS_LIMIT", 10))
# Upper bound on concurrent per-user aggregations within one response
DECORATION_WORKERS = max(1, int(os.getenv("DECORATION_WORKERS", 8)))

# -------------------- Logging --------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
