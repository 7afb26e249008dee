"""Global pytest configuration."""

import os

# Settings are read at import time, so configure them before any app import
os.environ["ITINERARY_STORE"] = "memory"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.pop("GEMINI_API_KEY", None)
