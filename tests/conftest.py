from __future__ import annotations

import os

# Settings are validated at import time; seed the required keys before any
# project module is collected.
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("ALLOWED_ORIGIN", "http://localhost:5173")
os.environ.setdefault("ANTHROPIC_API_URL", "https://api.anthropic.invalid/v1/messages")
os.environ.setdefault("ANTHROPIC_MODEL", "test-model")
os.environ.setdefault("ANTHROPIC_VERSION", "2023-06-01")
