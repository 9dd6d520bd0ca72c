"""Root conftest — shared test configuration."""

import os
from pathlib import Path

# Settings are read once per process (lru_cache); pin them before any import
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REGISTRATION_SECRET", "test-secret")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault(
    "UPGRADE_COSTS_PATH",
    str(Path(__file__).resolve().parent.parent / "config" / "upgrades.json"),
)
