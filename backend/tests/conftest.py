"""Shared test setup.

Settings are read at import time, so the environment is adjusted before any
app module is imported.
"""
import os

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("SCHEDULING_API_URL", "http://scheduling.test/api")
