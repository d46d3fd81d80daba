"""Centralized configuration for the catalog web app."""

import os

# Flask app settings (allow env overrides; default debug off for safety)
# Hosting platforms set PORT dynamically; fall back to FLASK_PORT or 5000 for local.
FLASK_HOST = os.getenv("FLASK_HOST", "0.0.0.0")
FLASK_PORT = int(os.getenv("FLASK_PORT", os.getenv("PORT", "5000")))
FLASK_DEBUG = os.getenv("FLASK_DEBUG", "False").lower() == "true"

# Largest accepted feed upload
MAX_UPLOAD_MB = int(os.getenv("MAX_UPLOAD_MB", "50"))

# Results per page when the caller does not say
DEFAULT_TOP = int(os.getenv("SEARCH_DEFAULT_TOP", "10"))

# Write structured JSONL logs next to console output
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "True").lower() == "true"
