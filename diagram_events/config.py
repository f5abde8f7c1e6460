"""
Runtime settings, overridable through DIAGRAM_EVENTS_* environment variables.
"""
import os

# Default batch mode for the assembler: "diagram" or "block"
BATCH_MODE = os.environ.get("DIAGRAM_EVENTS_BATCH_MODE", "diagram")

LOG_LEVEL = os.environ.get("DIAGRAM_EVENTS_LOG_LEVEL", "WARNING")

# Backend bind address
API_HOST = os.environ.get("DIAGRAM_EVENTS_HOST", "127.0.0.1")
API_PORT = int(os.environ.get("DIAGRAM_EVENTS_PORT", "8765"))

# Base URL the MCP server talks to
API_BASE = os.environ.get("DIAGRAM_EVENTS_API_BASE", f"http://{API_HOST}:{API_PORT}/api")

# CORS for local development
CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get(
        "DIAGRAM_EVENTS_CORS_ORIGINS",
        "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173",
    ).split(",")
    if origin.strip()
]
