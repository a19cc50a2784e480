import os

APP_ENV = os.getenv("APP_ENV", "development")
if APP_ENV not in ("development", "production"):
    APP_ENV = "development"

DEFAULT_PORTS = {"development": 8081, "production": 80}

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", DEFAULT_PORTS[APP_ENV]))

# Seconds of silence before a member is kicked from the room
KICK_SILENT_SECONDS = float(os.getenv("KICK_SILENT_SECONDS", 5 * 60))

STATIC_DIR = os.getenv("STATIC_DIR", "public")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)
