"""Server configuration values."""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent

HOST = os.environ.get("LANTERN_HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "8080"))
LOG_FILE = Path(os.environ.get("LANTERN_LOG_FILE", BASE_DIR / "server.log"))

SESSION_COOKIE = "session_id"
COMMAND_PREFIX = ";"
DEFAULT_NICKNAME = "anonymous"

RATE_LIMIT_WINDOW_SECONDS = 2.0
RATE_LIMIT_THRESHOLD = 5

IMAGE_TTL_SECONDS = 60
IMAGE_SWEEP_INTERVAL_SECONDS = 30
MAX_IMAGE_BYTES = 10 * 1024 * 1024

OUTBOUND_QUEUE_SIZE = 100
STREAM_KEEPALIVE_SECONDS = 15.0
