"""Global configuration for Stillsite."""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

SLUG = "stillsite"

# Paths
BASE_DIR = Path(__file__).parent
DATA_DIR = Path(os.getenv("STILLSITE_DATA_DIR", BASE_DIR / "data"))
LOGS_DIR = DATA_DIR / "logs"
EXPORTS_DIR = DATA_DIR / "exports"
TEMP_FILES_DIR = DATA_DIR / "tmp"

# Ensure directories exist
DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(exist_ok=True)
EXPORTS_DIR.mkdir(exist_ok=True)
TEMP_FILES_DIR.mkdir(exist_ok=True)

# Database
DATABASE_PATH = DATA_DIR / "stillsite.db"
DATABASE_URL = os.getenv("STILLSITE_DATABASE_URL", f"sqlite:///{DATABASE_PATH}")

# Flask
FLASK_HOST = "127.0.0.1"
FLASK_PORT = int(os.getenv("STILLSITE_PORT", "5160"))
FLASK_DEBUG = os.getenv("FLASK_DEBUG", "false").lower() == "true"
SECRET_KEY = os.getenv("SECRET_KEY", "stillsite-dev-key-change-in-prod")

# Site being mirrored
ORIGIN_URL = os.getenv("STILLSITE_ORIGIN_URL", "http://localhost/")

# Archive defaults
FETCH_TIMEOUT = 300  # seconds
FETCH_CHUNK_SIZE = 64 * 1024  # bytes
FETCH_BATCH_SIZE = int(os.getenv("STILLSITE_FETCH_BATCH_SIZE", "20"))
TRANSFER_BATCH_SIZE = int(os.getenv("STILLSITE_TRANSFER_BATCH_SIZE", "50"))

USER_AGENT = "Mozilla/5.0 (compatible; Stillsite/1.0; +static mirror)"

DELIVERY_METHODS = ("zip", "local")
DESTINATION_URL_TYPES = ("absolute", "relative", "offline")
