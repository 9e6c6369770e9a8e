import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(os.getenv("ENV_FILE"), override=True)

# General
PRODUCT = os.getenv("PRODUCT", "hanzilex")
VERSION = os.environ.get("VERSION", "0")
ENV = os.getenv("ENV", "dev")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")

BASE_PATH = os.path.dirname(os.path.realpath(__file__))

# Data locations
DATA_DIR = Path(os.getenv("HANZILEX_DATA_DIR", "data"))
OUTPUT_DIR = Path(os.getenv("HANZILEX_OUTPUT_DIR", "output"))
LESSON_STORE_DIR = Path(
    os.getenv("HANZILEX_LESSON_STORE_DIR", str(OUTPUT_DIR / "lessons"))
)
MAX_LESSONS_PER_CLIENT = int(os.getenv("HANZILEX_MAX_LESSONS_PER_CLIENT", "10"))

# Remote source retrieval
FETCH_TIMEOUT = float(os.getenv("HANZILEX_FETCH_TIMEOUT", "30"))
FETCH_RETRIES = int(os.getenv("HANZILEX_FETCH_RETRIES", "3"))
FETCH_RETRY_DELAY = float(os.getenv("HANZILEX_FETCH_RETRY_DELAY", "1.0"))
USER_AGENT = os.getenv("HANZILEX_USER_AGENT", f"{PRODUCT}/{VERSION}")
