import os
from dotenv import load_dotenv

load_dotenv()

DB_USER = os.getenv("POSTGRES_USER", "postgres")
DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
DB_HOST = os.getenv("POSTGRES_HOST", "localhost") # In Docker, this will be 'postgres'
DB_PORT = os.getenv("POSTGRES_PORT", "5432")
DB_NAME = os.getenv("POSTGRES_DB", "pos")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+asyncpg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)
DB_ECHO = os.getenv("DB_ECHO", "false").lower() == "true"

INTERNAL_API_KEY = os.getenv("INTERNAL_API_KEY", "")

# Day boundaries, hour buckets and archive dates are all evaluated in this zone
STORE_TIMEZONE = os.getenv("STORE_TIMEZONE", "UTC")

# Applied at checkout; stored order amounts are already tax-inclusive
TAX_RATE = float(os.getenv("TAX_RATE", "5"))
CURRENCY = os.getenv("CURRENCY", "AED")

ARCHIVE_HOUR = int(os.getenv("ARCHIVE_HOUR", "2"))
ARCHIVE_MINUTE = int(os.getenv("ARCHIVE_MINUTE", "0"))
ARCHIVE_STEP_TIMEOUT = float(os.getenv("ARCHIVE_STEP_TIMEOUT", "30"))
ARCHIVE_RETRY_ATTEMPTS = int(os.getenv("ARCHIVE_RETRY_ATTEMPTS", "0"))
ARCHIVE_RETRY_DELAY = float(os.getenv("ARCHIVE_RETRY_DELAY", "900"))
ARCHIVE_SCHEDULER_ENABLED = os.getenv("ARCHIVE_SCHEDULER_ENABLED", "true").lower() == "true"
ARCHIVE_CATCH_UP_ON_START = os.getenv("ARCHIVE_CATCH_UP_ON_START", "false").lower() == "true"
