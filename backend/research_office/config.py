"""Environment-driven settings for the research office service."""

import os

# purpose: single place for runtime configuration read from the environment
# status: active

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./research_office.db")
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))
DB_ECHO = os.getenv("DB_ECHO", "false").lower() == "true"

TESTING = os.getenv("TESTING") == "1"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("LOG_JSON", "true").lower() == "true"
SERVICE_NAME = os.getenv("SERVICE_NAME", "research-office")

SENTRY_DSN = os.getenv("SENTRY_DSN")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]
RATE_LIMIT = os.getenv("RATE_LIMIT", "120/minute")

SMTP_SERVER = os.getenv("SMTP_SERVER")
EMAIL_FROM = os.getenv("EMAIL_FROM", "research-office@example.com")

PUBMED_BASE_URL = os.getenv("PUBMED_BASE_URL", "https://eutils.ncbi.nlm.nih.gov/entrez/eutils/")
CROSSREF_BASE_URL = os.getenv("CROSSREF_BASE_URL", "https://api.crossref.org/works/")
EXTERNAL_TIMEOUT = float(os.getenv("EXTERNAL_TIMEOUT", "10"))

SIDRA_DEFAULT_YEARS = int(os.getenv("SIDRA_DEFAULT_YEARS", "5"))
SIDRA_DEFAULT_MULTIPLIER = float(os.getenv("SIDRA_DEFAULT_MULTIPLIER", "2.0"))

DEADLINE_WINDOW_DAYS = int(os.getenv("DEADLINE_WINDOW_DAYS", "30"))
