import os
import sys

from dotenv import load_dotenv

from enums.runtime_environment import RuntimeEnvironment

# Load .env but don't override existing environment variables
# This allows the test suite to set RUNTIME_ENVIRONMENT=TEST before import
load_dotenv(".env", override=False)


def _parse_int(name: str, default: str, minimum: int = 0) -> int:
    raw = os.environ.get(name, default)
    try:
        value = int(raw)
        if value < minimum:
            raise ValueError(f"{name} must be >= {minimum}")
        return value
    except ValueError as e:
        print(f"\n ERROR: Invalid {name} configuration\n", file=sys.stderr)
        print(f"Reason: {e}", file=sys.stderr)
        print(f"Expected: integer >= {minimum}", file=sys.stderr)
        print(f"Current value: {raw}\n", file=sys.stderr)
        sys.exit(1)


# Parse RUNTIME_ENVIRONMENT with clear error message on misconfiguration
try:
    RUNTIME_ENVIRONMENT = RuntimeEnvironment(os.environ.get("RUNTIME_ENVIRONMENT", "DEV").upper())
except ValueError as e:
    valid_values = [env.value for env in RuntimeEnvironment]
    print(f"\n ERROR: Invalid RUNTIME_ENVIRONMENT configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Valid values: {', '.join(valid_values)}", file=sys.stderr)
    print(f"\nAdd to .env: RUNTIME_ENVIRONMENT={valid_values[0]}\n", file=sys.stderr)
    sys.exit(1)

# Database
DB_URL = os.environ.get("DB_URL", "sqlite+aiosqlite:///data/shop.db")

# Single currency, ISO code passed to the payment provider
CURRENCY = os.environ.get("CURRENCY", "USD").upper()

# Payment provider
PAYMENT_API_URL = os.environ.get("PAYMENT_API_URL", "https://api.payments.example").rstrip("/")
PAYMENT_API_KEY = os.environ.get("PAYMENT_API_KEY", "")
PAYMENT_API_TIMEOUT_SECONDS = _parse_int("PAYMENT_API_TIMEOUT_SECONDS", "10", minimum=1)
PAYMENT_WEBHOOK_SECRET = os.environ.get("PAYMENT_WEBHOOK_SECRET", "")  # Validated at startup

# Authentication
AUTH_SECRET = os.environ.get("AUTH_SECRET", "")  # Validated at startup
TOKEN_TTL_SECONDS = _parse_int("TOKEN_TTL_SECONDS", "3600", minimum=60)
PASSWORD_HASH_ITERATIONS = _parse_int("PASSWORD_HASH_ITERATIONS", "390000", minimum=1)

# Catalog
PRODUCTS_PAGE_SIZE_MAX = _parse_int("PRODUCTS_PAGE_SIZE_MAX", "100", minimum=1)

# Web server
WEB_HOST = os.environ.get("WEB_HOST", "0.0.0.0")
WEB_PORT = _parse_int("WEB_PORT", "8000", minimum=1)

# Logging Configuration
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_MASK_SECRETS = os.environ.get("LOG_MASK_SECRETS", "true").lower() == "true"
LOG_RETENTION_DAYS = _parse_int("LOG_RETENTION_DAYS", "7", minimum=1)
