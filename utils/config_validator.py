"""
Configuration Validation Module

Validates critical configuration values at startup to fail-fast
with clear error messages instead of runtime failures.
"""

import sys

from enums.runtime_environment import RuntimeEnvironment

MIN_SECRET_LENGTH = 32


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


def validate_secret(name: str, value: str | None) -> None:
    """
    Validate a shared secret.

    Raises:
        ConfigValidationError: If secret is missing, empty, or too weak
    """
    if not value or len(value.strip()) == 0:
        raise ConfigValidationError(
            f"{name} is required and must not be empty!\n"
            "Generate a secure secret with: openssl rand -hex 32\n"
            f"Add to .env: {name}=<your-generated-secret>"
        )

    if len(value) < MIN_SECRET_LENGTH:
        raise ConfigValidationError(
            f"{name} is too weak (length: {len(value)}, minimum: {MIN_SECRET_LENGTH})!\n"
            "Generate a secure secret with: openssl rand -hex 32"
        )


def validate_currency(currency: str | None) -> None:
    if not currency or len(currency) != 3 or not currency.isalpha():
        raise ConfigValidationError(
            f"CURRENCY must be a three-letter ISO code (current value: {currency!r})"
        )


def validate_startup_config(config_module) -> None:
    """
    Validate all critical configuration values.

    Secrets are only enforced outside the TEST environment.

    Raises:
        ConfigValidationError: On the first invalid value
    """
    validate_currency(config_module.CURRENCY)

    if config_module.RUNTIME_ENVIRONMENT == RuntimeEnvironment.TEST:
        return

    validate_secret("AUTH_SECRET", config_module.AUTH_SECRET)
    validate_secret("PAYMENT_WEBHOOK_SECRET", config_module.PAYMENT_WEBHOOK_SECRET)


def validate_or_exit(config_module) -> None:
    """Run validate_startup_config and exit the process on failure."""
    try:
        validate_startup_config(config_module)
    except ConfigValidationError as e:
        print(f"\n ERROR: Invalid configuration\n", file=sys.stderr)
        print(str(e), file=sys.stderr)
        print("", file=sys.stderr)
        sys.exit(1)
