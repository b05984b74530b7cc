from types import SimpleNamespace

import pytest

from enums.runtime_environment import RuntimeEnvironment
from utils.config_validator import (
    ConfigValidationError,
    validate_secret,
    validate_currency,
    validate_startup_config,
    validate_or_exit,
)

STRONG = "a" * 32


def make_config(**overrides):
    values = dict(
        RUNTIME_ENVIRONMENT=RuntimeEnvironment.PROD,
        CURRENCY="USD",
        AUTH_SECRET=STRONG,
        PAYMENT_WEBHOOK_SECRET=STRONG,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class TestConfigValidator:

    @pytest.mark.parametrize("value", [None, "", "   ", "short"])
    def test_weak_secrets(self, value):
        with pytest.raises(ConfigValidationError):
            validate_secret("AUTH_SECRET", value)

    def test_strong_secret(self):
        validate_secret("AUTH_SECRET", STRONG)

    @pytest.mark.parametrize("value", [None, "", "US", "USDT", "12$"])
    def test_bad_currency(self, value):
        with pytest.raises(ConfigValidationError):
            validate_currency(value)

    def test_production_requires_secrets(self):
        validate_startup_config(make_config())
        with pytest.raises(ConfigValidationError, match="PAYMENT_WEBHOOK_SECRET"):
            validate_startup_config(make_config(PAYMENT_WEBHOOK_SECRET=""))

    def test_test_environment_skips_secrets(self):
        validate_startup_config(make_config(RUNTIME_ENVIRONMENT=RuntimeEnvironment.TEST, AUTH_SECRET=""))

    def test_validate_or_exit(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            validate_or_exit(make_config(AUTH_SECRET="weak"))
        assert exc_info.value.code == 1
        assert "AUTH_SECRET is too weak" in capsys.readouterr().err
