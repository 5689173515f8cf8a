"""Tests for configuration loading and validation."""

import pytest

from taxengine.services.config import (
    BACKEND_DIR,
    ConfigService,
    ConfigValidationException,
)
from taxengine.services.runtime import build_engine, build_scheduler, default_options


@pytest.fixture
def service(tmp_path):
    return ConfigService(str(tmp_path / "config.yaml"))


class TestConfigValidation:
    """Schema validation of config documents."""

    def test_valid_config(self, service):
        config = service.load_dict({
            "tax": {"base_currency": "EUR", "cost_basis": "HIFO", "fx_policy": "strict"},
            "scheduler": {"enabled": False, "interval_seconds": 300, "history_size": 5},
        })

        assert config["tax"]["base_currency"] == "EUR"
        assert service.get("tax.cost_basis") == "HIFO"

    def test_unknown_key(self, service):
        with pytest.raises(ConfigValidationException) as exc_info:
            service.load_dict({"tax": {"method": "FIFO"}})

        assert exc_info.value.errors[0].path == "tax.method"

    def test_option_not_allowed(self, service):
        with pytest.raises(ConfigValidationException) as exc_info:
            service.load_dict({"tax": {"cost_basis": "AVERAGE"}})

        assert exc_info.value.errors[0].path == "tax.cost_basis"

    def test_wrong_type(self, service):
        with pytest.raises(ConfigValidationException):
            service.load_dict({"scheduler": {"history_size": "ten"}})

    def test_bool_is_not_int(self, service):
        with pytest.raises(ConfigValidationException):
            service.load_dict({"scheduler": {"history_size": True}})

    def test_below_minimum(self, service):
        with pytest.raises(ConfigValidationException) as exc_info:
            service.load_dict({"scheduler": {"interval_seconds": 0}})

        assert "minimum" in exc_info.value.errors[0].message

    def test_non_dict_root(self, service):
        with pytest.raises(ConfigValidationException):
            service.load_dict(["tax"])

    def test_collects_all_errors(self, service):
        with pytest.raises(ConfigValidationException) as exc_info:
            service.load_dict({
                "tax": {"fx_policy": "lenient"},
                "logging": {"level": "VERBOSE"},
            })

        assert len(exc_info.value.errors) == 2


class TestConfigFile:
    """Loading config.yaml from disk."""

    def test_missing_file_uses_defaults(self, service):
        assert service.load_and_validate() == {}
        assert service.get("tax.base_currency") == "CHF"
        assert service.get("scheduler.history_size") == 10

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("tax: [unclosed")

        with pytest.raises(ConfigValidationException):
            ConfigService(str(path)).load_and_validate()

    def test_shipped_config_is_valid(self):
        service = ConfigService(str(BACKEND_DIR / "config.yaml"))
        service.load_and_validate()

        assert service.ledger_path() == BACKEND_DIR / "data" / "sample_ledger.json"

    def test_env_override(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        monkeypatch.setenv("TAXENGINE_CONFIG", str(path))

        assert ConfigService().config_path == str(path)

    def test_get_default_for_unknown_key(self, service):
        assert service.get("tax.unknown", "x") == "x"

    def test_ledger_path_unset(self, service):
        service.load_and_validate()
        assert service.ledger_path() is None


class TestRuntimeWiring:
    """Building engine and scheduler from config."""

    def test_build_from_config(self, service):
        service.load_dict({
            "tax": {"cost_basis": "LIFO", "base_currency": "USD", "shortfall_policy": "ignore"},
            "scheduler": {"interval_seconds": 120, "history_size": 4},
        })

        engine = build_engine(service)
        scheduler = build_scheduler(engine, service)

        assert engine.shortfall_policy.value == "ignore"
        assert len(engine.ledger.transactions) == 13
        assert scheduler.interval_seconds == 120
        assert scheduler.run_history.maxlen == 4
        assert default_options(service).cost_basis == "LIFO"
        assert default_options(service).base_currency == "USD"
