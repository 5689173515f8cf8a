"""Tests for the offline tax report export script."""

import importlib.util
from pathlib import Path

import pytest

SCRIPT_PATH = Path(__file__).parent.parent / "scripts" / "export_tax_report.py"


@pytest.fixture(scope="module")
def script():
    spec = importlib.util.spec_from_file_location("export_tax_report", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def missing_config(tmp_path):
    return str(tmp_path / "config.yaml")


class TestExportScript:
    """Tests for main()."""

    def test_writes_both_formats(self, script, tmp_path, missing_config):
        out = tmp_path / "reports"

        code = script.main(["--config", missing_config, "--output-dir", str(out)])

        assert code == 0
        assert (out / "tax-report.csv").read_text().startswith("Venue Tax Report")
        assert (out / "tax-report.pdf").read_bytes().startswith(b"%PDF")

    def test_csv_only_with_filters(self, script, tmp_path, missing_config):
        out = tmp_path / "reports"

        code = script.main([
            "--config", missing_config,
            "--output-dir", str(out),
            "--format", "csv",
            "--venue", "Kraken",
            "--start-date", "2024-01-01",
            "--end-date", "2024-12-31",
        ])

        assert code == 0
        assert (out / "tax-report.csv").exists()
        assert not (out / "tax-report.pdf").exists()
        assert "Binance" not in (out / "tax-report.csv").read_text()

    def test_invalid_option_returns_error(self, script, tmp_path, missing_config):
        code = script.main([
            "--config", missing_config,
            "--output-dir", str(tmp_path),
            "--cost-basis", "AVERAGE",
        ])

        assert code == 1

    def test_missing_ledger_returns_error(self, script, tmp_path, missing_config):
        code = script.main([
            "--config", missing_config,
            "--ledger", str(tmp_path / "absent.json"),
            "--output-dir", str(tmp_path),
        ])

        assert code == 1

    def test_invalid_config_returns_2(self, script, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("tax:\n  cost_basis: AVERAGE\n")

        assert script.main(["--config", str(config), "--output-dir", str(tmp_path)]) == 2
