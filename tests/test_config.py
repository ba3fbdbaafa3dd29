"""Tests for configuration loading and validation."""

import dataclasses

import pytest

from lead_orchestration.config import Settings, _safe_float, _safe_int, validate_settings


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        validate_settings(Settings())  # should not raise

    @pytest.mark.parametrize("temperature", [-0.1, 2.5])
    def test_invalid_temperature(self, temperature):
        config = dataclasses.replace(Settings(), LLM_TEMPERATURE=temperature)
        with pytest.raises(ValueError, match="LLM_TEMPERATURE"):
            validate_settings(config)

    def test_invalid_llm_timeout(self):
        config = dataclasses.replace(Settings(), LLM_TIMEOUT_SECONDS=0)
        with pytest.raises(ValueError, match="LLM_TIMEOUT_SECONDS"):
            validate_settings(config)

    def test_header_row_not_writable(self):
        config = dataclasses.replace(Settings(), LEADS_FIXED_ROW=1)
        with pytest.raises(ValueError, match="LEADS_FIXED_ROW"):
            validate_settings(config)

    def test_invalid_port(self):
        config = dataclasses.replace(Settings(), PORT=70000)
        with pytest.raises(ValueError, match="PORT"):
            validate_settings(config)


class TestSheetsEnabled:
    def test_disabled_without_spreadsheet(self):
        config = dataclasses.replace(Settings(), SHEETS_SPREADSHEET_ID="")
        assert config.sheets_enabled is False

    def test_enabled_with_existing_key_file(self, tmp_path):
        key = tmp_path / "sa.json"
        key.write_text("{}")
        config = dataclasses.replace(
            Settings(), SHEETS_SPREADSHEET_ID="sheet", GOOGLE_APPLICATION_CREDENTIALS=str(key)
        )
        assert config.sheets_enabled is True


class TestParsing:
    def test_safe_int_default(self):
        assert _safe_int("NONEXISTENT_VAR_12345", "42") == 42

    def test_safe_float_default(self):
        assert _safe_float("NONEXISTENT_VAR_12345", "0.5") == pytest.approx(0.5)

    def test_safe_int_bad_value(self, monkeypatch):
        monkeypatch.setenv("LEADS_FIXED_ROW_TEST", "two")
        with pytest.raises(ValueError, match="LEADS_FIXED_ROW_TEST"):
            _safe_int("LEADS_FIXED_ROW_TEST", "2")
