"""
Tests for environment-driven configuration.
"""

from decimal import Decimal

import pytest

from cash_manager.config import (
    AppSettings,
    FirebaseSettings,
    get_settings,
    validate_all_settings,
)


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch, tmp_path):
    # Keep a developer's .env out of the results
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestAppSettings:
    """Tests for AppSettings."""

    def test_defaults(self):
        """Test the defaults point at Firebase with the usual collections."""
        settings = AppSettings()
        assert settings.identity_backend == "firebase"
        assert settings.store_backend == "firestore"
        assert settings.users_collection == "users"
        assert settings.transactions_collection == "transactions"
        assert settings.persist_audit_events is False

    def test_environment_overrides(self, monkeypatch):
        """Test backends and limits are read from the environment."""
        monkeypatch.setenv("STORE_BACKEND", "memory")
        monkeypatch.setenv("MAX_DESCRIPTION_LENGTH", "50")
        monkeypatch.setenv("MAX_AMOUNT", "5000.00")
        settings = AppSettings()
        assert settings.store_backend == "memory"
        assert settings.max_description_length == 50
        assert settings.max_amount == Decimal("5000")

    def test_unknown_backend_rejected(self, monkeypatch):
        """Test a typo in the backend name fails at load time."""
        monkeypatch.setenv("STORE_BACKEND", "postgres")
        with pytest.raises(ValueError):
            AppSettings()


class TestFirebaseSettings:
    """Tests for FirebaseSettings."""

    def test_reads_prefixed_environment(self, monkeypatch):
        """Test FIREBASE_-prefixed variables are picked up."""
        monkeypatch.setenv("FIREBASE_WEB_API_KEY", "abc123")
        monkeypatch.setenv("FIREBASE_PROJECT_ID", "cash-manager-dev")
        settings = FirebaseSettings()
        assert settings.web_api_key == "abc123"
        assert settings.project_id == "cash-manager-dev"
        assert settings.auth_request_timeout_seconds == 20.0

    def test_missing_credentials_file_warns(self, monkeypatch):
        """Test a missing service-account file is a warning, not an error."""
        monkeypatch.setenv("FIREBASE_WEB_API_KEY", "abc123")
        with pytest.warns(UserWarning):
            settings = FirebaseSettings(credentials_path="/nonexistent/firebase.json")
        assert settings.credentials_path == "/nonexistent/firebase.json"


class TestValidateAllSettings:
    """Tests for validate_all_settings."""

    def test_reports_missing_sections(self, monkeypatch):
        """Test unconfigured sections are reported with their error."""
        monkeypatch.delenv("FIREBASE_WEB_API_KEY", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)

        results = validate_all_settings()

        assert results["app"] is True
        assert results["firebase"] is False
        assert "web_api_key" in results["firebase_error"]
        assert results["google_sheets"] is False

    def test_configured_firebase(self, monkeypatch):
        """Test a configured Firebase section validates."""
        monkeypatch.setenv("FIREBASE_WEB_API_KEY", "abc123")
        assert validate_all_settings()["firebase"] is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
