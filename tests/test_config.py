"""Tests for BoardSettings loading."""

from pathlib import Path

import pytest

from capture_board.board import FORECAST_POLICY, ReconcilePolicy, SameStageGuard
from capture_board.config import ENV_API_URL, ENV_TOKEN, BoardSettings
from capture_board.errors import ConfigError


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(ENV_API_URL, raising=False)
    monkeypatch.delenv(ENV_TOKEN, raising=False)


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "settings.yaml"
    path.write_text(text)
    return path


class TestDefaults:
    """Built-in settings."""

    def test_defaults(self) -> None:
        """Local API, leads:updated, 30/7 day window."""
        settings = BoardSettings()
        assert settings.api_url == "http://localhost:5000"
        assert settings.invalidation_event == "leads:updated"
        assert settings.notifications.lookback_days == 30
        assert settings.notifications.lookahead_days == 7

    def test_policy_for(self) -> None:
        """Each taxonomy maps to its board policy."""
        settings = BoardSettings()
        assert settings.policy_for("forecast") == FORECAST_POLICY
        assert settings.policy_for("primary").reconcile is ReconcilePolicy.STRICT_REVERT


class TestFromYaml:
    """Tests for BoardSettings.from_yaml."""

    def test_nested(self, tmp_path: Path) -> None:
        """Nested api/boards/notifications sections."""
        path = _write(
            tmp_path,
            """
api:
  url: https://crm.example.com
  token: abc
  timeout: 5
boards:
  forecast:
    notify_success: false
  primary:
    mouse_distance: 4
notifications:
  lookahead_days: 14
""",
        )
        settings = BoardSettings.from_yaml(path)
        assert settings.api_url == "https://crm.example.com"
        assert settings.token == "abc"
        assert settings.timeout == 5
        assert settings.forecast.notify_success is False
        # untouched keys keep the board's defaults
        assert settings.forecast.same_stage_guard is SameStageGuard.DROPPABLE_ID
        assert settings.forecast.touch_delay_ms == 100
        assert settings.primary.constraint.mouse_distance == 4
        assert settings.notifications.lookahead_days == 14
        assert settings.notifications.lookback_days == 30

    def test_flat(self, tmp_path: Path) -> None:
        """Flat top-level keys."""
        path = _write(
            tmp_path,
            """
api_url: http://10.0.0.5:5000
invalidation_event: pipeline:changed
primary:
  reconcile: defer_to_next_fetch
""",
        )
        settings = BoardSettings.from_yaml(path)
        assert settings.api_url == "http://10.0.0.5:5000"
        assert settings.invalidation_event == "pipeline:changed"
        assert settings.primary.reconcile is ReconcilePolicy.DEFER_TO_NEXT_FETCH

    def test_empty_file(self, tmp_path: Path) -> None:
        """Empty file yields defaults."""
        settings = BoardSettings.from_yaml(_write(tmp_path, ""))
        assert settings == BoardSettings()

    def test_env_overrides(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Environment wins over the file for url and token."""
        monkeypatch.setenv(ENV_API_URL, "https://override.example.com")
        monkeypatch.setenv(ENV_TOKEN, "from-env")
        settings = BoardSettings.from_yaml(_write(tmp_path, "api:\n  url: http://file\n  token: file\n"))
        assert settings.api_url == "https://override.example.com"
        assert settings.token == "from-env"

    def test_missing_file(self, tmp_path: Path) -> None:
        """Unreadable file is a ConfigError."""
        with pytest.raises(ConfigError, match="Cannot read"):
            BoardSettings.from_yaml(tmp_path / "missing.yaml")

    def test_bad_yaml(self, tmp_path: Path) -> None:
        """Malformed YAML is a ConfigError."""
        with pytest.raises(ConfigError, match="Invalid YAML"):
            BoardSettings.from_yaml(_write(tmp_path, "api: [unclosed"))

    def test_invalid_values(self, tmp_path: Path) -> None:
        """Schema violations are a ConfigError."""
        with pytest.raises(ConfigError, match="Invalid settings"):
            BoardSettings.from_yaml(_write(tmp_path, "boards:\n  primary:\n    reconcile: sometimes\n"))

    def test_empty_sections(self, tmp_path: Path) -> None:
        """Sections left blank (`api:`) fall back to defaults."""
        settings = BoardSettings.from_yaml(_write(tmp_path, "api:\nboards:\n  forecast:\n"))
        assert settings.api_url == "http://localhost:5000"
        assert settings.forecast == FORECAST_POLICY

    @pytest.mark.parametrize(
        "text",
        ["- api\n- boards\n", "just a string\n", "api: http://10.0.0.5\n", "boards:\n  primary: strict\n"],
    )
    def test_wrong_shape(self, tmp_path: Path, text: str) -> None:
        """Documents and sections that are not mappings are a ConfigError."""
        with pytest.raises(ConfigError, match="Invalid settings"):
            BoardSettings.from_yaml(_write(tmp_path, text))


class TestWithEnv:
    """Tests for with_env."""

    def test_no_env_returns_self(self) -> None:
        """Without env vars the settings are unchanged."""
        settings = BoardSettings()
        assert settings.with_env() is settings

    def test_token_only(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Env token applies on its own."""
        monkeypatch.setenv(ENV_TOKEN, "t")
        settings = BoardSettings().with_env()
        assert settings.token == "t"
        assert settings.api_url == "http://localhost:5000"
