"""Board settings: API endpoint, per-board sync policy, notification window."""

import os
from pathlib import Path
from typing import Optional

try:
    import yaml
except ModuleNotFoundError as e:
    raise ModuleNotFoundError(
        "PyYAML is required for settings loading. Run: poetry install"
    ) from e
from pydantic import BaseModel, Field, ValidationError

from capture_board.board.invalidation import LEADS_UPDATED_EVENT
from capture_board.board.policy import FORECAST_POLICY, PRIMARY_POLICY, BoardPolicy
from capture_board.errors import ConfigError
from capture_board.stages import Taxonomy, get_catalog

ENV_API_URL = "CAPTURE_BOARD_API_URL"
ENV_TOKEN = "CAPTURE_BOARD_TOKEN"


class NotificationWindow(BaseModel):
    """Range of due dates the notification bell looks at, relative to now."""

    lookback_days: int = Field(default=30, ge=0)
    lookahead_days: int = Field(default=7, ge=0)


class BoardSettings(BaseModel):
    """Top-level settings. Loaded from YAML; env vars override the API url and token."""

    api_url: str = "http://localhost:5000"
    token: Optional[str] = None
    timeout: float = Field(default=30.0, gt=0)
    invalidation_event: str = LEADS_UPDATED_EVENT

    primary: BoardPolicy = Field(default_factory=lambda: PRIMARY_POLICY.model_copy())
    forecast: BoardPolicy = Field(default_factory=lambda: FORECAST_POLICY.model_copy())
    notifications: NotificationWindow = Field(default_factory=NotificationWindow)

    def policy_for(self, taxonomy: Taxonomy | str) -> BoardPolicy:
        """Policy of the board showing the given taxonomy."""
        if get_catalog(taxonomy).taxonomy is Taxonomy.FORECAST:
            return self.forecast
        return self.primary

    def with_env(self) -> "BoardSettings":
        """Copy with CAPTURE_BOARD_API_URL / CAPTURE_BOARD_TOKEN applied."""
        update: dict = {}
        if os.environ.get(ENV_API_URL):
            update["api_url"] = os.environ[ENV_API_URL]
        if os.environ.get(ENV_TOKEN):
            update["token"] = os.environ[ENV_TOKEN]
        return self.model_copy(update=update) if update else self

    @classmethod
    def from_yaml(cls, path: str | Path) -> "BoardSettings":
        """Load settings from YAML. Supports nested (api/boards/notifications) or flat structure."""
        try:
            data = yaml.safe_load(Path(path).read_text()) or {}
        except OSError as e:
            raise ConfigError(f"Cannot read settings file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Invalid settings in {path}: expected a mapping, got {type(data).__name__}")
        # An empty section (`api:`) loads as None
        api = _section(data, "api", path)
        boards = _section(data, "boards", path)

        def _get(key: str, nested: dict, top: dict, default=None):
            return nested.get(key, top.get(key, default))

        flat: dict = {}
        for key, nested_key in (("api_url", "url"), ("token", "token"), ("timeout", "timeout")):
            value = api.get(nested_key, data.get(key))
            if value is not None:
                flat[key] = value
        event = _get("invalidation_event", api, data)
        if event:
            flat["invalidation_event"] = event

        for board, defaults in (("primary", PRIMARY_POLICY), ("forecast", FORECAST_POLICY)):
            overrides = _get(board, boards, data) or {}
            if not isinstance(overrides, dict):
                raise ConfigError(f"Invalid settings in {path}: '{board}' must be a mapping")
            flat[board] = {**defaults.model_dump(mode="json"), **overrides}
        if data.get("notifications"):
            flat["notifications"] = data["notifications"]

        try:
            return cls.model_validate(flat).with_env()
        except ValidationError as e:
            raise ConfigError(f"Invalid settings in {path}: {e}") from e


def _section(data: dict, key: str, path: str | Path) -> dict:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Invalid settings in {path}: '{key}' must be a mapping")
    return section
