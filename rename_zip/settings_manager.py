from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from .logger import get_logger

_logger = get_logger("settings")


def default_settings_path() -> str:
    base = os.getenv("XDG_CONFIG_HOME") or os.getenv("APPDATA") or str(Path.home() / ".config")
    return str(Path(base) / "rename_zip" / "settings.json")


class SettingsManager:
    def __init__(self, settings_path: str | None = None):
        self.settings_path = settings_path or default_settings_path()
        self._settings: dict[str, Any] = {}
        self.load()

    DEFAULTS: dict[str, Any] = {
        "jpeg_quality": 95,
        "min_crop_size": 20,
        "initial_crop_fraction": 0.8,
        "max_workers": 0,  # 0 = one per CPU, capped by batch size
        "last_input_dir": None,
        "last_output_dir": None,
    }

    def load(self) -> None:
        try:
            if os.path.exists(self.settings_path):
                with open(self.settings_path, encoding="utf-8") as f:
                    data = json.load(f)
                    if isinstance(data, dict):
                        self._settings = data
                        _logger.debug("settings loaded: %s", self.settings_path)
                        return
        except Exception as e:
            _logger.warning("settings load failed: %s", e)
        self._settings = {}

    def save(self) -> None:
        try:
            os.makedirs(os.path.dirname(self.settings_path), exist_ok=True)
            with open(self.settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, ensure_ascii=False, indent=2)
            _logger.debug("settings saved: %s", self.settings_path)
        except Exception as e:
            _logger.error("settings save failed: %s", e)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._settings:
            return self._settings[key]
        if default is not None:
            return default
        return self.DEFAULTS.get(key)

    def has(self, key: str) -> bool:
        return key in self._settings

    def set(self, key: str, value: Any) -> None:
        self._settings[key] = value
        self.save()

    @property
    def data(self) -> dict[str, Any]:
        return self._settings

    @property
    def quality(self) -> int:
        try:
            q = int(self.get("jpeg_quality"))
        except (TypeError, ValueError):
            _logger.warning("invalid jpeg_quality %r, using default", self.get("jpeg_quality"))
            return int(self.DEFAULTS["jpeg_quality"])
        return max(1, min(100, q))

    @property
    def min_crop_size(self) -> float:
        try:
            return max(1.0, float(self.get("min_crop_size")))
        except (TypeError, ValueError):
            return float(self.DEFAULTS["min_crop_size"])

    @property
    def initial_crop_fraction(self) -> float:
        try:
            f = float(self.get("initial_crop_fraction"))
        except (TypeError, ValueError):
            return float(self.DEFAULTS["initial_crop_fraction"])
        return f if 0.0 < f <= 1.0 else float(self.DEFAULTS["initial_crop_fraction"])

    @property
    def max_workers(self) -> int | None:
        try:
            n = int(self.get("max_workers") or 0)
        except (TypeError, ValueError):
            return None
        return n if n > 0 else None

    def _existing_dir(self, key: str) -> str | None:
        val = self.get(key)
        return val if isinstance(val, str) and os.path.isdir(val) else None

    @property
    def last_input_dir(self) -> str | None:
        return self._existing_dir("last_input_dir")

    @property
    def last_output_dir(self) -> str | None:
        return self._existing_dir("last_output_dir")
