"""Load/save the pixel configuration file."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from relay42pixel.config.models import PixelConfig
from relay42pixel.paths import config_path

ENV_OVERRIDES: dict[str, str] = {
    "site_id": "RELAY42_SITE_ID",
    "default_partner_id": "RELAY42_PARTNER_ID",
    "base_url": "RELAY42_BASE_URL",
}


class ConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self.path = path or config_path()

    def load_raw(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}

        raw = self.path.read_text(encoding="utf-8")
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            self._quarantine(raw)
            return {}
        if not isinstance(data, dict):
            self._quarantine(raw)
            return {}
        return data

    def load(self) -> PixelConfig | None:
        data = self.load_raw()
        if not data:
            return None
        try:
            return PixelConfig.model_validate(data)
        except ValidationError:
            self._quarantine(self.path.read_text(encoding="utf-8"))
            return None

    def save(self, config: PixelConfig) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(config.model_dump(mode="json"), indent=2, sort_keys=True)
        self.path.write_text(f"{payload}\n", encoding="utf-8")

    def update(self, key: str, value: Any) -> PixelConfig:
        if key not in PixelConfig.model_fields:
            raise KeyError(f"Unknown config key: {key}")

        data = self.load_raw()
        data[key] = value
        updated = PixelConfig.model_validate(data)
        self.save(updated)
        return updated

    def _quarantine(self, raw: str) -> None:
        # Keep the unreadable payload around for debugging.
        backup = self.path.with_suffix(".corrupt.json")
        backup.write_text(raw, encoding="utf-8")
        self.path.unlink(missing_ok=True)


def load_config(
    store: ConfigStore | None = None,
    environ: dict[str, str] | None = None,
) -> PixelConfig | None:
    """Stored config overlaid with RELAY42_* environment variables."""

    store = store or ConfigStore()
    env = os.environ if environ is None else environ

    data = store.load_raw()
    for key, env_name in ENV_OVERRIDES.items():
        value = env.get(env_name)
        if value:
            data[key] = value

    if not data.get("site_id"):
        return None
    return PixelConfig.model_validate(data)
