"""Configuration schema for the pixel SDK."""

from __future__ import annotations

from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_BASE_URL = "https://t.svtrd.com"


class PixelConfig(BaseModel):
    """Destination for pixel requests.

    ``site_id`` becomes the ``/t-<site_id>`` path and the ``ca_site`` mapping
    parameter. ``default_partner_id`` is used by mappings that do not name a
    partner themselves.
    """

    model_config = ConfigDict(frozen=True)

    site_id: str = Field(min_length=1, description="Site id used in /t-<site_id>")
    default_partner_id: str | None = Field(default=None, description="Fallback ca_partner")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Pixel endpoint host")

    @field_validator("site_id")
    @classmethod
    def validate_site_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("site_id must not be blank")
        return value

    @field_validator("default_partner_id")
    @classmethod
    def validate_partner_id(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        parts = urlsplit(value.strip())
        if parts.scheme not in {"http", "https"} or not parts.netloc:
            raise ValueError(f"base_url must be an absolute http(s) URL: {value!r}")
        return value.strip()

    def setting_items(self) -> list[tuple[str, str]]:
        return [(key, "" if value is None else str(value)) for key, value in self.model_dump().items()]
