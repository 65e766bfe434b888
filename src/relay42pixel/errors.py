"""Failure kinds reported by pixel calls."""

from __future__ import annotations

from dataclasses import dataclass


class PixelError(Exception):
    """Base class for every failure a pixel call can report."""

    def __str__(self) -> str:
        return self.__class__.__name__


class NotConfigured(PixelError):
    def __str__(self) -> str:
        return "Pixel client is not configured; call configure() first"


@dataclass(slots=True)
class InvalidRequest(PixelError):
    reason: str = "invalid request URL"

    def __str__(self) -> str:
        return f"Invalid pixel request: {self.reason}"


InvalidURL = InvalidRequest


@dataclass(slots=True)
class HttpStatus(PixelError):
    code: int

    def __str__(self) -> str:
        return f"Collector responded with HTTP {self.code}"


@dataclass(slots=True)
class TransportError(PixelError):
    cause: BaseException

    def __str__(self) -> str:
        return f"Transport failure: {self.cause!r}"


class Unknown(PixelError):
    def __str__(self) -> str:
        return "Response carried no usable HTTP status"
