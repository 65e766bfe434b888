"""Per-call outcome delivered exactly once to the caller."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, TypeAlias

from relay42pixel.errors import PixelError


@dataclass(slots=True, frozen=True)
class Success:
    url: str
    status_code: int

    @property
    def ok(self) -> bool:
        return True

    def raise_for_failure(self) -> None:
        return None

    def unwrap(self) -> "Success":
        return self


@dataclass(slots=True, frozen=True)
class Failure:
    error: PixelError
    url: str | None = None

    @property
    def ok(self) -> bool:
        return False

    def raise_for_failure(self) -> None:
        raise self.error

    def unwrap(self) -> Success:
        """Raise the carried error; a Failure never yields a value."""
        raise self.error


Result: TypeAlias = Success | Failure
ResultCallback = Callable[[Result], None]
