"""Exceptions raised by packmatch.

Only contract violations and loader lookups reach callers. Guard rejections
and weak matches are search states, and enhancement errors never leave the
enhancement pipeline.
"""


class PackMatchError(Exception):
    """Base class for packmatch errors."""


class PackNotLoadedError(PackMatchError):
    """Raised when search is called before any pack is active."""


class PackNotFoundError(PackMatchError):
    """Raised when no pack file exists for a city."""

    def __init__(self, city: str):
        super().__init__(f"No pack available for city: {city}")
        self.city = city


class EnhancementError(PackMatchError):
    """Raised inside the enhancement pipeline; always caught there."""


class EnhancementTimeout(EnhancementError):
    """The enhancement deadline elapsed."""


class EnhancementInvalid(EnhancementError):
    """An enhancement proposal broke a grounding invariant."""


class PackInvalidError(PackMatchError):
    """Raised when a pack file cannot be parsed into a Pack."""

    def __init__(self, city: str, detail: str):
        super().__init__(f"Pack for {city} is invalid: {detail}")
        self.city = city
        self.detail = detail
