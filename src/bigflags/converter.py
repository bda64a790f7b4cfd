"""
String-conversion adapter for bigflags values.

Generic conversion layers (settings loaders, form binders, serializers) only
need to turn values into strings and back. This adapter exposes exactly that,
and touches the flag-set type only through `to_string` and `try_parse`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .flagset import FlagSet

logger = logging.getLogger(__name__)


class FlagSetConverter:
    """Converts values of one flag-set type to and from strings."""

    def __init__(self, flag_type: type[FlagSet]) -> None:
        self.flag_type = flag_type

    def can_convert_to(self, target: type) -> bool:
        """Only conversion to `str` is supported."""
        return target is str

    def can_convert_from(self, source: type) -> bool:
        """Any object can be converted from via its string form."""
        return True

    def convert_to(self, value: object, target: type = str) -> str | None:
        """Return the string form of `value`, or None if not convertible."""
        if isinstance(value, self.flag_type) and self.can_convert_to(target):
            return value.to_string()
        return None

    def convert_from(self, obj: object) -> FlagSet:
        """
        Parse `str(obj)` into a value.

        Unknown names yield the zero value rather than an exception, so a bad
        stored setting degrades to "no flags set".

        Args:
            obj: Any object; None converts to zero.

        Returns:
            The parsed value, or zero if parsing failed.
        """
        text = None if obj is None else str(obj)
        result = self.flag_type.try_parse(text)
        if result.error is not None:
            logger.warning(
                "Falling back to %s for %r: %s",
                result.value,
                text,
                result.error,
            )
        return result.value
