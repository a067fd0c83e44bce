import re
from typing import Optional

from rgstrapper.util.error_handling import InvalidFormat

NAME_PATTERN = re.compile(r"[a-z0-9-]+")


class NameSegment(str):
    """
    A normalized, validated naming component (project, stage, suffix, location).

    Only build these through NameSegment.parse(); the Azure layer accepts
    NameSegment values and never raw input.
    """

    __slots__ = ()

    @classmethod
    def parse(cls, field: str, raw: str) -> "NameSegment":
        """
        Normalize `raw` and validate it against NAME_PATTERN.

        Args:
            field (str): Field name, used in the error message.
            raw (str): Raw flag or environment value.

        Returns:
            NameSegment: The normalized value.

        Raises:
            InvalidFormat: If the normalized value is empty or contains other characters.
        """
        value = Sanitization.normalize(raw)
        if not Sanitization.is_valid(value):
            raise InvalidFormat(field, value)
        return cls(value)


class Sanitization:
    """
    Utility class to normalize and validate Azure naming components.
    """

    @staticmethod
    def normalize(value: Optional[str]) -> str:
        """
        Lowercase a string and strip leading and trailing hyphens.

        Normalizing an already-normalized value returns it unchanged.

        Args:
            value (str): Raw input string (None is treated as empty)

        Returns:
            str: Normalized string
        """
        if value is None:
            return ""
        if not isinstance(value, str):
            raise TypeError("Sanitization.normalize: input must be a string")
        return value.lower().strip("-")

    @staticmethod
    def is_valid(value: str) -> bool:
        """True if `value` is non-empty and made only of a-z, 0-9 and hyphens."""
        return bool(value) and NAME_PATTERN.fullmatch(value) is not None

    @staticmethod
    def optional(field: str, raw: Optional[str]) -> Optional[NameSegment]:
        """
        Like NameSegment.parse, but an empty value (after normalization) is allowed and yields None.
        """
        value = Sanitization.normalize(raw)
        if not value:
            return None
        return NameSegment.parse(field, value)

