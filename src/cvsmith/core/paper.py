"""Page geometry helpers: paper formats, orientations and length parsing."""

from __future__ import annotations

from enum import Enum
import re
from typing import Any

from pint import DimensionalityError, UndefinedUnitError, UnitRegistry

from .exceptions import ValidationError


__all__ = [
    "Orientation",
    "PageSize",
    "content_width",
    "page_dimensions",
    "to_millimetres",
]

_UNIT_REGISTRY = UnitRegistry()
_LENGTH_DIMENSION = _UNIT_REGISTRY.mm.dimensionality

# CSS absolute units; pint reads ``pt`` as a pint.
_CSS_UNITS_MM = {
    "mm": 1.0,
    "cm": 10.0,
    "in": 25.4,
    "pt": 25.4 / 72,
    "pc": 25.4 / 6,
    "px": 25.4 / 96,
}
_CSS_LENGTH = re.compile(r"^(-?\d+(?:\.\d+)?)\s*(mm|cm|in|pt|pc|px)$", re.IGNORECASE)


class PageSize(str, Enum):
    """Paper formats accepted by the exporter."""

    A4 = "A4"
    LETTER = "LETTER"
    LEGAL = "LEGAL"
    TABLOID = "TABLOID"

    @classmethod
    def _missing_(cls, value: object) -> PageSize | None:
        if isinstance(value, str):
            candidate = value.strip().upper()
            if candidate.endswith("PAPER"):
                candidate = candidate[: -len("PAPER")]
            for member in cls:
                if member.value == candidate:
                    return member
        return None


class Orientation(str, Enum):
    """Page orientation."""

    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"

    @classmethod
    def _missing_(cls, value: object) -> Orientation | None:
        if isinstance(value, str):
            candidate = value.strip().lower()
            if candidate in {"vertical", "portrait"}:
                return cls.PORTRAIT
            if candidate in {"horizontal", "landscape"}:
                return cls.LANDSCAPE
        return None


# Portrait width x height in millimetres.
_PAGE_DIMENSIONS: dict[PageSize, tuple[float, float]] = {
    PageSize.A4: (210.0, 297.0),
    PageSize.LETTER: (215.9, 279.4),
    PageSize.LEGAL: (215.9, 355.6),
    PageSize.TABLOID: (279.4, 431.8),
}


def page_dimensions(
    size: PageSize | str, orientation: Orientation | str = Orientation.PORTRAIT
) -> tuple[float, float]:
    """Return ``(width, height)`` in millimetres for a paper format."""
    width, height = _PAGE_DIMENSIONS[PageSize(size)]
    if Orientation(orientation) is Orientation.LANDSCAPE:
        return height, width
    return width, height


def content_width(
    size: PageSize | str,
    orientation: Orientation | str,
    left: float,
    right: float,
) -> float:
    """Return the printable width left once horizontal margins are removed."""
    width, _ = page_dimensions(size, orientation)
    return max(0.0, width - left - right)


def to_millimetres(value: Any) -> float:
    """Convert a number or length string (``"2cm"``, ``"0.5in"``) to millimetres.

    Bare numbers are already millimetres. CSS units are read with their CSS
    meaning; anything else goes through pint (``"2 centimeters"``).
    """
    if isinstance(value, bool):
        raise ValidationError(f"Unsupported length value '{value}'.")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError("Length value cannot be empty.")
        try:
            return float(stripped)
        except ValueError:
            pass
        css = _CSS_LENGTH.match(stripped)
        if css is not None:
            return float(css.group(1)) * _CSS_UNITS_MM[css.group(2).lower()]
        try:
            quantity = _UNIT_REGISTRY(stripped)
        except (UndefinedUnitError, DimensionalityError, ValueError, AttributeError):
            quantity = None
        if quantity is not None and hasattr(quantity, "check") and quantity.check(
            _LENGTH_DIMENSION
        ):
            return float(quantity.to(_UNIT_REGISTRY.mm).magnitude)
        raise ValidationError(f"Unsupported length value '{value}'.")
    raise ValidationError(f"Unsupported length value '{value}'.")
