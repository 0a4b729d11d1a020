"""Style resolution shared by the live preview and the export styler."""

from __future__ import annotations

from .resolver import ResolvedStyle, StyleResolver, secondary_from_primary


__all__ = ["ResolvedStyle", "StyleResolver", "secondary_from_primary"]
