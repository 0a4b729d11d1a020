"""Immutable builtin template tier.

Starter markup lives next to this module in ``builtin/<id>.md``; the style
descriptors below are validated once and handed out as deep copies.
"""

from __future__ import annotations

from functools import cache
from pathlib import Path
from typing import Any

from cvsmith.core.models import Template


__all__ = ["BUILTIN_IDS", "builtin_template", "builtin_templates", "is_builtin"]

_PACKAGE_ROOT = Path(__file__).parent.resolve()
_CONTENT_DIR = _PACKAGE_ROOT / "builtin"

_STANDARD_MARGINS = {"top": 20, "right": 20, "bottom": 20, "left": 20}
_NARROW_MARGINS = {"top": 15, "right": 15, "bottom": 15, "left": 15}
_ACADEMIC_MARGINS = {"top": 25, "right": 25, "bottom": 25, "left": 25}

_CREATIVE_CSS = """\
.cv-skill-level {
  background: linear-gradient(90deg, #e53e3e 0%, #38a169 100%);
  height: 6px;
  border-radius: 3px;
}
.cv-tag {
  background-color: #e53e3e20;
  border-left: 3px solid #e53e3e;
}
"""

_DEFINITIONS: tuple[dict[str, Any], ...] = (
    {
        "id": "classic-professional",
        "name": "Classic Professional",
        "description": "A clean, traditional layout suitable for most professional fields.",
        "category": "Professional",
        "tags": ["classic", "formal", "traditional"],
        "style": {
            "theme": {
                "primaryColor": "#4051b5",
                "secondaryColor": "#4051b580",
                "textColor": "#333333",
                "linkColor": "#4051b5",
                "backgroundColor": "#ffffff",
                "headingFont": "Roboto",
                "bodyFont": "Roboto",
                "fontSize": "11pt",
                "lineHeight": "1.5",
            },
            "margins": _STANDARD_MARGINS,
            "spacing": 1.15,
        },
    },
    {
        "id": "modern-minimal",
        "name": "Modern Minimal",
        "description": "A sleek, minimalist layout with clean typography.",
        "category": "Professional",
        "tags": ["minimal", "modern", "clean"],
        "style": {
            "theme": {
                "primaryColor": "#000000",
                "secondaryColor": "#555555",
                "textColor": "#000000",
                "linkColor": "#000000",
                "backgroundColor": "#ffffff",
                "headingFont": "Inter",
                "bodyFont": "Inter",
                "fontSize": "10.5pt",
                "lineHeight": "1.4",
            },
            "margins": _NARROW_MARGINS,
            "spacing": 1.2,
        },
    },
    {
        "id": "academic",
        "name": "Academic CV",
        "description": "Comprehensive layout for academic positions, research roles and grants.",
        "category": "Academic",
        "tags": ["academic", "research", "formal"],
        "style": {
            "theme": {
                "primaryColor": "#861f41",
                "secondaryColor": "#861f4180",
                "textColor": "#333333",
                "linkColor": "#861f41",
                "backgroundColor": "#ffffff",
                "headingFont": "Merriweather",
                "bodyFont": "Source Sans Pro",
                "fontSize": "11pt",
                "lineHeight": "1.5",
            },
            "margins": _ACADEMIC_MARGINS,
            "spacing": 1.2,
        },
    },
    {
        "id": "creative-professional",
        "name": "Creative Professional",
        "description": "A modern layout with visual flair for creative industries.",
        "category": "Creative",
        "tags": ["creative", "modern", "colorful"],
        "style": {
            "theme": {
                "primaryColor": "#e53e3e",
                "secondaryColor": "#e53e3e80",
                "accentColor": "#38a169",
                "textColor": "#2d3748",
                "linkColor": "#e53e3e",
                "backgroundColor": "#ffffff",
                "headingFont": "Poppins",
                "bodyFont": "Nunito",
                "fontSize": "11pt",
                "lineHeight": "1.6",
            },
            "margins": _STANDARD_MARGINS,
            "spacing": 1.3,
            "customCSS": _CREATIVE_CSS,
        },
    },
)

BUILTIN_IDS: tuple[str, ...] = tuple(definition["id"] for definition in _DEFINITIONS)


@cache
def _load() -> tuple[Template, ...]:
    templates: list[Template] = []
    for definition in _DEFINITIONS:
        content = (_CONTENT_DIR / f"{definition['id']}.md").read_text(encoding="utf-8")
        templates.append(Template.model_validate({**definition, "content": content.strip()}))
    return tuple(templates)


def builtin_templates() -> list[Template]:
    """Return deep copies of every builtin template, in declaration order."""
    return [template.model_copy(deep=True) for template in _load()]


def builtin_template(template_id: str) -> Template | None:
    for template in _load():
        if template.id == template_id:
            return template.model_copy(deep=True)
    return None


def is_builtin(template_id: str) -> bool:
    return template_id in BUILTIN_IDS
