"""Builtin and user-defined résumé templates."""

from __future__ import annotations

from .builtins import BUILTIN_IDS, builtin_template, builtin_templates, is_builtin
from .repository import CUSTOM_CATEGORY, USER_TEMPLATE_TAG, TemplateRepository


__all__ = [
    "BUILTIN_IDS",
    "CUSTOM_CATEGORY",
    "USER_TEMPLATE_TAG",
    "TemplateRepository",
    "builtin_template",
    "builtin_templates",
    "is_builtin",
]
