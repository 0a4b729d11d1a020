"""Markup dialect: casing normalisation, tokenizer and tree transformer."""

from __future__ import annotations

from .casing import CASING_RULES, CasingNormalizer
from .lexer import Block, BlockKind, Span, SpanKind, tokenize, tokenize_inline
from .transformer import (
    PAGE_BREAK_CLASS,
    PAGE_BREAK_INDICATOR_CLASS,
    MarkupTransformer,
    decorate_page_breaks,
    link_cross_references,
    strip_preview_decorations,
)


__all__ = [
    "CASING_RULES",
    "PAGE_BREAK_CLASS",
    "PAGE_BREAK_INDICATOR_CLASS",
    "Block",
    "BlockKind",
    "CasingNormalizer",
    "MarkupTransformer",
    "Span",
    "SpanKind",
    "decorate_page_breaks",
    "link_cross_references",
    "strip_preview_decorations",
    "tokenize",
    "tokenize_inline",
]
