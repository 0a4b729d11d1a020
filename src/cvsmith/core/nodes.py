"""Helpers shared by code that reads or mutates BeautifulSoup nodes."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, cast

from bs4.element import Tag


__all__ = [
    "add_class",
    "coerce_attribute",
    "format_style",
    "gather_classes",
    "has_class",
    "merge_style",
    "parse_style",
]


def coerce_attribute(value: Any) -> str | None:
    """Normalise a BeautifulSoup attribute value to a string when possible."""
    if isinstance(value, str):
        return value
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError:
            return None
    if isinstance(value, Iterable):
        for item in value:
            if isinstance(item, str):
                return item
    return None


def gather_classes(value: Any) -> list[str]:
    """Return a list of classes extracted from a BeautifulSoup attribute."""
    if isinstance(value, str):
        return value.split()
    if isinstance(value, Iterable) and not isinstance(value, (bytes, bytearray)):
        return [cast(str, item) for item in value if isinstance(item, str)]
    return []


def has_class(tag: Tag, name: str) -> bool:
    return name in gather_classes(tag.get("class"))


def add_class(tag: Tag, *names: str) -> None:
    classes = gather_classes(tag.get("class"))
    for name in names:
        if name not in classes:
            classes.append(name)
    tag["class"] = classes


def parse_style(value: Any) -> dict[str, str]:
    """Parse an inline ``style`` attribute into an ordered property mapping."""
    text = coerce_attribute(value) or ""
    declarations: dict[str, str] = {}
    for chunk in text.split(";"):
        prop, sep, raw = chunk.partition(":")
        if not sep:
            continue
        key = prop.strip().lower()
        if key:
            declarations[key] = raw.strip()
    return declarations


def format_style(declarations: Mapping[str, str]) -> str:
    return " ".join(f"{key}: {value};" for key, value in declarations.items() if value != "")


def merge_style(tag: Tag, declarations: Mapping[str, str], *, override: bool = True) -> None:
    """Merge CSS declarations into the tag's inline style.

    Existing properties are kept when ``override`` is false.
    """
    current = parse_style(tag.get("style"))
    for key, value in declarations.items():
        if not override and key in current:
            continue
        current[key] = value
    tag["style"] = format_style(current)
