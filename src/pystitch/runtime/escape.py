"""Markup escaping used by the serializer."""

from typing import Any


def escape_markup(value: Any, quote: bool = False) -> str:
    """Escape ``&``, ``<`` and ``>``; with ``quote`` also ``"`` for attribute values.

    Text content leaves quotes alone so it serializes exactly as it was parsed.
    """
    s = str(value).replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    if quote:
        s = s.replace('"', "&quot;")
    return s
