"""Resolution of multi-valued submitted fields into single values."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

_TRUE_VALUES = frozenset({"true", "yes", "on", "1"})
_FALSE_VALUES = frozenset({"false", "no", "off", "0"})


def as_candidates(value: Any) -> tuple[Any, ...]:
    """Return a submitted field value as an ordered candidate sequence."""
    if value is None:
        return ()
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        return (value,)
    return tuple(value)


def first_non_blank(value: Any) -> str | None:
    """Return the first candidate that is not blank, unchanged.

    A host may submit an array for a logically scalar field; candidates are
    inspected in submission order and ``None`` is returned when none is set.

    >>> first_non_blank(["", "a", "b"])
    'a'
    """
    for candidate in as_candidates(value):
        if candidate is None or isinstance(candidate, bool):
            continue
        text = str(candidate)
        if text.strip():
            return text
    return None


def resolve_flag(value: Any) -> bool:
    """Resolve a boolean field, defaulting to ``False`` when nothing was submitted.

    Raises:
      ValueError: If the first non-blank candidate is not boolean-like.
    """
    for candidate in as_candidates(value):
        if isinstance(candidate, bool):
            return candidate
        if candidate is None:
            continue
        text = str(candidate).strip().lower()
        if not text:
            continue
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ValueError(f"'{candidate}' is not a boolean value.")
    return False
