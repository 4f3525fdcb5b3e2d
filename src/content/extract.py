"""Pull a JSON payload out of free-form model output."""

from __future__ import annotations

import json
import re
from typing import Any

from src.errors import ContentParseError

_FENCE = re.compile(r"```[a-zA-Z]*[ \t]*\n?(.*?)```", re.DOTALL)
_MISSING = object()


def _first_json(text: str, decoder: json.JSONDecoder) -> Any:
    for index, char in enumerate(text):
        if char not in "{[":
            continue
        try:
            value, _ = decoder.raw_decode(text, index)
        except json.JSONDecodeError:
            continue
        return value
    return _MISSING


def extract_json(text: str) -> Any:
    """
    Return the first well-formed JSON object or array in `text`.

    Fenced code blocks are tried before the raw text, so prose that happens to
    contain brackets ahead of a ```json block does not win.

    Raises
    ------
    ContentParseError
        If no object or array can be decoded.
    """
    if not text or not text.strip():
        raise ContentParseError("empty provider output")

    decoder = json.JSONDecoder()
    candidates = [match.group(1) for match in _FENCE.finditer(text)]
    candidates.append(text)
    for candidate in candidates:
        value = _first_json(candidate, decoder)
        if value is not _MISSING:
            return value
    raise ContentParseError("no JSON object or array found in provider output")


__all__ = ["extract_json"]
