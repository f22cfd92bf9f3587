from __future__ import annotations

import re

_TAG_RE = re.compile(r"<[^>]*>")
_UNSAFE_RE = re.compile(r"[<>\"']")


def sanitize(value: object, max_len: int = 200) -> str:
    if value is None:
        return ""
    text = _TAG_RE.sub("", str(value))
    text = _UNSAFE_RE.sub("", text).strip()
    return text[:max_len]


def digits_only(value: object, max_len: int = 15) -> str:
    return re.sub(r"\D", "", str(value or ""))[:max_len]
