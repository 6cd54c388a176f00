from __future__ import annotations

import base64

"""Base64 helpers for passing dataset text around as ASCII.

Text is encoded as UTF-8 before base64, so any Unicode string
(multi-line, quotes, non-ASCII names) round-trips exactly.
"""

__all__ = [
    "base64_encode",
    "base64_decode",
]


def base64_encode(data: str) -> str:
    return base64.b64encode(data.encode("utf-8")).decode("ascii")


def base64_decode(base64_data: str) -> str:
    return base64.b64decode(base64_data.encode("ascii"), validate=True).decode("utf-8")
