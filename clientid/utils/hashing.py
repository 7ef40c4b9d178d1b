from __future__ import annotations

import base64
import hashlib
from typing import Union

HashInput = Union[bytes, bytearray, str]


def sha384_base64(data: HashInput) -> str:
    """One-way digest used for every identifier this package hands out.

    Raw entropy bytes are hashed as-is; strings are UTF-8 encoded first.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    digest = hashlib.sha384(bytes(data)).digest()
    return base64.b64encode(digest).decode("ascii")
