from __future__ import annotations

import logging
import os
import random
from typing import Callable, Optional, Tuple, Union

from clientid.utils.hashing import sha384_base64
from clientid.utils.time import now_millis

logger = logging.getLogger(__name__)

Entropy = Union[bytes, str]

STRONG_ENTROPY_BYTES = 16  # 128 bit


class EntropySource:
    """Seed material for new identifiers.

    Prefers the OS CSPRNG. When the platform has none, falls back to a
    guessable composite of the document url, the clock, ``random.random()``
    and the viewport size. The fallback is much weaker and only used when no
    strong source exists.
    """

    def __init__(
        self,
        url: str,
        viewport: Tuple[int, int] = (0, 0),
        clock: Callable[[], int] = now_millis,
        urandom: Callable[[int], bytes] = os.urandom,
    ) -> None:
        self.url = url
        self.viewport = viewport
        self._clock = clock
        self._urandom = urandom

    def draw(self) -> Entropy:
        try:
            return self._urandom(STRONG_ENTROPY_BYTES)
        except NotImplementedError:
            logger.warning("no strong random source, using weak entropy fallback")
        width, height = self.viewport
        return f"{self.url}{self._clock()}{random.random()}{width}{height}"

    def new_id(self, prefix: Optional[str] = None) -> str:
        """Hash fresh entropy; callers never see raw entropy."""
        return (prefix or "") + sha384_base64(self.draw())
