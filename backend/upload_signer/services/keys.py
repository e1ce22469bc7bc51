import os
import random
import string
import threading
import time
from typing import Final

ALPHABET: Final[str] = string.ascii_uppercase + string.ascii_lowercase + string.digits
KEY_LENGTH: Final[int] = 20
OBJECT_NAMESPACE: Final[str] = "images"


def infer_extension(content_type: str) -> str:
    if "png" in content_type:
        return "png"
    if "jpeg" in content_type or "jpg" in content_type:
        return "jpg"
    return ""


def object_path(key: str, content_type: str) -> str:
    # Unknown content types keep the dot: "images/<key>."
    return f"{OBJECT_NAMESPACE}/{key}.{infer_extension(content_type)}"


class KeyGenerator:
    """Process-wide source of object keys.

    Keys only need to be unlikely to collide inside the bucket; authorization
    comes from the signed URL, so a seeded ``random.Random`` is enough. All
    draws go through one lock so concurrent requests never share a sequence.
    """

    def __init__(self, seed: int | None = None) -> None:
        if seed is None:
            seed = time.time_ns() ^ os.getpid()
        self._random = random.Random(seed)
        self._lock = threading.Lock()

    def next_key(self) -> str:
        with self._lock:
            chars = [self._random.choice(ALPHABET) for _ in range(KEY_LENGTH)]
        return "".join(chars)

    def next_object_path(self, content_type: str) -> str:
        return object_path(self.next_key(), content_type)
