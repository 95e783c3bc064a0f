from __future__ import annotations

import hashlib


def compute_bytes_digest(data: bytes, alg: str = "sha256") -> str:
    h = hashlib.new(alg)
    h.update(data)
    return h.hexdigest()
