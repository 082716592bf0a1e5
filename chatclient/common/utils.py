# chatclient/common/utils.py
import hashlib


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def format_fingerprint(fp: str) -> str:
    """ab12cd... -> ab:12:cd:..."""
    return ":".join(fp[i:i + 2] for i in range(0, len(fp), 2))


def normalize_fingerprint(fp: str | None) -> str | None:
    """
    Canonical form used for comparisons: lowercase hex without separators.
    Returns None for a missing or blank value.
    """
    if fp is None:
        return None
    fp = fp.strip().lower().replace(":", "")
    return fp or None
