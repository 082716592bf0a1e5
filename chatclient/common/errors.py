# chatclient/common/errors.py
from typing import Optional


class FrameError(Exception):
    """Raised when a frame cannot be built or parsed."""


class FrameTooLarge(FrameError):
    def __init__(self, size: int, limit: int = 65536):
        super().__init__(f"Packet too large! {size} bytes (max {limit})")
        self.size = size
        self.limit = limit


class MalformedFrame(FrameError):
    pass


class BadCertificate(Exception):
    """Server certificate fingerprint does not match the pinned one."""

    def __init__(self, expected: Optional[str], actual: str):
        super().__init__(f"certificate fingerprint mismatch (expected {expected}, got {actual})")
        self.expected = expected
        self.actual = actual


class SessionClosed(ConnectionError):
    pass
