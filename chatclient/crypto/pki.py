# chatclient/crypto/pki.py
from enum import Enum
from typing import Callable, Optional

from cryptography import x509
from cryptography.hazmat.primitives import hashes

from chatclient.common.utils import format_fingerprint, normalize_fingerprint, sha256_hex

FINGERPRINT_ENV = "CHAT_SERVER_FINGERPRINT"


class Verification(Enum):
    VERIFIED = "verified"
    UNVERIFIED = "unverified"
    FINGERPRINT_MISMATCH = "fingerprint_mismatch"

    @property
    def accepted(self) -> bool:
        return self is not Verification.FINGERPRINT_MISMATCH


def load_cert(path: str) -> x509.Certificate:
    with open(path, "rb") as f:
        return x509.load_pem_x509_certificate(f.read())


def get_cert_fingerprint(cert: x509.Certificate) -> str:
    """Return SHA-256 fingerprint as hex string."""
    return cert.fingerprint(hashes.SHA256()).hex()


def fingerprint_der(der: bytes) -> str:
    return sha256_hex(der)


def verify_peer_certificate(
    der: bytes,
    expected_fp: Optional[str],
    emit: Callable[[str], None] = print,
) -> Verification:
    """
    Pin check for the server's leaf certificate.

      - expected_fp set and equal   -> VERIFIED
      - expected_fp set, different  -> FINGERPRINT_MISMATCH (caller aborts)
      - expected_fp not set         -> UNVERIFIED, after printing the
                                       fingerprint and how to pin it
    """
    actual_fp = fingerprint_der(der)
    expected_fp = normalize_fingerprint(expected_fp)

    if expected_fp is None:
        show_warning(actual_fp, emit)
        return Verification.UNVERIFIED

    if actual_fp == expected_fp:
        emit("[+] Certificate verified successfully!")
        return Verification.VERIFIED

    emit("[!] Certificate fingerprint mismatch!")
    emit(f"    Expected: {expected_fp}")
    emit(f"    Actual:   {actual_fp}")
    return Verification.FINGERPRINT_MISMATCH


def show_warning(actual_fp: str, emit: Callable[[str], None] = print) -> None:
    emit("")
    emit("[!] WARNING: Connecting without certificate verification!")
    emit(f"    Server fingerprint: {format_fingerprint(actual_fp)}")
    emit("")
    emit("    For secure connections, set:")
    emit(f"    export {FINGERPRINT_ENV}={actual_fp}")
    emit("")
