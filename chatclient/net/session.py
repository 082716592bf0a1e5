# chatclient/net/session.py
"""Transport session: one TLS socket carrying length-prefixed JSON frames."""

import socket
import ssl
import threading
import time
from typing import Any, Callable, Optional

from pydantic import BaseModel

from chatclient.common import codec
from chatclient.common.errors import BadCertificate, SessionClosed
from chatclient.crypto import pki


def make_ssl_context() -> ssl.SSLContext:
    """
    Chain and hostname validation are off: trust comes from the pinned
    fingerprint, checked right after the handshake in Session.open().
    """
    context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    return context


class Session:
    """
    Owns one connected socket. The listen thread only reads and the send loop
    only writes; either side may close(), and close() may be called any number
    of times. An operation blocked when the other side closes raises
    SessionClosed.
    """

    def __init__(self, sock: socket.socket):
        self._sock = sock
        self._closed = False
        self._close_lock = threading.Lock()

    @classmethod
    def open(
        cls,
        host: str,
        port: int,
        expected_fp: Optional[str],
        emit: Callable[[str], None] = print,
        connect_timeout: Optional[float] = 10.0,
    ) -> "Session":
        """
        TCP connect, TLS handshake, then pin check on the leaf certificate.
        Raises BadCertificate on fingerprint mismatch, OSError/ssl.SSLError
        for anything else.
        """
        try:
            raw = socket.create_connection((host, port), timeout=connect_timeout)
        except UnicodeError as e:
            # IDNA encoding of the host name, e.g. an empty label in "foo..example"
            raise OSError(f"invalid host name {host!r}: {e}") from e

        try:
            tls = make_ssl_context().wrap_socket(raw, server_hostname=host)
        except BaseException:
            raw.close()
            raise

        der = tls.getpeercert(binary_form=True)
        if der is None:
            tls.close()
            raise ssl.SSLError("server presented no certificate")

        outcome = pki.verify_peer_certificate(der, expected_fp, emit)
        if not outcome.accepted:
            tls.close()
            raise BadCertificate(expected_fp, pki.fingerprint_der(der))

        tls.settimeout(None)
        return cls(tls)

    @property
    def closed(self) -> bool:
        return self._closed

    # ============ Send / Receive ============

    def send(self, message: dict | BaseModel) -> None:
        data = codec.encode(message)
        if self._closed:
            raise SessionClosed("session is closed")
        try:
            self._sock.sendall(data)
        except OSError as e:
            if self._closed:
                raise SessionClosed("session closed during send") from e
            raise

    def recv(self, timeout: Optional[float] = None) -> dict[str, Any]:
        """
        Receive exactly one frame. timeout is in seconds for the whole frame;
        None blocks forever.
        Raises TimeoutError, SessionClosed, FrameTooLarge or MalformedFrame.
        """
        if self._closed:
            raise SessionClosed("session is closed")

        deadline = None if timeout is None else time.monotonic() + timeout
        try:
            header = self._recv_exact(codec.HEADER_SIZE, deadline)
            length = codec.read_length(header)
            payload = self._recv_exact(length, deadline) if length else b""
        finally:
            if deadline is not None and not self._closed:
                self._sock.settimeout(None)

        message, _rest = codec.decode(header + payload)
        return message

    def _recv_exact(self, n: int, deadline: Optional[float] = None) -> bytes:
        buf = bytearray()
        while len(buf) < n:
            try:
                if deadline is None:
                    self._sock.settimeout(None)
                else:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        raise TimeoutError("timed out waiting for a full frame")
                    self._sock.settimeout(remaining)
                chunk = self._sock.recv(n - len(buf))
            except TimeoutError:
                raise
            except (OSError, ValueError) as e:
                # ValueError: the SSL object was torn down by a concurrent close()
                if self._closed:
                    raise SessionClosed("session closed during receive") from e
                raise
            if not chunk:
                raise SessionClosed("connection closed by peer")
            buf.extend(chunk)
        return bytes(buf)

    # ============ Teardown ============

    def close(self) -> None:
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        # shutdown() wakes a thread blocked in recv() on this socket
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self._sock.close()
