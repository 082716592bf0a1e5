# chatclient/config.py
import os
from dataclasses import dataclass
from typing import Optional

from chatclient.common.utils import normalize_fingerprint
from chatclient.console import Console
from chatclient.crypto.pki import FINGERPRINT_ENV


@dataclass(frozen=True)
class ConnectionConfig:
    host: str
    port: int
    expected_fingerprint: Optional[str] = None

    @property
    def pinned(self) -> bool:
        return self.expected_fingerprint is not None


def parse_port(value: str) -> int:
    port = int(value.strip())
    if not 1 <= port <= 65535:
        raise ValueError(f"port out of range: {port}")
    return port


def _prompt_host(console: Console) -> Optional[str]:
    while True:
        line = console.read_line("Type host: ")
        if line is None:
            return None
        host = line.strip()
        if host:
            return host


def _prompt_port(console: Console) -> Optional[int]:
    while True:
        line = console.read_line("Type port: ")
        if line is None:
            return None
        try:
            return parse_port(line)
        except ValueError:
            console.write_line("[!] Port must be a number between 1 and 65535")


def load_config(console: Console) -> Optional[ConnectionConfig]:
    """
    Build the connection settings once at startup.

    Host and port come from CHAT_SERVER_HOST / CHAT_SERVER_PORT when set,
    otherwise from the console. The pinned fingerprint comes from
    CHAT_SERVER_FINGERPRINT. Returns None if input ends before host and
    port are known.
    """
    host = os.getenv("CHAT_SERVER_HOST", "").strip() or _prompt_host(console)
    if host is None:
        return None

    port = None
    env_port = os.getenv("CHAT_SERVER_PORT", "").strip()
    if env_port:
        try:
            port = parse_port(env_port)
        except ValueError:
            console.write_line(f"[!] Ignoring invalid CHAT_SERVER_PORT={env_port!r}")
    if port is None:
        port = _prompt_port(console)
    if port is None:
        return None

    fingerprint = normalize_fingerprint(os.getenv(FINGERPRINT_ENV))
    return ConnectionConfig(host=host, port=port, expected_fingerprint=fingerprint)


def show_security_banner(config: ConnectionConfig, console: Console) -> None:
    if config.pinned:
        console.write_line("[+] Secure mode enabled.")
        console.write_line(f"    Expected server fingerprint: {config.expected_fingerprint}")
    else:
        console.write_line(f"[!] WARNING: {FINGERPRINT_ENV} is not set.")
        console.write_line("    The client will connect INSECURELY and accept any certificate.")
    console.write_line()
