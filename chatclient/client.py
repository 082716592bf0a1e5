"""Client implementation: TLS with fingerprint pinning, password auth and auto-reconnect."""

import threading
import time
from enum import Enum
from typing import Callable, Optional

from dotenv import load_dotenv

from chatclient.common import protocol
from chatclient.common.errors import BadCertificate, FrameError, FrameTooLarge, SessionClosed
from chatclient.common.protocol import AuthStatus
from chatclient.config import ConnectionConfig, load_config, show_security_banner
from chatclient.console import Console
from chatclient.net.session import Session

AUTH_TIMEOUT = 5.0          # seconds to wait for auth_result
RETRY_DELAY = 5.0           # transport / timeout / certificate failures
AUTH_RETRY_DELAY = 1.0      # wrong password: retry quickly
LISTEN_EXIT_DELAY = 2.0


class State(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class SendResult(Enum):
    END_OF_INPUT = "end_of_input"
    FAILED = "failed"


# ============ Listen / Send loops ============

def listen_loop(
    session: Session,
    console: Console,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """
    Print relayed chat messages until the session ends.
    Never raises; closes the session on the way out so the send loop
    notices on its next write.
    """
    try:
        while True:
            message = session.recv()
            line = protocol.describe_inbound(message)
            if line is not None:
                console.write_line(line)
    except SessionClosed:
        sleep(LISTEN_EXIT_DELAY)
        console.write_line("[*] Connection closed")
    except FrameError as e:
        console.write_line(f"[!] Bad frame from server: {e}")
    except OSError as e:
        console.write_line(f"[!] Listen error: {e}")
        sleep(LISTEN_EXIT_DELAY)
    finally:
        session.close()


def send_loop(session: Session, console: Console) -> SendResult:
    while True:
        line = console.read_line("--> ")
        if line is None:
            console.write_line("Disconnecting...")
            session.close()
            return SendResult.END_OF_INPUT

        text = line.strip()
        if not text:
            continue

        try:
            session.send(protocol.Chat(text=text))
        except FrameTooLarge as e:
            # only this line is dropped
            console.write_line(f"[!] Message not sent: {e}")
        except OSError as e:
            console.write_line(f"[!] Failed to send message: {e}")
            session.close()
            return SendResult.FAILED


# ============ Connection state machine ============

class ChatClient:
    """
    Disconnected -> Connecting -> Authenticating -> Authenticated -> ...

    Each step method returns the next State; run() drives them until
    DISCONNECTED, which is only reached when console input ends.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        console: Console,
        connect: Optional[Callable[..., Session]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.console = console
        self.connect = connect or Session.open
        self.sleep = sleep
        self.state = State.DISCONNECTED
        self.session: Optional[Session] = None
        self.listener: Optional[threading.Thread] = None

    def run(self) -> None:
        steps = {
            State.CONNECTING: self.do_connect,
            State.AUTHENTICATING: self.do_authenticate,
            State.AUTHENTICATED: self.do_chat,
        }
        self.state = State.CONNECTING
        while self.state is not State.DISCONNECTED:
            self.state = steps[self.state]()

    def backoff(self, seconds: float) -> None:
        label = "Reconnection in one second please wait" if seconds == 1 \
            else f"Reconnection in {seconds:g} seconds please wait"
        self.console.with_spinner(label, lambda: self.sleep(seconds))

    def close_session(self) -> None:
        if self.session is not None:
            self.session.close()
            self.session = None

    # --- Connecting ---

    def do_connect(self) -> State:
        host, port = self.config.host, self.config.port
        try:
            self.session = self.connect(
                host, port, self.config.expected_fingerprint, self.console.write_line
            )
        except BadCertificate:
            self.console.write_line("[!] Certificate verification failed")
            self.backoff(RETRY_DELAY)
            return State.CONNECTING
        except OSError as e:
            self.console.write_line(f"[!] Connection failed: {e}")
            self.backoff(RETRY_DELAY)
            return State.CONNECTING

        self.console.write_line(f"[+] Connected to {host}:{port}")
        return State.AUTHENTICATING

    # --- Authenticating ---

    def do_authenticate(self) -> State:
        password = self.console.read_line("Enter server password: ")
        if password is None:
            self.close_session()
            return State.DISCONNECTED

        try:
            self.session.send(protocol.Auth(password=password.strip()))
            reply = self.session.recv(timeout=AUTH_TIMEOUT)
        except TimeoutError:
            self.console.write_line("[!] Authentication timeout")
            self.close_session()
            self.backoff(RETRY_DELAY)
            return State.CONNECTING
        except (OSError, FrameError) as e:
            self.console.write_line(f"[!] Authentication error: {e}")
            self.close_session()
            self.backoff(RETRY_DELAY)
            return State.CONNECTING

        result = protocol.classify_auth_reply(reply)
        if result.status is AuthStatus.ACCEPTED:
            self.console.write_line("[+] Authentication successful!")
            return State.AUTHENTICATED

        if result.status is AuthStatus.REJECTED:
            self.console.write_line(f"[!] Authentication failed: {result.error}")
            self.close_session()
            self.backoff(AUTH_RETRY_DELAY)
            return State.CONNECTING

        self.console.write_line("[!] Unexpected response from server")
        self.close_session()
        return State.CONNECTING

    # --- Authenticated ---

    def start_listener(self) -> threading.Thread:
        thread = threading.Thread(
            target=listen_loop,
            args=(self.session, self.console),
            kwargs={"sleep": self.sleep},
            name="listen",
            daemon=True,
        )
        thread.start()
        return thread

    def do_chat(self) -> State:
        self.listener = self.start_listener()
        result = send_loop(self.session, self.console)

        self.close_session()
        self.listener.join()
        self.listener = None

        if result is SendResult.END_OF_INPUT:
            return State.DISCONNECTED

        self.backoff(RETRY_DELAY)
        return State.CONNECTING


# ============ Main ============

def main():
    load_dotenv()
    console = Console()

    try:
        config = load_config(console)
        if config is None:
            return
        show_security_banner(config, console)
        ChatClient(config, console).run()
    except KeyboardInterrupt:
        console.write_line("\n[*] Interrupted")


if __name__ == "__main__":
    main()
