"""Scripted local HTTP server for transport tests."""

import threading
import time
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, HTTPServer


@dataclass(frozen=True)
class Reply:
    """One scripted response.

    Attributes:
        status: HTTP status code.
        body: Response body.
        delay: Seconds to sleep before responding.
        headers: Extra response headers.
        pause_after: Body bytes to send before stalling; -1 never stalls.
        pause: Seconds to stall mid-body.
    """

    status: int = 200
    body: bytes = b"{}"
    delay: float = 0.0
    headers: dict[str, str] = field(default_factory=dict)
    pause_after: int = -1
    pause: float = 0.0


@dataclass(frozen=True)
class RecordedRequest:
    """A request as seen by the server."""

    method: str
    path: str
    headers: dict[str, str]
    body: bytes


class ScriptedServer(HTTPServer):
    """HTTP server that answers requests from a script of replies.

    Replies are consumed in order; the last one repeats once the script is
    exhausted. Every request is recorded.
    """

    def __init__(self, replies: list[Reply]) -> None:
        super().__init__(("127.0.0.1", 0), ScriptedHandler)
        self.replies = list(replies) or [Reply()]
        self.requests: list[RecordedRequest] = []
        self._lock = threading.Lock()

    def next_reply(self, request: RecordedRequest) -> Reply:
        """Record a request and return the reply for it."""
        with self._lock:
            self.requests.append(request)
            index = min(len(self.requests), len(self.replies)) - 1
            return self.replies[index]

    @property
    def request_count(self) -> int:
        """Number of requests received."""
        with self._lock:
            return len(self.requests)

    def handle_error(self, request: object, client_address: object) -> None:
        """Ignore clients that disconnect mid-response."""

    def url(self, path: str = "/") -> str:
        """Get the URL for a path on this server.

        Args:
            path: The URL path.

        Returns:
            Complete URL for the server.
        """
        host, port = self.server_address[0], self.server_address[1]
        if isinstance(host, bytes):
            host = host.decode("utf-8")
        return f"http://{host}:{port}{path}"


class ScriptedHandler(BaseHTTPRequestHandler):
    """Handler that delegates every method to the server script."""

    server: ScriptedServer

    def log_message(self, format: str, *args: object) -> None:  # noqa: A002
        """Suppress log messages during tests."""

    def _respond(self) -> None:
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""
        reply = self.server.next_reply(
            RecordedRequest(
                method=self.command,
                path=self.path,
                headers={k.lower(): v for k, v in self.headers.items()},
                body=body,
            )
        )
        if reply.delay:
            time.sleep(reply.delay)

        self.send_response(reply.status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(reply.body)))
        for name, value in reply.headers.items():
            self.send_header(name, value)
        self.end_headers()
        if reply.pause_after < 0:
            self.wfile.write(reply.body)
            return
        self.wfile.write(reply.body[: reply.pause_after])
        self.wfile.flush()
        time.sleep(reply.pause)
        self.wfile.write(reply.body[reply.pause_after :])

    def do_GET(self) -> None:  # noqa: N802
        """Handle GET requests."""
        self._respond()

    def do_POST(self) -> None:  # noqa: N802
        """Handle POST requests."""
        self._respond()

    def do_PUT(self) -> None:  # noqa: N802
        """Handle PUT requests."""
        self._respond()

    def do_DELETE(self) -> None:  # noqa: N802
        """Handle DELETE requests."""
        self._respond()
