"""
ReplayGuard Server Thread

Runs a uvicorn server for an ASGI app on a background thread, so tests and
the harness can start and stop HTTP servers without leaving the process.
"""

import logging
import socket
import threading
import time
from typing import Any, Optional

import uvicorn

from .errors import ServerStartError


logger = logging.getLogger("replayguard.server")


class ServerThread:
    """
    Background uvicorn server bound to a pre-created socket.

    Binding the socket ourselves lets callers ask for port 0 and read the
    port the OS picked before any request is made.

    Example:
        server = ServerThread(app, host='127.0.0.1', port=0)
        server.start()
        print(server.base_url)
        server.stop()
    """

    def __init__(
        self,
        app: Any,
        host: str = "127.0.0.1",
        port: int = 0,
        log_level: str = "warning",
        startup_timeout: float = 10.0
    ):
        self.app = app
        self.host = host
        self.requested_port = port
        self.log_level = log_level
        self.startup_timeout = startup_timeout

        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None
        self._socket: Optional[socket.socket] = None

    @property
    def port(self) -> int:
        if self._socket is None:
            raise RuntimeError("Server is not running")
        return self._socket.getsockname()[1]

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """
        Start serving and block until the server accepts connections.

        Raises:
            ServerStartError: If the port cannot be bound or startup times out
        """
        if self.running:
            return

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.host, self.requested_port))
        except OSError as e:
            sock.close()
            raise ServerStartError(f"Cannot bind {self.host}:{self.requested_port}: {e}") from e
        self._socket = sock

        config = uvicorn.Config(
            self.app,
            log_level=self.log_level,
            access_log=False,
            lifespan="off",
            server_header=False,
            date_header=False
        )
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(
            target=self._server.run,
            kwargs={'sockets': [sock]},
            name=f"uvicorn-{self.port}",
            daemon=True
        )
        self._thread.start()

        deadline = time.monotonic() + self.startup_timeout
        while not self._server.started:
            if not self._thread.is_alive() or time.monotonic() > deadline:
                self.stop()
                raise ServerStartError(f"Server on {self.host}:{self.requested_port} did not start")
            time.sleep(0.01)

        logger.debug(f"Server listening on {self.base_url}")

    def stop(self):
        """Stop the server and release its socket. Safe to call twice."""
        if self._server is not None:
            self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout=self.startup_timeout)
        if self._socket is not None:
            self._socket.close()

        self._server = None
        self._thread = None
        self._socket = None
