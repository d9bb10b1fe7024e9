from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Optional
from urllib.parse import urlsplit

from websockets.asyncio.server import ServerConnection, broadcast, serve
from websockets.datastructures import Headers
from websockets.exceptions import ConnectionClosed
from websockets.http11 import Request, Response

from contracts.ui_protocol import EVENT_ERROR, EVENT_HELLO

from .config import HEALTHZ_PATH, INDEX_PATH, ROOT_PATH, UIServerConfig
from .events import StickyEventStore, decode_client_message, make_event
from .static_files import load_static_asset

CommandHandler = Callable[[dict[str, Any]], None]

_HTML = "text/html; charset=utf-8"
_TEXT = "text/plain; charset=utf-8"


class UIServer:
    """Serves the shell UI page and streams cycle events over a websocket.

    The asyncio loop runs on its own daemon thread. `publish` may be called
    from any thread; sticky events are cached and replayed to clients that
    connect later, so a freshly opened page immediately shows the cycle state.
    """

    def __init__(
        self,
        config: UIServerConfig,
        logger: Optional[logging.Logger] = None,
    ):
        self._config = config
        self._logger = logger or logging.getLogger("ui_server")
        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stop_async: Optional[asyncio.Event] = None
        self._started = threading.Event()
        self._startup_error: Optional[Exception] = None
        self._clients: set[ServerConnection] = set()
        self._sticky_events = StickyEventStore()
        self._command_handler: Optional[CommandHandler] = None
        self._ui_root = config.ui_root
        self._fixed_routes: dict[str, tuple[bytes, str]] = {
            ROOT_PATH: (Path(config.index_file).read_bytes(), _HTML),
            HEALTHZ_PATH: (b"ok\n", _TEXT),
        }
        self._fixed_routes[INDEX_PATH] = self._fixed_routes[ROOT_PATH]

    @property
    def host(self) -> str:
        return self._config.host

    @property
    def port(self) -> int:
        return self._config.port

    @property
    def websocket_path(self) -> str:
        return self._config.websocket_path

    @property
    def client_count(self) -> int:
        return len(self._clients)

    @property
    def is_running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and self._startup_error is None
        )

    def set_command_handler(self, handler: Optional[CommandHandler]) -> None:
        """Register the callback that receives decoded client messages.

        The handler runs on the server thread and must not block.
        """
        self._command_handler = handler

    def start(self, timeout_seconds: float = 5.0) -> None:
        if self.is_running:
            self._logger.warning("UI server is already running")
            return

        self._startup_error = None
        self._started.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            daemon=True,
            name="ui-server",
        )
        self._thread.start()

        if not self._started.wait(timeout_seconds):
            raise RuntimeError(
                f"UI server did not start within {timeout_seconds:.1f}s"
            )
        if self._startup_error is not None:
            raise RuntimeError(f"UI server startup failed: {self._startup_error}")

    def stop(self, timeout_seconds: float = 5.0) -> None:
        thread = self._thread
        if thread is None:
            return

        loop, stop_async = self._loop, self._stop_async
        if loop is not None and stop_async is not None:
            with contextlib.suppress(RuntimeError):
                loop.call_soon_threadsafe(stop_async.set)

        thread.join(timeout=timeout_seconds)
        if thread.is_alive():
            self._logger.error(
                "UI server thread did not stop within %.1fs",
                timeout_seconds,
            )

        self._thread = None
        self._loop = None
        self._stop_async = None

    def publish(self, event_type: str, **payload: Any) -> None:
        message = make_event(event_type, **payload)
        self._sticky_events.remember(event_type, message)

        loop = self._loop
        if loop is None or not self.is_running:
            return
        try:
            loop.call_soon_threadsafe(self._broadcast, message)
        except RuntimeError:
            # Loop closed between the check and the call.
            return

    def forget_sticky(self, event_type: str) -> None:
        """Stop replaying the last `event_type` event to new clients."""
        self._sticky_events.forget(event_type)

    def _broadcast(self, message: str) -> None:
        if self._clients:
            broadcast(self._clients, message)

    def _run_loop(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        self._stop_async = asyncio.Event()

        try:
            loop.run_until_complete(self._serve())
        except Exception as error:  # pragma: no cover - requires a bound socket
            self._startup_error = error
            self._logger.error("UI server failed: %s", error, exc_info=True)
            self._started.set()
        finally:
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            with contextlib.suppress(Exception):
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            loop.close()

    async def _serve(self) -> None:
        async with serve(
            self._handle_connection,
            host=self._config.host,
            port=self._config.port,
            process_request=self._process_request,
            logger=self._logger,
        ):
            self._logger.info(
                "UI server running at http://%s:%d (websocket: %s)",
                self._config.host,
                self._config.port,
                self._config.websocket_path,
            )
            self._started.set()
            await self._stop_async.wait()
            await self._close_clients()

    async def _handle_connection(self, websocket: ServerConnection) -> None:
        request_path = urlsplit(websocket.request.path).path if websocket.request else ""
        if request_path != self._config.websocket_path:
            await websocket.close(code=1008, reason="Invalid websocket path")
            return

        self._clients.add(websocket)
        self._logger.info("Shell connected: %s", websocket.remote_address)
        try:
            await self._send_initial_state(websocket)
            async for raw in websocket:
                await self._receive(websocket, raw)
        except ConnectionClosed:
            pass
        finally:
            self._clients.discard(websocket)
            self._logger.info("Shell disconnected: %s", websocket.remote_address)

    async def _send_initial_state(self, websocket: ServerConnection) -> None:
        await websocket.send(make_event(EVENT_HELLO, message="Shell UI connected"))
        for message in self._sticky_events.snapshot():
            await websocket.send(message)

    async def _receive(self, websocket: ServerConnection, raw: str | bytes) -> None:
        self._logger.debug("Received from UI: %s", raw)
        payload = decode_client_message(raw)
        if payload is None:
            await websocket.send(
                make_event(EVENT_ERROR, message="Messages must be JSON objects")
            )
            return

        handler = self._command_handler
        if handler is None:
            self._logger.debug("No command handler registered; dropping message")
            return

        try:
            handler(payload)
        except Exception as error:
            self._logger.error("Command handler failed: %s", error, exc_info=True)
            await websocket.send(
                make_event(EVENT_ERROR, message=f"Command handler failed: {error}")
            )

    async def _process_request(
        self,
        connection: ServerConnection,
        request: Request,
    ) -> Response | None:
        del connection
        path = urlsplit(request.path).path
        if path == self._config.websocket_path:
            return None

        route = self._fixed_routes.get(path) or load_static_asset(self._ui_root, path)
        if route is None:
            return self._response(404, "Not Found", b"not found\n", _TEXT)
        body, content_type = route
        return self._response(200, "OK", body, content_type)

    @staticmethod
    def _response(
        status_code: int,
        reason_phrase: str,
        body: bytes,
        content_type: str,
    ) -> Response:
        headers = Headers()
        headers["Content-Type"] = content_type
        headers["Content-Length"] = str(len(body))
        headers["Cache-Control"] = "no-store"
        return Response(status_code, reason_phrase, headers, body)

    async def _close_clients(self) -> None:
        clients = tuple(self._clients)
        if not clients:
            return
        await asyncio.gather(
            *(client.close(code=1001, reason="Server shutting down") for client in clients),
            return_exceptions=True,
        )
        self._clients.clear()
