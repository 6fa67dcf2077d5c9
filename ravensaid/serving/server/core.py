# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Local HTTP scoring server.

Built on the standard library's http.server. The server is single-threaded:
requests are handled one after another, which is what lets every request
share the one network handle without locking.

Binds to localhost by default. Anything wider gets a warning.

Endpoints:
  POST /score      {"message": "..."} -> score, percent, status
  GET  /status     health check, model info, request counters
  POST /shutdown   stop the server
"""

import json
import logging
import threading
import time
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any

from ravensaid.logging.logger import get_logger
from ravensaid.scoring.handle import RavensaidState, ravensaid
from ravensaid.serving.api.schema import ScoreRequest, ScoreResponse, ServerStatus
from ravensaid.serving.metrics.core import ServingMetrics

logger: logging.Logger = get_logger(__name__)

_LOCAL_HOSTS = ("127.0.0.1", "localhost", "::1")


class RavensaidRequestHandler(BaseHTTPRequestHandler):
    """Routes requests to the scorer held by the server."""

    server: "RavensaidServer"

    def log_message(self, format: str, *args: Any) -> None:
        """Silence the default stderr access log; we log structurally."""

    def do_GET(self) -> None:
        if self.path == "/status":
            self._handle_status()
        else:
            self._send_error(404, "Not found")

    def do_POST(self) -> None:
        routes = {
            "/score": self._handle_score,
            "/shutdown": self._handle_shutdown,
        }
        handler = routes.get(self.path)
        if handler is None:
            self._send_error(404, f"Unknown endpoint: {self.path}")
            return
        handler()

    def _read_body(self) -> dict[str, Any] | None:
        """
        Parse the JSON body. Returns None after sending an error response
        when the body is empty, too large, malformed, or not an object.
        """
        try:
            content_length = int(self.headers.get("Content-Length", "0"))
        except ValueError:
            self._send_error(400, "Invalid Content-Length")
            return None
        max_size = self.server.max_request_size_bytes

        if content_length <= 0:
            self._send_error(400, "Request body is empty")
            return None

        if content_length > max_size:
            self._send_error(
                413,
                f"Payload too large: {content_length} bytes exceeds limit of {max_size}",
            )
            return None

        try:
            body = json.loads(self.rfile.read(content_length).decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as err:
            self._send_error(400, f"Invalid JSON: {err}")
            return None

        if not isinstance(body, dict):
            self._send_error(400, "Request body must be a JSON object")
            return None
        return body

    def _handle_score(self) -> None:
        body = self._read_body()
        if body is None:
            return

        if "message" not in body:
            self._send_error(400, "Missing required field: message")
            return

        request = ScoreRequest(message=body["message"])
        start = time.monotonic()
        score = ravensaid(self.server.state, request.message)
        response = ScoreResponse.from_score(score, (time.monotonic() - start) * 1000.0)
        self.server.metrics.record(response.status, response.elapsed_ms)
        self._send_json(200, response.to_dict())

    def _handle_status(self) -> None:
        status = self.server.status
        self._send_json(
            200,
            {
                "model_loaded": status.model_loaded,
                "model_path": status.model_path,
                "device": status.device,
                "input_bytes": status.input_bytes,
                "max_message_bytes": status.max_message_bytes,
                "metrics": self.server.metrics.summary(),
            },
        )

    def _handle_shutdown(self) -> None:
        self._send_json(200, {"message": "Server shutting down"})
        logger.info("Shutdown requested via API")
        threading.Thread(target=self.server.shutdown, daemon=True).start()

    def _send_json(self, status_code: int, data: dict[str, Any]) -> None:
        payload = json.dumps(data, default=str).encode("utf-8")
        self.send_response(status_code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def _send_error(self, status_code: int, message: str) -> None:
        self._send_json(status_code, {"error": message})


class RavensaidServer(HTTPServer):
    """HTTPServer that carries the network handle, status, and metrics for its handler."""

    def __init__(
        self,
        address: tuple[str, int],
        state: RavensaidState,
        status: ServerStatus,
        max_request_size_bytes: int,
    ) -> None:
        super().__init__(address, RavensaidRequestHandler)
        self.state = state
        self.status = status
        self.max_request_size_bytes = max_request_size_bytes
        self.metrics = ServingMetrics()


def run_server(
    state: RavensaidState,
    host: str,
    port: int,
    max_request_size_bytes: int,
) -> ServingMetrics:
    """
    Serve until /shutdown or Ctrl+C. Blocks the calling thread.

    The handle stays owned by the caller; the server never releases it.
    """
    if host not in _LOCAL_HOSTS:
        logger.warning(
            "Server binding to non-localhost address",
            extra={"host": host},
        )

    status = ServerStatus(
        model_loaded=True,
        model_path=str(state.path),
        device=str(state.device),
        input_bytes=state.spec.input_bytes,
        max_message_bytes=state.max_message_bytes,
    )
    server = RavensaidServer(
        (host, port),
        state=state,
        status=status,
        max_request_size_bytes=max_request_size_bytes,
    )

    bound_host, bound_port = server.server_address[:2]
    logger.info("Ravensaid scoring server started", extra={"host": bound_host, "port": bound_port})

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down server (keyboard interrupt)")
    finally:
        server.server_close()
        logger.info("Server stopped", extra=server.metrics.summary())
    return server.metrics
