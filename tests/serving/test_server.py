# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the local HTTP scoring server.

A real server runs on an ephemeral localhost port in a background thread,
backed by the constant 50% network.
"""

import http.client
import json
import threading
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any

import pytest

from ravensaid.scoring import INVALID_MESSAGE, ravensaid_free, ravensaid_init
from ravensaid.serving.api.schema import ScoreResponse, ServerStatus
from ravensaid.serving.metrics.core import ServingMetrics
from ravensaid.serving.server.core import RavensaidServer


@pytest.fixture()
def server(constant_network: Path) -> RavensaidServer:
    state = ravensaid_init(constant_network, device="cpu")
    assert state is not None
    status = ServerStatus(
        model_loaded=True,
        model_path=str(state.path),
        device=str(state.device),
        input_bytes=state.spec.input_bytes,
        max_message_bytes=state.max_message_bytes,
    )
    srv = RavensaidServer(("127.0.0.1", 0), state=state, status=status, max_request_size_bytes=1024)
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()
    yield srv  # type: ignore[misc]
    srv.shutdown()
    thread.join(timeout=5)
    srv.server_close()
    ravensaid_free(state)


def _url(srv: RavensaidServer, path: str) -> str:
    host, port = srv.server_address[:2]
    return f"http://{host}:{port}{path}"


def _request(
    srv: RavensaidServer,
    path: str,
    body: bytes | None = None,
    method: str = "POST",
) -> tuple[int, dict[str, Any]]:
    req = urllib.request.Request(_url(srv, path), data=body, method=method)
    req.add_header("Content-Type", "application/json")
    try:
        with urllib.request.urlopen(req, timeout=10) as resp:
            return resp.status, json.loads(resp.read())
    except urllib.error.HTTPError as err:
        return err.code, json.loads(err.read())


def _score(srv: RavensaidServer, payload: Any) -> tuple[int, dict[str, Any]]:
    return _request(srv, "/score", json.dumps(payload).encode("utf-8"))


class TestScoreEndpoint:
    def test_scores_message(self, server: RavensaidServer) -> None:
        code, body = _score(server, {"message": "hello"})
        assert code == 200
        assert body["score"] == 5000
        assert body["percent"] == 50.0
        assert body["status"] == "ok"

    def test_invalid_message_is_reported_not_rejected(self, server: RavensaidServer) -> None:
        code, body = _score(server, {"message": ""})
        assert code == 200
        assert body["score"] == INVALID_MESSAGE
        assert body["percent"] is None
        assert body["status"] == "invalid_message"

    def test_non_string_message(self, server: RavensaidServer) -> None:
        _, body = _score(server, {"message": 42})
        assert body["status"] == "invalid_message"

    def test_missing_message_field(self, server: RavensaidServer) -> None:
        code, body = _score(server, {"text": "hello"})
        assert code == 400
        assert "message" in body["error"]

    def test_body_must_be_object(self, server: RavensaidServer) -> None:
        code, _ = _score(server, ["hello"])
        assert code == 400

    def test_invalid_json(self, server: RavensaidServer) -> None:
        code, body = _request(server, "/score", b"{not json")
        assert code == 400
        assert "Invalid JSON" in body["error"]

    def test_empty_body(self, server: RavensaidServer) -> None:
        code, _ = _request(server, "/score", b"")
        assert code == 400

    def test_oversized_body(self, server: RavensaidServer) -> None:
        """Rejected on Content-Length alone, before any body is read."""
        host, port = server.server_address[:2]
        conn = http.client.HTTPConnection(host, port, timeout=10)
        try:
            conn.putrequest("POST", "/score")
            conn.putheader("Content-Type", "application/json")
            conn.putheader("Content-Length", "4096")
            conn.endheaders()
            resp = conn.getresponse()
            body = json.loads(resp.read())
        finally:
            conn.close()
        assert resp.status == 413
        assert "too large" in body["error"]


class TestStatusEndpoint:
    def test_reports_model_and_counters(self, server: RavensaidServer) -> None:
        _score(server, {"message": "one"})
        _score(server, {"message": ""})

        code, body = _request(server, "/status", method="GET")
        assert code == 200
        assert body["model_loaded"] is True
        assert body["model_path"].endswith("constant.nn")
        assert body["device"] == "cpu"
        assert body["metrics"]["total_requests"] == 2
        assert body["metrics"]["by_status"] == {"ok": 1, "invalid_message": 1}
        assert body["metrics"]["uptime_seconds"] >= 0


class TestRouting:
    def test_unknown_get(self, server: RavensaidServer) -> None:
        code, _ = _request(server, "/nope", method="GET")
        assert code == 404

    def test_unknown_post(self, server: RavensaidServer) -> None:
        code, _ = _request(server, "/generate", b"{}")
        assert code == 404


class TestShutdown:
    def test_shutdown_stops_serving(self, constant_network: Path) -> None:
        state = ravensaid_init(constant_network, device="cpu")
        srv = RavensaidServer(
            ("127.0.0.1", 0), state=state, status=ServerStatus(), max_request_size_bytes=1024
        )
        thread = threading.Thread(target=srv.serve_forever, daemon=True)
        thread.start()

        code, body = _request(srv, "/shutdown", b"{}")
        thread.join(timeout=10)
        srv.server_close()
        ravensaid_free(state)

        assert code == 200
        assert "shutting down" in body["message"]
        assert not thread.is_alive()


class TestSchemas:
    def test_score_response_from_valid_score(self) -> None:
        response = ScoreResponse.from_score(4625, elapsed_ms=1.23456)
        assert response.to_dict() == {
            "score": 4625,
            "percent": 46.25,
            "status": "ok",
            "elapsed_ms": 1.235,
        }

    def test_score_response_from_sentinel(self) -> None:
        response = ScoreResponse.from_score(-2, elapsed_ms=0.0)
        assert response.percent is None
        assert response.status == "above_range"

    def test_status_defaults(self) -> None:
        status = ServerStatus()
        assert status.model_loaded is False
        assert status.device == "cpu"


class TestServingMetrics:
    def test_empty(self) -> None:
        metrics = ServingMetrics()
        assert metrics.total_requests == 0
        assert metrics.average_ms() == 0.0

    def test_counts_and_average(self) -> None:
        metrics = ServingMetrics()
        metrics.record("ok", 2.0)
        metrics.record("ok", 4.0)
        metrics.record("invalid_message", 0.0)
        summary = metrics.summary()
        assert summary["total_requests"] == 3
        assert summary["by_status"] == {"ok": 2, "invalid_message": 1}
        assert summary["avg_ms"] == 2.0
