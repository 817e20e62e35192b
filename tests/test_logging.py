"""Tests for correlation IDs in logging."""

import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.middleware import RequestIDMiddleware
from narration_gateway.core.logging import (
    NOISY_LOGGERS,
    RequestIDFilter,
    request_context,
    request_id_var,
    setup_logging,
)


def test_request_context_binds_and_resets():
    assert request_id_var.get() == "-"
    with request_context("abc123") as rid:
        assert rid == "abc123"
        assert request_id_var.get() == "abc123"
    assert request_id_var.get() == "-"


def test_request_context_generates_id():
    with request_context() as rid:
        assert len(rid) == 12
        assert request_id_var.get() == rid


def test_filter_stamps_records():
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "msg", None, None)
    with request_context("rid-1"):
        assert RequestIDFilter().filter(record) is True
    assert record.request_id == "rid-1"


def test_middleware_propagates_incoming_request_id():
    test_app = FastAPI()
    test_app.add_middleware(RequestIDMiddleware)

    @test_app.get("/echo")
    async def echo():
        return {"rid": request_id_var.get()}

    client = TestClient(test_app)
    response = client.get("/echo", headers={"X-Request-ID": "client-supplied"})

    assert response.headers["X-Request-ID"] == "client-supplied"
    assert response.json() == {"rid": "client-supplied"}


def test_setup_logging_installs_filtered_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging("debug")

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert any(isinstance(f, RequestIDFilter) for f in root.handlers[0].filters)
        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
