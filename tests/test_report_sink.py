"""Tests for the background report sink."""

import pytest
import requests

from exit_engine.graph import analyze
from exit_engine.tools.report_sink import ReportSink, dispatch_report
from fakes import FakeResponse, FakeSession


@pytest.fixture
def report(profile_payload, limiter, settings):
    return analyze(profile_payload, caller_id="sink-tests", limiter=limiter, settings=settings)


def test_mock_mode_without_webhook(report):
    assert ReportSink().send(report) == {"status": "success", "mode": "mock"}


def test_posts_report_json(report):
    session = FakeSession(response=FakeResponse({}))
    sink = ReportSink("https://hooks.example.com/reports", session=session)

    result = sink.send(report)

    assert result == {"status": "success", "mode": "live"}
    call = session.calls[0]
    assert call["url"] == "https://hooks.example.com/reports"
    assert call["json"]["metadata"]["correlationId"] == report.metadata.correlation_id
    assert call["headers"]["X-Request-ID"] == report.metadata.correlation_id
    assert call["timeout"] == 10


def test_delivery_failure_is_swallowed(report):
    session = FakeSession(error=requests.exceptions.ConnectionError("down"))
    sink = ReportSink("https://hooks.example.com/reports", session=session)

    result = sink.send(report)

    assert result["status"] == "error"


def test_dispatch_runs_in_background(report):
    session = FakeSession(error=requests.exceptions.Timeout("slow"))
    future = dispatch_report(report, ReportSink("https://hooks.example.com/reports", session=session))

    assert future.result(timeout=5)["status"] == "error"
    assert len(session.calls) == 1
