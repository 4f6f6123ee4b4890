import json
import logging

import pytest

from hobhob.observability import bind_log_context, current_log_context, reset_log_context


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    versioned = await client.get("/v1/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "hobhob-api", "version": "0.1.0"}
    assert versioned.json() == response.json()


@pytest.mark.asyncio
async def test_request_id_generated_when_header_missing(client):
    response = await client.get("/health")

    assert response.status_code == 200
    request_id = response.headers.get("X-Request-Id")
    assert request_id is not None
    assert request_id.strip() != ""


@pytest.mark.asyncio
async def test_request_id_echoed_when_header_provided(client):
    response = await client.get("/health", headers={"X-Request-Id": "abc"})

    assert response.headers.get("X-Request-Id") == "abc"


@pytest.mark.asyncio
async def test_request_id_too_long_is_rejected(client):
    response = await client.get("/health", headers={"X-Request-Id": "x" * 129})

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_FAILED"
    assert error["details"]["fieldErrors"][0]["field"] == "header.X-Request-Id"
    assert response.headers.get("X-Request-Id") not in (None, "x" * 129)


@pytest.mark.asyncio
async def test_request_id_present_on_unauthorized_error(client):
    response = await client.get("/v1/stats/heatmap")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"
    assert response.headers.get("X-Request-Id")


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client):
    response = await client.get("/v1/nope")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_request_done_log_carries_user_id(client, caplog):
    caplog.set_level(logging.INFO, logger="hobhob-api")

    await client.get("/v1/stats/heatmap", headers={"X-User-Id": "user-42", "X-Request-Id": "req-1"})

    lines = [record.getMessage() for record in caplog.records if record.getMessage().startswith("REQUEST_DONE")]
    assert lines
    context = json.loads(lines[-1].split("context=", 1)[1])
    assert context["request_id"] == "req-1"
    assert context["user_id"] == "user-42"
    assert context["status_code"] == 200


def test_log_context_layers_job_over_request():
    request_token = bind_log_context(request_id="req-9", path="/api/cron/daily-push")
    job_token = bind_log_context(job_run_id="job-9", path="")
    try:
        assert current_log_context() == {
            "request_id": "req-9",
            "path": "/api/cron/daily-push",
            "job_run_id": "job-9",
        }
    finally:
        reset_log_context(job_token)

    assert current_log_context() == {"request_id": "req-9", "path": "/api/cron/daily-push"}
    reset_log_context(request_token)
    assert current_log_context() == {}
