from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field

from military_assets.auth import credentials_error
from military_assets.domain_errors import DomainError, conflict, not_found
from military_assets.problem_details import build_problem_details_response, register_exception_handlers


def test_problem_details_payload_contains_stable_code_and_rfc7807_fields() -> None:
    response = build_problem_details_response(
        DomainError(
            code="SAMPLE_ERROR",
            http_status=409,
            message="sample failed",
            details={"sample": True},
        )
    )

    assert response.status_code == 409
    assert response.media_type == "application/problem+json"

    body = response.body.decode("utf-8")
    assert '"type":"https://api.military-assets.local/problems/sample_error"' in body
    assert '"title":"Conflict"' in body
    assert '"status":409' in body
    assert '"detail":"sample failed"' in body
    assert '"code":"SAMPLE_ERROR"' in body
    assert '"success":false' in body
    assert '"message":"sample failed"' in body
    assert '"details":{"sample":true}' in body


def test_problem_details_omits_details_when_none() -> None:
    response = build_problem_details_response(not_found("ASSET_NOT_FOUND", "Asset not found"))

    body = response.body.decode("utf-8")
    assert response.status_code == 404
    assert '"title":"Not Found"' in body
    assert '"details"' not in body


class QuantityPayload(BaseModel):
    quantity: int = Field(gt=0)


def _error_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/boom")
    def _boom():
        raise conflict("ROUTE_PROBLEM", "route failed", details={"source": "test"})

    @app.post("/quantities")
    def _quantities(payload: QuantityPayload):
        return {"quantity": payload.quantity}

    @app.get("/locked")
    def _locked():
        raise credentials_error("Token expired")

    @app.get("/crash")
    def _crash():
        raise RuntimeError("kaboom")

    return app


def test_registered_handler_maps_domain_error_to_problem_details() -> None:
    client = TestClient(_error_app())
    response = client.get("/boom")

    assert response.status_code == 409
    assert response.headers["content-type"].startswith("application/problem+json")
    payload = response.json()
    assert payload["code"] == "ROUTE_PROBLEM"
    assert payload["detail"] == "route failed"
    assert payload["details"] == {"source": "test"}


def test_request_validation_error_becomes_400_with_field_errors() -> None:
    client = TestClient(_error_app())
    response = client.post("/quantities", json={"quantity": 0})

    assert response.status_code == 400
    payload = response.json()
    assert payload["code"] == "VALIDATION_ERROR"
    assert "quantity" in payload["details"]["errors"]


def test_unexpected_error_becomes_500_problem() -> None:
    client = TestClient(_error_app(), raise_server_exceptions=False)
    response = client.get("/crash")

    assert response.status_code == 500
    assert response.json()["code"] == "INTERNAL_ERROR"


def test_http_exception_carries_code_and_message() -> None:
    client = TestClient(_error_app())
    response = client.get("/locked")

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
    payload = response.json()
    assert payload["code"] == "UNAUTHORIZED"
    assert payload["message"] == "Token expired"
    assert payload["detail"] == "Token expired"
    assert payload["success"] is False

    missing = client.get("/nowhere")
    assert missing.status_code == 404
    assert missing.json()["code"] == "NOT_FOUND"
