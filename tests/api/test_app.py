"""Tests for app assembly."""

import inspect
from unittest.mock import patch

import pytest
from fastapi.routing import APIRoute
from starlette.testclient import TestClient

from api.app import create_app, lifespan
from clients.postgres_client import PostgresClient


class TestCreateApp:

    def test_health_is_public(self, unauthed_client):
        response = unauthed_client.get("/health")

        assert response.status_code == 200
        assert response.json()["data"] == {"status": "ok"}

    def test_responses_carry_request_id(self, client):
        assert "X-Request-ID" in client.get("/health").headers

    def test_unhandled_error_returns_500(self, client, services):
        with patch.object(services["ledger"], "get_snapshot", side_effect=RuntimeError("db down")):
            response = client.get("/api/data", params={"type": "ledger", "id": "00000000-0000-0000-0000-0000000000aa"})

        assert response.status_code == 500
        assert response.json()["error"] == {
            "code": "INTERNAL_ERROR",
            "message": "An internal error occurred",
            "fields": None,
            "retryable": False,
        }

    def test_services_are_required(self):
        with pytest.raises(KeyError, match="reservation"):
            create_app({})

    def test_api_endpoints_run_in_threadpool(self, app):
        """Endpoints that call blocking services are plain functions."""
        endpoints = {
            route.path: route.endpoint
            for route in app.routes
            if isinstance(route, APIRoute) and route.path.startswith("/api/")
        }

        assert set(endpoints) == {"/api/actions", "/api/data", "/api/documents/{reservation_id}"}
        assert not any(inspect.iscoroutinefunction(e) for e in endpoints.values())


class TestLifespan:

    def test_shutdown_closes_connection_pools(self, services):
        app = create_app(services, lifespan=lifespan)

        with patch.object(PostgresClient, "close_all_pools") as close_all:
            with TestClient(app) as c:
                assert c.get("/health").status_code == 200
                close_all.assert_not_called()

        close_all.assert_called_once_with()
