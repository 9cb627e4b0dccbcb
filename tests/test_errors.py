"""Tests for the error taxonomy and its HTTP translation."""

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from shortener.errors import (
    AppError,
    CodeConflictError,
    InvalidInputError,
    NotFoundError,
    StorageUnavailableError,
    register_error_handlers,
)


class TestAppErrorSubclasses:
    def test_invalid_input(self):
        e = InvalidInputError("bad input")
        assert e.status_code == 400
        assert e.error_code == "invalid_input"
        assert e.message == "bad input"

    def test_not_found(self):
        e = NotFoundError("missing")
        assert e.status_code == 404
        assert e.error_code == "not_found"

    def test_code_conflict(self):
        e = CodeConflictError("taken")
        assert e.status_code == 409
        assert e.error_code == "code_conflict"

    def test_storage_unavailable(self):
        e = StorageUnavailableError("down")
        assert e.status_code == 500
        assert e.error_code == "storage_unavailable"

    def test_to_dict_omits_empty_details(self):
        assert NotFoundError("missing").to_dict() == {"error": "missing", "code": "not_found"}

    def test_to_dict_includes_details(self):
        assert AppError("boom", details="trace").to_dict() == {
            "error": "boom",
            "code": "internal_error",
            "details": "trace",
        }


def _build_app(debug: bool) -> FastAPI:
    app = FastAPI()
    register_error_handlers(app, debug=debug)

    @app.get("/conflict")
    def conflict():
        raise CodeConflictError("Custom code 'abcdef' already exists")

    @app.get("/db-down")
    def db_down():
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    @app.get("/storage")
    def storage():
        raise StorageUnavailableError("Storage is temporarily unavailable", details="disk I/O error")

    @app.get("/crash")
    def crash():
        raise RuntimeError("secret internals")

    return app


class TestHandlers:
    def test_app_error_rendered(self):
        with TestClient(_build_app(debug=False)) as client:
            resp = client.get("/conflict")

        assert resp.status_code == 409
        assert resp.json() == {"error": "Custom code 'abcdef' already exists", "code": "code_conflict"}

    def test_storage_failure_hides_details_in_production(self):
        with TestClient(_build_app(debug=False)) as client:
            resp = client.get("/db-down")

        assert resp.status_code == 500
        assert resp.json() == {"error": "Storage is temporarily unavailable", "code": "storage_unavailable"}

    def test_storage_failure_details_in_dev(self):
        with TestClient(_build_app(debug=True)) as client:
            resp = client.get("/db-down")

        assert resp.status_code == 500
        assert resp.json()["details"] == "connection refused"

    def test_unexpected_error_is_generic(self):
        with TestClient(_build_app(debug=False), raise_server_exceptions=False) as client:
            resp = client.get("/crash")

        assert resp.status_code == 500
        assert resp.json() == {"error": "Internal server error", "code": "internal_error"}
        assert "secret" not in resp.text

    def test_unexpected_error_details_in_dev(self):
        with TestClient(_build_app(debug=True), raise_server_exceptions=False) as client:
            resp = client.get("/crash")

        assert resp.json()["details"] == "secret internals"

    def test_service_storage_error_hides_details_in_production(self):
        with TestClient(_build_app(debug=False)) as client:
            resp = client.get("/storage")

        assert resp.status_code == 500
        assert resp.json() == {"error": "Storage is temporarily unavailable", "code": "storage_unavailable"}

    def test_service_storage_error_details_in_dev(self):
        with TestClient(_build_app(debug=True)) as client:
            resp = client.get("/storage")

        assert resp.json()["details"] == "disk I/O error"

    def test_client_error_details_always_shown(self):
        app = FastAPI()
        register_error_handlers(app, debug=False)

        @app.get("/bad")
        def bad():
            raise InvalidInputError("bad input", details="customCode")

        with TestClient(app) as client:
            resp = client.get("/bad")

        assert resp.status_code == 400
        assert resp.json()["details"] == "customCode"
