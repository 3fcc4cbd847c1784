"""Unit tests for API errors and the error handlers."""

import pytest
from flask import Flask
from unittest.mock import patch

from api import create_app
from api.middleware.error_handler import register_error_handlers
from api.middleware.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
    archive_error_status,
    format_error_response,
)
from core.jobs.archive_manager import ArchiveManager
from core.jobs.errors import ArchiveError, InvalidStateTransition, UnexpectedArchiveError


@pytest.fixture
def app():
    """Bare app with the error handlers and routes that raise on demand."""
    app = Flask(__name__)
    register_error_handlers(app)

    errors = {
        "zip": ArchiveError("Unable to create ZIP archive", code="cannot_create_zip"),
        "transition": InvalidStateTransition("fetching", "start"),
        "unexpected": UnexpectedArchiveError(RuntimeError("boom")),
        "setting": NotFoundError("Setting", "nope"),
        "limit": ValidationError("limit must be between 1 and 500", field="limit"),
        "crash": RuntimeError("database is locked"),
    }

    @app.route("/raise/<name>")
    def raise_error(name):
        raise errors[name]

    return app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


class TestErrorTypes:
    """Tests for the API error types."""

    def test_validation_error_names_field(self):
        error = ValidationError("offset must not be negative", field="offset")

        assert error.status_code == 400
        assert error.to_response() == {
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "offset must not be negative",
                "details": {"field": "offset"},
            }
        }

    def test_validation_error_without_field(self):
        assert "details" not in ValidationError("Request body must be a JSON object").to_response()["error"]

    def test_not_found_message(self):
        assert NotFoundError("Archive", "stillsite-1.zip").message == "Archive 'stillsite-1.zip' not found"
        assert NotFoundError("Archive").message == "Archive not found"

    def test_conflict_from_transition(self):
        error = ConflictError.from_transition(InvalidStateTransition("wrapup", "start"))

        assert error.status_code == 409
        assert error.code == "CONFLICT"
        assert error.message == "Cannot apply 'start' while the archive is 'wrapup'"
        assert error.details == {"state": "wrapup", "event": "start"}

    @pytest.mark.parametrize("error,status_code", [
        (InvalidStateTransition("idle", "cancel"), 409),
        (ArchiveError("No local directory configured", code="missing_local_dir"), 500),
        (UnexpectedArchiveError(), 500),
    ])
    def test_archive_error_status(self, error, status_code):
        assert archive_error_status(error) == status_code

    def test_codes_upper_cased(self):
        assert format_error_response("cannot_copy_files", "Disk full") == {
            "error": {"code": "CANNOT_COPY_FILES", "message": "Disk full"},
        }


class TestErrorHandlers:
    """Tests for the registered error handlers."""

    def test_archive_step_failure(self, client):
        response = client.get("/raise/zip")

        assert response.status_code == 500
        assert response.get_json() == {
            "error": {"code": "CANNOT_CREATE_ZIP", "message": "Unable to create ZIP archive"},
        }

    def test_refused_transition(self, client):
        response = client.get("/raise/transition")

        assert response.status_code == 409
        error = response.get_json()["error"]
        assert error["code"] == "INVALID_STATE_TRANSITION"
        assert error["details"] == {"state": "fetching", "event": "start"}

    def test_unexpected_archive_error_keeps_cause(self, client):
        error = client.get("/raise/unexpected").get_json()["error"]

        assert error["code"] == "UNEXPECTED_ERROR"
        assert "boom" in error["details"]["cause"]

    def test_api_errors(self, client):
        response = client.get("/raise/setting")
        assert response.status_code == 404
        assert response.get_json()["error"]["details"] == {"resource": "Setting", "identifier": "nope"}

        response = client.get("/raise/limit")
        assert response.status_code == 400
        assert response.get_json()["error"]["details"] == {"field": "limit"}

    def test_unknown_route(self, client):
        response = client.get("/api/nowhere")

        assert response.status_code == 404
        assert response.get_json()["error"]["code"] == "NOT_FOUND"

    def test_crash_hides_details(self, client):
        response = client.get("/raise/crash")

        assert response.status_code == 500
        error = response.get_json()["error"]
        assert error["code"] == "INTERNAL_ERROR"
        assert "database is locked" not in error["message"]
        assert "details" not in error

    def test_crash_in_debug_shows_traceback(self, app, client):
        app.debug = True

        error = client.get("/raise/crash").get_json()["error"]

        assert error["message"] == "database is locked"
        assert "RuntimeError" in error["details"]["traceback"]


class TestArchiveActionConflicts:
    """A refused archive action becomes a 409 from the archive routes."""

    def test_refused_continue(self, db):
        client = create_app().test_client()

        with patch.object(
            ArchiveManager, "continue_", return_value=InvalidStateTransition("wrapup", "continue")
        ):
            response = client.post("/api/archive/continue")

        assert response.status_code == 409
        assert response.get_json()["error"] == {
            "code": "CONFLICT",
            "message": "Cannot apply 'continue' while the archive is 'wrapup'",
            "details": {"state": "wrapup", "event": "continue"},
        }

    def test_step_failure_is_not_a_conflict(self, db):
        client = create_app().test_client()
        failure = ArchiveError("No local directory configured", code="missing_local_dir")

        with patch.object(ArchiveManager, "continue_", return_value=failure):
            response = client.post("/api/archive/continue")

        assert response.status_code == 200
        assert response.get_json()["error"] == {
            "code": "missing_local_dir",
            "message": "No local directory configured",
        }
