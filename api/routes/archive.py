"""Archive API endpoints for starting, advancing and monitoring the archive job."""

import threading
from pathlib import Path

from flask import Blueprint, jsonify, request, send_from_directory

import config
from api.middleware.exceptions import ConflictError, NotFoundError, ValidationError
from core.jobs.archive_manager import ArchiveManager
from core.jobs.errors import InvalidStateTransition
from database.repositories.page_repository import PageRepository

archive_bp = Blueprint("archive", __name__)

# start/continue/cancel read and write the same persisted job state
_job_lock = threading.Lock()


def _run_action(action: str, status_code: int = 200, **kwargs):
    with _job_lock:
        manager = ArchiveManager()
        error = manager.start(**kwargs) if action == "start" else manager.perform(action)

        if isinstance(error, InvalidStateTransition):
            raise ConflictError.from_transition(error)

        response = {"status": manager.to_dict()}
        if error is not None:
            response["error"] = error.to_dict()
        return jsonify(response), status_code


@archive_bp.route("/start", methods=["POST"])
def start_archive():
    """Start a new archive job. Runs the setup step before returning."""
    data = request.get_json(silent=True) or {}
    creator_id = data.get("creator_id")
    if creator_id is not None and not isinstance(creator_id, str):
        raise ValidationError("creator_id must be a string", field="creator_id")

    return _run_action("start", status_code=202, creator_id=creator_id)


@archive_bp.route("/continue", methods=["POST"])
def continue_archive():
    """Run one step of the archive job."""
    return _run_action("continue")


@archive_bp.route("/cancel", methods=["POST"])
def cancel_archive():
    """Cancel the archive job."""
    return _run_action("cancel")


@archive_bp.route("/status", methods=["GET"])
def get_status():
    """Get the current job state, status messages and page counts."""
    return jsonify({"status": ArchiveManager().to_dict()})


@archive_bp.route("/pages", methods=["GET"])
def list_pages():
    """List known pages with pagination."""
    limit = request.args.get("limit", 50, type=int)
    offset = request.args.get("offset", 0, type=int)
    errors_only = request.args.get("errors_only", "false").lower() == "true"

    if limit < 1 or limit > 500:
        raise ValidationError("limit must be between 1 and 500", field="limit")
    if offset < 0:
        raise ValidationError("offset must not be negative", field="offset")

    page_repo = PageRepository()
    pages = page_repo.list_pages(limit=limit, offset=offset, errors_only=errors_only)

    return jsonify({
        "pages": [p.to_dict() for p in pages],
        "total": page_repo.count_total(),
        "limit": limit,
        "offset": offset,
    })


@archive_bp.route("/download/<name>", methods=["GET"])
def download_archive(name: str):
    """Download a ZIP archive created by the transferring step."""
    if Path(name).name != name or not name.endswith(".zip"):
        raise ValidationError("Invalid archive name", field="name")

    if not (config.EXPORTS_DIR / name).is_file():
        raise NotFoundError("Archive", name)

    return send_from_directory(config.EXPORTS_DIR, name, as_attachment=True)
