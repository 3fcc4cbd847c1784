"""Settings API endpoints."""

from flask import Blueprint, request, jsonify

import config
from api.middleware.exceptions import NotFoundError, ValidationError
from database.repositories.options_repository import OptionsRepository

settings_bp = Blueprint("settings", __name__)

# archive_* keys belong to the running job and are not user settings
EDITABLE_KEYS = frozenset(OptionsRepository.DEFAULTS)


def _validate(key: str, value):
    if key not in EDITABLE_KEYS:
        raise ValidationError(f"Unknown setting: {key}", field=key)
    if key == "delivery_method" and value not in config.DELIVERY_METHODS:
        raise ValidationError(
            f"delivery_method must be one of {', '.join(config.DELIVERY_METHODS)}",
            field=key,
        )
    if key == "destination_url_type" and value not in config.DESTINATION_URL_TYPES:
        raise ValidationError(
            f"destination_url_type must be one of {', '.join(config.DESTINATION_URL_TYPES)}",
            field=key,
        )
    if key in ("fetch_batch_size", "transfer_batch_size") and (
        isinstance(value, bool) or not isinstance(value, int) or value < 1
    ):
        raise ValidationError(f"{key} must be a positive integer", field=key)


def _settings(options: OptionsRepository) -> dict:
    return {k: v for k, v in options.get_all().items() if k in EDITABLE_KEYS}


@settings_bp.route("", methods=["GET"])
def get_all_settings():
    """Get all archive settings."""
    return jsonify({"settings": _settings(OptionsRepository())})


@settings_bp.route("", methods=["PUT"])
def update_settings():
    """Update multiple settings at once."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    options = OptionsRepository()
    for key, value in data.items():
        _validate(key, value)
        options.set(key, value)
    options.save()

    return jsonify({"settings": _settings(options)})


@settings_bp.route("/<key>", methods=["GET"])
def get_setting(key: str):
    """Get a specific setting."""
    value = OptionsRepository().get(key)
    if key not in EDITABLE_KEYS or value is None:
        raise NotFoundError("Setting", key)
    return jsonify({"key": key, "value": value})


@settings_bp.route("/<key>", methods=["PUT"])
def update_setting(key: str):
    """Update a specific setting."""
    data = request.get_json(silent=True) or {}
    value = data.get("value")
    _validate(key, value)
    OptionsRepository().set(key, value).save()
    return jsonify({"key": key, "value": value})


@settings_bp.route("/defaults", methods=["POST"])
def reset_to_defaults():
    """Reset all settings to defaults."""
    options = OptionsRepository()
    options.reset_defaults()
    return jsonify({"settings": _settings(options)})
