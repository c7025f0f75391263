from flask import Blueprint, current_app, jsonify

from domestiq.decorators import json_body, role_required
from domestiq.errors import AppError
from domestiq.services import FeeService, PlatformService
from domestiq.services.platform_service import DECIMAL_SETTINGS

api_settings_bp = Blueprint("api_settings", __name__)


def _fee_settings():
    config = current_app.config
    return {
        "platform_fee_rate": str(FeeService.current_rate()),
        "platform_fee_min": PlatformService.get_setting("platform_fee_min", config.get("PLATFORM_FEE_MIN")),
        "platform_fee_max": PlatformService.get_setting("platform_fee_max", config.get("PLATFORM_FEE_MAX")),
    }


@api_settings_bp.get("")
@role_required("admin")
def get_settings():
    return jsonify({"settings": _fee_settings()})


@api_settings_bp.put("")
@role_required("admin")
@json_body()
def update_settings(payload):
    unknown = sorted(set(payload) - DECIMAL_SETTINGS)
    if unknown:
        raise AppError(f"Unknown settings: {', '.join(unknown)}", 400)
    if not payload:
        raise AppError(f"Provide at least one of: {', '.join(sorted(DECIMAL_SETTINGS))}", 400)

    PlatformService.set_settings(payload)
    current_app.logger.info("Platform settings updated: %s", ", ".join(sorted(payload)))
    return jsonify({"settings": _fee_settings()})
