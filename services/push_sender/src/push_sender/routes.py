import logging
from typing import Any

from flask import Blueprint, Response, current_app, jsonify, request

from push_sender.errors import ConfigurationError, ValidationError
from push_sender.pipeline import PushPipeline

logger = logging.getLogger(__name__)

bp = Blueprint("push", __name__)

_CORS_ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type"


def _error(message: str, status: int, **extra: Any) -> tuple[Response, int]:
    body: dict[str, Any] = {"success": False, "error": message}
    body.update(extra)
    return jsonify(body), status


@bp.after_app_request
def _add_cors_headers(response: Response) -> Response:
    response.headers["Access-Control-Allow-Origin"] = current_app.config[
        "CORS_ALLOW_ORIGIN"
    ]
    response.headers["Access-Control-Allow-Headers"] = _CORS_ALLOW_HEADERS
    response.headers["Access-Control-Allow-Methods"] = "POST, OPTIONS"
    return response


@bp.route("/send-push-notification", methods=["POST", "OPTIONS"])
async def send_push_notification() -> Response | tuple[Response, int]:
    if request.method == "OPTIONS":
        return Response("ok", status=200)

    body = request.get_json(silent=True)
    if body is None:
        return _error("Request body must be valid JSON", 400)

    pipeline: PushPipeline = current_app.extensions["push_pipeline"]
    try:
        result = await pipeline.run(body)
    except ConfigurationError as exc:
        logger.error("Push sender is misconfigured", extra={"reason": str(exc)})
        return _error("Server configuration error", 500, details=str(exc))
    except ValidationError as exc:
        return _error(str(exc), 400)
    except Exception as exc:
        logger.exception("Push request failed")
        return _error(str(exc) or type(exc).__name__, 400)

    return jsonify(result.to_dict()), 200


@bp.get("/health")
def health() -> tuple[Response, int]:
    pipeline: PushPipeline = current_app.extensions["push_pipeline"]
    configured = pipeline.is_configured

    return jsonify({
        "status": "healthy" if configured else "unhealthy",
        "checks": {"configuration": "ok" if configured else "missing"},
    }), 200 if configured else 503
