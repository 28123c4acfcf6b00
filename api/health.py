from flask import Blueprint

from .errors import success_response

bp = Blueprint("health", __name__)


@bp.get("/healthcheck")
def health():
    """Health check; 200 while the process is up."""
    return success_response({"status": "ok", "version": "1.0.0"}, "OK")
