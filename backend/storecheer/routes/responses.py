# Overview: Maps service failures to explicit JSON failure responses.

from flask import current_app, jsonify

from ..services.errors import AdapterFailure, ConsistencyFailure, NotFound, ValidationFailure


def failure(error: Exception):
    """
    Render a service failure as {"success": false, "error": ...}.

    ValidationFailure -> 400 (NotFound -> 404), AdapterFailure -> 502 (503
    for the data store), ConsistencyFailure -> 500 with the operator message.
    """
    if isinstance(error, NotFound):
        return jsonify({"success": False, "error": str(error)}), 404
    if isinstance(error, ValidationFailure):
        return jsonify({"success": False, "error": str(error)}), 400
    if isinstance(error, AdapterFailure):
        current_app.logger.error("Adapter failure (%s): %s", error.source, error)
        status = 503 if error.source == "data_store" else 502
        return jsonify({"success": False, "error": str(error)}), status
    if isinstance(error, ConsistencyFailure):
        current_app.logger.error("Consistency failure: %s", error)
        return jsonify({
            "success": False,
            "error": str(error),
            "orphaned_auth_id": error.orphaned_auth_id,
            "manual_cleanup_required": True,
        }), 500
    raise error


SERVICE_FAILURES = (ValidationFailure, AdapterFailure, ConsistencyFailure)


def ok(status: int = 200, **payload):
    return jsonify({"success": True, **payload}), status
