from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.responses import error_response, json_body, json_error
from ..common.validators import decode_data_url, require_descriptor, require_http_url, require_non_empty
from ..container import Container
from ..core.enums import PunchOutcomeKind
from ..recognition.model import FaceQuery
from ..reports.service import AttendanceReportService
from .model import AlreadyPunchedOut, PunchedIn, PunchedOut, PunchFailed, PunchOutcome, TooSoon

_FAILURE_STATUS = {
    PunchOutcomeKind.IDENTITY_NOT_FOUND: 404,
    PunchOutcomeKind.CORRUPT_RECORD: 500,
    PunchOutcomeKind.STORE_UNAVAILABLE: 503,
}


def outcome_payload(outcome: PunchOutcome, reports: AttendanceReportService) -> tuple[dict, int]:
    """Serialize a punch outcome into the API body and HTTP status."""
    if isinstance(outcome, PunchFailed):
        body = {"success": False, "status": outcome.kind.value, "message": outcome.message, "userId": outcome.identity_id}
        return body, _FAILURE_STATUS.get(outcome.kind, 500)

    body = {"success": True, "status": outcome.kind.value}
    body.update(reports.to_row(outcome.record))

    if isinstance(outcome, PunchedIn):
        body["message"] = "Punched In Successfully"
        body.pop("durationSeconds")
        body.pop("duration")
    elif isinstance(outcome, PunchedOut):
        body["message"] = "Punched Out (by another request)" if outcome.by_concurrent_request else "Punched Out Successfully"
        body["byConcurrentRequest"] = outcome.by_concurrent_request
    elif isinstance(outcome, TooSoon):
        body["message"] = (
            f"Duplicate/too-fast: already punched in {outcome.elapsed_seconds}s ago. "
            f"Minimum interval {outcome.cooldown_seconds}s."
        )
        body["secondsSincePunchIn"] = outcome.elapsed_seconds
        body.pop("durationSeconds")
        body.pop("duration")
    elif isinstance(outcome, AlreadyPunchedOut):
        body["message"] = "Already Punched Out"
    else:
        raise TypeError(f"Unhandled punch outcome: {outcome!r}")
    return body, 200


def parse_face_query(body: dict) -> FaceQuery:
    image_data = body.get("imageData")
    image = decode_data_url(image_data) if image_data else None
    image_url = body.get("imageUrl")
    if image is None and image_url:
        image_url = require_http_url(image_url, "imageUrl")
    else:
        image_url = None
    descriptor = require_descriptor(body.get("descriptor"))
    return FaceQuery(image=image, descriptor=descriptor, image_url=image_url)


def register(app: Flask, container: Container) -> None:
    debug = bool(app.config.get("DEBUG", False))

    @app.route("/api/submit-attendance", methods=["POST"], endpoint="submit_attendance")
    def submit_attendance():
        try:
            body = json_body()
            user_id = body.get("userId")
            if not isinstance(user_id, str):
                return json_error("Missing or invalid userId", 400)
            outcome = container.punch_service.submit(require_non_empty(user_id, "userId"))
        except Exception as e:
            return error_response(e, debug=debug, context="submit_attendance")

        payload, status = outcome_payload(outcome, container.report_service)
        return jsonify(payload), status

    @app.route("/api/punch", methods=["POST"], endpoint="punch")
    def punch():
        """Kiosk flow: resolve the face, then punch the matched identity."""
        try:
            query = parse_face_query(json_body())
            resolution = container.verification_service.resolve(query)
            if resolution is None:
                return jsonify({"success": False, "matched": False, "message": "No matching face found"}), 200
            outcome = container.punch_service.submit(resolution.identity_id)
        except Exception as e:
            return error_response(e, debug=debug, context="punch")

        payload, status = outcome_payload(outcome, container.report_service)
        payload["matched"] = True
        payload["match"] = {
            "userId": resolution.identity_id,
            "confidence": resolution.confidence,
            "distance": resolution.distance,
            "source": resolution.source.value,
        }
        return jsonify(payload), status

    @app.route("/api/attendance/<identity_id>", methods=["GET"], endpoint="attendance_for_identity")
    def attendance_for_identity(identity_id: str):
        try:
            row = container.report_service.get_by_identity_and_day(identity_id, request.args.get("day"))
        except Exception as e:
            return error_response(e, debug=debug, context="attendance_for_identity")

        if row is None:
            return json_error("No attendance record for this day", 404)
        return jsonify({"success": True, "record": row}), 200
