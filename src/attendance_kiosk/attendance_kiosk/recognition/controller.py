from __future__ import annotations

from flask import Flask, jsonify

from ..attendance.controller import parse_face_query
from ..common.responses import error_response, json_body
from ..container import Container
from ..core.enums import MatchSource


def register(app: Flask, container: Container) -> None:
    debug = bool(app.config.get("DEBUG", False))

    @app.route("/api/verify-face", methods=["POST"], endpoint="verify_face")
    def verify_face():
        try:
            query = parse_face_query(json_body())
            resolution = container.verification_service.resolve(query)
        except Exception as e:
            return error_response(e, debug=debug, context="verify_face")

        if resolution is None:
            return jsonify({"success": False, "message": "No matching face found"}), 200

        payload = {
            "success": True,
            "confidence": resolution.confidence,
            "distance": resolution.distance,
            "source": resolution.source.value,
            "user": {
                "userId": resolution.identity_id,
                "name": resolution.name,
                "role": resolution.role.value,
            },
        }
        # Rekognition reports a similarity; descriptor matches only have a distance.
        if resolution.source == MatchSource.REKOGNITION:
            payload["similarity"] = resolution.confidence
        return jsonify(payload), 200
