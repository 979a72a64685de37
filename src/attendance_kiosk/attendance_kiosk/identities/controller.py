from __future__ import annotations

from flask import Flask, jsonify

from ..common.responses import error_response, json_body
from ..common.validators import decode_data_url
from ..container import Container
from .model import Identity


def identity_payload(identity: Identity) -> dict:
    return {
        "userId": identity.identity_id,
        "name": identity.name,
        "role": identity.role.value,
        "imageUrl": identity.image_url,
        "indexed": identity.is_indexed,
        "faceIds": list(identity.face_ids),
        "lastIndexedAt": identity.indexed_at.isoformat() if identity.indexed_at else None,
    }


def register(app: Flask, container: Container) -> None:
    debug = bool(app.config.get("DEBUG", False))

    @app.route("/api/register", methods=["POST"], endpoint="register_identity")
    def register_identity():
        try:
            body = json_body()
            image_data = body.get("imageData")
            result = container.identity_service.register(
                identity_id=body.get("userId"),
                name=body.get("name"),
                role=body.get("role"),
                image=decode_data_url(image_data) if image_data else None,
                image_url=body.get("imageUrl"),
                descriptor=body.get("descriptor"),
            )
        except Exception as e:
            return error_response(e, debug=debug, context="register_identity")

        payload = {
            "success": True,
            "message": "Success" if result.indexed else "User created but face indexing was not completed",
            "user": identity_payload(result.identity),
        }
        if result.indexing_error:
            payload["rekognitionError"] = result.indexing_error
        return jsonify(payload), 201

    @app.route("/api/identities/<identity_id>", methods=["GET"], endpoint="get_identity")
    def get_identity(identity_id: str):
        try:
            identity = container.identity_service.get(identity_id)
        except Exception as e:
            return error_response(e, debug=debug, context="get_identity")
        return jsonify({"success": True, "user": identity_payload(identity)}), 200
