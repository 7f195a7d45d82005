from flask import Blueprint, jsonify
from services.firebase_service import firebase_service, public_user


bp = Blueprint("user", __name__, url_prefix="/api/user")


@bp.get("/<user_id>")
def profile(user_id: str):
	user = firebase_service.get_user(user_id)
	return jsonify({"success": True, "user": public_user(user)}), 200


@bp.get("/<user_id>/played-cases")
def played_cases(user_id: str):
	firebase_service.get_user(user_id)
	return jsonify({"success": True, "playedCases": firebase_service.get_played_cases(user_id)}), 200
