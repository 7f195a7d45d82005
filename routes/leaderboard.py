from flask import Blueprint, jsonify, request
from config import Config
from utils.errors import APIError
from services.firebase_service import firebase_service


bp = Blueprint("leaderboard", __name__, url_prefix="/api/leaderboard")


@bp.get("")
def leaderboard():
	try:
		limit = int(request.args.get("limit", 10))
	except ValueError:
		limit = 10
	limit = max(1, min(limit, Config.LEADERBOARD_MAX_LIMIT))
	return jsonify({"success": True, "leaderboard": firebase_service.get_leaderboard(limit)}), 200


@bp.get("/rank")
def rank():
	user_id = request.args.get("userId")
	if not user_id:
		raise APIError("Missing userId", 400)
	return jsonify({"success": True, **firebase_service.get_user_rank(user_id)}), 200
