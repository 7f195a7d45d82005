import logging

from flask import Blueprint, jsonify
from utils.helpers import get_json, iso, require_str
from utils.errors import ForbiddenError
from services.firebase_service import firebase_service
from services.scoring_service import scoring_service


bp = Blueprint("rewards", __name__, url_prefix="/api")
logger = logging.getLogger(__name__)


@bp.get("/config")
def game_config():
	return jsonify(scoring_service.public_config()), 200


@bp.post("/rewards/claim")
def claim_reward():
	body = get_json(["userId", "tierId"])
	require_str(body, "userId", "tierId")
	firebase_service.get_user(body["userId"])
	attempt = firebase_service.find_unclaimed_reward(body["userId"], body["tierId"])
	if attempt is None:
		raise ForbiddenError("No unclaimed reward for this tier")
	claimed = firebase_service.mark_reward_claimed(attempt["attemptId"])
	logger.info("Reward %s claimed by %s via attempt %s", body["tierId"], body["userId"], attempt["attemptId"])
	return jsonify({
		"success": True,
		"couponCode": claimed.get("couponCode"),
		"discount": claimed.get("couponDiscount"),
		"title": claimed.get("rewardTitle"),
		"expiry": iso(claimed.get("expiresAt")),
		"message": "Reward claimed successfully",
	}), 200
