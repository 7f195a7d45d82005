import logging

from flask import Blueprint, jsonify
from utils.helpers import get_json, iso, require_str
from utils.errors import APIError, ValidationError
from services.firebase_service import firebase_service
from services.scoring_service import (
	parse_attempt,
	prior_stats_from_doc,
	project_stats,
	scoring_service,
)


bp = Blueprint("attempts", __name__, url_prefix="/api/attempts")
logger = logging.getLogger(__name__)


@bp.post("")
def submit_attempt():
	body = get_json(["userId"])
	require_str(body, "userId")
	user_id = body["userId"]
	case_id = body.get("caseId") or body.get("caseCode")
	if not case_id:
		raise APIError("Missing required fields: caseId", 400)
	if isinstance(case_id, bool) or not isinstance(case_id, (str, int)):
		raise ValidationError("caseId must be a string or integer")
	attempt = parse_attempt(body)

	user = firebase_service.get_user(user_id)
	prior = prior_stats_from_doc(user)
	result = scoring_service.score(attempt, prior)
	tier = result.reward.tier
	granted = result.reward.granted

	try:
		record = firebase_service.record_attempt(user_id, {
			"caseId": case_id,
			"caseCode": body.get("caseCode"),
			"selectedOption": attempt.selected_option,
			"isCorrect": attempt.is_correct,
			"timeTaken": attempt.time_taken_seconds,
			"scoreEarned": result.score.base_points,
			"timeBonus": result.score.time_bonus,
			"streakBonus": result.score.streak_bonus,
			"totalScore": result.score.total_score,
			"isPracticeMode": result.practice_mode,
			"difficulty": attempt.difficulty,
			"rewardTier": tier.tier_id if granted else None,
			"rewardTitle": tier.title if granted else None,
			"couponCode": tier.coupon_code if granted else None,
			"couponDiscount": tier.discount_description if granted else None,
		})
	except APIError:
		raise
	except Exception as e:
		raise APIError("Failed to record attempt", 500, details=str(e)) from e

	stats_updated = True
	try:
		updated = firebase_service.apply_stats_delta(user_id, result.delta, result.practice_mode)
		new_stats = prior_stats_from_doc(updated)
	except Exception:
		# The attempt is already stored; report projected totals instead of failing
		logger.exception("Stats update failed for user %s, attempt %s", user_id, record["attemptId"])
		stats_updated = False
		new_stats = project_stats(prior, result)

	try:
		firebase_service.increment_case_play_count(str(case_id))
	except Exception:
		logger.exception("Could not bump play count for case %s", case_id)

	logger.info(
		"Attempt %s by %s: correct=%s score=%s practice=%s reward=%s",
		record["attemptId"], user_id, attempt.is_correct, result.score.total_score,
		result.practice_mode, tier.tier_id if granted else None,
	)
	scored = result.to_dict()
	return jsonify({
		"success": True,
		"attempt": {
			"id": record["attemptId"],
			"attemptNumber": record["attemptNumber"],
			"caseId": case_id,
			"createdAt": iso(record["createdAt"]),
		},
		"score": scored["score"],
		"reward": scored["reward"],
		"isPracticeMode": result.practice_mode,
		"newStreak": result.delta.new_streak,
		"newStats": {
			"rewardAttemptsUsed": new_stats.reward_attempts_used,
			"totalScore": new_stats.total_score,
			"casesSolved": new_stats.cases_solved,
		},
		"statsUpdated": stats_updated,
		"message": "Attempt recorded successfully",
	}), 200
