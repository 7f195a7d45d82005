import logging

from flask import Blueprint, jsonify
from utils.helpers import get_json, is_valid_email
from utils.errors import APIError
from services.firebase_service import firebase_service, public_user
from services.magento_service import DirectoryUnavailable, magento_service, profile_from_customer


bp = Blueprint("auth", __name__, url_prefix="/api/auth")
logger = logging.getLogger(__name__)


@bp.post("/validate-customer")
def validate_customer():
	body = get_json()
	email = (body.get("email") or "").strip()
	if not is_valid_email(email):
		raise APIError("Invalid email format", 400)

	customer = None
	if magento_service.enabled:
		try:
			customer = magento_service.find_customer(email)
		except DirectoryUnavailable as e:
			# Keep players moving when the directory is down
			logger.warning("Customer directory unavailable for %s: %s", email, e)
		else:
			if customer is None:
				logger.info("Customer %s not found in directory", email)
				raise APIError("Email not found. Please register at PinkBlue.in first.", 404)

	user = firebase_service.find_user_by_email(email)
	if user:
		firebase_service.touch_user(user["userId"])
	else:
		user = firebase_service.create_user(profile_from_customer(email, customer))
		logger.info("Created player %s for %s", user["userId"], email)
	return jsonify({"success": True, "user": public_user(user)}), 200
