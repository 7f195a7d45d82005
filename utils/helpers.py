from __future__ import annotations

import re
from datetime import datetime, timezone
from flask import request
from werkzeug.exceptions import BadRequest
from utils.errors import APIError, ValidationError


EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def utc_now() -> datetime:
	return datetime.now(timezone.utc)


def get_json(required: list[str] | None = None) -> dict:
	if not request.get_data():
		data = {}
	else:
		try:
			data = request.get_json(force=True)
		except BadRequest as e:
			# Existing clients expect a 500 with details for unparseable bodies
			raise APIError("Invalid request body", 500, details=e.description) from e
	if not isinstance(data, dict):
		raise APIError("Request body must be a JSON object", 400)
	if required:
		missing = [k for k in required if data.get(k) in (None, "")]
		if missing:
			raise APIError(f"Missing required fields: {', '.join(missing)}", 400)
	return data


def require_str(data: dict, *keys: str) -> None:
	for key in keys:
		value = data.get(key)
		if not isinstance(value, str) or not value.strip():
			raise ValidationError(f"{key} must be a non-empty string")


def is_valid_email(email: str | None) -> bool:
	return bool(email) and isinstance(email, str) and bool(EMAIL_RE.match(email))


def iso(value) -> str | None:
	if value is None:
		return None
	if isinstance(value, datetime):
		return value.isoformat()
	return str(value)
