import logging

from flask import jsonify, request


logger = logging.getLogger(__name__)


class APIError(Exception):

	status_code = 400

	def __init__(self, message: str, status_code: int | None = None, details: str | None = None):
		super().__init__(message)
		if status_code is not None:
			self.status_code = status_code
		self.message = message
		self.details = details


class ValidationError(APIError):

	status_code = 400


class ForbiddenError(APIError):

	status_code = 403


class NotFoundError(APIError):

	status_code = 404


def register_error_handlers(app):

	@app.errorhandler(APIError)
	def handle_api_error(err: APIError):
		response = {"success": False, "error": err.message}
		if err.details:
			response["details"] = err.details
		if err.status_code >= 500:
			logger.error("%s %s failed: %s (%s)", request.method, request.path, err.message, err.details)
		return jsonify(response), err.status_code

	@app.errorhandler(404)
	def handle_404(_):
		return jsonify({"success": False, "error": "Not found"}), 404

	@app.errorhandler(405)
	def handle_405(_):
		return jsonify({"success": False, "error": "Method not allowed"}), 405

	@app.errorhandler(Exception)
	def handle_unexpected(err: Exception):
		logger.exception("Unhandled error on %s %s", request.method, request.path)
		# In production, avoid leaking internals
		return jsonify({"success": False, "error": "Internal server error"}), 500
