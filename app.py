import logging

from flask import Flask
from flask_cors import CORS
from config import Config

from routes.auth import bp as auth_bp
from routes.attempts import bp as attempts_bp
from routes.user import bp as user_bp
from routes.leaderboard import bp as leaderboard_bp
from routes.rewards import bp as rewards_bp
from utils.errors import register_error_handlers


def create_app() -> Flask:
	logging.basicConfig(
		level=Config.LOG_LEVEL,
		format="%(asctime)s %(levelname)s %(name)s: %(message)s",
	)

	app = Flask(__name__)
	app.config.from_object(Config)

	CORS(
		app,
		resources=Config.CORS_RESOURCES,
		supports_credentials=Config.CORS_SUPPORTS_CREDENTIALS,
		allow_headers=Config.CORS_ALLOW_HEADERS,
	)

	# Register blueprints
	app.register_blueprint(auth_bp)
	app.register_blueprint(attempts_bp)
	app.register_blueprint(user_bp)
	app.register_blueprint(leaderboard_bp)
	app.register_blueprint(rewards_bp)

	# Error handlers
	register_error_handlers(app)

	@app.get("/health")
	def health() -> tuple[dict, int]:
		return {"status": "ok", "demoMode": Config.DEMO_MODE}, 200

	return app


app = create_app()


if __name__ == "__main__":
	app.run(host="0.0.0.0", port=Config.PORT, debug=Config.DEBUG)
