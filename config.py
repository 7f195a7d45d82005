import json
import os


DEFAULT_REWARD_TIERS = [
	{
		"tierId": "perfect",
		"minScore": 150,
		"priority": 1,
		"title": "Elements Retract Complete Kit",
		"description": "Premium hemostatic kit - FREEBIE + 15% Off",
		"couponCode": "PERFECT15",
		"discount": "15% + Free Product",
	},
	{
		"tierId": "excellent",
		"minScore": 120,
		"priority": 2,
		"title": "Elements Whitening System",
		"description": "Professional whitening - 10% Off",
		"couponCode": "EXCEL10",
		"discount": "10% Off",
	},
	{
		"tierId": "good",
		"minScore": 100,
		"priority": 3,
		"title": "Premium Burs Set",
		"description": "Diamond burs - 5% Off",
		"couponCode": "GOOD5",
		"discount": "5% Off",
	},
	{
		"tierId": "participation",
		"minScore": 0,
		"priority": 4,
		"title": "Keep Practicing!",
		"description": "Try again to unlock rewards",
		"couponCode": None,
		"discount": None,
	},
]


def _load_reward_tiers() -> list[dict]:
	path = os.getenv("REWARD_TIERS_PATH", "")
	if not path:
		return DEFAULT_REWARD_TIERS
	with open(path, encoding="utf-8") as fh:
		return json.load(fh)


class Config:

	SECRET_KEY = os.getenv("SECRET_KEY", "dev_secret_key")
	ENV = os.getenv("FLASK_ENV", "production")
	DEBUG = os.getenv("FLASK_DEBUG", "False").lower() == "true"
	FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
	PORT = int(os.getenv("PORT", "5000"))
	LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

	FIREBASE_CREDENTIALS_PATH = os.getenv(
		"FIREBASE_CREDENTIALS_PATH", "./firebase-credentials.json"
	)
	MAGENTO_API_URL = os.getenv("MAGENTO_API_URL", "").rstrip("/")
	MAGENTO_API_TOKEN = os.getenv("MAGENTO_API_TOKEN", "")
	MAGENTO_TIMEOUT_SECONDS = float(os.getenv("MAGENTO_TIMEOUT_SECONDS", "10"))
	DEMO_MODE = os.getenv("DEMO_MODE", "False").lower() == "true"

	# Game rules
	MAX_REWARD_ATTEMPTS = int(os.getenv("MAX_REWARD_ATTEMPTS", "2"))
	TIME_PER_CASE = int(os.getenv("TIME_PER_CASE", "180"))
	BASE_POINTS = int(os.getenv("BASE_POINTS", "100"))
	TIME_BONUS_THRESHOLD = int(os.getenv("TIME_BONUS_THRESHOLD", "60"))
	TIME_BONUS = int(os.getenv("TIME_BONUS", "50"))
	STREAK_BONUS_THRESHOLD = int(os.getenv("STREAK_BONUS_THRESHOLD", "3"))
	STREAK_BONUS = int(os.getenv("STREAK_BONUS", "25"))

	REWARD_TIERS = _load_reward_tiers()
	REWARD_EXPIRY_DAYS = int(os.getenv("REWARD_EXPIRY_DAYS", "30"))
	LEADERBOARD_MAX_LIMIT = 100

	CORS_RESOURCES = {r"/api/*": {"origins": [FRONTEND_URL]}}
	CORS_SUPPORTS_CREDENTIALS = True
	CORS_ALLOW_HEADERS = [
		"Content-Type",
		"Authorization",
		"X-Requested-With",
	]
