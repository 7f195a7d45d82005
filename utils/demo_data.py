from __future__ import annotations

import copy
from datetime import datetime, timezone, timedelta


def _dt(hours_ago: int = 0):
	return datetime.now(timezone.utc) - timedelta(hours=hours_ago)


DEMO_USERS = [
	{
		"userId": "uid-demo",
		"email": "demo@pinkblue.in",
		"magentoCustomerId": None,
		"firstName": "Demo",
		"lastName": "Dentist",
		"displayName": "Dr. Demo Dentist",
		"phone": None,
		"city": "Mumbai",
		"state": "Maharashtra",
		"totalScore": 450,
		"casesSolved": 4,
		"rewardAttemptsUsed": 1,
		"practiceAttempts": 4,
		"totalAttempts": 5,
		"currentStreak": 2,
		"bestStreak": 3,
		"createdAt": _dt(1000),
		"lastActiveAt": _dt(2),
		"lastGameAt": _dt(2),
	},
	{
		"userId": "uid-ananya",
		"email": "ananya@pinkblue.in",
		"magentoCustomerId": "1042",
		"firstName": "Ananya",
		"lastName": "Rao",
		"displayName": "Dr. Ananya Rao",
		"phone": None,
		"city": "Bengaluru",
		"state": "Karnataka",
		"totalScore": 925,
		"casesSolved": 7,
		"rewardAttemptsUsed": 2,
		"practiceAttempts": 6,
		"totalAttempts": 8,
		"currentStreak": 5,
		"bestStreak": 5,
		"createdAt": _dt(1200),
		"lastActiveAt": _dt(5),
		"lastGameAt": _dt(5),
	},
	{
		"userId": "uid-kabir",
		"email": "kabir@pinkblue.in",
		"magentoCustomerId": "1077",
		"firstName": "Kabir",
		"lastName": "Shah",
		"displayName": "Dr. Kabir Shah",
		"phone": None,
		"city": "Pune",
		"state": "Maharashtra",
		"totalScore": 300,
		"casesSolved": 3,
		"rewardAttemptsUsed": 2,
		"practiceAttempts": 2,
		"totalAttempts": 4,
		"currentStreak": 0,
		"bestStreak": 2,
		"createdAt": _dt(1300),
		"lastActiveAt": _dt(8),
		"lastGameAt": _dt(8),
	},
	{
		"userId": "uid-meera",
		"email": "meera@pinkblue.in",
		"magentoCustomerId": "1103",
		"firstName": "Meera",
		"lastName": "Iyer",
		"displayName": "Dr. Meera Iyer",
		"phone": None,
		"city": "Chennai",
		"state": "Tamil Nadu",
		"totalScore": 0,
		"casesSolved": 0,
		"rewardAttemptsUsed": 0,
		"practiceAttempts": 0,
		"totalAttempts": 0,
		"currentStreak": 0,
		"bestStreak": 0,
		"createdAt": _dt(20),
		"lastActiveAt": _dt(20),
		"lastGameAt": None,
	},
]


class DemoStore:
	"""In-process stand-in for the Firestore collections used in demo mode."""

	def __init__(self):
		self.reset()

	def reset(self) -> None:
		self.users = {u["userId"]: copy.deepcopy(u) for u in DEMO_USERS}
		self.attempts: list[dict] = []
		self.case_play_counts: dict[str, int] = {}
		self._next_id = 1

	def next_id(self, prefix: str) -> str:
		value = f"{prefix}-{self._next_id}"
		self._next_id += 1
		return value

	def user_by_email(self, email: str) -> dict | None:
		needle = email.lower()
		return next((u for u in self.users.values() if u["email"].lower() == needle), None)


demo_store = DemoStore()
