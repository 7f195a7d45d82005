from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import timedelta

import firebase_admin
from firebase_admin import credentials, firestore

from utils.errors import APIError, ForbiddenError, NotFoundError
from utils.helpers import iso, utc_now
from config import Config
from utils.demo_data import demo_store
from services.scoring_service import StatsDelta, prior_stats_from_doc, rank_title


logger = logging.getLogger(__name__)


@dataclass
class _Collections:
	USERS: str = "diagnostic_users"
	ATTEMPTS: str = "diagnostic_attempts"
	CASES: str = "diagnostic_cases"


class FirebaseService:

	def __init__(self):
		self.db = None
		self._initialized = False

	def _init_admin(self):
		if not firebase_admin._apps:  # type: ignore[attr-defined]
			cred_path = os.getenv("FIREBASE_CREDENTIALS_PATH", Config.FIREBASE_CREDENTIALS_PATH)
			try:
				cred = credentials.Certificate(cred_path)
				firebase_admin.initialize_app(cred)
			except Exception as e:
				raise APIError("Firebase credentials missing or invalid", 500) from e

	def _ensure_init(self):
		if not self._initialized:
			self._init_admin()
			self.db = firestore.client()
			self._initialized = True

	def use_client(self, db) -> None:
		"""Bind an already constructed Firestore client."""
		self.db = db
		self._initialized = True

	# ---------- Users ----------
	def find_user_by_email(self, email: str) -> dict | None:
		if Config.DEMO_MODE:
			return demo_store.user_by_email(email)
		self._ensure_init()
		snaps = (
			self.db.collection(_Collections.USERS)
			.where("email", "==", email.lower())
			.limit(1)
			.get()
		)
		for s in snaps:
			return {"userId": s.id, **(s.to_dict() or {})}
		return None

	def get_user(self, user_id: str) -> dict:
		if Config.DEMO_MODE:
			user = demo_store.users.get(user_id)
			if not user:
				raise NotFoundError("User not found")
			return user
		self._ensure_init()
		doc = self.db.collection(_Collections.USERS).document(user_id).get()
		if not doc.exists:
			raise NotFoundError("User not found")
		data = doc.to_dict() or {}
		return {"userId": user_id, **data}

	def create_user(self, profile: dict) -> dict:
		now = utc_now()
		user_doc = {
			"email": profile["email"].lower(),
			"magentoCustomerId": profile.get("magentoCustomerId"),
			"firstName": profile.get("firstName", ""),
			"lastName": profile.get("lastName", ""),
			"displayName": profile.get("displayName", ""),
			"phone": profile.get("phone"),
			"city": profile.get("city"),
			"state": profile.get("state"),
			"totalScore": 0,
			"casesSolved": 0,
			"rewardAttemptsUsed": 0,
			"practiceAttempts": 0,
			"totalAttempts": 0,
			"currentStreak": 0,
			"bestStreak": 0,
			"createdAt": now,
			"lastActiveAt": now,
			"lastGameAt": None,
		}
		if Config.DEMO_MODE:
			user_id = demo_store.next_id("uid")
			demo_store.users[user_id] = {"userId": user_id, **user_doc}
			return demo_store.users[user_id]
		self._ensure_init()
		doc_ref = self.db.collection(_Collections.USERS).document()
		doc_ref.set(user_doc)
		return {"userId": doc_ref.id, **user_doc}

	def touch_user(self, user_id: str) -> None:
		if Config.DEMO_MODE:
			user = demo_store.users.get(user_id)
			if user:
				user["lastActiveAt"] = utc_now()
			return
		self._ensure_init()
		self.db.collection(_Collections.USERS).document(user_id).update({"lastActiveAt": utc_now()})

	# ---------- Attempts ----------
	def record_attempt(self, user_id: str, attempt: dict) -> dict:
		"""Persist one attempt. Runs before any aggregate update."""
		user = self.get_user(user_id)
		payload = {
			"userId": user_id,
			"attemptNumber": int(user.get("totalAttempts") or 0) + 1,
			"rewardClaimed": False,
			"createdAt": utc_now(),
			**attempt,
		}
		if Config.DEMO_MODE:
			record = {"attemptId": demo_store.next_id("attempt"), **payload}
			demo_store.attempts.append(record)
			return record
		self._ensure_init()
		doc_ref = self.db.collection(_Collections.ATTEMPTS).document()
		doc_ref.set(payload)
		return {"attemptId": doc_ref.id, **payload}

	def apply_stats_delta(self, user_id: str, delta: StatsDelta, practice: bool) -> dict:
		"""Add the delta to the stored counters and return the updated player."""
		if Config.DEMO_MODE:
			user = self.get_user(user_id)
			user["totalScore"] = user.get("totalScore", 0) + delta.score_delta
			user["casesSolved"] = user.get("casesSolved", 0) + delta.cases_solved_delta
			user["rewardAttemptsUsed"] = user.get("rewardAttemptsUsed", 0) + delta.reward_attempts_used_delta
			user["practiceAttempts"] = user.get("practiceAttempts", 0) + (1 if practice else 0)
			user["totalAttempts"] = user.get("totalAttempts", 0) + 1
			user["currentStreak"] = delta.new_streak
			user["bestStreak"] = max(user.get("bestStreak", 0), delta.new_streak)
			user["lastGameAt"] = utc_now()
			return user
		self._ensure_init()
		user_ref = self.db.collection(_Collections.USERS).document(user_id)
		prior = prior_stats_from_doc(user_ref.get().to_dict() or {})
		updates = {
			"totalScore": firestore.Increment(delta.score_delta),
			"casesSolved": firestore.Increment(delta.cases_solved_delta),
			"rewardAttemptsUsed": firestore.Increment(delta.reward_attempts_used_delta),
			"practiceAttempts": firestore.Increment(1 if practice else 0),
			"totalAttempts": firestore.Increment(1),
			"currentStreak": delta.new_streak,
			"lastGameAt": utc_now(),
		}
		if delta.new_streak > prior.best_streak:
			updates["bestStreak"] = delta.new_streak
		user_ref.update(updates)
		return self.get_user(user_id)

	def increment_case_play_count(self, case_id: str) -> None:
		if Config.DEMO_MODE:
			demo_store.case_play_counts[case_id] = demo_store.case_play_counts.get(case_id, 0) + 1
			return
		self._ensure_init()
		self.db.collection(_Collections.CASES).document(case_id).set(
			{"playCount": firestore.Increment(1), "lastPlayedAt": utc_now()}, merge=True
		)

	# ---------- Rewards ----------
	def find_unclaimed_reward(self, user_id: str, tier_id: str) -> dict | None:
		if Config.DEMO_MODE:
			items = [
				a for a in demo_store.attempts
				if a["userId"] == user_id and a.get("rewardTier") == tier_id
				and a.get("couponCode") and not a.get("rewardClaimed")
			]
		else:
			self._ensure_init()
			snaps = (
				self.db.collection(_Collections.ATTEMPTS)
				.where("userId", "==", user_id)
				.where("rewardTier", "==", tier_id)
				.where("rewardClaimed", "==", False)
				.get()
			)
			items = [{"attemptId": s.id, **(s.to_dict() or {})} for s in snaps]
			items = [a for a in items if a.get("couponCode")]
		if not items:
			return None
		return min(items, key=lambda a: a["createdAt"])

	def mark_reward_claimed(self, attempt_id: str) -> dict:
		"""Flip rewardClaimed on one attempt; a second claim is rejected."""
		now = utc_now()
		update = {
			"rewardClaimed": True,
			"claimedAt": now,
			"expiresAt": now + timedelta(days=Config.REWARD_EXPIRY_DAYS),
		}
		if Config.DEMO_MODE:
			record = next((a for a in demo_store.attempts if a["attemptId"] == attempt_id), None)
			if record is None:
				raise NotFoundError("Attempt not found")
			if record.get("rewardClaimed"):
				raise ForbiddenError("Reward already claimed")
			record.update(update)
			return record
		self._ensure_init()
		ref = self.db.collection(_Collections.ATTEMPTS).document(attempt_id)
		return _claim_in_transaction(self.db.transaction(), ref, update)

	def get_played_cases(self, user_id: str) -> list[str]:
		"""Case codes the player has attempted, oldest first, without repeats."""
		if Config.DEMO_MODE:
			items = [a for a in demo_store.attempts if a["userId"] == user_id]
		else:
			self._ensure_init()
			snaps = self.db.collection(_Collections.ATTEMPTS).where("userId", "==", user_id).get()
			items = [s.to_dict() or {} for s in snaps]
		played = []
		for item in sorted(items, key=lambda a: a["createdAt"]):
			code = item.get("caseCode") or item.get("caseId")
			if code is not None and str(code) not in played:
				played.append(str(code))
		return played

	# ---------- Leaderboards ----------
	def get_leaderboard(self, limit: int) -> list[dict]:
		if Config.DEMO_MODE:
			rows = sorted(
				(u for u in demo_store.users.values() if u.get("totalScore", 0) > 0),
				key=lambda u: (-u.get("totalScore", 0), -u.get("casesSolved", 0)),
			)[:limit]
		else:
			self._ensure_init()
			snaps = (
				self.db.collection(_Collections.USERS)
				.where("totalScore", ">", 0)
				.order_by("totalScore", direction=firestore.Query.DESCENDING)
				.order_by("casesSolved", direction=firestore.Query.DESCENDING)
				.limit(limit)
				.get()
			)
			rows = [s.to_dict() or {} for s in snaps]
		items = []
		for idx, row in enumerate(rows, start=1):
			items.append({
				"rank": idx,
				"displayName": row.get("displayName", ""),
				"city": row.get("city"),
				"totalScore": row.get("totalScore", 0),
				"casesSolved": row.get("casesSolved", 0),
				"averageAccuracy": average_accuracy(row),
				"bestStreak": row.get("bestStreak", 0),
			})
		return items

	def get_user_rank(self, user_id: str) -> dict:
		if Config.DEMO_MODE:
			ordered = sorted(
				demo_store.users.values(),
				key=lambda u: (-u.get("totalScore", 0), -u.get("casesSolved", 0)),
			)
			rows = [(u["userId"], u) for u in ordered]
		else:
			self._ensure_init()
			users_ref = self.db.collection(_Collections.USERS)
			snaps = (
				users_ref.order_by("totalScore", direction=firestore.Query.DESCENDING)
				.order_by("casesSolved", direction=firestore.Query.DESCENDING)
				.get()
			)
			rows = [(s.id, s.to_dict() or {}) for s in snaps]
		rank = None
		points = 0
		for idx, (uid, row) in enumerate(rows, start=1):
			if uid == user_id:
				rank = idx
				points = row.get("totalScore", 0)
				break
		if rank is None:
			raise NotFoundError("User not found")
		points_to_next = 0
		if rank > 1:
			prev = rows[rank - 2][1]
			points_to_next = max(0, prev.get("totalScore", 0) - points)
		return {"currentRank": rank, "totalUsers": len(rows), "pointsToNextRank": points_to_next}


@firestore.transactional
def _claim_in_transaction(transaction, ref, update: dict) -> dict:
	snap = ref.get(transaction=transaction)
	if not snap.exists:
		raise NotFoundError("Attempt not found")
	data = snap.to_dict() or {}
	if data.get("rewardClaimed"):
		raise ForbiddenError("Reward already claimed")
	transaction.update(ref, update)
	return {"attemptId": ref.id, **data, **update}


def average_accuracy(user: dict) -> float:
	attempts = user.get("totalAttempts") or 0
	if not attempts:
		return 0.0
	return round(100 * (user.get("casesSolved") or 0) / attempts, 1)


def public_user(user: dict) -> dict:
	"""Player profile as returned to the game client."""
	total = user.get("totalScore") or 0
	return {
		"id": user["userId"],
		"email": user.get("email"),
		"displayName": user.get("displayName"),
		"firstName": user.get("firstName"),
		"lastName": user.get("lastName"),
		"city": user.get("city"),
		"state": user.get("state"),
		"totalScore": total,
		"casesSolved": user.get("casesSolved") or 0,
		"averageAccuracy": average_accuracy(user),
		"rewardAttemptsUsed": user.get("rewardAttemptsUsed") or 0,
		"practiceAttempts": user.get("practiceAttempts") or 0,
		"currentStreak": user.get("currentStreak") or 0,
		"bestStreak": user.get("bestStreak") or 0,
		"rankTitle": rank_title(total),
		"lastGameAt": iso(user.get("lastGameAt")),
	}


firebase_service = FirebaseService()
