from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable, List, Optional

from config import Config
from utils.errors import ValidationError


@dataclass(frozen=True)
class GameRules:

	base_points: int = 100
	time_bonus_threshold_seconds: int = 60
	time_bonus: int = 50
	streak_bonus_threshold: int = 3
	streak_bonus: int = 25
	max_reward_attempts: int = 2

	def __post_init__(self):
		_require_int(self.base_points, "basePoints", minimum=1)
		_require_int(self.time_bonus_threshold_seconds, "timeBonusThresholdSeconds", minimum=1)
		_require_int(self.time_bonus, "timeBonus", minimum=0)
		_require_int(self.streak_bonus_threshold, "streakBonusThreshold", minimum=1)
		_require_int(self.streak_bonus, "streakBonus", minimum=0)
		_require_int(self.max_reward_attempts, "maxRewardAttempts", minimum=0)


@dataclass(frozen=True)
class RewardTier:

	tier_id: str
	min_score: int
	title: str
	priority: int
	max_score: Optional[int] = None
	coupon_code: Optional[str] = None
	discount_description: Optional[str] = None
	description: Optional[str] = None
	image_url: Optional[str] = None

	def __post_init__(self):
		if not self.tier_id or not isinstance(self.tier_id, str):
			raise ValidationError("Reward tier needs a tierId")
		_require_int(self.min_score, f"{self.tier_id}.minScore", minimum=0)
		_require_int(self.priority, f"{self.tier_id}.priority")
		if self.max_score is not None:
			_require_int(self.max_score, f"{self.tier_id}.maxScore", minimum=self.min_score)

	def matches(self, score: int) -> bool:
		return score >= self.min_score and (self.max_score is None or score <= self.max_score)

	@classmethod
	def from_dict(cls, data: dict) -> "RewardTier":
		return cls(
			tier_id=data.get("tierId") or data.get("tier"),
			min_score=data.get("minScore", 0),
			max_score=data.get("maxScore"),
			title=data.get("title", ""),
			coupon_code=data.get("couponCode"),
			discount_description=data.get("discount") or data.get("discountDescription"),
			description=data.get("description"),
			image_url=data.get("imageUrl"),
			priority=data.get("priority", 0),
		)

	def public_dict(self) -> dict:
		return {
			"tierId": self.tier_id,
			"minScore": self.min_score,
			"maxScore": self.max_score,
			"title": self.title,
			"description": self.description,
			"discount": self.discount_description,
			"imageUrl": self.image_url,
			"priority": self.priority,
		}


@dataclass(frozen=True)
class Attempt:

	is_correct: bool
	time_taken_seconds: int
	is_practice_mode: bool = False
	selected_option: Any = None
	difficulty: Any = None

	def __post_init__(self):
		if not isinstance(self.is_correct, bool):
			raise ValidationError("isCorrect must be a boolean")
		if not isinstance(self.is_practice_mode, bool):
			raise ValidationError("isPracticeMode must be a boolean")
		_require_int(self.time_taken_seconds, "timeTaken", minimum=0)


@dataclass(frozen=True)
class UserStats:

	total_score: int = 0
	cases_solved: int = 0
	reward_attempts_used: int = 0
	current_streak: int = 0
	best_streak: int = 0
	total_attempts: int = 0
	practice_attempts: int = 0

	def __post_init__(self):
		_require_int(self.current_streak, "currentStreak", minimum=0)
		_require_int(self.reward_attempts_used, "rewardAttemptsUsed", minimum=0)


@dataclass(frozen=True)
class ScoreBreakdown:

	base_points: int
	time_bonus: int
	streak_bonus: int
	total_score: int


@dataclass(frozen=True)
class RewardDecision:

	tier: Optional[RewardTier]
	granted: bool

	def reward_payload(self) -> Optional[dict]:
		"""Client-facing reward, or None when nothing was granted."""
		if not self.granted or self.tier is None:
			return None
		return {
			"name": self.tier.title,
			"code": self.tier.coupon_code,
			"discount": self.tier.discount_description,
		}


@dataclass(frozen=True)
class StatsDelta:

	score_delta: int
	cases_solved_delta: int
	reward_attempts_used_delta: int
	new_streak: int


@dataclass(frozen=True)
class AttemptResult:

	score: ScoreBreakdown
	reward: RewardDecision
	delta: StatsDelta
	practice_mode: bool

	def to_dict(self) -> dict:
		tier = self.reward.tier
		return {
			"score": {
				"basePoints": self.score.base_points,
				"timeBonus": self.score.time_bonus,
				"streakBonus": self.score.streak_bonus,
				"totalScore": self.score.total_score,
			},
			"rewardTier": tier.tier_id if tier else None,
			"reward": self.reward.reward_payload(),
			"delta": asdict(self.delta),
			"isPracticeMode": self.practice_mode,
		}


def _require_int(value, name: str, minimum: int | None = None) -> None:
	# bool is an int subclass; reject it explicitly
	if isinstance(value, bool) or not isinstance(value, int):
		raise ValidationError(f"{name} must be an integer")
	if minimum is not None and value < minimum:
		raise ValidationError(f"{name} must be >= {minimum}")


def parse_attempt(payload: dict) -> Attempt:
	time_taken = payload.get("timeTaken")
	# JSON clients often send whole seconds as 45.0
	if isinstance(time_taken, float) and time_taken.is_integer():
		time_taken = int(time_taken)
	return Attempt(
		is_correct=payload.get("isCorrect"),
		time_taken_seconds=time_taken,
		is_practice_mode=payload.get("isPracticeMode", False),
		selected_option=payload.get("selectedOption"),
		difficulty=payload.get("difficulty"),
	)


def prior_stats_from_doc(doc: dict) -> UserStats:
	return UserStats(
		total_score=int(doc.get("totalScore") or 0),
		cases_solved=int(doc.get("casesSolved") or 0),
		reward_attempts_used=int(doc.get("rewardAttemptsUsed") or 0),
		current_streak=int(doc.get("currentStreak") or 0),
		best_streak=int(doc.get("bestStreak") or 0),
		total_attempts=int(doc.get("totalAttempts") or 0),
		practice_attempts=int(doc.get("practiceAttempts") or 0),
	)


def effective_practice_mode(attempt: Attempt, prior: UserStats, rules: GameRules) -> bool:
	"""Practice mode as flagged, or forced once the reward attempt cap is used up."""
	return attempt.is_practice_mode or prior.reward_attempts_used >= rules.max_reward_attempts


def load_reward_tiers(raw: Iterable[dict]) -> List[RewardTier]:
	tiers = [RewardTier.from_dict(item) for item in raw]
	seen = set()
	for tier in tiers:
		if tier.tier_id in seen:
			raise ValidationError(f"Duplicate reward tier: {tier.tier_id}")
		seen.add(tier.tier_id)
	return tiers


def resolve_reward_tier(total_score: int, tiers: Iterable[RewardTier]) -> Optional[RewardTier]:
	"""First tier in priority order whose range holds the score.

	Lower priority numbers are evaluated first. The sort is stable, so tiers
	sharing a priority keep their configured order.
	"""
	for tier in sorted(tiers, key=lambda t: t.priority):
		if tier.matches(total_score):
			return tier
	return None


def compute_score(attempt: Attempt, rules: GameRules, prior: UserStats) -> tuple[ScoreBreakdown, int]:
	if not attempt.is_correct:
		return ScoreBreakdown(0, 0, 0, 0), 0
	base = rules.base_points
	time_bonus = rules.time_bonus if attempt.time_taken_seconds < rules.time_bonus_threshold_seconds else 0
	new_streak = prior.current_streak + 1
	streak_bonus = rules.streak_bonus if new_streak >= rules.streak_bonus_threshold else 0
	return ScoreBreakdown(base, time_bonus, streak_bonus, base + time_bonus + streak_bonus), new_streak


def score_attempt(
	attempt: Attempt,
	rules: GameRules,
	prior: UserStats,
	tiers: Iterable[RewardTier],
	practice_mode: bool,
) -> AttemptResult:
	"""Score one attempt and resolve its reward.

	``practice_mode`` is the effective flag computed by the caller (see
	``effective_practice_mode``); it is taken as given here.
	"""
	if not isinstance(practice_mode, bool):
		raise ValidationError("practice_mode must be a boolean")
	score, new_streak = compute_score(attempt, rules, prior)
	tier = resolve_reward_tier(score.total_score, tiers) if attempt.is_correct else None
	granted = tier is not None and not practice_mode and bool(tier.coupon_code)
	delta = StatsDelta(
		score_delta=score.total_score,
		cases_solved_delta=1 if attempt.is_correct else 0,
		reward_attempts_used_delta=0 if practice_mode else 1,
		new_streak=new_streak,
	)
	return AttemptResult(
		score=score,
		reward=RewardDecision(tier=tier, granted=granted),
		delta=delta,
		practice_mode=practice_mode,
	)


def project_stats(prior: UserStats, result: AttemptResult) -> UserStats:
	"""Stats as they read after applying the delta locally."""
	delta = result.delta
	return UserStats(
		total_score=prior.total_score + delta.score_delta,
		cases_solved=prior.cases_solved + delta.cases_solved_delta,
		reward_attempts_used=prior.reward_attempts_used + delta.reward_attempts_used_delta,
		current_streak=delta.new_streak,
		best_streak=max(prior.best_streak, delta.new_streak),
		total_attempts=prior.total_attempts + 1,
		practice_attempts=prior.practice_attempts + (1 if result.practice_mode else 0),
	)


RANK_TITLES = (
	(300, "Diagnostic Novice"),
	(800, "Clinical Sleuth"),
	(1500, "Chief Diagnostician"),
)


def rank_title(total_score: int) -> str:
	for ceiling, title in RANK_TITLES:
		if total_score < ceiling:
			return title
	return "Master Detective"


class ScoringService:

	def __init__(self, rules: GameRules | None = None, tiers: Iterable[RewardTier] | None = None):
		self.rules = rules or GameRules()
		self.tiers = list(tiers) if tiers is not None else load_reward_tiers(Config.REWARD_TIERS)

	def score(self, attempt: Attempt, prior: UserStats) -> AttemptResult:
		practice = effective_practice_mode(attempt, prior, self.rules)
		return score_attempt(attempt, self.rules, prior, self.tiers, practice)

	def public_config(self) -> dict:
		return {
			"game": {
				"maxRewardAttempts": self.rules.max_reward_attempts,
				"timePerCase": Config.TIME_PER_CASE,
				"basePoints": self.rules.base_points,
				"timeBonusThreshold": self.rules.time_bonus_threshold_seconds,
				"timeBonus": self.rules.time_bonus,
				"streakBonusThreshold": self.rules.streak_bonus_threshold,
				"streakBonus": self.rules.streak_bonus,
			},
			"rewards": [t.public_dict() for t in sorted(self.tiers, key=lambda t: t.priority)],
		}


scoring_service = ScoringService(
	GameRules(
		base_points=Config.BASE_POINTS,
		time_bonus_threshold_seconds=Config.TIME_BONUS_THRESHOLD,
		time_bonus=Config.TIME_BONUS,
		streak_bonus_threshold=Config.STREAK_BONUS_THRESHOLD,
		streak_bonus=Config.STREAK_BONUS,
		max_reward_attempts=Config.MAX_REWARD_ATTEMPTS,
	)
)
