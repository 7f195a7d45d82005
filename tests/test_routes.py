import pytest

from services.firebase_service import firebase_service
from services.magento_service import DirectoryUnavailable, magento_service
from utils.demo_data import DEMO_USERS


def _submit(client, **overrides):
	body = {
		"userId": "uid-demo",
		"caseId": "case-101",
		"caseCode": "DD-101",
		"selectedOption": "B",
		"isCorrect": True,
		"timeTaken": 45,
		"isPracticeMode": False,
		"difficulty": "medium",
	}
	body.update(overrides)
	return client.post("/api/attempts", json=body)


def test_health(client):
	resp = client.get("/health")
	assert resp.status_code == 200
	assert resp.get_json()["status"] == "ok"


def test_submit_scores_and_grants_reward(client, demo_mode):
	resp = _submit(client)
	assert resp.status_code == 200
	data = resp.get_json()
	assert data["success"] is True
	assert data["score"] == {"basePoints": 100, "timeBonus": 50, "streakBonus": 25, "totalScore": 175}
	assert data["reward"] == {"name": "Elements Retract Complete Kit", "code": "PERFECT15", "discount": "15% + Free Product"}
	assert data["newStats"] == {"rewardAttemptsUsed": 2, "totalScore": 625, "casesSolved": 5}
	assert data["newStreak"] == 3
	assert data["statsUpdated"] is True
	assert data["attempt"]["attemptNumber"] == 6
	assert demo_mode.case_play_counts["case-101"] == 1
	assert demo_mode.attempts[0]["couponCode"] == "PERFECT15"


def test_submit_after_cap_is_practice(client, demo_mode):
	_submit(client)
	data = _submit(client, caseId="case-102").get_json()
	assert data["isPracticeMode"] is True
	assert data["reward"] is None
	assert data["newStats"]["rewardAttemptsUsed"] == 2
	assert demo_mode.users["uid-demo"]["practiceAttempts"] == 5


def test_explicit_practice_mode(client, demo_mode):
	data = _submit(client, userId="uid-meera", isPracticeMode=True).get_json()
	assert data["reward"] is None
	assert data["score"]["totalScore"] == 150
	assert data["newStats"] == {"rewardAttemptsUsed": 0, "totalScore": 150, "casesSolved": 1}


def test_incorrect_attempt(client, demo_mode):
	data = _submit(client, isCorrect=False, timeTaken=10).get_json()
	assert data["score"]["totalScore"] == 0
	assert data["newStreak"] == 0
	assert data["reward"] is None
	assert data["newStats"] == {"rewardAttemptsUsed": 2, "totalScore": 450, "casesSolved": 4}


def test_missing_user_id_is_400(client):
	resp = client.post("/api/attempts", json={"caseId": "c", "isCorrect": True, "timeTaken": 3})
	assert resp.status_code == 400
	assert resp.get_json()["success"] is False


def test_missing_case_is_400(client):
	resp = _submit(client, caseId=None, caseCode=None)
	assert resp.status_code == 400


def test_case_code_alone_is_enough(client, demo_mode):
	resp = _submit(client, caseId=None, caseCode="DD-7")
	assert resp.status_code == 200
	assert demo_mode.case_play_counts["DD-7"] == 1


def test_malformed_json_is_500_with_details(client):
	resp = client.post("/api/attempts", data="{not json", content_type="application/json")
	assert resp.status_code == 500
	body = resp.get_json()
	assert body["success"] is False
	assert "details" in body


@pytest.mark.parametrize("overrides", [{"timeTaken": -5}, {"isCorrect": "true"}, {"isPracticeMode": "no"}])
def test_invalid_fields_are_400(client, demo_mode, overrides):
	resp = _submit(client, **overrides)
	assert resp.status_code == 400
	assert demo_mode.attempts == []


def test_unknown_user_is_404(client):
	assert _submit(client, userId="uid-ghost").status_code == 404


def test_stats_failure_still_records_attempt(client, demo_mode, monkeypatch):
	def fail(*args, **kwargs):
		raise RuntimeError("datastore timeout")

	monkeypatch.setattr(firebase_service, "apply_stats_delta", fail)
	data = _submit(client).get_json()
	assert data["success"] is True
	assert data["statsUpdated"] is False
	assert data["newStats"] == {"rewardAttemptsUsed": 2, "totalScore": 625, "casesSolved": 5}
	assert len(demo_mode.attempts) == 1


def test_attempt_write_failure_is_500(client, monkeypatch):
	def fail(*args, **kwargs):
		raise RuntimeError("insert failed")

	monkeypatch.setattr(firebase_service, "record_attempt", fail)
	resp = _submit(client)
	assert resp.status_code == 500
	assert resp.get_json()["error"] == "Failed to record attempt"


def test_validate_existing_customer(client):
	resp = client.post("/api/auth/validate-customer", json={"email": "demo@pinkblue.in"})
	assert resp.status_code == 200
	user = resp.get_json()["user"]
	assert user["id"] == "uid-demo"
	assert user["rankTitle"] == "Clinical Sleuth"


def test_validate_creates_new_player(client, demo_mode):
	resp = client.post("/api/auth/validate-customer", json={"email": "new.doc@clinic.in"})
	assert resp.status_code == 200
	user = resp.get_json()["user"]
	assert user["displayName"] == "Dr. new.doc"
	assert user["totalScore"] == 0
	assert demo_mode.user_by_email("new.doc@clinic.in") is not None


def test_validate_rejects_bad_email(client):
	assert client.post("/api/auth/validate-customer", json={"email": "not-an-email"}).status_code == 400


def test_validate_unknown_directory_customer_is_404(client, monkeypatch):
	monkeypatch.setattr(type(magento_service), "enabled", property(lambda self: True))
	monkeypatch.setattr(magento_service, "find_customer", lambda email: None)
	resp = client.post("/api/auth/validate-customer", json={"email": "stranger@clinic.in"})
	assert resp.status_code == 404


def test_validate_survives_directory_outage(client, monkeypatch):
	def down(email):
		raise DirectoryUnavailable("timeout")

	monkeypatch.setattr(type(magento_service), "enabled", property(lambda self: True))
	monkeypatch.setattr(magento_service, "find_customer", down)
	resp = client.post("/api/auth/validate-customer", json={"email": "walkin@clinic.in"})
	assert resp.status_code == 200


def test_leaderboard(client):
	data = client.get("/api/leaderboard?limit=2").get_json()
	assert data["success"] is True
	assert [row["displayName"] for row in data["leaderboard"]] == ["Dr. Ananya Rao", "Dr. Demo Dentist"]
	assert data["leaderboard"][0]["rank"] == 1


def test_leaderboard_skips_zero_scores(client):
	names = [row["displayName"] for row in client.get("/api/leaderboard").get_json()["leaderboard"]]
	assert "Dr. Meera Iyer" not in names


def test_rank(client):
	data = client.get("/api/leaderboard/rank?userId=uid-demo").get_json()
	assert data["currentRank"] == 2
	assert data["pointsToNextRank"] == 475


def test_user_profile(client):
	data = client.get("/api/user/uid-kabir").get_json()
	assert data["user"]["rewardAttemptsUsed"] == 2


def test_config_is_public(client):
	data = client.get("/api/config").get_json()
	assert data["game"]["maxRewardAttempts"] == 2
	assert data["rewards"][0]["tierId"] == "perfect"
	assert "couponCode" not in data["rewards"][0]


def test_claim_reward_once(client):
	_submit(client)
	resp = client.post("/api/rewards/claim", json={"userId": "uid-demo", "tierId": "perfect"})
	assert resp.status_code == 200
	data = resp.get_json()
	assert data["couponCode"] == "PERFECT15"
	assert data["expiry"]
	again = client.post("/api/rewards/claim", json={"userId": "uid-demo", "tierId": "perfect"})
	assert again.status_code == 403


def test_claim_without_reward_is_forbidden(client):
	resp = client.post("/api/rewards/claim", json={"userId": "uid-meera", "tierId": "good"})
	assert resp.status_code == 403


@pytest.mark.parametrize("user_id", [["uid-demo"], {"a": 1}, 42, "   "])
def test_non_string_user_id_is_400(client, demo_mode, user_id):
	resp = _submit(client, userId=user_id)
	assert resp.status_code == 400
	assert resp.get_json()["success"] is False
	assert demo_mode.attempts == []


def test_list_case_id_is_400(client):
	assert _submit(client, caseId=["case-1"]).status_code == 400


def test_empty_body_reports_missing_fields(client):
	resp = client.post("/api/attempts", data="", content_type="application/json")
	assert resp.status_code == 400
	assert "userId" in resp.get_json()["error"]


def test_malformed_json_details_come_from_parser(client):
	resp = client.post("/api/attempts", data="[1,", content_type="text/plain")
	assert resp.status_code == 500
	assert resp.get_json()["details"]


def test_claim_with_non_string_tier_is_400(client):
	resp = client.post("/api/rewards/claim", json={"userId": "uid-demo", "tierId": ["perfect"]})
	assert resp.status_code == 400


def test_played_cases(client):
	_submit(client, caseCode="DD-101")
	_submit(client, caseId="case-9", caseCode="DD-9")
	_submit(client, caseCode="DD-101")
	data = client.get("/api/user/uid-demo/played-cases").get_json()
	assert data["success"] is True
	assert data["playedCases"] == ["DD-101", "DD-9"]


def test_played_cases_empty_for_new_player(client):
	data = client.get("/api/user/uid-meera/played-cases").get_json()
	assert data["playedCases"] == []


def test_played_cases_unknown_user_is_404(client):
	assert client.get("/api/user/uid-ghost/played-cases").status_code == 404


@pytest.mark.parametrize("seed", DEMO_USERS, ids=lambda u: u["userId"])
def test_demo_seed_counters_add_up(seed):
	assert seed["rewardAttemptsUsed"] + seed["practiceAttempts"] == seed["totalAttempts"]
	assert seed["rewardAttemptsUsed"] <= 2
