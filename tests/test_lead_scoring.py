"""리드 스코어링 테스트 - 규칙 평가, 등급, 점수 저장 API.

Lead scoring tests - Rule evaluation, grade boundaries and the API that
stores scores on records.
"""

import pytest
from httpx import AsyncClient

from app.services.lead_scoring_service import evaluate_rule, grade_for, score_data
from tests.conftest import auth_header

SCORING = "/api/lead-scoring"

QUALIFIED_CONTACT = {
    "name": "Ada",
    "email": "ada@example.com",
    "phone": "+1 555 0100",
    "job_title": "VP of Sales",
    "company_size": 600,
    "budget": "50k",
    "is_decision_maker": True,
    "timeline": "Q3",
}


async def create_contact(client: AsyncClient, token: str, object_id: str, data: dict) -> dict:
    res = await client.post("/api/records", json={"object_id": object_id, "data": data}, headers=auth_header(token))
    assert res.status_code == 201, res.text
    return res.json()


class TestRules:
    """규칙 평가 단위 테스트."""

    def test_exists_ignores_empty_string(self):
        rule = {"field": "budget", "operator": "exists", "value": True}
        assert evaluate_rule(rule, {"budget": "10k"})[0] is True
        assert evaluate_rule(rule, {"budget": ""}) == (False, "budget is missing")

    def test_contains_is_case_insensitive(self):
        rule = {"field": "job_title", "operator": "contains", "value": ["CEO", "VP"]}
        assert evaluate_rule(rule, {"job_title": "vp engineering"})[0] is True
        assert evaluate_rule(rule, {"job_title": 3}) == (False, "job_title is not a string")

    def test_equals_does_not_treat_one_as_true(self):
        rule = {"field": "is_decision_maker", "operator": "equals", "value": True}
        assert evaluate_rule(rule, {"is_decision_maker": True})[0] is True
        assert evaluate_rule(rule, {"is_decision_maker": 1})[0] is False

    def test_greater_than_reads_numeric_strings(self):
        rule = {"field": "company_size", "operator": "greater_than", "value": 50}
        assert evaluate_rule(rule, {"company_size": "120"})[0] is True
        assert evaluate_rule(rule, {"company_size": "big"}) == (False, "company_size is not a number")

    @pytest.mark.parametrize(
        "score,grade",
        [(100, "A"), (80, "A"), (79.9, "B"), (60, "B"), (40, "C"), (20, "D"), (19.9, "F"), (0, "F")],
    )
    def test_grade_boundaries(self, score, grade):
        assert grade_for(score) == grade

    def test_total_is_normalized(self):
        rules = [
            {"name": "A", "category": "bant", "field": "a", "operator": "exists", "value": True, "score": 30},
            {"name": "B", "category": "engagement", "field": "b", "operator": "exists", "value": True, "score": 10},
        ]
        total, factors = score_data({"a": "yes"}, rules)
        assert total == 75.0
        assert factors["bant"] == {
            "score": 30,
            "max_score": 30,
            "details": [{"rule": "A", "field": "a", "matched": True, "score": 30, "reason": "a is present"}],
        }
        assert factors["behavioral"]["max_score"] == 0


class TestLeadScoringApi:
    """점수 계산/조회 API 테스트."""

    async def test_calculate_persists_score_and_grade(self, client: AsyncClient, owner_token, system_objects):
        headers = auth_header(owner_token)
        record = await create_contact(client, owner_token, system_objects["contacts"]["id"], QUALIFIED_CONTACT)

        assert (await client.get(f"{SCORING}/record/{record['id']}", headers=headers)).json() is None

        res = await client.post(f"{SCORING}/record/{record['id']}/calculate", headers=headers)
        assert res.status_code == 200
        body = res.json()
        # 90 of 130 points: the creation note counts as recent activity
        assert body["total_score"] == 69.2
        assert body["grade"] == "B"
        assert body["factors"]["firmographic"]["score"] == 25

        stored = (await client.get(f"/api/records/{record['id']}", headers=headers)).json()
        assert stored["score"] == 69.2

    async def test_recalculate_after_meeting_raises_grade(self, client: AsyncClient, owner_token, system_objects):
        headers = auth_header(owner_token)
        record = await create_contact(client, owner_token, system_objects["contacts"]["id"], QUALIFIED_CONTACT)
        await client.post(f"{SCORING}/record/{record['id']}/calculate", headers=headers)

        await client.post(
            "/api/activities", json={"record_id": record["id"], "type": "CALL", "title": "Discovery call"}, headers=headers
        )
        res = await client.post(f"{SCORING}/record/{record['id']}/calculate", headers=headers)
        assert res.json()["total_score"] == 80.8
        assert res.json()["grade"] == "A"

        stored = (await client.get(f"{SCORING}/record/{record['id']}", headers=headers)).json()
        assert stored["grade"] == "A"

    async def test_recalculate_object_and_distribution(self, client: AsyncClient, owner_token, system_objects):
        headers = auth_header(owner_token)
        contacts_id = system_objects["contacts"]["id"]
        strong = await create_contact(client, owner_token, contacts_id, QUALIFIED_CONTACT)
        weak = await create_contact(client, owner_token, contacts_id, {"name": "Bob"})

        res = await client.post(f"{SCORING}/object/{contacts_id}/recalculate", headers=headers)
        assert res.json() == {"processed": 2, "errors": 0}

        distribution = (await client.get(f"{SCORING}/object/{contacts_id}/distribution", headers=headers)).json()
        assert distribution == {"A": 0, "B": 1, "C": 0, "D": 0, "F": 1}

        leads = (await client.get(f"{SCORING}/object/{contacts_id}/leads", params={"grade": "f"}, headers=headers)).json()
        assert [lead["record_id"] for lead in leads] == [weak["id"]]

        listing = (await client.get(
            "/api/records",
            params={"object_id": contacts_id, "sort_by": "score", "sort_order": "desc"},
            headers=headers,
        )).json()
        assert [item["id"] for item in listing["data"]] == [strong["id"], weak["id"]]

    async def test_unknown_record_is_404(self, client: AsyncClient, owner_token):
        res = await client.post(
            f"{SCORING}/record/00000000-0000-0000-0000-000000000000/calculate", headers=auth_header(owner_token)
        )
        assert res.status_code == 404

    async def test_rules_and_grades(self, client: AsyncClient, member_token):
        headers = auth_header(member_token)
        rules = (await client.get(f"{SCORING}/rules", headers=headers)).json()
        assert {rule["category"] for rule in rules} == {"demographic", "firmographic", "engagement", "bant"}
        grades = (await client.get(f"{SCORING}/grades", headers=headers)).json()
        assert grades == {"A": 80, "B": 60, "C": 40, "D": 20, "F": 0}
