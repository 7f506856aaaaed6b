"""리드 스코어링 서비스 - 규칙 기반 점수, 등급, 분포.

Lead Scoring Service - Scores a record against fixed rules grouped into
five categories, normalizes the sum to 0-100 and maps it to an A-F grade.
The result is stored in ``lead_scores`` and copied to ``records.score``.

Rules read the record's ``data`` plus engagement counters derived from its
activities and tasks (``_activities_count``, ``_activities_recent``,
``_meetings_count``, ``_tasks_count``).
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.activity import Activity
from app.models.crm import CrmObject, Record
from app.models.lead_score import LeadScore
from app.repositories.activity_repository import activity_repository
from app.repositories.lead_score_repository import lead_score_repository
from app.repositories.object_repository import object_repository
from app.repositories.record_repository import record_repository
from app.repositories.task_repository import task_repository
from app.utils.exceptions import NotFoundError

logger = logging.getLogger(__name__)

# 등급 하한 - 높은 등급부터 (Lower bound per grade, best first)
GRADE_THRESHOLDS: dict[str, int] = {"A": 80, "B": 60, "C": 40, "D": 20, "F": 0}
CATEGORIES: tuple[str, ...] = ("demographic", "firmographic", "behavioral", "engagement", "bant")

RECENT_WINDOW: timedelta = timedelta(days=7)
ACTIVITY_SAMPLE: int = 100
MEETING_TYPES: frozenset[str] = frozenset({"MEETING", "CALL"})


def _rule(rule_id: str, name: str, category: str, field: str, operator: str, value: Any, score: int) -> dict[str, Any]:
    return {
        "id": rule_id,
        "name": name,
        "category": category,
        "field": field,
        "operator": operator,
        "value": value,
        "score": score,
    }


SCORING_RULES: list[dict[str, Any]] = [
    _rule("job_title_executive", "Executive Job Title", "demographic", "job_title", "contains",
          ["CEO", "CTO", "CFO", "VP", "Director", "Head"], 15),
    _rule("job_title_manager", "Manager Job Title", "demographic", "job_title", "contains",
          ["Manager", "Lead", "Senior"], 10),
    _rule("has_email", "Has Email Address", "demographic", "email", "exists", True, 5),
    _rule("has_phone", "Has Phone Number", "demographic", "phone", "exists", True, 5),
    _rule("company_size_enterprise", "Enterprise Company (500+)", "firmographic", "company_size", "greater_than", 500, 15),
    _rule("company_size_mid", "Mid-size Company (50-500)", "firmographic", "company_size", "greater_than", 50, 10),
    _rule("has_company", "Has Company Association", "firmographic", "company", "exists", True, 5),
    _rule("recent_activity", "Recent Activity (7 days)", "engagement", "_activities_recent", "greater_than", 0, 10),
    _rule("multiple_activities", "Multiple Activities (3+)", "engagement", "_activities_count", "greater_than", 3, 10),
    _rule("has_meetings", "Has Scheduled Meetings", "engagement", "_meetings_count", "greater_than", 0, 15),
    _rule("has_budget", "Budget Confirmed", "bant", "budget", "exists", True, 10),
    _rule("is_decision_maker", "Is Decision Maker", "bant", "is_decision_maker", "equals", True, 10),
    _rule("has_timeline", "Has Timeline", "bant", "timeline", "exists", True, 10),
]


def _number(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def evaluate_rule(rule: dict[str, Any], data: dict[str, Any]) -> tuple[bool, str]:
    """규칙 한 개를 평가합니다 - (일치 여부, 사유).

    Evaluate one rule against enriched record data.

    Returns:
        tuple[bool, str]: (matched, reason)
    """
    field: str = rule["field"]
    expected: Any = rule["value"]
    actual: Any = data.get(field)
    operator: str = rule["operator"]

    if operator == "exists":
        present: bool = actual is not None and actual != ""
        return present == expected, f"{field} is present" if present else f"{field} is missing"

    if operator == "equals":
        matched: bool = actual == expected and isinstance(actual, type(expected))
        return matched, f"{field} matches expected value" if matched else f"{field} does not match"

    if operator == "contains":
        if not isinstance(actual, str):
            return False, f"{field} is not a string"
        candidates: list[Any] = expected if isinstance(expected, list) else [expected]
        matched = any(str(candidate).lower() in actual.lower() for candidate in candidates)
        return matched, f"{field} contains target value" if matched else f"{field} does not contain target"

    if operator in ("greater_than", "less_than"):
        number: float | None = _number(actual)
        if number is None:
            return False, f"{field} is not a number"
        if operator == "greater_than":
            matched = number > float(expected)
            return matched, f"{field} ({number:g}) {'>' if matched else '<='} {expected}"
        matched = number < float(expected)
        return matched, f"{field} ({number:g}) {'<' if matched else '>='} {expected}"

    if operator == "in":
        candidates = expected if isinstance(expected, list) else [expected]
        matched = actual in candidates
        return matched, f"{field} is in allowed values" if matched else f"{field} is not in allowed values"

    return False, "Unknown operator"


def grade_for(score: float) -> str:
    """점수 → 등급 (A >= 80, B >= 60, C >= 40, D >= 20, else F)."""
    for grade, minimum in GRADE_THRESHOLDS.items():
        if score >= minimum:
            return grade
    return "F"


def score_data(data: dict[str, Any], rules: list[dict[str, Any]] | None = None) -> tuple[float, dict[str, Any]]:
    """규칙을 적용해 (0-100 점수, 카테고리별 내역)을 반환합니다.

    A rule's ``score`` counts toward its category maximum whether or not it
    matches; the total is the matched sum over the overall maximum.
    """
    factors: dict[str, Any] = {category: {"score": 0, "max_score": 0, "details": []} for category in CATEGORIES}
    for rule in rules if rules is not None else SCORING_RULES:
        matched, reason = evaluate_rule(rule, data)
        category: dict[str, Any] = factors.setdefault(rule["category"], {"score": 0, "max_score": 0, "details": []})
        category["max_score"] += rule["score"]
        if matched:
            category["score"] += rule["score"]
        category["details"].append(
            {
                "rule": rule["name"],
                "field": rule["field"],
                "matched": matched,
                "score": rule["score"] if matched else 0,
                "reason": reason,
            }
        )

    total_max: int = sum(category["max_score"] for category in factors.values())
    total: int = sum(category["score"] for category in factors.values())
    normalized: float = total / total_max * 100 if total_max > 0 else 0.0
    return round(normalized, 1), factors


class LeadScoringService:
    """리드 스코어링 서비스 (Lead scoring service)."""

    def to_dict(self, score: LeadScore) -> dict[str, Any]:
        return {
            "record_id": str(score.record_id),
            "total_score": score.total_score,
            "grade": score.grade,
            "factors": score.factors or {},
            "calculated_at": score.calculated_at,
        }

    async def _get_record(self, db: AsyncSession, record_id: UUID, organization_id: UUID) -> Record:
        record: Record | None = await record_repository.get_by_id(db, record_id, organization_id)
        if record is None:
            raise NotFoundError("Record not found")
        return record

    async def _get_object(self, db: AsyncSession, object_id: UUID, organization_id: UUID) -> CrmObject:
        obj: CrmObject | None = await object_repository.get_by_id(db, object_id, organization_id)
        if obj is None:
            raise NotFoundError("Object not found")
        return obj

    async def enrich(self, db: AsyncSession, record: Record, now: datetime | None = None) -> dict[str, Any]:
        """레코드 data에 활동/업무 카운터를 더합니다 (Record data plus engagement counters)."""
        now = now or datetime.now(timezone.utc)
        activities: list[Activity] = await activity_repository.get_timeline(
            db, record.id, record.organization_id, ACTIVITY_SAMPLE
        )
        recent: int = 0
        for activity in activities:
            created_at: datetime = activity.created_at
            if created_at.tzinfo is None:
                created_at = created_at.replace(tzinfo=timezone.utc)
            if created_at > now - RECENT_WINDOW:
                recent += 1
        return {
            **(record.data or {}),
            "_activities_count": len(activities),
            "_activities_recent": recent,
            "_meetings_count": sum(1 for activity in activities if activity.type in MEETING_TYPES),
            "_tasks_count": await task_repository.count_for_record(db, record.id),
        }

    async def calculate(self, db: AsyncSession, record_id: UUID, organization_id: UUID) -> dict[str, Any]:
        """레코드 점수를 계산하고 저장합니다.

        Score a record, upsert its ``lead_scores`` row and copy the total to
        ``records.score``.

        Raises:
            NotFoundError: 레코드가 없을 때 (Record not found)
        """
        record: Record = await self._get_record(db, record_id, organization_id)
        total, factors = score_data(await self.enrich(db, record))
        grade: str = grade_for(total)
        now: datetime = datetime.now(timezone.utc)

        score: LeadScore | None = await lead_score_repository.get_by_record(db, record.id)
        if score is None:
            score = await lead_score_repository.create(
                db,
                {
                    "organization_id": organization_id,
                    "record_id": record.id,
                    "total_score": total,
                    "grade": grade,
                    "factors": factors,
                    "calculated_at": now,
                },
            )
        else:
            score.total_score = total
            score.grade = grade
            score.factors = factors
            score.calculated_at = now
        record.score = total
        await db.flush()

        logger.info("Lead score calculated", extra={"record_id": str(record.id), "score": total, "grade": grade})
        return self.to_dict(score)

    async def get_score(self, db: AsyncSession, record_id: UUID, organization_id: UUID) -> dict[str, Any] | None:
        """저장된 점수 또는 None (Stored score, or None when never calculated)."""
        await self._get_record(db, record_id, organization_id)
        score: LeadScore | None = await lead_score_repository.get_by_record(db, record_id)
        return self.to_dict(score) if score is not None else None

    async def recalculate_object(self, db: AsyncSession, object_id: UUID, organization_id: UUID) -> dict[str, int]:
        """오브젝트의 보관되지 않은 모든 레코드를 재계산합니다.

        Recalculate every active record of an object. Each record runs in its
        own savepoint; failures are logged and counted.

        Returns:
            dict: {"processed": int, "errors": int}
        """
        await self._get_object(db, object_id, organization_id)
        records: list[Record] = await record_repository.get_all_for_object(db, object_id, organization_id)
        processed: int = 0
        errors: int = 0
        for record in records:
            try:
                async with db.begin_nested():
                    await self.calculate(db, record.id, organization_id)
                processed += 1
            except Exception:
                logger.exception("Lead score calculation failed", extra={"record_id": str(record.id)})
                errors += 1

        logger.info(
            "Lead scores recalculated",
            extra={"object_id": str(object_id), "processed": processed, "errors": errors},
        )
        return {"processed": processed, "errors": errors}

    async def get_distribution(self, db: AsyncSession, object_id: UUID, organization_id: UUID) -> dict[str, int]:
        """등급별 레코드 수 - 모든 등급 포함 (Record count per grade, zero-filled)."""
        await self._get_object(db, object_id, organization_id)
        counts: dict[str, int] = await lead_score_repository.count_by_grade(db, object_id, organization_id)
        return {grade: counts.get(grade, 0) for grade in GRADE_THRESHOLDS}

    async def get_leads_by_grade(
        self,
        db: AsyncSession,
        object_id: UUID,
        organization_id: UUID,
        grade: str,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        await self._get_object(db, object_id, organization_id)
        scores: list[LeadScore] = await lead_score_repository.get_by_grade(
            db, object_id, organization_id, grade.upper(), limit
        )
        return [
            {"record_id": str(score.record_id), "total_score": score.total_score, "calculated_at": score.calculated_at}
            for score in scores
        ]


# 싱글턴 인스턴스 - Singleton instance
lead_scoring_service: LeadScoringService = LeadScoringService()
