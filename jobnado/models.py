"""Data models for CV analysis, job opportunities and alerts.

The LLM speaks camelCase JSON (``hardSkills``, ``suggestedRoles``); the
``from_dict`` / ``to_dict`` helpers translate between that wire shape and the
snake_case attributes used in Python.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

FREQUENCIES: tuple[str, ...] = ("daily", "weekly")


class SchemaViolation(ValueError):
    """Model output did not match the requested JSON shape."""


def _str_list(data: dict, key: str, *, required: bool = True) -> list[str]:
    value = data.get(key)
    if value is None:
        if required:
            raise SchemaViolation(f"missing required field {key!r}")
        return []
    if not isinstance(value, list):
        raise SchemaViolation(f"field {key!r} must be a list, got {type(value).__name__}")
    return [str(v).strip() for v in value if str(v).strip()]


@dataclass
class BooleanSearchString:
    label: str
    query: str
    explanation: str

    def to_dict(self) -> dict[str, str]:
        return {"label": self.label, "query": self.query, "explanation": self.explanation}


@dataclass
class CVAnalysis:
    hard_skills: list[str]
    soft_skills: list[str]
    experience_level: str
    suggested_roles: list[str]
    adjacent_industries: list[str] = field(default_factory=list)
    boolean_strings: list[BooleanSearchString] = field(default_factory=list)

    @property
    def primary_role(self) -> str:
        return self.suggested_roles[0]

    @classmethod
    def from_dict(cls, data: Any) -> CVAnalysis:
        if not isinstance(data, dict):
            raise SchemaViolation(f"analysis must be an object, got {type(data).__name__}")
        roles = _str_list(data, "suggestedRoles")
        if not roles:
            raise SchemaViolation("suggestedRoles is empty")
        level = data.get("experienceLevel")
        if level is None:
            raise SchemaViolation("missing required field 'experienceLevel'")

        strings: list[BooleanSearchString] = []
        for item in data.get("antigravityBooleanStrings") or []:
            if not isinstance(item, dict):
                continue
            strings.append(
                BooleanSearchString(
                    label=str(item.get("label", "")).strip(),
                    query=str(item.get("query", "")).strip(),
                    explanation=str(item.get("explanation", "")).strip(),
                )
            )

        return cls(
            hard_skills=_str_list(data, "hardSkills"),
            soft_skills=_str_list(data, "softSkills"),
            experience_level=str(level).strip(),
            suggested_roles=roles,
            adjacent_industries=_str_list(data, "adjacentIndustries", required=False),
            boolean_strings=strings,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "hardSkills": list(self.hard_skills),
            "softSkills": list(self.soft_skills),
            "experienceLevel": self.experience_level,
            "suggestedRoles": list(self.suggested_roles),
            "adjacentIndustries": list(self.adjacent_industries),
            "antigravityBooleanStrings": [b.to_dict() for b in self.boolean_strings],
        }


@dataclass
class JobOpportunity:
    id: str
    title: str
    company: str
    match_score: int
    reasoning: str
    application_url: str | None = None
    is_simulated: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JobOpportunity:
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            company=data.get("company", ""),
            match_score=int(data.get("matchScore", 0)),
            reasoning=data.get("reasoning", ""),
            application_url=data.get("applicationUrl"),
            is_simulated=bool(data.get("isSimulated", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "company": self.company,
            "matchScore": self.match_score,
            "reasoning": self.reasoning,
            "applicationUrl": self.application_url,
            "isSimulated": self.is_simulated,
        }


@dataclass
class Source:
    title: str
    uri: str


@dataclass
class Evaluation:
    score: int
    feedback: str
    improved_answer: str

    @classmethod
    def from_dict(cls, data: Any) -> Evaluation:
        if not isinstance(data, dict):
            raise SchemaViolation("evaluation must be an object")
        try:
            score = int(data["score"])
        except (KeyError, TypeError, ValueError) as exc:
            raise SchemaViolation(f"invalid evaluation score: {exc}") from exc
        return cls(
            score=max(0, min(score, 100)),
            feedback=str(data.get("feedback", "")).strip(),
            improved_answer=str(data.get("improvedAnswer", "")).strip(),
        )


@dataclass
class Alert:
    email: str
    role: str
    country: str
    frequency: str = "daily"
    is_active: bool = True
    last_alerted_at: datetime | None = None
    id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        self.frequency = (self.frequency or "").lower().strip()
        if self.frequency not in FREQUENCIES:
            raise ValueError(f"frequency must be one of {FREQUENCIES}, got {self.frequency!r}")
        if "@" not in self.email:
            raise ValueError(f"invalid alert email: {self.email!r}")
