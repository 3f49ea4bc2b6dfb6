"""Phase 1: deep CV analysis into skills, roles and boolean search strings."""
from __future__ import annotations

from typing import Any, Callable

from jobnado.cv_input import CVInput, ImageInput, TextInput
from jobnado.llm import InlineData, PromptPart, StructuredGenerationClient
from jobnado.log import get_logger
from jobnado.models import CVAnalysis
from jobnado.retry import RetryPolicy, linear_backoff

log = get_logger(__name__)

MAX_CV_CHARS = 40_000
ANALYSIS_ATTEMPTS = 3
ANALYSIS_BASE_DELAY = 1.0

ANALYSIS_PROMPT = """\
You are the "Antigravity Job Agent". Your task is to perform a deep semantic analysis of the provided CV.

1. Extract specific Hard Skills and Soft Skills.
2. Identify the Experience Level (e.g., Junior, Mid-Senior, C-Suite).
3. Infer "Role Permutations": do not stop at the literal job title. If they are a
   "Content Writer", also consider "Copywriter", "Strategist", etc. List the best fit first.
4. Identify "Adjacent Industries" where their skills apply.
5. Create exactly 3 distinct "Antigravity Boolean Search Strings" for job aggregators (like LinkedIn/Indeed).
   - String 1 (Strict): (Role A OR Role B) AND (Skill 1 AND Skill 2)
   - String 2 (Creative): Focus on the problem they solve, not just titles.
   - String 3 (Niche): Focus on adjacent industries or specific high-value skills.
"""

_STRING_LIST: dict[str, Any] = {"type": "array", "items": {"type": "string"}}

ANALYSIS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "hardSkills": _STRING_LIST,
        "softSkills": _STRING_LIST,
        "experienceLevel": {"type": "string"},
        "suggestedRoles": _STRING_LIST,
        "adjacentIndustries": _STRING_LIST,
        "antigravityBooleanStrings": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "label": {"type": "string", "description": "Short name for this search strategy"},
                    "query": {"type": "string", "description": "The actual boolean string"},
                    "explanation": {"type": "string", "description": "Why this strategy works"},
                },
                "required": ["label", "query", "explanation"],
            },
        },
    },
    "required": [
        "hardSkills", "softSkills", "experienceLevel",
        "suggestedRoles", "antigravityBooleanStrings",
    ],
}


def build_prompt_parts(cv_input: CVInput) -> list[PromptPart]:
    """Instruction plus either the (truncated) CV text or the raw image."""
    if isinstance(cv_input, ImageInput):
        if not cv_input.data:
            raise ValueError("CV image is empty")
        return [ANALYSIS_PROMPT, InlineData(mime_type=cv_input.mime_type, data=cv_input.data)]
    if isinstance(cv_input, TextInput):
        if not cv_input.text.strip():
            raise ValueError("CV text is empty")
        text = cv_input.text[:MAX_CV_CHARS]
        if len(cv_input.text) > MAX_CV_CHARS:
            log.debug("CV text truncated from %d to %d chars", len(cv_input.text), MAX_CV_CHARS)
        return [ANALYSIS_PROMPT, f"CV TEXT:\n{text}"]
    raise TypeError(f"unsupported CV input: {type(cv_input).__name__}")


class CVAnalysisStage:
    def __init__(
        self,
        client: StructuredGenerationClient,
        *,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.client = client
        self.policy = RetryPolicy(
            ANALYSIS_ATTEMPTS,
            linear_backoff(ANALYSIS_BASE_DELAY),
            sleep=sleep,
            name="CV analysis",
        )

    def analyze(self, cv_input: CVInput) -> CVAnalysis:
        """Return the structured analysis or raise the last underlying error.

        Empty input raises ValueError before any remote call is made.
        """
        parts = build_prompt_parts(cv_input)

        def attempt() -> CVAnalysis:
            data = self.client.generate(parts, ANALYSIS_SCHEMA, name="cv_analysis")
            return CVAnalysis.from_dict(data)

        analysis = self.policy.execute(attempt)
        log.info(
            "CV analysis complete — level=%s, roles=%d, hard skills=%d",
            analysis.experience_level,
            len(analysis.suggested_roles),
            len(analysis.hard_skills),
        )
        return analysis
