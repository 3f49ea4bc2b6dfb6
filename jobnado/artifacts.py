"""Nice-to-have LLM outputs: outreach, interview prep, cover letters, confirmations.

Every generator makes one call and never raises; on any failure (or a blank
answer) it returns a context-filled fallback instead.
"""
from __future__ import annotations

import functools
import json
from pathlib import Path
from typing import Any, Callable, Sequence

from jobnado.config import DATA_DIR
from jobnado.llm import StructuredGenerationClient
from jobnado.log import get_logger
from jobnado.models import CVAnalysis, Evaluation, JobOpportunity, SchemaViolation

log = get_logger(__name__)


def with_fallback(fallback: Any) -> Callable:
    """Decorator: return *fallback* instead of raising or returning nothing.

    *fallback* is either a value or a callable taking the same arguments as
    the wrapped function (minus ``self``).
    """

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            try:
                result = fn(self, *args, **kwargs)
                if result:
                    return result
                log.warning("%s returned nothing, using fallback", fn.__name__)
            except Exception as exc:
                log.warning("%s failed (%s), using fallback", fn.__name__, exc)
            return fallback(*args, **kwargs) if callable(fallback) else fallback

        return wrapper

    return decorator


# ── Fallbacks ────────────────────────────────────────────────────────────


def _fallback_outreach(job: JobOpportunity, analysis: CVAnalysis) -> str:
    return (
        f"I am writing to express my strong interest in the {job.title} position. "
        "My background aligns perfectly with your needs."
    )


def _fallback_questions(job: JobOpportunity, analysis: CVAnalysis) -> list[str]:
    skill = analysis.hard_skills[0] if analysis.hard_skills else "your core skills"
    return [
        f"Tell me about yourself and why you are interested in the {job.title} role.",
        f"What do you know about {job.company} and why do you want to work here?",
        f"Describe a project where you used {skill} to solve a difficult problem.",
        "Tell me about a time you faced a conflict in a team. How did you resolve it?",
        "Where do you see yourself in five years?",
    ]


def _fallback_evaluation(question: str, answer: str) -> Evaluation:
    return Evaluation(
        score=75,
        feedback="Good effort! Your answer covers the basics, but could use more specific examples.",
        improved_answer=(
            "Try using the STAR method (Situation, Task, Action, Result) to structure "
            "your answer with a concrete example and a measurable outcome."
        ),
    )


def _fallback_cover_letter(job: JobOpportunity, analysis: CVAnalysis) -> str:
    return f"""Dear Hiring Manager,

I am writing to express my interest in the {job.title} position at {job.company}.

[We apologize, but the AI cover letter could not be generated at this moment. Please try again later.]

Sincerely,
[Your Name]"""


def _fallback_confirmation(role: str, country: str, email: str) -> str:
    return f"Radar active. Scanning for {role} in {country}. Reports will be sent to {email}."


CHAT_FALLBACK = "I encountered a glitch in the matrix. Please try again."

CHAT_SYSTEM = (
    "You are JobNado AI, a concise and friendly career assistant. Help with job "
    "search strategy, CVs, interviews and career moves. Keep answers under 150 words."
)

EVALUATION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "score": {"type": "integer", "description": "0-100"},
        "feedback": {"type": "string", "description": "Short constructive feedback"},
        "improvedAnswer": {"type": "string", "description": "A stronger version of the answer"},
    },
    "required": ["score", "feedback", "improvedAnswer"],
}


def _extract_string_array(raw: str) -> list[str]:
    start = raw.find("[")
    end = raw.rfind("]") + 1
    if start == -1 or end == 0:
        raise SchemaViolation("LLM did not return a JSON array")
    value = json.loads(raw[start:end])
    if not isinstance(value, list):
        raise SchemaViolation("LLM did not return a JSON array")
    return [str(q).strip() for q in value if str(q).strip()]


class ArtifactGenerator:
    def __init__(self, client: StructuredGenerationClient) -> None:
        self.client = client

    @with_fallback(_fallback_outreach)
    def generate_outreach(self, job: JobOpportunity, analysis: CVAnalysis) -> str:
        prompt = f"""Write a short, high-impact "Cold Outreach" message (LinkedIn connection note style, max 300 characters) to a recruiter at {job.company} regarding the {job.title} role.

My Core Skills: {', '.join(analysis.hard_skills[:3])}.
Why I fit: {job.reasoning}.
My Level: {analysis.experience_level}.

Tone: Professional, confident, "Antigravity" (defying norms, standing out).
Do not use placeholders like "[Your Name]". Sign off with "A passionate candidate" or similar if needed, or just leave it open.
The goal is to get them to look at my profile."""
        return self.client.complete(prompt)

    @with_fallback(_fallback_questions)
    def generate_interview_questions(self, job: JobOpportunity, analysis: CVAnalysis) -> list[str]:
        prompt = f"""You are an interviewer at {job.company} hiring for a {job.title}.
The candidate is {analysis.experience_level} level with skills in {', '.join(analysis.hard_skills[:5])}.

Write 5 interview questions for this candidate: 2 technical, 2 behavioral and 1 about the company or role.
Return ONLY a JSON array of 5 strings, no other text."""
        questions = _extract_string_array(self.client.complete(prompt))[:5]
        if questions and len(questions) < 5:
            # top up with generic questions the model did not already ask
            extra = [q for q in _fallback_questions(job, analysis) if q not in questions]
            questions += extra[: 5 - len(questions)]
        return questions

    @with_fallback(_fallback_evaluation)
    def evaluate_interview_answer(self, question: str, answer: str) -> Evaluation:
        prompt = f"""You are an expert interview coach. Evaluate the candidate's answer.

Question: {question}
Candidate's answer: {answer}

Score the answer from 0 to 100, give short constructive feedback (2-3 sentences),
and write an improved version of the answer using the STAR method where it fits."""
        data = self.client.generate([prompt], EVALUATION_SCHEMA, name="answer_evaluation")
        return Evaluation.from_dict(data)

    @with_fallback(_fallback_cover_letter)
    def generate_cover_letter(self, job: JobOpportunity, analysis: CVAnalysis) -> str:
        prompt = f"""Write a professional cover letter (250-300 words) for the {job.title} position at {job.company}.

Candidate profile:
- Experience level: {analysis.experience_level}
- Hard skills: {', '.join(analysis.hard_skills[:6])}
- Soft skills: {', '.join(analysis.soft_skills[:3])}
- Why they fit: {job.reasoning}

Structure:
1. Hook: open with a confident statement about what the candidate brings to {job.company}.
2. Body: two short paragraphs linking the skills above to the role with concrete impact.
3. Closing: a clear call to action asking for an interview.

Use "I" and "my". Do not invent employers or degrees. End with "Sincerely," and leave the name line as "[Your Name]"."""
        return self.client.complete(prompt)

    @with_fallback(_fallback_confirmation)
    def generate_alert_confirmation(self, role: str, country: str, email: str) -> str:
        prompt = f"""The user has just subscribed to "Antigravity Job Alerts".
Role: {role}
Location: {country}
Email: {email}

Generate a short, futuristic "Mission Confirmation" message (max 2 sentences).
Confirm that the "Passive Radar" is now scanning for this role and results will be sent to the provided email.
Tone: High-tech, professional, empowering."""
        return self.client.complete(prompt)

    @with_fallback(CHAT_FALLBACK)
    def chat_reply(self, history: Sequence[dict[str, str]], message: str) -> str:
        return self.client.chat(history, message, system=CHAT_SYSTEM)


def save_cover_letter(job: JobOpportunity, content: str, directory: Path | None = None) -> Path:
    directory = directory or DATA_DIR
    directory.mkdir(parents=True, exist_ok=True)
    safe = "".join(c if c.isalnum() or c in " -_" else "_" for c in job.company)[:40].strip()
    path = directory / f"cover_{job.id}_{safe or 'company'}.txt"
    path.write_text(content, encoding="utf-8")
    log.info("Cover letter saved → %s", path.name)
    return path
