"""Streamlit UI for JobNado."""
from __future__ import annotations

import sys
from html import escape
from pathlib import Path
from typing import Any

import streamlit as st

ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(ROOT))

from jobnado.alerts import subscribe, unsubscribe
from jobnado.artifacts import ArtifactGenerator
from jobnado.config import ConfigError, Settings, load_settings
from jobnado.cv_input import TextInput, from_upload
from jobnado.geo import detect_country
from jobnado.log import get_logger
from jobnado.models import FREQUENCIES, JobOpportunity
from jobnado.services import build_alert_store, build_artifacts, build_sender, build_session
from jobnado.session import JobSearchSession, Phase, SessionState

log = get_logger(__name__)

COUNTRIES: list[str] = [
    "United States", "United Kingdom", "Canada", "Germany", "France", "Netherlands",
    "Spain", "Ireland", "India", "Australia", "Singapore", "United Arab Emirates",
    "Brazil", "Mexico", "South Africa", "Remote",
]

_CSS = """
<style>
[data-testid="stAppViewContainer"] {
    background: linear-gradient(135deg, #0f172a 0%, #1e1b4b 60%, #0f172a 100%);
}
.job-card {
    padding: 1rem 1.25rem;
    background: rgba(30,41,59,0.75);
    border: 1px solid rgba(129,140,248,0.3);
    border-radius: 12px;
    margin-bottom: 0.5rem;
}
.sim-badge {
    font-size: 0.7rem; padding: 2px 8px; border-radius: 8px;
    background: rgba(234,179,8,0.2); color: #facc15;
}
</style>
"""

# ── Helpers ──────────────────────────────────────────────────────────────


class StreamlitSessionStore:
    """Keeps the serialized session in ``st.session_state``."""

    KEY = "_jobnado_state"

    def load(self) -> SessionState | None:
        data = st.session_state.get(self.KEY)
        return SessionState.from_dict(data) if data else None

    def save(self, state: SessionState) -> None:
        st.session_state[self.KEY] = state.to_dict()

    def clear(self) -> None:
        st.session_state.pop(self.KEY, None)


@st.cache_resource
def _settings() -> Settings:
    return load_settings()


@st.cache_resource
def _artifacts() -> ArtifactGenerator:
    return build_artifacts(_settings())


def _session() -> JobSearchSession:
    session = build_session(_settings(), store=StreamlitSessionStore())
    if "_country_detected" not in st.session_state:
        st.session_state["_country_detected"] = True
        detected = detect_country()
        if detected and session.state.phase == Phase.IDLE:
            session.set_country(detected)
    return session


def _country_index(country: str) -> int:
    return COUNTRIES.index(country) if country in COUNTRIES else 0


# ── Sections ─────────────────────────────────────────────────────────────


def _section_input(session: JobSearchSession) -> None:
    st.subheader("1 — Your CV")
    country = st.selectbox("Target country", COUNTRIES, index=_country_index(session.state.country))
    uploaded = st.file_uploader(
        "Upload your CV (PDF, DOCX, TXT or an image)",
        type=["pdf", "docx", "txt", "png", "jpg", "jpeg", "webp"],
    )
    pasted = st.text_area("…or paste it here", value=session.state.cv_text, height=220)

    if st.button("Analyze CV", type="primary", use_container_width=True):
        session.set_country(country)
        try:
            cv_input = from_upload(uploaded.name, uploaded.getvalue()) if uploaded else TextInput(pasted)
        except (ValueError, RuntimeError) as exc:
            st.error(f"Could not read the file: {exc}")
            return
        if isinstance(cv_input, TextInput) and not cv_input.text.strip():
            st.warning("Add your CV first.")
            return
        with st.spinner("Decoding your CV…"):
            session.analyze(cv_input)
        st.rerun()


def _section_analysis(session: JobSearchSession) -> None:
    analysis = session.state.analysis
    if analysis is None:
        return
    st.subheader("2 — Your Profile")
    c1, c2 = st.columns(2)
    c1.metric("Experience level", analysis.experience_level)
    c2.metric("Suggested roles", len(analysis.suggested_roles))
    st.markdown("**Hard skills:** " + ", ".join(analysis.hard_skills))
    st.markdown("**Soft skills:** " + ", ".join(analysis.soft_skills))
    if analysis.adjacent_industries:
        st.markdown("**Adjacent industries:** " + ", ".join(analysis.adjacent_industries))

    for b in analysis.boolean_strings:
        with st.expander(f"🔎 {b.label}"):
            st.code(b.query, language=None)
            st.caption(b.explanation)

    role = st.selectbox("Role to search", analysis.suggested_roles)
    c1, c2 = st.columns([3, 1])
    if c1.button(f"Find {role} jobs in {session.state.country}", type="primary", use_container_width=True):
        with st.spinner("Sweeping the web for live openings…"):
            session.search(role)
        st.rerun()
    if c2.button("Start over", use_container_width=True):
        session.reset()
        st.rerun()


def _job_tools(job: JobOpportunity, session: JobSearchSession) -> None:
    analysis = session.state.analysis
    artifacts = _artifacts()
    key = job.id
    t1, t2, t3 = st.tabs(["Outreach", "Cover letter", "Interview prep"])
    with t1:
        if st.button("Write outreach note", key=f"out-{key}"):
            st.session_state[f"out-{key}"] = artifacts.generate_outreach(job, analysis)
        if st.session_state.get(f"out-{key}"):
            st.text_area("Message", st.session_state[f"out-{key}"], key=f"out-text-{key}")
    with t2:
        if st.button("Generate cover letter", key=f"cl-{key}"):
            with st.spinner("Writing…"):
                st.session_state[f"cl-{key}"] = artifacts.generate_cover_letter(job, analysis)
        letter = st.session_state.get(f"cl-{key}")
        if letter:
            st.text_area("Cover letter", letter, height=320, key=f"cl-text-{key}")
            st.download_button("Download", letter, file_name=f"cover_letter_{job.company}.txt", key=f"cl-dl-{key}")
    with t3:
        if st.button("Load questions", key=f"iq-{key}"):
            st.session_state[f"iq-{key}"] = artifacts.generate_interview_questions(job, analysis)
        questions = st.session_state.get(f"iq-{key}") or []
        if questions:
            q = st.radio("Pick a question", questions, key=f"iq-pick-{key}")
            answer = st.text_area("Your answer", key=f"iq-ans-{key}")
            if st.button("Evaluate", key=f"iq-eval-{key}") and answer.strip():
                ev = artifacts.evaluate_interview_answer(q, answer)
                st.metric("Score", f"{ev.score}/100")
                st.write(ev.feedback)
                st.info(ev.improved_answer)


def _section_results(session: JobSearchSession) -> None:
    jobs = session.state.opportunities
    st.subheader(f"3 — Openings for {session.state.selected_role or 'you'}")
    if any(j.is_simulated for j in jobs):
        st.warning("Live search is unavailable right now. These are simulated leads linking to job-board searches.")
    for job in jobs:
        badge = '<span class="sim-badge">SIMULATED</span>' if job.is_simulated else ""
        st.markdown(
            f'<div class="job-card"><strong>{escape(job.title)}</strong> @ {escape(job.company)} '
            f"— {job.match_score}% {badge}<br><small>{escape(job.reasoning)}</small></div>",
            unsafe_allow_html=True,
        )
        if job.application_url:
            st.link_button("Apply", job.application_url)
        with st.expander("Tools"):
            _job_tools(job, session)
    if st.button("← Back to profile"):
        session.back()
        st.rerun()


# ── Pages ────────────────────────────────────────────────────────────────


def page_search() -> None:
    st.markdown(_CSS, unsafe_allow_html=True)
    st.header("JobNado AI")
    st.caption("Upload a CV, get a profile, and find live openings.")
    try:
        session = _session()
    except ConfigError as exc:
        st.error(str(exc))
        return

    if session.state.error:
        st.error(session.state.error)

    phase = session.state.phase
    if phase in (Phase.IDLE, Phase.ANALYZING):
        _section_input(session)
    elif phase in (Phase.REVIEW_ANALYSIS, Phase.SEARCHING):
        _section_analysis(session)
    elif phase == Phase.RESULTS:
        _section_results(session)


def page_alerts() -> None:
    st.markdown(_CSS, unsafe_allow_html=True)
    st.header("Job Alerts")
    settings = _settings()
    state: dict[str, Any] = st.session_state.get(StreamlitSessionStore.KEY) or {}
    default_role = state.get("selected_role") or ""
    default_country = state.get("country") or settings.default_country

    with st.form("alert"):
        email = st.text_input("Email")
        role = st.text_input("Role", value=default_role)
        country = st.selectbox("Country", COUNTRIES, index=_country_index(default_country))
        frequency = st.radio("Frequency", FREQUENCIES, horizontal=True)
        submitted = st.form_submit_button("Activate radar", type="primary")

    if submitted:
        if "@" not in email or not role.strip():
            st.error("Enter a valid email and role.")
        else:
            try:
                message = subscribe(
                    build_alert_store(settings),
                    _artifacts(),
                    email=email, role=role, country=country, frequency=frequency,
                    sender=build_sender(settings), from_addr=settings.alert_from_email,
                )
            except ConfigError as exc:
                st.error(str(exc))
            else:
                _session().subscribed()
                st.success(message)

    with st.expander("Unsubscribe"):
        out_email = st.text_input("Subscribed email", key="unsub-email")
        if st.button("Stop alerts") and out_email:
            count = unsubscribe(build_alert_store(settings), out_email)
            _session().unsubscribed()
            st.info(f"Deactivated {count} alert(s).")


def page_assistant() -> None:
    st.markdown(_CSS, unsafe_allow_html=True)
    st.header("Career Assistant")
    history: list[dict[str, str]] = st.session_state.setdefault(
        "_chat", [{"role": "model", "text": "Hello! I'm JobNado AI. How can I help you with your career journey today?"}]
    )
    for turn in history:
        with st.chat_message("assistant" if turn["role"] == "model" else "user"):
            st.write(turn["text"])
    prompt = st.chat_input("Ask about your job search…")
    if prompt:
        try:
            reply = _artifacts().chat_reply(history, prompt)
        except ConfigError as exc:
            st.error(str(exc))
            return
        history.append({"role": "user", "text": prompt})
        history.append({"role": "model", "text": reply})
        st.rerun()


pages = [
    st.Page(page_search, title="Search", icon="🚀", url_path="search", default=True),
    st.Page(page_alerts, title="Alerts", icon="📡", url_path="alerts"),
    st.Page(page_assistant, title="Assistant", icon="💬", url_path="assistant"),
]

nav = st.navigation(pages)
nav.run()
