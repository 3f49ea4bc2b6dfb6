"""Build the pipeline's collaborators from :class:`~jobnado.config.Settings`."""
from __future__ import annotations

from jobnado.alerts import AlertStore, CsvAlertStore, SupabaseAlertStore
from jobnado.analysis import CVAnalysisStage
from jobnado.artifacts import ArtifactGenerator
from jobnado.config import Settings, require
from jobnado.grounded import GroundedSearchClient
from jobnado.llm import StructuredGenerationClient
from jobnado.log import get_logger
from jobnado.mailer import EmailSender, ResendSender, SmtpSender
from jobnado.opportunities import OpportunitySearchStage
from jobnado.session import JobSearchSession, SessionStore
from jobnado.sweep import AlertSweepJob

log = get_logger(__name__)


def build_llm_client(settings: Settings) -> StructuredGenerationClient:
    return StructuredGenerationClient(
        api_key=require(settings.gemini_api_key, "GEMINI_API_KEY"),
        model=settings.analysis_model,
        base_url=settings.llm_base_url,
    )


def build_search_client(settings: Settings) -> GroundedSearchClient:
    return GroundedSearchClient(
        api_key=require(settings.gemini_api_key, "GEMINI_API_KEY"),
        model=settings.search_model,
    )


def build_alert_store(settings: Settings) -> AlertStore:
    if settings.alert_store == "supabase":
        return SupabaseAlertStore(
            require(settings.supabase_url, "SUPABASE_URL"),
            require(settings.supabase_key, "SUPABASE_SERVICE_ROLE_KEY"),
        )
    return CsvAlertStore()


def build_sender(settings: Settings) -> EmailSender | None:
    """Configured email backend, or None when its credentials are missing."""
    if settings.email_backend == "resend":
        if settings.resend_api_key:
            return ResendSender(settings.resend_api_key)
    elif all([settings.smtp_host, settings.smtp_user, settings.smtp_password]):
        return SmtpSender(settings.smtp_host, settings.smtp_port, settings.smtp_user, settings.smtp_password)
    log.warning("Email backend %r not configured — emails will be skipped", settings.email_backend)
    return None


def build_session(settings: Settings, store: SessionStore | None = None) -> JobSearchSession:
    return JobSearchSession(
        CVAnalysisStage(build_llm_client(settings)),
        OpportunitySearchStage(build_search_client(settings), strategy=settings.search_retry_strategy),
        store=store,
        default_country=settings.default_country,
    )


def build_artifacts(settings: Settings) -> ArtifactGenerator:
    return ArtifactGenerator(build_llm_client(settings))


def build_sweep(settings: Settings) -> AlertSweepJob:
    return AlertSweepJob(
        build_alert_store(settings),
        build_search_client(settings),
        build_sender(settings),
        settings.alert_from_email,
    )
