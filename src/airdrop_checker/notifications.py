"""
Email notifications for airdrop suggestions.

Builds template params from a suggestion, sends them through EmailJS and turns
any failure into a classified EmailError. Admin notifications feed the stats
tracker exactly once per attempt; user confirmations are best-effort and
untracked.
"""

import logging
from datetime import datetime

from .config import EmailJSConfig
from .emailjs import EmailJSClient, EmailSendError
from .models import EmailError, EmailErrorKind, NotificationOutcome, SuggestionInput
from .stats import StatsTracker, get_stats_tracker

logger = logging.getLogger(__name__)

NOT_PROVIDED = "Non fourni"
NOT_SPECIFIED = "Non spécifié"

# Status codes with a dedicated meaning; they win over any diagnostic text
STATUS_KINDS = {
    400: EmailErrorKind.INVALID_CONFIGURATION,
    402: EmailErrorKind.QUOTA_EXCEEDED,
    403: EmailErrorKind.ACCESS_DENIED,
    404: EmailErrorKind.NOT_FOUND,
}

KIND_MESSAGES = {
    EmailErrorKind.INVALID_CONFIGURATION: "Configuration EmailJS invalide. Vérifiez vos clés.",
    EmailErrorKind.QUOTA_EXCEEDED: "Limite d'emails atteinte. Vérifiez votre plan EmailJS.",
    EmailErrorKind.ACCESS_DENIED: "Accès refusé. Vérifiez votre Public Key.",
    EmailErrorKind.NOT_FOUND: "Service ou template introuvable.",
    EmailErrorKind.GENERIC_NETWORK_FAILURE: "Erreur réseau. Vérifiez votre connexion.",
}


def format_timestamp(moment: datetime) -> str:
    """Format like a fr-FR locale string: 17/10/2026 13:05:02."""
    return moment.strftime("%d/%m/%Y %H:%M:%S")


def classify_email_error(error: EmailSendError) -> EmailErrorKind:
    """Map a delivery failure to its kind: status code, then text, then network."""
    if error.status in STATUS_KINDS:
        return STATUS_KINDS[error.status]
    if error.text:
        return EmailErrorKind.TRANSPORT_DIAGNOSTIC
    return EmailErrorKind.GENERIC_NETWORK_FAILURE


def email_error_message(error: EmailSendError) -> str:
    """User-facing message for a delivery failure."""
    kind = classify_email_error(error)
    if kind == EmailErrorKind.TRANSPORT_DIAGNOSTIC:
        return f"Erreur: {error.text}"
    return KIND_MESSAGES[kind]


def error_of_kind(kind: EmailErrorKind) -> EmailError:
    return EmailError(kind=kind, message=KIND_MESSAGES[kind])


def to_email_error(error: EmailSendError) -> EmailError:
    return EmailError(
        kind=classify_email_error(error),
        message=email_error_message(error),
        status=error.status,
        text=error.text,
    )


class NotificationDispatcher:
    """Sends suggestion emails and records admin delivery outcomes."""

    def __init__(
        self,
        config: EmailJSConfig,
        client: EmailJSClient | None = None,
        stats: StatsTracker | None = None,
        now=datetime.now,
    ):
        self.config = config
        self.client = client or EmailJSClient(
            public_key=config.public_key,
            private_key=config.private_key,
            api_base=config.api_base,
            timeout_seconds=config.timeout_seconds,
        )
        self.stats = stats or get_stats_tracker()
        self._now = now

    def build_admin_params(self, suggestion: SuggestionInput) -> dict[str, str]:
        """Template params for the administrator notification."""
        return {
            "project_name": suggestion.project_name,
            "description": suggestion.description,
            "official_link": suggestion.official_link,
            "user_email": suggestion.email or NOT_PROVIDED,
            "criteria_notes": suggestion.criteria or NOT_SPECIFIED,
            "submission_date": format_timestamp(self._now()),
            "to_email": self.config.admin_email,
        }

    async def notify_admin(self, suggestion: SuggestionInput) -> NotificationOutcome:
        """Tell the administrator about a new suggestion."""
        outcome = await self._send_admin(suggestion)
        self.stats.record(outcome)
        return outcome

    async def _send_admin(self, suggestion: SuggestionInput) -> NotificationOutcome:
        if not self.config.is_configured():
            logger.warning("EmailJS is not configured, admin notification skipped")
            return NotificationOutcome.failed(error_of_kind(EmailErrorKind.INVALID_CONFIGURATION))

        try:
            response_text = await self.client.send(
                self.config.service_id,
                self.config.template_id,
                self.build_admin_params(suggestion),
            )
        except EmailSendError as e:
            error = to_email_error(e)
            logger.error(f"Admin notification failed ({error.kind.value}): {e}")
            return NotificationOutcome.failed(error)
        except Exception:
            logger.exception("Unexpected error sending admin notification")
            return NotificationOutcome.failed(error_of_kind(EmailErrorKind.GENERIC_NETWORK_FAILURE))

        logger.info(f"Admin notified of suggestion {suggestion.project_name!r}")
        return NotificationOutcome.ok(response_text)

    async def notify_user(
        self, email: str | None, project_name: str
    ) -> NotificationOutcome | None:
        """
        Send the submitter a confirmation, if they left an address.

        Returns None without doing anything when no email was supplied.
        """
        if not email:
            return None

        if not self.config.is_configured():
            logger.warning("EmailJS is not configured, user confirmation skipped")
            return NotificationOutcome.failed(error_of_kind(EmailErrorKind.INVALID_CONFIGURATION))

        params = {
            "user_email": email,
            "project_name": project_name,
            "confirmation_date": format_timestamp(self._now()),
        }

        try:
            response_text = await self.client.send(
                self.config.service_id,
                self.config.confirmation_template_id,
                params,
            )
        except EmailSendError as e:
            logger.warning(f"User confirmation failed: {e}")
            return NotificationOutcome.failed(to_email_error(e))
        except Exception:
            logger.exception("Unexpected error sending user confirmation")
            return NotificationOutcome.failed(error_of_kind(EmailErrorKind.GENERIC_NETWORK_FAILURE))

        logger.info(f"Confirmation sent for {project_name!r}")
        return NotificationOutcome.ok(response_text)
