"""
Data models for airdrop-checker.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class AirdropStatus(str, Enum):
    """Lifecycle status of an airdrop record."""

    ACTIVE = "active"
    UPCOMING = "upcoming"
    ENDED = "ended"


class ChangeType(str, Enum):
    """Kind of row change delivered by a change subscription."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class EmailErrorKind(str, Enum):
    """Classified reason for a failed email delivery."""

    INVALID_CONFIGURATION = "invalid-configuration"  # 400
    QUOTA_EXCEEDED = "quota-exceeded"  # 402
    ACCESS_DENIED = "access-denied"  # 403
    NOT_FOUND = "not-found"  # 404
    TRANSPORT_DIAGNOSTIC = "transport-diagnostic"  # free text from the service
    GENERIC_NETWORK_FAILURE = "generic-network-failure"


class SubmissionStage(str, Enum):
    """States of the submission pipeline, in order."""

    VALIDATING = "validating"
    RATE_CHECKING = "rate_checking"
    PERSISTING = "persisting"
    NOTIFYING = "notifying"
    DONE = "done"


class SubmissionStatus(str, Enum):
    """End-to-end outcome of one submission attempt."""

    VALIDATION_ERROR = "validation_error"
    RATE_LIMITED = "rate_limited"
    PERSISTENCE_ERROR = "persistence_error"
    SAVED_NOT_NOTIFIED = "saved_not_notified"
    DELIVERED = "delivered"


# User-facing messages for terminal outcomes
MESSAGE_DELIVERED = "Merci ! Votre suggestion a été envoyée."
MESSAGE_SAVED_NOT_NOTIFIED = "Suggestion enregistrée mais erreur d'envoi email."
MESSAGE_PERSISTENCE_ERROR = "Erreur lors de l'enregistrement."


def _clean(value: Any) -> str:
    return value if isinstance(value, str) else ""


@dataclass
class SuggestionInput:
    """A user-submitted airdrop suggestion, before validation."""

    project_name: str = ""
    description: str = ""
    official_link: str = ""
    email: str | None = None
    criteria: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SuggestionInput":
        """Build from form data. Accepts camelCase or snake_case keys."""

        def pick(*keys: str) -> Any:
            for key in keys:
                if key in data:
                    return data[key]
            return None

        return cls(
            project_name=_clean(pick("projectName", "project_name")),
            description=_clean(pick("description")),
            official_link=_clean(pick("officialLink", "official_link")),
            email=pick("email", "user_email"),
            criteria=pick("criteria", "criteria_notes"),
        )

    def to_row(self) -> dict[str, Any]:
        """Map to the airdrop_suggestions table columns."""
        return {
            "project_name": self.project_name,
            "description": self.description,
            "official_link": self.official_link,
            "user_email": self.email or None,
            "criteria_notes": self.criteria or None,
        }


@dataclass
class ValidationResult:
    """Outcome of validating a SuggestionInput."""

    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class RateLimitDecision:
    """Answer from the rate limiter. A positive answer has consumed the permit."""

    allowed: bool
    message: str | None = None
    wait_seconds: int = 0


@dataclass(frozen=True)
class EmailError:
    """A classified email delivery failure."""

    kind: EmailErrorKind
    message: str
    status: int | None = None
    text: str | None = None


@dataclass(frozen=True)
class NotificationOutcome:
    """
    Result of one dispatch attempt.

    Attributes:
        success: Whether the delivery service accepted the message
        error: Classified failure (only when success is False)
        response_text: Body returned by the service on success
    """

    success: bool
    error: EmailError | None = None
    response_text: str | None = None

    @classmethod
    def ok(cls, response_text: str | None = None) -> "NotificationOutcome":
        return cls(success=True, response_text=response_text)

    @classmethod
    def failed(cls, error: EmailError) -> "NotificationOutcome":
        return cls(success=False, error=error)


@dataclass(frozen=True)
class EmailStats:
    """Snapshot of delivery counters."""

    sent: int = 0
    failed: int = 0
    last_error: EmailError | None = None


@dataclass
class SuggestionRecord:
    """A suggestion as stored in the airdrop_suggestions table."""

    id: Any
    project_name: str
    description: str
    official_link: str
    user_email: str | None = None
    criteria_notes: str | None = None
    processed: bool = False
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "SuggestionRecord":
        """Create from a store row, ignoring unknown columns."""
        return cls(
            id=row.get("id"),
            project_name=row.get("project_name", ""),
            description=row.get("description", ""),
            official_link=row.get("official_link", ""),
            user_email=row.get("user_email"),
            criteria_notes=row.get("criteria_notes"),
            processed=bool(row.get("processed", False)),
            created_at=row.get("created_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "project_name": self.project_name,
            "description": self.description,
            "official_link": self.official_link,
            "user_email": self.user_email,
            "criteria_notes": self.criteria_notes,
            "processed": self.processed,
            "created_at": self.created_at,
        }


@dataclass
class AirdropRecord:
    """An administrator-managed airdrop row. `data` keeps the full row."""

    id: Any
    status: str | None = None
    created_at: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "AirdropRecord":
        return cls(
            id=row.get("id"),
            status=row.get("status"),
            created_at=row.get("created_at"),
            data=dict(row),
        )

    @property
    def name(self) -> str | None:
        return self.data.get("name") or self.data.get("project_name")


@dataclass(frozen=True)
class ChangeEvent:
    """A row change pushed by a change subscription."""

    type: ChangeType
    table: str
    schema: str = "public"
    record: dict[str, Any] = field(default_factory=dict)
    old_record: dict[str, Any] = field(default_factory=dict)
    commit_timestamp: str | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "ChangeEvent":
        """Parse the `data` object of a postgres_changes message."""
        return cls(
            type=ChangeType((data.get("type") or "").upper()),
            table=data.get("table", ""),
            schema=data.get("schema", "public"),
            record=data.get("record") or {},
            old_record=data.get("old_record") or {},
            commit_timestamp=data.get("commit_timestamp"),
        )


@dataclass
class SubmissionResult:
    """
    Composite result of one pipeline run.

    `persisted` and `notified` are reported separately so callers can tell
    "fully delivered" apart from "saved, notification failed".
    """

    persisted: bool = False
    notified: bool = False
    errors: list[str] = field(default_factory=list)
    status: SubmissionStatus = SubmissionStatus.VALIDATION_ERROR
    stage: SubmissionStage = SubmissionStage.VALIDATING
    record: SuggestionRecord | None = None
    notification_error: EmailError | None = None

    @property
    def user_message(self) -> str:
        """Human-readable message for the end user."""
        if self.status == SubmissionStatus.DELIVERED:
            return MESSAGE_DELIVERED
        if self.status == SubmissionStatus.SAVED_NOT_NOTIFIED:
            return MESSAGE_SAVED_NOT_NOTIFIED
        if self.status == SubmissionStatus.PERSISTENCE_ERROR:
            return MESSAGE_PERSISTENCE_ERROR
        return "\n".join(self.errors)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {
            "persisted": self.persisted,
            "notified": self.notified,
            "errors": list(self.errors),
            "status": self.status.value,
            "stage": self.stage.value,
        }
        if self.record:
            result["record"] = self.record.to_dict()
        if self.notification_error:
            result["notification_error"] = self.notification_error.message
        return result
