"""
Submission pipeline for airdrop suggestions.

A submission moves through Validating -> RateChecking -> Persisting ->
Notifying -> Done. The first three stages are terminal when they fail.
Notification never fails the submission: a stored suggestion whose email
could not be sent is reported as "saved, not notified".

Validation runs before the rate check, so a rejected form does not consume
the rate-limit permit. An admin email is only sent for a stored suggestion.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Protocol

from .config import AppConfig
from .models import (
    MESSAGE_PERSISTENCE_ERROR,
    SubmissionResult,
    SubmissionStage,
    SubmissionStatus,
    SuggestionInput,
    SuggestionRecord,
)
from .notifications import NotificationDispatcher
from .rate_limit import RateLimiter, get_rate_limiter
from .supabase import SupabaseClient
from .validation import validate_suggestion

logger = logging.getLogger(__name__)


class SuggestionStore(Protocol):
    """Anything that can durably store a suggestion."""

    async def create_suggestion(
        self, suggestion: SuggestionInput
    ) -> SuggestionRecord | None: ...


@dataclass
class StageResult:
    """Result from a pipeline stage."""

    success: bool
    errors: list[str] = field(default_factory=list)


class PipelineStage(ABC):
    """Base class for pipeline stages."""

    stage: SubmissionStage
    failure_status: SubmissionStatus | None = None

    @abstractmethod
    async def process(
        self, suggestion: SuggestionInput, result: SubmissionResult
    ) -> StageResult:
        """Run this stage, recording its effects on `result`."""
        pass


class ValidationStage(PipelineStage):
    """Stage 1: Structural checks on the form fields."""

    stage = SubmissionStage.VALIDATING
    failure_status = SubmissionStatus.VALIDATION_ERROR

    async def process(
        self, suggestion: SuggestionInput, result: SubmissionResult
    ) -> StageResult:
        validation = validate_suggestion(suggestion)
        return StageResult(success=validation.is_valid, errors=validation.errors)


class RateCheckStage(PipelineStage):
    """Stage 2: Consume the anti-spam permit."""

    stage = SubmissionStage.RATE_CHECKING
    failure_status = SubmissionStatus.RATE_LIMITED

    def __init__(self, rate_limiter: RateLimiter):
        self.rate_limiter = rate_limiter

    async def process(
        self, suggestion: SuggestionInput, result: SubmissionResult
    ) -> StageResult:
        decision = self.rate_limiter.can_send()
        if not decision.allowed:
            return StageResult(success=False, errors=[decision.message or ""])
        return StageResult(success=True)


class PersistStage(PipelineStage):
    """Stage 3: Store the suggestion."""

    stage = SubmissionStage.PERSISTING
    failure_status = SubmissionStatus.PERSISTENCE_ERROR

    def __init__(self, store: SuggestionStore):
        self.store = store

    async def process(
        self, suggestion: SuggestionInput, result: SubmissionResult
    ) -> StageResult:
        try:
            record = await self.store.create_suggestion(suggestion)
        except Exception:
            logger.exception(f"Error storing suggestion {suggestion.project_name!r}")
            record = None

        if record is None:
            return StageResult(success=False, errors=[MESSAGE_PERSISTENCE_ERROR])

        result.persisted = True
        result.record = record
        return StageResult(success=True)


class NotifyStage(PipelineStage):
    """Stage 4: Email the administrator, then optionally the submitter."""

    stage = SubmissionStage.NOTIFYING

    def __init__(self, dispatcher: NotificationDispatcher, send_user_confirmation: bool = False):
        self.dispatcher = dispatcher
        self.send_user_confirmation = send_user_confirmation

    async def process(
        self, suggestion: SuggestionInput, result: SubmissionResult
    ) -> StageResult:
        outcome = await self.dispatcher.notify_admin(suggestion)
        result.notified = outcome.success
        result.notification_error = outcome.error

        if self.send_user_confirmation:
            try:
                await self.dispatcher.notify_user(suggestion.email, suggestion.project_name)
            except Exception:
                logger.exception("Error sending user confirmation")

        # Never terminal: the suggestion is already stored
        return StageResult(success=True)


class SubmissionPipeline:
    """
    Runs a suggestion through every stage in order.

    The rate limiter and the dispatcher's stats tracker are shared
    process-wide; everything else is per submission.
    """

    def __init__(
        self,
        store: SuggestionStore,
        dispatcher: NotificationDispatcher,
        rate_limiter: RateLimiter | None = None,
        send_user_confirmation: bool = False,
    ):
        """
        Initialize the pipeline.

        Args:
            store: Persistence collaborator (SupabaseClient in production)
            dispatcher: Email notifications
            rate_limiter: Throttle (defaults to the process-wide limiter)
            send_user_confirmation: Also email the submitter when they gave an address
        """
        self.rate_limiter = rate_limiter or get_rate_limiter()
        self.stages: list[PipelineStage] = [
            ValidationStage(),
            RateCheckStage(self.rate_limiter),
            PersistStage(store),
            NotifyStage(dispatcher, send_user_confirmation),
        ]

    @classmethod
    def from_config(cls, config: AppConfig) -> "SubmissionPipeline":
        """Build a pipeline wired to the configured Supabase and EmailJS backends."""
        config.warn_if_unconfigured()
        return cls(
            store=SupabaseClient(config.supabase),
            dispatcher=NotificationDispatcher(config.emailjs),
            rate_limiter=get_rate_limiter(config.rate_limit.min_interval_seconds),
            send_user_confirmation=config.notifications.send_user_confirmation,
        )

    async def submit(self, suggestion: SuggestionInput | dict[str, Any]) -> SubmissionResult:
        """
        Process one submission attempt.

        Returns the composite result; never raises for remote failures.
        """
        if isinstance(suggestion, dict):
            suggestion = SuggestionInput.from_dict(suggestion)

        result = SubmissionResult()
        logger.info(f"Processing suggestion {suggestion.project_name!r}")

        for stage in self.stages:
            result.stage = stage.stage
            stage_result = await stage.process(suggestion, result)

            if not stage_result.success:
                result.status = stage.failure_status
                result.errors = stage_result.errors
                logger.warning(
                    f"Suggestion {suggestion.project_name!r} stopped at "
                    f"{stage.stage.value}: {'; '.join(stage_result.errors)}"
                )
                return result

        result.stage = SubmissionStage.DONE
        result.status = (
            SubmissionStatus.DELIVERED if result.notified else SubmissionStatus.SAVED_NOT_NOTIFIED
        )
        logger.info(f"Suggestion {suggestion.project_name!r} finished: {result.status.value}")
        return result
