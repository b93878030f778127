"""
Client-side orchestration of the quota-gated flows.

``ConversationOrchestrator`` drives the analyze/continue prompt enhancement
chat; ``IdeaValidationFlow`` runs the single-shot idea validation. Both check
the usage ledger before calling out and record usage only after a validated
terminal result has been delivered.
"""

import threading
import time
from contextlib import contextmanager
from enum import Enum
from typing import Callable, Optional, Tuple

from ideaforge.constants import (
    DAILY_ENHANCEMENT_LIMIT,
    DAILY_VALIDATION_LIMIT,
    MAX_AUTO_RETRIES,
    MAX_ROUND_TRIPS,
    RETRY_BACKOFF_SECONDS,
)
from ideaforge.errors import (
    ConversationBusy,
    ConversationLimitReached,
    ConversationStateError,
    IdeaForgeError,
    InvalidInput,
    QuotaExceeded,
    UsageLedgerUnavailable,
)
from ideaforge.models.conversation import Continuing, Done, EnhancementResult, Transcript, Turn
from ideaforge.models.idea import AppIdea
from ideaforge.models.usage import OperationKind
from ideaforge.models.validation import ValidationScorecard
from ideaforge.usage_ledger import UsageLedger
from ideaforge.utils.logger import logger
from ideaforge.utils.retry import call_with_retries


def ensure_quota(ledger: UsageLedger, subject: str, kind: OperationKind, daily_limit: int) -> int:
    """
    Check the daily ceiling before an expensive operation.

    Fails closed: when the ledger cannot be read the limit is treated as reached.

    Returns:
        How many operations remain today, including the one about to start
    """
    try:
        used = ledger.count_today(subject, kind)
    except UsageLedgerUnavailable:
        logger.error(f"Usage for {subject} could not be verified, refusing {kind.value}")
        raise QuotaExceeded("We couldn't verify your daily usage right now. Please try again later.")

    if used >= daily_limit:
        logger.info(f"{subject} reached the daily {kind.value} limit ({used}/{daily_limit})")
        raise QuotaExceeded(
            f"You've used all {daily_limit} {kind.value}s for today. Come back tomorrow for more!"
        )
    return daily_limit - used


def _record_usage(ledger: UsageLedger, subject: str, kind: OperationKind) -> None:
    try:
        ledger.record(subject, kind)
    except UsageLedgerUnavailable as e:
        # The result was already delivered; losing one record only under-counts
        logger.error(f"Failed to record {kind.value} usage for {subject}: {e}")


class ConversationState(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    AWAITING_USER_INPUT = "awaiting_user_input"
    SUBMITTING = "submitting"
    TERMINAL = "terminal"
    CLOSED = "closed"


class ConversationOrchestrator:
    """
    Drives one prompt enhancement session against the stateless endpoint.

    Single-flight: while a request is outstanding any further ``start`` or
    ``submit`` raises ``ConversationBusy``. ``close`` may be called at any time;
    a reply arriving after it is discarded.
    """

    def __init__(
        self,
        endpoint,
        usage_ledger: UsageLedger,
        subject: str,
        original_prompt: str,
        *,
        kind: OperationKind = OperationKind.ENHANCEMENT,
        daily_limit: int = DAILY_ENHANCEMENT_LIMIT,
        max_round_trips: int = MAX_ROUND_TRIPS,
        max_retries: int = MAX_AUTO_RETRIES,
        retry_delay: float = RETRY_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            endpoint: Object with ``analyze(prompt)`` and
                ``continue_conversation(prompt, turns)``, e.g. EnhancementService
            usage_ledger: Ledger checked before starting and written on success
            subject: Identity the session runs on behalf of
            original_prompt: The prompt being enhanced
        """
        self.endpoint = endpoint
        self.usage_ledger = usage_ledger
        self.subject = subject
        self.original_prompt = original_prompt
        self.kind = kind
        self.daily_limit = daily_limit
        self.max_round_trips = max_round_trips
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep

        self._state = ConversationState.IDLE
        self._transcript = Transcript()
        self._artifact: Optional[str] = None
        self._round_trips = 0
        self.remaining: Optional[int] = None

        self._flight_lock = threading.Lock()
        self._state_lock = threading.Lock()

    @property
    def state(self) -> ConversationState:
        return self._state

    @property
    def transcript(self) -> Tuple[Turn, ...]:
        return self._transcript.turns

    @property
    def artifact(self) -> Optional[str]:
        return self._artifact

    @property
    def round_trips(self) -> int:
        return self._round_trips

    def start(self) -> Optional[EnhancementResult]:
        """
        Check the quota and send the analyze request.

        Returns:
            The endpoint's result, or None when the session was closed while waiting
        """
        with self._single_flight():
            if self._state != ConversationState.IDLE:
                raise ConversationStateError("This conversation has already started.")
            if not self.original_prompt or not self.original_prompt.strip():
                raise InvalidInput("Please enter a prompt first.")

            self.remaining = ensure_quota(self.usage_ledger, self.subject, self.kind, self.daily_limit)

            self._state = ConversationState.ANALYZING
            return self._exchange(
                lambda: self.endpoint.analyze(self.original_prompt),
                self._transcript,
                ConversationState.ANALYZING,
                ConversationState.IDLE,
            )

    def submit(self, text: str) -> Optional[EnhancementResult]:
        """
        Send the user's reply with the full transcript.

        Returns:
            The endpoint's result, or None when the session was closed while waiting
        """
        with self._single_flight():
            if self._state != ConversationState.AWAITING_USER_INPUT:
                raise ConversationStateError(f"Cannot send a reply while the conversation is {self._state.value}.")
            if not text or not text.strip():
                raise InvalidInput("Please type a reply first.")
            if self._round_trips >= self.max_round_trips:
                logger.warning(f"Conversation for {self.subject} hit {self.max_round_trips} round trips, closing")
                self.close()
                raise ConversationLimitReached()

            pending = self._transcript.extended(Turn(role="user", content=text))
            self._state = ConversationState.SUBMITTING
            return self._exchange(
                lambda: self.endpoint.continue_conversation(self.original_prompt, pending.turns),
                pending,
                ConversationState.SUBMITTING,
                ConversationState.AWAITING_USER_INPUT,
            )

    def close(self) -> None:
        """End the session and discard the transcript. Safe to call at any time."""
        with self._state_lock:
            if self._state == ConversationState.CLOSED:
                return
            logger.info(f"Closing conversation for {self.subject} in state {self._state.value}")
            self._state = ConversationState.CLOSED
            self._transcript = Transcript()

    @contextmanager
    def _single_flight(self):
        if not self._flight_lock.acquire(blocking=False):
            raise ConversationBusy()
        try:
            yield
        finally:
            self._flight_lock.release()

    def _exchange(
        self,
        call: Callable[[], EnhancementResult],
        transcript: Transcript,
        in_flight: ConversationState,
        previous: ConversationState,
    ) -> Optional[EnhancementResult]:
        # Any failure, expected or not, puts the session back where it was
        try:
            result = self._request(call)
            if not isinstance(result, (Continuing, Done)):
                raise TypeError(f"Unexpected endpoint result: {result!r}")
        except Exception:
            self._restore(in_flight, previous)
            raise
        return self._apply(result, transcript)

    def _request(self, call: Callable[[], EnhancementResult]) -> EnhancementResult:
        self._round_trips += 1
        return call_with_retries(
            call,
            retries=self.max_retries,
            retry_on=(IdeaForgeError,),
            delay=self.retry_delay,
            sleep=self._sleep,
            should_retry=lambda e: e.retryable and self._state != ConversationState.CLOSED,
        )

    def _restore(self, expected: ConversationState, previous: ConversationState) -> None:
        with self._state_lock:
            if self._state == expected:
                self._state = previous

    def _apply(self, result: EnhancementResult, transcript: Transcript) -> Optional[EnhancementResult]:
        with self._state_lock:
            if self._state == ConversationState.CLOSED:
                logger.info(f"Discarding reply for closed conversation of {self.subject}")
                return None

            if isinstance(result, Continuing):
                self._transcript = transcript.extended(Turn(role="assistant", content=result.message))
                self._state = ConversationState.AWAITING_USER_INPUT
                return result

            self._transcript = transcript
            self._artifact = result.artifact
            self._state = ConversationState.TERMINAL

        _record_usage(self.usage_ledger, self.subject, self.kind)
        return result


class IdeaValidationFlow:
    """Quota-gated, single-flight idea validation with an optional scorecard cache."""

    def __init__(
        self,
        validation_service,
        usage_ledger: UsageLedger,
        subject: str,
        *,
        validation_store=None,
        daily_limit: int = DAILY_VALIDATION_LIMIT,
        max_retries: int = MAX_AUTO_RETRIES,
        retry_delay: float = RETRY_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.validation_service = validation_service
        self.usage_ledger = usage_ledger
        self.subject = subject
        self.validation_store = validation_store
        self.daily_limit = daily_limit
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep
        self._lock = threading.Lock()

    def run(self, idea: AppIdea, idea_id: Optional[str] = None) -> ValidationScorecard:
        """
        Validate ``idea`` and record one validation for the subject.

        When ``idea_id`` is given and a store is configured, the scorecard is
        cached under it, replacing any earlier one.
        """
        if not self._lock.acquire(blocking=False):
            raise ConversationBusy("A validation is already running.")
        try:
            if not idea.has_subject():
                raise InvalidInput()

            ensure_quota(self.usage_ledger, self.subject, OperationKind.VALIDATION, self.daily_limit)

            scorecard = call_with_retries(
                lambda: self.validation_service.validate(idea),
                retries=self.max_retries,
                retry_on=(IdeaForgeError,),
                delay=self.retry_delay,
                sleep=self._sleep,
                should_retry=lambda e: e.retryable,
            )
            _record_usage(self.usage_ledger, self.subject, OperationKind.VALIDATION)

            idea_id = idea_id or idea.id
            if idea_id and self.validation_store is not None:
                self._cache(idea_id, scorecard)
            return scorecard
        finally:
            self._lock.release()

    def _cache(self, idea_id: str, scorecard: ValidationScorecard) -> None:
        try:
            self.validation_store.save_validation(idea_id, scorecard.model_dump(mode="json"))
        except Exception as e:
            logger.error(f"Failed to cache validation for idea {idea_id}: {e}")
