"""
Error taxonomy shared by the endpoints, the orchestrator and the callers.

Every error carries a stable ``code``, a suggested HTTP ``status_code`` and a
``retryable`` flag. The orchestrator retries an error automatically, with the
same input, only when the flag is set.
"""


class IdeaForgeError(Exception):
    """Base class for all errors surfaced to callers."""

    code = "unexpected_error"
    status_code = 500
    retryable = False
    default_message = "An unexpected error occurred"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {"error": self.message, "code": self.code}


class InvalidInput(IdeaForgeError):
    """The caller supplied no usable idea content."""

    code = "invalid_input"
    status_code = 400
    default_message = "Please fill in the App Name or the \"What does your app do?\" field first."


class ConfigurationError(IdeaForgeError):
    """Model credentials are missing or rejected."""

    code = "configuration_error"
    status_code = 401
    default_message = "The AI provider API key is invalid or not configured."


class UpstreamRateLimited(IdeaForgeError):
    """The model provider throttled the request. Callers may retry after a delay."""

    code = "upstream_rate_limited"
    status_code = 429
    default_message = "Rate limit exceeded. Please try again in a moment."


class UpstreamMalformedResponse(IdeaForgeError):
    """The model's output could not be parsed into the expected shape."""

    code = "upstream_malformed_response"
    status_code = 502
    retryable = True
    default_message = "Failed to parse the AI response. Please try again."


class TransientNetworkError(IdeaForgeError):
    """The model or search collaborator could not be reached in time."""

    code = "transient_network_error"
    status_code = 503
    retryable = True
    default_message = "Could not reach the AI provider. Please try again."


class UpstreamError(IdeaForgeError):
    """The model provider rejected the request for another reason."""

    code = "upstream_error"
    status_code = 502


class QuotaExceeded(IdeaForgeError):
    """The subject reached the daily ceiling for this operation."""

    code = "quota_exceeded"
    status_code = 429
    default_message = "You've used all your requests for today. Come back tomorrow for more!"


class StorageUnavailable(IdeaForgeError):
    """The database could not be reached."""

    code = "storage_unavailable"
    status_code = 503
    default_message = "Saved data is temporarily unavailable. Please try again later."


class UsageLedgerUnavailable(StorageUnavailable):
    """The usage store could not be read or written."""

    code = "usage_ledger_unavailable"
    default_message = "Usage information is temporarily unavailable."


class ConversationStateError(IdeaForgeError):
    """The conversation cannot accept this call in its current state."""

    code = "invalid_conversation_state"
    status_code = 409
    default_message = "This conversation is not accepting input."


class ConversationBusy(ConversationStateError):
    code = "conversation_busy"
    default_message = "Still waiting for the previous reply."


class ConversationLimitReached(ConversationStateError):
    code = "conversation_limit_reached"
    default_message = "This conversation reached its maximum length. Please start a new one."

