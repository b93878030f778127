"""Constants used throughout the application."""

# Daily ceilings per subject and operation kind
DAILY_ENHANCEMENT_LIMIT = 3
DAILY_VALIDATION_LIMIT = 3

# Conversation bounds
MAX_ROUND_TRIPS = 8

# Automatic retry policy for transient and malformed upstream responses
MAX_AUTO_RETRIES = 2
RETRY_BACKOFF_SECONDS = 1.0

# Outbound model call timeout
UPSTREAM_TIMEOUT_SECONDS = 60.0

# Generation settings per operation
ENHANCEMENT_TEMPERATURE = 0.7
ENHANCEMENT_MAX_TOKENS = 6000

VALIDATION_TEMPERATURE = 0.0
VALIDATION_SEED = 42
VALIDATION_MAX_TOKENS = 3000

APP_NAME_TEMPERATURE = 0.9
APP_NAME_MAX_TOKENS = 50

BUILD_PROMPT_TEMPERATURE = 0.7
BUILD_PROMPT_MAX_TOKENS = 2000

IDEA_TEMPERATURE = 0.8
IDEA_MAX_TOKENS = 1000

# Scorecard weights (sub-scores are on a 1-10 scale, overall on 0-100)
MARKET_NEED_WEIGHT = "0.30"
COMPETITION_WEIGHT = "0.20"
MONETIZATION_WEIGHT = "0.30"
FEASIBILITY_WEIGHT = "0.20"

# Verdict thresholds on the overall score
GO_THRESHOLD = 70
MAYBE_THRESHOLD = 50
PIVOT_SUGGESTION_THRESHOLD = 60

# Placeholder used when grounding retrieval is unavailable
DEGRADED_RESEARCH_NOTE = "Web research unavailable. Proceeding with training data analysis."
EMPTY_RESEARCH_NOTE = "Web research returned no content."

# Placeholder for empty idea form fields
NOT_SPECIFIED = "Not specified"
UNTITLED_APP = "Untitled App"

# MongoDB collections
USAGE_COLLECTION = "usage_records"
IDEAS_COLLECTION = "app_ideas"
VALIDATIONS_COLLECTION = "idea_validations"
