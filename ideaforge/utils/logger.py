import logging
import sys
from ideaforge.utils.config import config

# Third-party loggers that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "google_genai", "pymongo", "uvicorn.access")

# Everything outside the ideaforge tree only shows errors
logging.basicConfig(level=logging.ERROR, format=config.log_format, stream=sys.stdout)
for noisy in NOISY_LOGGERS:
    logging.getLogger(noisy).setLevel(logging.WARNING)


def configure(level: str = config.log_level) -> logging.Logger:
    """Attach a single stdout handler to the package logger at ``level``."""
    package_logger = logging.getLogger("ideaforge")
    package_logger.setLevel(level)

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(config.log_format))
    package_logger.addHandler(handler)

    # Handled above; the root handler would print every record twice
    package_logger.propagate = False
    return package_logger


configure()

logger = logging.getLogger(__name__)
