"""Logging and observability setup using Pydantic Logfire."""

import logging
import sys

from approvebot.config.settings import settings


def setup_logging() -> None:
    """Configure application logging.

    Sets up plain stdout logging at the configured level and quiets the
    HTTP and GitHub client libraries.
    """
    log_level = getattr(logging, settings.log_level)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
        force=True,  # Reconfigure if already setup
    )

    # Reduce noise from verbose libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("github").setLevel(logging.WARNING)


def setup_observability() -> None:
    """Setup logging and, when a token is configured, Logfire tracing."""
    setup_logging()

    logger = logging.getLogger(__name__)

    if settings.logfire_token:
        try:
            import logfire

            logfire.configure(token=settings.logfire_token)

            # Installation token requests go through httpx
            logfire.instrument_httpx()

            logger.info(
                f"Logfire observability enabled for {settings.environment} environment"
            )

        except ImportError:
            logger.warning(
                "Logfire package not installed. Install with: pip install 'approve-bot[logfire]'"
            )
        except Exception as e:
            logger.error(f"Failed to setup Logfire observability: {e}")
    else:
        logger.info("Logfire token not configured, skipping observability setup")
