import logging
import os
import sys
import uuid
from contextvars import ContextVar
from typing import TYPE_CHECKING, Optional

from loguru import logger

from moment_client.core.config import Environment, Settings, settings

if TYPE_CHECKING:
    from loguru import Record

# ============================================
# CONTEXT VARIABLES FOR REQUEST TRACKING
# ============================================
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


# ============================================
# LOG LEVEL MAPPING
# ============================================

LOG_LEVELs = {
    50: "CRITICAL",
    40: "ERROR",
    30: "WARNING",
    20: "INFO",
    10: "DEBUG",
    0: "NOTSET",
}

# Standard library loggers of the transport libraries, rerouted into Loguru
LIBRARY_LOGGERS = ("httpx", "httpcore", "aiohttp", "asyncio")


def new_request_id() -> str:
    return str(uuid.uuid4())[:8]


def mask_token(token: str | None) -> str:
    """
    Shorten a secret for log output.

    Args:
        token (str | None): Access or refresh token.

    Returns:
        str: The first 8 characters followed by an ellipsis, or "<none>".
    """
    if not token:
        return "<none>"

    return f"{token[:8]}..."


# ============================================
# CUSTOM FILTER FOR CORRELATION AND PROCESS ID
# ============================================


def correlation_filter(record: "Record") -> bool:
    """
    Add correlation ID and process ID to log records.
    This allows tracking a single API call across the refresh and retry
    it may trigger.

    Args:
        record (Record): Log record from Loguru.

    Returns:
        bool: Always True, every record is kept.
    """
    record["extra"]["request_id"] = request_id_var.get() or "-"
    record["extra"]["process_id"] = os.getpid()

    return True


# ============================================
# INTERCEPT HANDLER FOR STANDARD LOGGING
# ============================================


class InterceptHandler(logging.Handler):
    """
    Intercepts standard logging and redirects to Loguru.
    Used to route httpx, aiohttp and asyncio loggers through our Loguru configuration.
    """

    def emit(self, record: logging.LogRecord):
        """
        Process a log record and redirect it to Loguru.
        """
        # Get corresponding Loguru level if it exists
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller from where the logging call originated
        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


# ============================================
# MAIN LOGGER SETUP FUNCTION
# ============================================


def setup_logger(config: Settings = settings):
    """
    Configure Loguru logger for the client.

    Features:
    - Thread safe with enqueue=True
    - Optional log file with 10MB rotation, 1 month retention and gzip compression
    - Different outputs for console vs file

    This should be called once by the composition root before any I/O starts.
    """
    # Remove default handler to avoid duplicate logs
    logger.remove()

    log_level = LOG_LEVELs.get(config.log_level, "INFO")

    # ============================================
    # CONSOLE OUTPUT: Simplified, colored format
    # ============================================
    console_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<magenta>PID:{extra[process_id]}</magenta> | "
        "<yellow>ReqID:{extra[request_id]}</yellow> | "
        "<cyan>{name}:{function}:{line}</cyan> | "
        "<level>{message}</level>"
    )

    logger.add(
        sys.stdout,
        format=console_format,
        level=(
            logging.DEBUG
            if config.debug or config.current_environment == Environment.DEV
            else log_level
        ),
        colorize=True,
        enqueue=True,  # Thread-safe queue-based logging
        filter=correlation_filter,
    )

    # ============================================
    # FILE OUTPUT: Detailed format with full context
    # ============================================
    if config.log_to_file:
        config.log_dir.mkdir(parents=True, exist_ok=True)

        file_format = (
            "{time:YYYY-MM-DD HH:mm:ss!UTC} | "
            "{level: <8} | "
            "PID:{extra[process_id]} | "
            "ReqID:{extra[request_id]} | "
            "{name}:{function}:{line} | "
            "{message}"
        )

        logger.add(
            config.log_dir / "moment-client.log",
            format=file_format,
            level=log_level,
            rotation="10 MB",  # Rotate when file reaches 10MB
            retention="1 month",
            compression="gz",  # Compress rotated files to .gz
            enqueue=True,
            serialize=False,
            filter=correlation_filter,
            backtrace=True,
            diagnose=False,  # Variable values may hold tokens
        )

    logger.info(
        f"Logger initialized | "
        f"Environment: {config.current_environment.value} | "
        f"Level: {log_level} | "
        f"File: {'on' if config.log_to_file else 'off'}"
    )


def configure_library_logging():
    """
    Replace the standard logging handlers of the transport libraries with Loguru.

    Call this after setup_logger().
    """
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for name in LIBRARY_LOGGERS:
        library_logger = logging.getLogger(name)
        library_logger.handlers = [InterceptHandler()]
        library_logger.propagate = False

    logger.debug("Library logging configured to use Loguru")


# ============================================
# SHUTDOWN HANDLER
# ============================================


async def shutdown_logger():
    """
    Flush all pending logs.
    Call this when the client is closed.
    """
    logger.info("Shutting down logger...")

    # Let Loguru finish processing queued logs
    await logger.complete()
