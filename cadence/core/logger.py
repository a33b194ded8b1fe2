"""Logger configuration for the Cadence engine.

Generator records carry the plan week they belong to (bound as `week` and
`week_state`); both sinks lift those into a fixed column so a week can be
followed through proposed, validated, blocked and final. Any other bound
fields are appended as key=value pairs.
"""

import sys
from pathlib import Path

from loguru import logger

# Bound fields rendered in the week column instead of the trailing context
WEEK_FIELDS = ("week", "week_state")
CONTEXT_KEY = "context"


def format_record(record: dict) -> str:
    """Build the loguru format string for one record.

    Values are referenced through {extra[...]} placeholders, never inlined, so
    braces or markup in a value cannot break formatting.
    """
    extra = record["extra"]
    fmt = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan>"
    )
    if "week" in extra:
        fmt += " | <magenta>week {extra[week]}</magenta>"
        if "week_state" in extra:
            fmt += " <magenta>{extra[week_state]}</magenta>"
    fmt += " - <level>{message}</level>"

    context = " ".join(
        f"{key}={value}" for key, value in extra.items() if key not in WEEK_FIELDS and key != CONTEXT_KEY
    )
    if context:
        extra[CONTEXT_KEY] = context
        fmt += " | {extra[" + CONTEXT_KEY + "]}"
    return fmt + "\n{exception}"


def setup_logger(
    level: str = "INFO",
    log_file: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """Configure loguru logger with console and optional file output.

    The engine itself never calls this; library consumers and the CLI do.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file. If None, only console logging.
        rotation: Log rotation size (e.g., "10 MB", "1 day")
        retention: Log retention period (e.g., "7 days", "1 month")
    """
    logger.remove()

    logger.add(sys.stderr, format=format_record, level=level, colorize=True)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_path,
            format=format_record,
            level=level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            backtrace=True,
            diagnose=True,
        )

    logger.debug(f"Logger initialized with level={level}")
