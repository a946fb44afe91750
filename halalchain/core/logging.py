import logging
from loguru import logger

from halalchain.core.config import settings


# Remove existing handlers
for handler in logging.root.handlers[:]:
    logging.root.removeHandler(handler)


class InterceptHandler(logging.Handler):
    """Forwards uvicorn and SQLAlchemy records to loguru."""

    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip logging's own frames so loguru reports the real caller
        frame, depth = logging.currentframe(), 2
        while frame.f_back and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def is_ledger_record(record) -> bool:
    return "ledger_event" in record["extra"]


def setup_logging():
    logging.basicConfig(handlers=[InterceptHandler()], level=logging.INFO)

    logger.add(
        settings.log_file,
        rotation="500 MB",
        compression="zip",
        level="DEBUG" if settings.debug else "INFO",
        backtrace=True,
        diagnose=settings.debug,
    )

    # Committed ledger notifications only, one JSON object per line.
    # Kept apart from the application log so it can be retained longer.
    logger.add(
        settings.ledger_log_file,
        rotation="100 MB",
        level="INFO",
        filter=is_ledger_record,
        serialize=True,
    )
