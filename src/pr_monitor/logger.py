import logging
from typing import List

import notifiers.logging

from pr_monitor import config

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s - %(message)s"


def get_log_handlers(logger: logging.Logger) -> List[logging.Handler]:
    """Attach a Telegram handler so warnings of a monitoring pass reach the operator."""
    if config.TELEGRAM_TOKEN is None or config.TELEGRAM_CHAT_ID is None:
        return []
    handler = notifiers.logging.NotificationHandler(
        "telegram",
        defaults={
            "token": config.TELEGRAM_TOKEN,
            "chat_id": config.TELEGRAM_CHAT_ID,
        },
    )
    handler.setLevel(logging.WARNING)
    logger.addHandler(handler)
    return [handler]


def setup_logging(level=None) -> logging.Logger:
    level = config.OVERRIDE_LOGGING if level is None else level
    logging.basicConfig(format=LOG_FORMAT, level=logging.INFO)
    logging.getLogger().setLevel(level)

    logger = logging.getLogger("pr_monitor")
    logger.setLevel(level)
    get_log_handlers(logger)
    return logger
