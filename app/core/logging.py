import logging

from app.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging() -> None:
    settings = get_settings()
    level = str(settings.log_level or "INFO").strip().upper()
    if level not in logging.getLevelNamesMapping():
        level = "INFO"

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.basicConfig(level=level, handlers=[handler], force=True)

    # reportlab and the stripe SDK are chatty at INFO.
    logging.getLogger("stripe").setLevel(logging.WARNING)
    logging.getLogger("reportlab").setLevel(logging.WARNING)
