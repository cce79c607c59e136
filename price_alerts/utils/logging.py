import logging

from price_alerts.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
    )
    # httpx logs every request at INFO, which drowns out the run summary
    logging.getLogger("httpx").setLevel(logging.WARNING)
