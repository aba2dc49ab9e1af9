"""
Process-wide logging setup.

Services log through `logging.getLogger(__name__)`; this module only decides
level and format. Under gunicorn the access/error logs are configured in
gunicorn.conf.py and both end up on stdout.
"""
import logging

from ecopledge.core.config import settings

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=_FORMAT,
    )
    # httpx logs every request at INFO; the oracle adapter logs its own outcome.
    logging.getLogger("httpx").setLevel(logging.WARNING)
