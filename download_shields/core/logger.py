import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from download_shields.core.config import configs
from download_shields.core.context_vars import RequestId
from download_shields.core.context_vars import RequestMethod
from download_shields.core.context_vars import RequestUrl


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s %(request_method)s %(request_url)s] - %(message)s"


class RequestIdFilter(logging.Filter):
    """Stamps every record with the identity of the request that produced it."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = RequestId.get()
        record.request_method = RequestMethod.get()
        record.request_url = RequestUrl.get()
        return True


def setup_root_logger() -> None:
    logger = logging.getLogger("")
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)
    request_filter = RequestIdFilter()
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    console.addFilter(request_filter)

    filepath = Path(configs.logger_filename)
    if not Path.exists(filepath):
        filepath.parent.mkdir(parents=True, exist_ok=True)
        filepath.open("w").close()

    file = RotatingFileHandler(
        filename=configs.logger_filename,
        mode=configs.logger_mod,
        maxBytes=configs.logger_maxbytes,
        backupCount=configs.logger_backup_count,
    )
    file.setFormatter(formatter)
    file.addFilter(request_filter)
    logger.addHandler(console)
    logger.addHandler(file)
    logger.setLevel(configs.log_level)

    logging.getLogger("backoff").addHandler(logging.StreamHandler())
