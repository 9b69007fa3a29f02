import logging
import sys
from logging.handlers import RotatingFileHandler
from opsdial.core.config import settings


def setup_logger(name: str = "opsdial"):
    logger = logging.getLogger(name)
    logger.setLevel(settings.LOG_LEVEL)

    if logger.handlers:
        return logger

    formatter = logging.Formatter(settings.LOG_FORMAT)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if settings.LOG_TO_FILE:
        try:
            settings.LOG_DIR.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                settings.LOG_PATH,
                maxBytes=settings.LOG_MAX_BYTES,
                backupCount=settings.LOG_BACKUP_COUNT,
            )
        except OSError as e:
            # 로그 디렉토리를 쓸 수 없으면 stderr 로만 기록
            logger.warning(f"File logging disabled, cannot write {settings.LOG_PATH}: {e}")
        else:
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger


logger = setup_logger()
