import logging
import sys

from loguru import logger


class _InterceptHandler(logging.Handler):
    # 把 stdlib logging（uvicorn / sqlalchemy / apscheduler）導入 loguru
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "INFO"):
    logger.remove()
    logger.add(sys.stdout, level=level,
               backtrace=True, diagnose=False,
               format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level}</level> | {message}")
    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)
    return logger
