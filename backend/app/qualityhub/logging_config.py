"""QualityHub - Logging

应用日志：控制台 + 可选的文件输出（LOG_DIR/qualityhub.log）
"""
import logging
import sys
from pathlib import Path

from qualityhub.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging() -> logging.Logger:
    """配置日志，重复调用只生效一次"""
    logger = logging.getLogger("qualityhub")
    if getattr(setup_logging, "_configured", False):
        return logger

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.LOG_DIR:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / "qualityhub.log", encoding="utf-8"))

    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=LOG_FORMAT, handlers=handlers)

    # 第三方库
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("alembic").setLevel(logging.INFO)
    if not settings.DB_ECHO:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    setup_logging._configured = True
    logger.info(f"Logging initialized (level={settings.LOG_LEVEL.upper()}, env={settings.ENV})")
    return logger
