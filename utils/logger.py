"""
日志工具
"""
import sys
import os
from loguru import logger
from config.settings import LOG_LEVEL, LOG_FILE, LOG_TO_FILE


def setup_logger(level: str = LOG_LEVEL, log_file: str = LOG_FILE, to_file: bool = LOG_TO_FILE):
    """配置日志系统"""
    # 移除默认处理器
    logger.remove()

    # 控制台处理器（输出到 stderr，避免混入 CLI 的标准输出）
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level
    )

    if to_file:
        # 确保日志目录存在
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        logger.add(
            log_file,
            rotation="5 MB",
            retention="14 days",
            compression="gz",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level="INFO",
            enqueue=True
        )

    return logger
