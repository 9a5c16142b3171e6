"""Logging setup for CLI"""

import logging
import os

from settings import DEBUG_LOG_FILE, LOG_LEVEL


def setup_logging(debug: bool) -> str:
    """
    Configure the root logger

    Args:
        debug: Whether debug mode is enabled

    Returns:
        Path of the debug log file, or "" when debug mode is off
    """
    root_logger = logging.getLogger()

    # Clear existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    if not debug:
        # Pipeline progress goes to the rich console, keep stderr for warnings
        level = getattr(logging, str(LOG_LEVEL).upper(), logging.INFO)
        console_handler = logging.StreamHandler()
        console_handler.setLevel(max(level, logging.WARNING))
        console_handler.setFormatter(formatter)
        root_logger.setLevel(level)
        root_logger.addHandler(console_handler)
        return ""

    root_logger.setLevel(logging.DEBUG)

    # Create file handler for debug log with append mode
    log_file = os.path.abspath(DEBUG_LOG_FILE)
    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(formatter)

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # httpx logs every request line at INFO, which duplicates our own logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Debug logging enabled - appending to {log_file}")
    return log_file
