# -*- coding: utf-8 -*-
# utils/logger.py
import logging
import os
from datetime import datetime
from typing import Optional

from core.config import LOGGING_CONFIG


def setup_logging(log_dir: Optional[str] = "logs", level: Optional[str] = None):
    """Configure root logging; a dated file in log_dir plus the console"""
    handlers = [logging.StreamHandler()]
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, f"print_layout_{datetime.now().strftime('%Y%m%d')}.log")
        handlers.insert(0, logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=level or LOGGING_CONFIG['level'],
        format=LOGGING_CONFIG['format'],
        datefmt=LOGGING_CONFIG['datefmt'],
        handlers=handlers
    )

    # Less noise from libraries
    logging.getLogger('PIL').setLevel(logging.WARNING)
    logging.getLogger('reportlab').setLevel(logging.WARNING)

    return logging.getLogger(__name__)
