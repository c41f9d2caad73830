# -*- coding: utf-8 -*-
# core/config.py
import json
import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

from .models import CardCategory, ColorMode, DpiTier, PageFormat

logger = logging.getLogger(__name__)

DEFAULT_PAGE_FORMAT = 'A4'
DEFAULT_CATEGORY = 'pokemon'
DEFAULT_SPACING = 5.0  # mm

# Encoder settings
JPEG_QUALITY = 92
PNG_COMPRESS_LEVEL = 6
TIFF_COMPRESSION = 'tiff_lzw'

# Compositor colors
BACKGROUND_COLOR = (255, 255, 255)
PLACEHOLDER_COLOR = (240, 240, 240)
ERROR_FILL_COLOR = (255, 228, 228)
ERROR_TEXT_COLOR = (200, 0, 0)
ERROR_LABEL = "IMAGE ERROR"

# Rendering intent for accurate conversion (ImageCms.Intent value)
RENDERING_INTENT = 0  # perceptual

PDF_METADATA = {
    'title': "TCG Proxy Cards",
    'subject': "Trading Card Game Proxy Cards",
    'creator': "TCG Proxy Creator",
    'keywords': "tcg, proxy, cards",
}

LOGGING_CONFIG = {
    'level': 'INFO',
    'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    'datefmt': '%Y-%m-%d %H:%M:%S'
}


@dataclass
class ExportConfig:
    page_format: str = DEFAULT_PAGE_FORMAT
    category: str = DEFAULT_CATEGORY
    spacing: float = DEFAULT_SPACING
    dpi_tier: str = DpiTier.HIGH.value
    color_mode: str = ColorMode.OFF.value
    profile_path: Optional[str] = None
    max_workers: Optional[int] = None

    def get_page_format(self) -> PageFormat:
        formats = PageFormat.get_standard_formats()
        result = formats.get(self.page_format)
        if result is None:
            logger.warning(f"Unknown page format {self.page_format!r}, using {DEFAULT_PAGE_FORMAT}")
            result = formats[DEFAULT_PAGE_FORMAT]
        return result

    def get_category(self) -> CardCategory:
        categories = CardCategory.get_standard_categories()
        result = categories.get(self.category)
        if result is None:
            logger.warning(f"Unknown card category {self.category!r}, using {DEFAULT_CATEGORY}")
            result = categories[DEFAULT_CATEGORY]
        return result

    def get_dpi(self) -> int:
        return DpiTier(self.dpi_tier).dpi

    def get_color_mode(self) -> ColorMode:
        return ColorMode(self.color_mode)

    def save(self, config_file: str):
        with open(config_file, 'w', encoding='utf-8') as f:
            json.dump(asdict(self), f, indent=2, ensure_ascii=False)
        logger.info(f"Configuration saved: {config_file}")

    @classmethod
    def load(cls, config_file: str) -> 'ExportConfig':
        with open(config_file, 'r', encoding='utf-8') as f:
            data = json.load(f)

        known = {key: value for key, value in data.items() if key in cls.__dataclass_fields__}
        config = cls(**known)
        # Fail early on bad enum values
        DpiTier(config.dpi_tier)
        ColorMode(config.color_mode)
        logger.info(f"Configuration loaded: {config_file}")
        return config

    def read_profile(self) -> bytes:
        """Read the configured CMYK ICC profile"""
        if not self.profile_path:
            raise FileNotFoundError("No color profile path configured")
        return Path(self.profile_path).read_bytes()
