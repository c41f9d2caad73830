"""
Core module for the card print layout system
"""

from .models import (
    ColorMode, DpiTier, ExportFormat, ExportScope, PageFormat, CardCategory,
    ItemSlotContent, Page, GridLayout, Placement, ExportRequest, ExportResult, SkippedSlot
)
from .exceptions import PrintLayoutError, ExportError, ValidationError
from .layout_calculator import LayoutCalculator
from .placement import resolve_placement

__all__ = [
    'ColorMode',
    'DpiTier',
    'ExportFormat',
    'ExportScope',
    'PageFormat',
    'CardCategory',
    'ItemSlotContent',
    'Page',
    'GridLayout',
    'Placement',
    'ExportRequest',
    'ExportResult',
    'SkippedSlot',
    'PrintLayoutError',
    'ExportError',
    'ValidationError',
    'LayoutCalculator',
    'resolve_placement'
]
