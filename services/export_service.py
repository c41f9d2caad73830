# -*- coding: utf-8 -*-
# services/export_service.py
import asyncio
import logging
import math
from dataclasses import dataclass, field, replace
from io import BytesIO
from typing import Any, List, Optional, Sequence, Tuple

from PIL import Image, ImageOps

from core.config import ExportConfig
from core.exceptions import ExportError, ValidationError
from core.layout_calculator import LayoutCalculator
from core.models import (
    CardCategory, ColorMode, ExportFormat, ExportRequest, ExportScope,
    ItemSlotContent, Page, SkippedSlot
)
from core.pdf_generator import PDFGenerator
from core.raster_exporter import RasterExporter
from utils.helpers import decode_image_payload

logger = logging.getLogger(__name__)

SLOT_RECORD_KEYS = {
    'image', 'imageBytes', 'originalSize', 'naturalWidth', 'naturalHeight',
    'scale', 'position', 'offset', 'type', 'category',
}


@dataclass
class ExportResponse:
    success: bool
    message: str
    data: bytes = b''
    mime_type: str = ''
    page_count: int = 0
    color_mode: Optional[ColorMode] = None
    skipped_slots: List[SkippedSlot] = field(default_factory=list)
    reduced_quality: bool = False


def color_mode_from_editor(cmyk_conversion: bool, cmyk_mode: str = 'simple') -> ColorMode:
    """Map the editor's CMYK switch and sub-mode to a color mode"""
    if not cmyk_conversion:
        return ColorMode.OFF
    if cmyk_mode == 'accurate':
        return ColorMode.ACCURATE
    if cmyk_mode in ('simple', 'simulated'):
        return ColorMode.SIMULATED
    raise ValidationError(f"Unknown CMYK mode: {cmyk_mode!r}")


def _number(value: Any, name: str) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be a number, got {value!r}") from e
    if not math.isfinite(result):
        raise ValidationError(f"{name} must be finite, got {value!r}")
    return result


def _pair(value: Any, name: str, keys: Tuple[str, str]) -> Tuple[float, float]:
    if isinstance(value, dict):
        missing = [key for key in keys if key not in value]
        if missing:
            raise ValidationError(f"{name} is missing {', '.join(missing)}")
        return _number(value[keys[0]], name), _number(value[keys[1]], name)
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return _number(value[0], name), _number(value[1], name)
    raise ValidationError(f"{name} has unknown shape: {value!r}")


def _probe_size(image_bytes: bytes) -> Tuple[int, int]:
    try:
        with Image.open(BytesIO(image_bytes)) as img:
            # Same orientation the decoder applies
            return ImageOps.exif_transpose(img).size
    except Exception as e:
        # Left to the compositor, which draws an error marker for it
        logger.warning(f"Cannot read image size: {e}")
        return 0, 0


def slot_from_record(record: Any, default_category: str = 'pokemon') -> Optional[ItemSlotContent]:
    """Normalize one editor slot record into ItemSlotContent, None for empty"""
    if record is None:
        return None
    if isinstance(record, ItemSlotContent):
        return record
    if not isinstance(record, dict):
        raise ValidationError(f"Slot record must be a mapping, got {type(record).__name__}")

    unknown = set(record) - SLOT_RECORD_KEYS
    if unknown:
        raise ValidationError(f"Unknown slot fields: {', '.join(sorted(unknown))}")

    payload = record.get('image', record.get('imageBytes'))
    if payload is None:
        raise ValidationError("Slot record has no image")
    try:
        image_bytes = decode_image_payload(payload)
    except (TypeError, ValueError) as e:
        raise ValidationError(str(e)) from e

    if 'originalSize' in record:
        width, height = _pair(record['originalSize'], 'originalSize', ('width', 'height'))
    elif 'naturalWidth' in record and 'naturalHeight' in record:
        width = _number(record['naturalWidth'], 'naturalWidth')
        height = _number(record['naturalHeight'], 'naturalHeight')
    else:
        width, height = _probe_size(image_bytes)

    scale = _number(record.get('scale', 1.0), 'scale')
    if scale <= 0:
        raise ValidationError(f"scale must be positive, got {scale}")

    raw_offset = record.get('offset', record.get('position', (0.0, 0.0)))
    offset_x, offset_y = _pair(raw_offset, 'offset', ('x', 'y'))
    offset = (max(-1.0, min(1.0, offset_x)), max(-1.0, min(1.0, offset_y)))

    category = str(record.get('category', record.get('type', default_category)))

    return ItemSlotContent(
        image_bytes=image_bytes,
        natural_width=int(width),
        natural_height=int(height),
        scale=scale,
        offset=offset,
        category=category,
    )


def page_from_records(records: Optional[Sequence[Any]], capacity: int,
                      default_category: str = 'pokemon') -> Page:
    if isinstance(records, Page):
        records = records.slots
    records = list(records or [])
    if len(records) > capacity:
        raise ValidationError(f"Page has {len(records)} slots, layout holds {capacity}")
    slots = [slot_from_record(record, default_category) for record in records]
    slots.extend([None] * (capacity - len(slots)))
    return Page(slots)


class ExportService:
    def __init__(self, config: Optional[ExportConfig] = None, profile_loader=None):
        self.config = config or ExportConfig()
        if profile_loader is None and self.config.profile_path:
            profile_loader = self.config.read_profile
        self.profile_loader = profile_loader

    def build_request(self, pages: Sequence[Any],
                      dpi_tier: Optional[str] = None,
                      color_mode: Optional[Any] = None,
                      category: Optional[str] = None,
                      spacing: Optional[float] = None) -> ExportRequest:
        config = self.config
        try:
            dpi = replace(config, dpi_tier=dpi_tier or config.dpi_tier).get_dpi()
            mode = ColorMode(color_mode) if color_mode is not None else config.get_color_mode()
        except ValueError as e:
            raise ValidationError(str(e)) from e

        if category is None:
            card_category = config.get_category()
        else:
            categories = CardCategory.get_standard_categories()
            if category not in categories:
                raise ValidationError(f"Unknown card category: {category!r}")
            card_category = categories[category]
        category_name = card_category.name

        spacing = config.spacing if spacing is None else _number(spacing, 'spacing')
        if spacing < 0:
            raise ValidationError(f"spacing must not be negative, got {spacing}")

        page_format = config.get_page_format()
        layout = LayoutCalculator.for_category(page_format, card_category, spacing)
        normalized = tuple(page_from_records(page, layout.capacity, category_name) for page in pages)

        for page_index, page in enumerate(normalized):
            for slot_index, content in page.occupied():
                if content.category != category_name:
                    logger.warning(f"Page {page_index}, slot {slot_index}: category "
                                   f"{content.category!r} differs from export category {category_name!r}")

        return ExportRequest(
            dpi=dpi,
            color_mode=mode,
            category=card_category,
            spacing=spacing,
            pages=normalized,
            page_format=page_format,
        )

    async def export(self, pages: Sequence[Any],
                     export_format: ExportFormat = ExportFormat.PDF,
                     scope: ExportScope = ExportScope.ALL_PAGES,
                     current_page: int = 0,
                     preview: Optional[Image.Image] = None,
                     **options) -> ExportResponse:
        """Export pages for the editor; failures come back as success=False"""
        try:
            export_format = ExportFormat(export_format)
            scope = ExportScope(scope)
            pages = list(pages)
            if export_format == ExportFormat.PNG or scope == ExportScope.CURRENT_PAGE:
                if pages and not 0 <= current_page < len(pages):
                    raise ValidationError(f"Page {current_page} does not exist")
                pages = pages[current_page:current_page + 1]

            request = self.build_request(pages, **options)
            if export_format == ExportFormat.PDF:
                generator = PDFGenerator(self.profile_loader, self.config.max_workers)
                result = await asyncio.to_thread(generator.generate, request)
            else:
                exporter = RasterExporter(self.profile_loader, self.config.max_workers)
                result = await asyncio.to_thread(exporter.export_page, request, preview)

        except (ValidationError, ExportError, ValueError) as e:
            logger.error(f"Export failed: {e}")
            return ExportResponse(success=False, message=f"Export failed: {e}")

        if result.skipped_slots:
            message = f"Exported with {len(result.skipped_slots)} slots skipped"
        else:
            message = "Export completed"
        return ExportResponse(
            success=True,
            message=message,
            data=result.data,
            mime_type=result.mime_type,
            page_count=result.page_count,
            color_mode=result.color_mode,
            skipped_slots=result.skipped_slots,
            reduced_quality=result.reduced_quality,
        )

    async def export_pdf(self, pages: Sequence[Any], **options) -> ExportResponse:
        return await self.export(pages, ExportFormat.PDF, ExportScope.ALL_PAGES, **options)

    async def export_png(self, page: Optional[Sequence[Any]],
                         preview: Optional[Image.Image] = None, **options) -> ExportResponse:
        pages = [] if page is None else [page]
        return await self.export(pages, ExportFormat.PNG, ExportScope.CURRENT_PAGE,
                                 preview=preview, **options)
