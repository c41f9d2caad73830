# -*- coding: utf-8 -*-
# core/raster_exporter.py
import logging
from typing import List, Optional

from PIL import Image

from processing.color_converter import (
    ColorConverter, ConvertedImage, ProfileLoader, simulate_print_colors
)
from processing.compositor import RasterCompositor
from processing.image_processor import ImageProcessor
from .exceptions import ExportError
from .layout_calculator import LayoutCalculator
from .models import ColorMode, ExportRequest, ExportResult, SkippedSlot

logger = logging.getLogger(__name__)


class RasterExporter:
    """Renders one full page to a single lossless raster image"""

    def __init__(self, profile_loader: Optional[ProfileLoader] = None,
                 max_workers: Optional[int] = None):
        self.profile_loader = profile_loader
        self.compositor = RasterCompositor(max_workers=max_workers)

    def export_page(self, request: ExportRequest,
                    preview: Optional[Image.Image] = None) -> ExportResult:
        if len(request.pages) > 1:
            logger.warning(f"Single page export got {len(request.pages)} pages, using the first")
        page = request.pages[0] if request.pages else None

        layout = LayoutCalculator.for_category(request.page_format, request.category, request.spacing)
        converter = ColorConverter.for_mode(request.color_mode, self.profile_loader)
        converter.prepare()

        if page is None or layout.is_empty:
            if preview is None:
                raise ExportError("No page geometry available and no preview to fall back to")
            return self._export_preview(request, converter, preview)

        scale = request.scale_px_per_mm
        logger.info(f"Start PNG export: layout {layout.items_per_row}x{layout.items_per_column}, "
                    f"{request.dpi} DPI, color {converter.effective_mode.value}")
        surface, report = self.compositor.compose_with_report(page, layout, scale)

        skipped: List[SkippedSlot] = [SkippedSlot(0, index, reason)
                                      for index, reason in report.errors.items()]
        skipped.extend(SkippedSlot(0, index, "not drawable") for index in report.skipped)

        converted = self._lossless(converter.convert(surface))
        data = converted.encode(request.dpi)
        logger.info(f"Raster created: {surface.width}x{surface.height} {converted.format}, "
                    f"{len(data)} bytes")

        return ExportResult(
            data=data,
            mime_type=converted.mime_type,
            page_count=1,
            color_mode=converter.effective_mode,
            skipped_slots=skipped,
        )

    def _export_preview(self, request: ExportRequest, converter: ColorConverter,
                        preview: Image.Image) -> ExportResult:
        logger.warning("Reduced quality path: re-encoding the preview raster, "
                       "slot geometry unavailable")
        width, height = request.page_pixel_size
        image = ImageProcessor.flatten_to_rgb(preview)
        image = image.resize((width, height), Image.Resampling.LANCZOS)

        if converter.effective_mode == ColorMode.SIMULATED:
            image = simulate_print_colors(image)

        converted = self._lossless(converter.convert(image))
        data = converted.encode(request.dpi)

        return ExportResult(
            data=data,
            mime_type=converted.mime_type,
            page_count=1,
            color_mode=converter.effective_mode,
            reduced_quality=True,
        )

    @staticmethod
    def _lossless(converted: ConvertedImage) -> ConvertedImage:
        if converted.lossy:
            return ConvertedImage(converted.image, 'PNG', converted.converted, converted.icc_profile)
        return converted
