"""
Multi-page PDF assembly of card pages
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from io import BytesIO
from typing import List, Optional, Tuple

from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from processing.color_converter import ColorConverter, ProfileLoader
from processing.image_processor import ImageProcessor
from .config import PDF_METADATA
from .exceptions import ExportError, ImageDecodeError
from .layout_calculator import LayoutCalculator
from .models import ExportRequest, ExportResult, GridLayout, ItemSlotContent, SkippedSlot

logger = logging.getLogger(__name__)


@dataclass
class PreparedItem:
    """Encoded image of one slot, ready to embed"""
    page_index: int
    slot_index: int
    data: Optional[bytes] = None
    error: Optional[str] = None


class PDFGenerator:
    def __init__(self, profile_loader: Optional[ProfileLoader] = None,
                 max_workers: Optional[int] = None):
        self.profile_loader = profile_loader
        self.max_workers = max_workers

    def generate(self, request: ExportRequest) -> ExportResult:
        if not request.pages:
            raise ExportError("No pages to export")

        layout = LayoutCalculator.for_category(request.page_format, request.category, request.spacing)
        converter = ColorConverter.for_mode(request.color_mode, self.profile_loader)
        converter.prepare()

        scale = request.scale_px_per_mm
        slot_size = (round(layout.item_width * scale), round(layout.item_height * scale))
        logger.info(f"Start PDF export: {len(request.pages)} pages, layout "
                    f"{layout.items_per_row}x{layout.items_per_column}, {request.dpi} DPI, "
                    f"color {converter.effective_mode.value}")

        skipped: List[SkippedSlot] = []
        jobs: List[List[Tuple[int, int, ItemSlotContent]]] = []
        for page_index, page in enumerate(request.pages):
            page_jobs = []
            for slot_index, content in page.occupied():
                if slot_index >= layout.capacity:
                    logger.warning(f"Page {page_index}, slot {slot_index}: outside grid, skipped")
                    skipped.append(SkippedSlot(page_index, slot_index, "slot outside grid"))
                    continue
                page_jobs.append((page_index, slot_index, content))
            jobs.append(page_jobs)

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [
                [pool.submit(self._prepare_item, converter, *job, slot_size, request.dpi)
                 for job in page_jobs]
                for page_jobs in jobs
            ]
            # Collected in input order whatever order the workers finish in
            prepared = [[future.result() for future in page_futures] for page_futures in futures]

        buffer = BytesIO()
        page_width = request.page_format.width * mm
        page_height = request.page_format.height * mm
        c = canvas.Canvas(buffer, pagesize=(page_width, page_height))
        c.setTitle(PDF_METADATA['title'])
        c.setSubject(PDF_METADATA['subject'])
        c.setCreator(PDF_METADATA['creator'])
        c.setKeywords(PDF_METADATA['keywords'])

        for page_items in prepared:
            for item in page_items:
                if item.error:
                    skipped.append(SkippedSlot(item.page_index, item.slot_index, item.error))
                if item.data is None:
                    continue
                try:
                    self._draw_item(c, layout, request.page_format.height, item)
                except Exception as e:
                    logger.error(f"Page {item.page_index}, slot {item.slot_index}: embedding failed: {e}")
                    skipped.append(SkippedSlot(item.page_index, item.slot_index, f"embedding failed: {e}"))
            c.showPage()

        try:
            c.save()
        except Exception as e:
            raise ExportError(f"Failed to write PDF document: {e}") from e

        logger.info(f"PDF created: {len(request.pages)} pages, {len(skipped)} slots skipped")
        return ExportResult(
            data=buffer.getvalue(),
            mime_type='application/pdf',
            page_count=len(request.pages),
            color_mode=converter.effective_mode,
            skipped_slots=skipped,
        )

    @staticmethod
    def _prepare_item(converter: ColorConverter, page_index: int, slot_index: int,
                      content: ItemSlotContent, slot_size: Tuple[int, int], dpi: int) -> PreparedItem:
        try:
            image = ImageProcessor.decode(content.image_bytes)
        except ImageDecodeError as e:
            logger.error(f"Page {page_index}, slot {slot_index}: {e}")
            return PDFGenerator._prepare_error_marker(page_index, slot_index, slot_size, dpi, str(e))

        try:
            tile = ImageProcessor.render_item(image, content, slot_size)
            if tile is None:
                logger.warning(f"Page {page_index}, slot {slot_index}: placement not drawable, skipped")
                return PreparedItem(page_index, slot_index, error="placement not drawable")
            converted = converter.convert(tile)
            data = converted.encode(dpi)
        except Exception as e:
            logger.error(f"Page {page_index}, slot {slot_index}: processing failed: {e}")
            return PreparedItem(page_index, slot_index, error=f"processing failed: {e}")

        logger.debug(f"Page {page_index}, slot {slot_index}: {converted.format}, {len(data)} bytes")
        return PreparedItem(page_index, slot_index, data=data)

    @staticmethod
    def _prepare_error_marker(page_index: int, slot_index: int, slot_size: Tuple[int, int],
                              dpi: int, reason: str) -> PreparedItem:
        try:
            marker = ImageProcessor.create_error_marker(slot_size)
            data = ColorConverter().convert(marker).encode(dpi)
        except Exception as e:
            logger.error(f"Page {page_index}, slot {slot_index}: error marker failed: {e}")
            return PreparedItem(page_index, slot_index, error=reason)
        return PreparedItem(page_index, slot_index, data=data, error=reason)

    @staticmethod
    def _draw_item(c: canvas.Canvas, layout: GridLayout, page_height: float, item: PreparedItem):
        x, y, width, height = layout.slot_rect(item.slot_index)
        # PDF origin is bottom-left
        c.drawImage(ImageReader(BytesIO(item.data)),
                    x * mm, (page_height - y - height) * mm,
                    width=width * mm, height=height * mm)
