"""
Page raster compositor
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from PIL import Image

from core.config import BACKGROUND_COLOR
from core.models import GridLayout, ItemSlotContent, Page
from .image_processor import ImageProcessor

logger = logging.getLogger(__name__)

SLOT_RENDERED = "rendered"
SLOT_SKIPPED = "skipped"
SLOT_ERROR = "error"


def slot_pixel_rect(layout: GridLayout, index: int,
                    scale_px_per_mm: float) -> Tuple[int, int, int, int]:
    """Pixel box (left, top, right, bottom) of a slot; rounding happens only here"""
    x, y, width, height = layout.slot_rect(index)
    left = round(x * scale_px_per_mm)
    top = round(y * scale_px_per_mm)
    right = round((x + width) * scale_px_per_mm)
    bottom = round((y + height) * scale_px_per_mm)
    return left, top, right, bottom


@dataclass
class SlotOutcome:
    index: int
    status: str
    tile: Optional[Image.Image] = None
    error: Optional[str] = None


@dataclass
class CompositionReport:
    rendered: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    errors: Dict[int, str] = field(default_factory=dict)


class RasterCompositor:
    def __init__(self, max_workers: Optional[int] = None):
        self.max_workers = max_workers

    def compose(self, page: Page, layout: GridLayout, scale_px_per_mm: float) -> Image.Image:
        surface, _ = self.compose_with_report(page, layout, scale_px_per_mm)
        return surface

    def compose_with_report(self, page: Page, layout: GridLayout,
                            scale_px_per_mm: float) -> Tuple[Image.Image, CompositionReport]:
        width = max(1, round(layout.page_width * scale_px_per_mm))
        height = max(1, round(layout.page_height * scale_px_per_mm))
        surface = Image.new('RGB', (width, height), BACKGROUND_COLOR)
        report = CompositionReport()

        if layout.is_empty:
            logger.warning("Empty layout, nothing to render on page")
            return surface, report

        jobs = []
        for index, content in page.occupied():
            if index >= layout.capacity:
                logger.warning(f"Slot {index} outside grid of {layout.capacity}, ignored")
                report.skipped.append(index)
                continue
            box = slot_pixel_rect(layout, index, scale_px_per_mm)
            surface.paste(ImageProcessor.create_placeholder(_box_size(box)), box[:2])
            jobs.append((index, content, box))

        if not jobs:
            return surface, report

        logger.info(f"Composing {len(jobs)} slots at {scale_px_per_mm:.3f} px/mm")
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [pool.submit(self._render_slot, index, content, _box_size(box))
                       for index, content, box in jobs]
            # Row-major paste once every slot has settled
            outcomes = [future.result() for future in futures]

        for (index, _, box), outcome in zip(jobs, outcomes):
            if outcome.tile is not None:
                surface.paste(outcome.tile, box[:2])
            if outcome.status == SLOT_RENDERED:
                report.rendered.append(index)
            elif outcome.status == SLOT_ERROR:
                report.errors[index] = outcome.error
            else:
                report.skipped.append(index)

        return surface, report

    @staticmethod
    def _render_slot(index: int, content: ItemSlotContent, size: Tuple[int, int]) -> SlotOutcome:
        decoded = ImageProcessor.try_decode(content.image_bytes)
        if not decoded.ok:
            logger.error(f"Slot {index}: {decoded.error}")
            return SlotOutcome(index, SLOT_ERROR, ImageProcessor.create_error_marker(size), decoded.error)

        try:
            tile = ImageProcessor.render_item(decoded.image, content, size)
        except Exception as e:
            logger.error(f"Slot {index}: drawing failed: {e}")
            return SlotOutcome(index, SLOT_ERROR, ImageProcessor.create_error_marker(size), str(e))

        if tile is None:
            logger.warning(f"Slot {index}: placement not drawable, skipped")
            return SlotOutcome(index, SLOT_SKIPPED)
        return SlotOutcome(index, SLOT_RENDERED, tile)


def _box_size(box: Tuple[int, int, int, int]) -> Tuple[int, int]:
    return box[2] - box[0], box[3] - box[1]
