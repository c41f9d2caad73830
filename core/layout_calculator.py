"""
Grid layout of identical cards on a print sheet
"""
import logging
import math

from .models import CardCategory, GridLayout, PageFormat

logger = logging.getLogger(__name__)


class LayoutCalculator:
    @staticmethod
    def calculate_layout(page_width: float, page_height: float,
                         item_width: float, item_height: float,
                         spacing: float) -> GridLayout:
        values = (page_width, page_height, item_width, item_height, spacing)
        if not all(math.isfinite(v) for v in values) or spacing < 0:
            logger.warning(f"Invalid layout input: page={page_width}x{page_height}, "
                           f"item={item_width}x{item_height}, spacing={spacing}")
            return LayoutCalculator._get_empty_layout(page_width, page_height,
                                                      item_width, item_height, spacing)

        step_x = item_width + spacing
        step_y = item_height + spacing
        if step_x <= 0 or step_y <= 0:
            logger.warning(f"Degenerate item size: {item_width}x{item_height}, spacing={spacing}")
            return LayoutCalculator._get_empty_layout(page_width, page_height,
                                                      item_width, item_height, spacing)

        cols = max(1, int(math.floor((page_width + spacing) / step_x)))
        rows = max(1, int(math.floor((page_height + spacing) / step_y)))

        grid_width = cols * item_width + (cols - 1) * spacing
        grid_height = rows * item_height + (rows - 1) * spacing

        margin_x = max(0.0, (page_width - grid_width) / 2)
        margin_y = max(0.0, (page_height - grid_height) / 2)

        logger.debug(f"Layout: {cols}x{rows} cards, margins ({margin_x:.2f}, {margin_y:.2f})")
        return GridLayout(
            items_per_row=cols,
            items_per_column=rows,
            page_width=page_width,
            page_height=page_height,
            item_width=item_width,
            item_height=item_height,
            spacing=spacing,
            margin_x=margin_x,
            margin_y=margin_y,
            grid_width=grid_width,
            grid_height=grid_height,
        )

    @staticmethod
    def for_category(page_format: PageFormat, category: CardCategory,
                     spacing: float) -> GridLayout:
        return LayoutCalculator.calculate_layout(
            page_format.width, page_format.height,
            category.width, category.height, spacing
        )

    @staticmethod
    def calculate_pages_needed(total_items: int, layout: GridLayout) -> int:
        if layout.is_empty or total_items <= 0:
            return 0
        return (total_items + layout.capacity - 1) // layout.capacity

    @staticmethod
    def _get_empty_layout(page_width, page_height, item_width, item_height, spacing) -> GridLayout:
        return GridLayout(
            items_per_row=0,
            items_per_column=0,
            page_width=page_width,
            page_height=page_height,
            item_width=item_width,
            item_height=item_height,
            spacing=spacing,
            margin_x=0.0,
            margin_y=0.0,
            grid_width=0.0,
            grid_height=0.0,
        )
