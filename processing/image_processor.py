"""
Image decoding and per-slot rendering
"""
import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Optional, Tuple

from PIL import Image, ImageDraw, ImageFont, ImageOps

from core.config import (
    BACKGROUND_COLOR, ERROR_FILL_COLOR, ERROR_LABEL, ERROR_TEXT_COLOR, PLACEHOLDER_COLOR
)
from core.exceptions import ImageDecodeError
from core.models import ItemSlotContent
from core.placement import resolve_placement

logger = logging.getLogger(__name__)


@dataclass
class DecodeResult:
    image: Optional[Image.Image] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.image is not None


class ImageProcessor:
    @staticmethod
    def decode(image_bytes: bytes) -> Image.Image:
        """Decode encoded image bytes into an RGB image on white"""
        if not image_bytes:
            raise ImageDecodeError("Empty image data")
        try:
            img = Image.open(BytesIO(image_bytes))
            img.load()
            img = ImageOps.exif_transpose(img)
        except Exception as e:
            raise ImageDecodeError(f"Cannot decode image: {e}") from e

        return ImageProcessor.flatten_to_rgb(img)

    @staticmethod
    def try_decode(image_bytes: bytes) -> DecodeResult:
        try:
            return DecodeResult(image=ImageProcessor.decode(image_bytes))
        except ImageDecodeError as e:
            return DecodeResult(error=str(e))

    @staticmethod
    def flatten_to_rgb(img: Image.Image) -> Image.Image:
        if img.mode == 'RGB':
            return img
        if img.mode in ('RGBA', 'LA', 'PA') or (img.mode == 'P' and 'transparency' in img.info):
            rgba = img.convert('RGBA')
            background = Image.new('RGBA', rgba.size, BACKGROUND_COLOR + (255,))
            return Image.alpha_composite(background, rgba).convert('RGB')
        return img.convert('RGB')

    @staticmethod
    def render_item(image: Image.Image, content: ItemSlotContent,
                    size: Tuple[int, int]) -> Optional[Image.Image]:
        """Render one slot-sized tile: aspect-fill, user scale and offset, clipped.

        Returns None when the placement is not drawable.
        """
        slot_w, slot_h = size
        natural_w = content.natural_width or image.width
        natural_h = content.natural_height or image.height

        placement = resolve_placement(natural_w, natural_h, slot_w, slot_h,
                                      content.scale, content.offset)
        if placement is None or slot_w <= 0 or slot_h <= 0:
            return None

        tile = Image.new('RGB', (slot_w, slot_h), BACKGROUND_COLOR)

        # Visible part of the draw rectangle, in tile pixels
        left = max(0.0, placement.x)
        top = max(0.0, placement.y)
        right = min(float(slot_w), placement.x + placement.width)
        bottom = min(float(slot_h), placement.y + placement.height)

        dest_left, dest_top = round(left), round(top)
        dest_w = round(right) - dest_left
        dest_h = round(bottom) - dest_top
        if dest_w <= 0 or dest_h <= 0:
            return tile

        # Map the visible part back to source pixels so only that region is resampled
        sx = image.width / placement.width
        sy = image.height / placement.height
        box = (
            (left - placement.x) * sx,
            (top - placement.y) * sy,
            (right - placement.x) * sx,
            (bottom - placement.y) * sy,
        )
        region = image.resize((dest_w, dest_h), Image.Resampling.LANCZOS, box=box)
        tile.paste(region, (dest_left, dest_top))
        return tile

    @staticmethod
    def create_placeholder(size: Tuple[int, int]) -> Image.Image:
        return Image.new('RGB', size, PLACEHOLDER_COLOR)

    @staticmethod
    def create_error_marker(size: Tuple[int, int], label: str = ERROR_LABEL) -> Image.Image:
        """Solid tile with a cross and a label, drawn where an image failed"""
        width, height = size
        tile = Image.new('RGB', (max(1, width), max(1, height)), ERROR_FILL_COLOR)
        draw = ImageDraw.Draw(tile)

        line_width = max(1, min(width, height) // 100)
        draw.rectangle([0, 0, width - 1, height - 1], outline=ERROR_TEXT_COLOR, width=line_width)
        draw.line([0, 0, width - 1, height - 1], fill=ERROR_TEXT_COLOR, width=line_width)
        draw.line([0, height - 1, width - 1, 0], fill=ERROR_TEXT_COLOR, width=line_width)

        font = ImageProcessor._load_font(max(10, width // 12))
        text_box = draw.textbbox((0, 0), label, font=font)
        text_w = text_box[2] - text_box[0]
        text_h = text_box[3] - text_box[1]
        x = (width - text_w) / 2
        y = (height - text_h) / 2
        pad = max(2, text_h // 3)
        draw.rectangle([x - pad, y - pad, x + text_w + pad, y + text_h + pad], fill=ERROR_FILL_COLOR)
        draw.text((x - text_box[0], y - text_box[1]), label, fill=ERROR_TEXT_COLOR, font=font)
        return tile

    @staticmethod
    def _load_font(size: int):
        try:
            return ImageFont.load_default(size=size)
        except (TypeError, OSError, ImportError) as e:
            # Pillow without FreeType only ships the fixed bitmap font
            logger.debug(f"Scalable default font unavailable: {e}")
            return ImageFont.load_default()
