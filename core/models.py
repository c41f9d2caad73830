"""
Data classes and enums for the print layout compositor
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

MM_PER_INCH = 25.4


class ColorMode(Enum):
    OFF = "off"
    SIMULATED = "simulated"
    ACCURATE = "accurate"


class DpiTier(Enum):
    STANDARD = "standard"
    HIGH = "high"
    ULTRA = "ultra"

    @property
    def dpi(self) -> int:
        return {
            DpiTier.STANDARD: 300,
            DpiTier.HIGH: 450,
            DpiTier.ULTRA: 600,
        }[self]


class ExportFormat(Enum):
    PDF = "pdf"
    PNG = "png"


class ExportScope(Enum):
    CURRENT_PAGE = "current_page"
    ALL_PAGES = "all_pages"


@dataclass(frozen=True)
class PageFormat:
    name: str
    width: float  # mm
    height: float  # mm

    @classmethod
    def get_standard_formats(cls) -> Dict[str, 'PageFormat']:
        return {
            'A4': cls('A4', 210, 297),
            'A3': cls('A3', 297, 420),
            'Letter': cls('Letter', 215.9, 279.4),
        }


@dataclass(frozen=True)
class CardCategory:
    name: str
    width: float  # mm
    height: float  # mm

    @classmethod
    def get_standard_categories(cls) -> Dict[str, 'CardCategory']:
        return {
            'pokemon': cls('pokemon', 63, 88),
            'yugioh': cls('yugioh', 59, 86),
        }


@dataclass(frozen=True)
class ItemSlotContent:
    """Image assigned to one slot; replaced as a whole, never patched"""
    image_bytes: bytes
    natural_width: int
    natural_height: int
    scale: float = 1.0
    offset: Tuple[float, float] = (0.0, 0.0)
    category: str = 'pokemon'

    def __repr__(self):
        return (f"ItemSlotContent({len(self.image_bytes)} bytes, "
                f"{self.natural_width}x{self.natural_height}, scale={self.scale}, "
                f"offset={self.offset}, category={self.category!r})")


@dataclass
class Page:
    slots: List[Optional[ItemSlotContent]] = field(default_factory=list)

    @classmethod
    def blank(cls, capacity: int) -> 'Page':
        return cls([None] * max(0, capacity))

    def occupied(self) -> Iterator[Tuple[int, ItemSlotContent]]:
        for index, content in enumerate(self.slots):
            if content is not None:
                yield index, content

    @property
    def is_empty(self) -> bool:
        return all(content is None for content in self.slots)


@dataclass(frozen=True)
class GridLayout:
    """Uniform slot grid centered on a page, all lengths in mm"""
    items_per_row: int
    items_per_column: int
    page_width: float
    page_height: float
    item_width: float
    item_height: float
    spacing: float
    margin_x: float
    margin_y: float
    grid_width: float
    grid_height: float

    @property
    def capacity(self) -> int:
        return self.items_per_row * self.items_per_column

    @property
    def is_empty(self) -> bool:
        return self.capacity == 0

    def slot_origin(self, index: int) -> Tuple[float, float]:
        if self.is_empty or not 0 <= index < self.capacity:
            raise IndexError(f"Slot {index} outside grid of {self.capacity}")
        row, col = divmod(index, self.items_per_row)
        x = self.margin_x + col * (self.item_width + self.spacing)
        y = self.margin_y + row * (self.item_height + self.spacing)
        return x, y

    def slot_rect(self, index: int) -> Tuple[float, float, float, float]:
        x, y = self.slot_origin(index)
        return x, y, self.item_width, self.item_height


@dataclass(frozen=True)
class Placement:
    """Draw rectangle of an image relative to the slot's surface"""
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class ExportRequest:
    dpi: int
    color_mode: ColorMode
    category: CardCategory
    spacing: float
    pages: Tuple[Page, ...]
    page_format: PageFormat = PageFormat('A4', 210, 297)

    @property
    def scale_px_per_mm(self) -> float:
        return self.dpi / MM_PER_INCH

    @property
    def page_pixel_size(self) -> Tuple[int, int]:
        scale = self.scale_px_per_mm
        return (round(self.page_format.width * scale),
                round(self.page_format.height * scale))


@dataclass
class SkippedSlot:
    page_index: int
    slot_index: int
    reason: str


@dataclass
class ExportResult:
    data: bytes
    mime_type: str
    page_count: int
    color_mode: ColorMode
    skipped_slots: List[SkippedSlot] = field(default_factory=list)
    reduced_quality: bool = False
