# tests/test_pdf_generator.py
import re
import unittest
import sys
import os
from io import BytesIO
from unittest.mock import patch

from PIL import Image
from PyPDF2 import PdfReader

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from core.exceptions import ExportError, ProfileTransformError
from core.models import CardCategory, ColorMode, ExportRequest, ItemSlotContent, Page
from core.pdf_generator import PDFGenerator
from processing.color_converter import AccurateConverter

POKEMON = CardCategory.get_standard_categories()['pokemon']
COLORS = [(255, 0, 0), (0, 160, 0), (0, 0, 255), (250, 200, 0), (120, 0, 120)]


def make_content(color, size=(63, 88)):
    buffer = BytesIO()
    Image.new('RGB', size, color).save(buffer, format='PNG')
    return ItemSlotContent(buffer.getvalue(), size[0], size[1])


def make_request(pages, color_mode=ColorMode.OFF, dpi=50):
    return ExportRequest(dpi=dpi, color_mode=color_mode, category=POKEMON,
                         spacing=5, pages=tuple(pages))


def fake_profile_load(self):
    self._profile_bytes = None
    self._source_profile = object()
    self._target_profile = object()


def drawn_images(page):
    """Number of image draw operators in the page content"""
    contents = page.get_contents()
    if contents is None:
        return 0
    return len(re.findall(rb'/\S+\s+Do\b', contents.get_data()))


class TestPDFGenerator(unittest.TestCase):

    def setUp(self):
        self.generator = PDFGenerator(max_workers=4)

    def test_pages_in_order(self):
        """Empty page still produces a page, slots keep their page"""
        first = Page.blank(9)
        second = Page.blank(9)
        second.slots[0] = make_content(COLORS[0])
        second.slots[8] = make_content(COLORS[1])
        third = Page.blank(9)
        third.slots[4] = make_content(COLORS[2])

        result = self.generator.generate(make_request([first, second, third]))
        reader = PdfReader(BytesIO(result.data))

        self.assertEqual(result.mime_type, 'application/pdf')
        self.assertEqual(result.page_count, 3)
        self.assertEqual(len(reader.pages), 3)
        self.assertEqual([drawn_images(page) for page in reader.pages], [0, 2, 1])
        self.assertEqual(result.skipped_slots, [])

    def test_page_size_and_metadata(self):
        page = Page.blank(9)
        page.slots[0] = make_content(COLORS[0])

        result = self.generator.generate(make_request([page]))
        reader = PdfReader(BytesIO(result.data))

        box = reader.pages[0].mediabox
        self.assertAlmostEqual(float(box.width), 595.28, places=1)
        self.assertAlmostEqual(float(box.height), 841.89, places=1)
        self.assertEqual(reader.metadata.title, "TCG Proxy Cards")

    def test_many_slots_keep_order(self):
        page = Page.blank(9)
        for index, color in enumerate(COLORS):
            page.slots[index] = make_content(color)

        result = self.generator.generate(make_request([page, page]))
        reader = PdfReader(BytesIO(result.data))

        self.assertEqual([drawn_images(p) for p in reader.pages], [5, 5])

    def test_corrupt_slot_is_reported_and_marked(self):
        page = Page.blank(9)
        page.slots[0] = make_content(COLORS[0])
        page.slots[3] = ItemSlotContent(b'definitely not an image', 63, 88)

        with self.assertLogs('core.pdf_generator', level='ERROR'):
            result = self.generator.generate(make_request([page]))
        reader = PdfReader(BytesIO(result.data))

        self.assertEqual(len(reader.pages), 1)
        # Error marker is drawn in place of the broken image
        self.assertEqual(drawn_images(reader.pages[0]), 2)
        self.assertEqual([(s.page_index, s.slot_index) for s in result.skipped_slots], [(0, 3)])

    def test_undrawable_slot_is_skipped(self):
        page = Page.blank(9)
        page.slots[1] = make_content(COLORS[1])
        page.slots[2] = ItemSlotContent(make_content(COLORS[2]).image_bytes, 63, 88, scale=0)

        result = self.generator.generate(make_request([page]))
        reader = PdfReader(BytesIO(result.data))

        self.assertEqual(drawn_images(reader.pages[0]), 1)
        self.assertEqual(result.skipped_slots[0].slot_index, 2)
        self.assertEqual(result.skipped_slots[0].reason, "placement not drawable")

    def test_slot_outside_grid(self):
        page = Page([None] * 9 + [make_content(COLORS[0])])

        result = self.generator.generate(make_request([page]))

        self.assertEqual(result.skipped_slots[0].slot_index, 9)
        self.assertEqual(result.skipped_slots[0].reason, "slot outside grid")

    def test_simulated_embeds_jpeg(self):
        page = Page.blank(9)
        page.slots[0] = make_content(COLORS[0])

        simulated = self.generator.generate(make_request([page], ColorMode.SIMULATED))
        plain = self.generator.generate(make_request([page], ColorMode.OFF))

        self.assertIn(b'/DCTDecode', simulated.data)
        self.assertNotIn(b'/DCTDecode', plain.data)
        self.assertEqual(simulated.color_mode, ColorMode.SIMULATED)

    def test_accurate_without_profile_falls_back(self):
        page = Page.blank(9)
        page.slots[0] = make_content(COLORS[0])

        with self.assertLogs('processing.color_converter', level='WARNING'):
            result = self.generator.generate(make_request([page], ColorMode.ACCURATE))

        self.assertEqual(result.color_mode, ColorMode.OFF)
        self.assertEqual(len(PdfReader(BytesIO(result.data)).pages), 1)

    def test_accurate_embeds_cmyk(self):
        page = Page.blank(9)
        page.slots[0] = make_content(COLORS[0])
        page.slots[1] = make_content(COLORS[2])

        with patch.object(AccurateConverter, '_load_profile', fake_profile_load), \
                patch.object(AccurateConverter, '_transform', lambda self, image: image.convert('CMYK')):
            result = self.generator.generate(make_request([page], ColorMode.ACCURATE))
        reader = PdfReader(BytesIO(result.data))

        self.assertEqual(result.color_mode, ColorMode.ACCURATE)
        self.assertIn(b'/DeviceCMYK', result.data)
        self.assertEqual(drawn_images(reader.pages[0]), 2)
        self.assertEqual(result.skipped_slots, [])

    def test_accurate_transform_failure_keeps_rgb_item(self):
        """One item fails conversion, it is still embedded as RGB"""
        def transform(self, image):
            if image.getpixel((image.width // 2, image.height // 2)) == COLORS[0]:
                raise ProfileTransformError("no transform for this item")
            return image.convert('CMYK')

        page = Page.blank(9)
        page.slots[0] = make_content(COLORS[0])
        page.slots[1] = make_content(COLORS[2])

        with patch.object(AccurateConverter, '_load_profile', fake_profile_load), \
                patch.object(AccurateConverter, '_transform', transform):
            with self.assertLogs('processing.color_converter', level='ERROR'):
                result = self.generator.generate(make_request([page], ColorMode.ACCURATE))
        reader = PdfReader(BytesIO(result.data))

        self.assertEqual(result.color_mode, ColorMode.ACCURATE)
        self.assertIn(b'/DeviceCMYK', result.data)
        self.assertIn(b'/DeviceRGB', result.data)
        self.assertEqual(drawn_images(reader.pages[0]), 2)
        self.assertEqual(result.skipped_slots, [])

    def test_no_pages(self):
        with self.assertRaises(ExportError):
            self.generator.generate(make_request([]))


if __name__ == '__main__':
    unittest.main()
