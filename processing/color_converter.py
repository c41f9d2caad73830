"""
Color conversion strategies for print export
"""
import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Callable, Dict, Optional

from PIL import Image, ImageCms

from core.config import JPEG_QUALITY, PNG_COMPRESS_LEVEL, RENDERING_INTENT, TIFF_COMPRESSION
from core.exceptions import ExportError, ProfileLoadError, ProfileTransformError
from core.models import ColorMode

logger = logging.getLogger(__name__)

ProfileLoader = Callable[[], bytes]

MIME_TYPES = {
    'PNG': 'image/png',
    'JPEG': 'image/jpeg',
    'TIFF': 'image/tiff',
}


@dataclass
class ConvertedImage:
    image: Image.Image
    format: str
    converted: bool = False
    icc_profile: Optional[bytes] = None

    @property
    def lossy(self) -> bool:
        return self.format == 'JPEG'

    @property
    def mime_type(self) -> str:
        return MIME_TYPES[self.format]

    def encode(self, dpi: int) -> bytes:
        """Encode to bytes; failure here fails the whole export"""
        options: Dict = {'dpi': (dpi, dpi)}
        if self.format == 'JPEG':
            options['quality'] = JPEG_QUALITY
        elif self.format == 'PNG':
            options['compress_level'] = PNG_COMPRESS_LEVEL
        elif self.format == 'TIFF':
            options['compression'] = TIFF_COMPRESSION
        if self.icc_profile:
            options['icc_profile'] = self.icc_profile

        buffer = BytesIO()
        try:
            self.image.save(buffer, format=self.format, **options)
        except Exception as e:
            raise ExportError(f"Failed to encode {self.image.mode} image as {self.format}: {e}") from e
        return buffer.getvalue()


class ColorConverter:
    """Pass-through strategy, lossless RGB"""
    mode = ColorMode.OFF

    @property
    def effective_mode(self) -> ColorMode:
        return self.mode

    def prepare(self):
        pass

    def convert(self, image: Image.Image) -> ConvertedImage:
        return ConvertedImage(image, 'PNG')

    @staticmethod
    def for_mode(mode: ColorMode, profile_loader: Optional[ProfileLoader] = None) -> 'ColorConverter':
        if mode == ColorMode.SIMULATED:
            return SimulatedConverter()
        if mode == ColorMode.ACCURATE:
            return AccurateConverter(profile_loader)
        return ColorConverter()


class SimulatedConverter(ColorConverter):
    """No pixel transform, the encoder switches to high quality JPEG"""
    mode = ColorMode.SIMULATED

    def convert(self, image: Image.Image) -> ConvertedImage:
        return ConvertedImage(image, 'JPEG')


class AccurateConverter(ColorConverter):
    """ICC based RGB to CMYK conversion.

    The profile is loaded once by prepare() and only read afterwards, so
    convert() may be called from several worker threads. A failed load
    degrades the converter to pass-through for the rest of the export.
    """
    mode = ColorMode.ACCURATE

    def __init__(self, profile_loader: Optional[ProfileLoader]):
        self.profile_loader = profile_loader
        self._profile_bytes: Optional[bytes] = None
        self._source_profile = None
        self._target_profile = None
        self._prepared = False
        self.degraded = False

    @property
    def effective_mode(self) -> ColorMode:
        return ColorMode.OFF if self.degraded else ColorMode.ACCURATE

    def prepare(self):
        if self._prepared:
            return
        self._prepared = True
        try:
            self._load_profile()
            logger.info("CMYK profile loaded for accurate conversion")
        except ProfileLoadError as e:
            self.degraded = True
            logger.warning(f"Accurate CMYK disabled, exporting without conversion: {e}")

    def _load_profile(self):
        if self.profile_loader is None:
            raise ProfileLoadError("No color profile source configured")
        try:
            data = self.profile_loader()
        except Exception as e:
            raise ProfileLoadError(f"Cannot read color profile: {e}") from e
        if not data:
            raise ProfileLoadError("Color profile is empty")

        try:
            target = ImageCms.ImageCmsProfile(BytesIO(data))
        except (ImageCms.PyCMSError, OSError, TypeError) as e:
            raise ProfileLoadError(f"Invalid color profile: {e}") from e

        color_space = target.profile.xcolor_space.strip()
        if color_space != 'CMYK':
            raise ProfileLoadError(f"Profile color space is {color_space}, expected CMYK")

        self._profile_bytes = data
        self._source_profile = ImageCms.ImageCmsProfile(ImageCms.createProfile("sRGB"))
        self._target_profile = target

    def convert(self, image: Image.Image) -> ConvertedImage:
        if not self._prepared:
            self.prepare()
        if self.degraded:
            return ConvertedImage(image, 'PNG')

        try:
            cmyk = self._transform(image)
        except ProfileTransformError as e:
            logger.error(f"CMYK conversion failed, keeping RGB: {e}")
            return ConvertedImage(image, 'PNG')

        return ConvertedImage(cmyk, 'TIFF', converted=True, icc_profile=self._profile_bytes)

    def _transform(self, image: Image.Image) -> Image.Image:
        if image.mode != 'RGB':
            image = image.convert('RGB')
        try:
            # A transform per call keeps worker threads independent
            transform = ImageCms.buildTransform(
                self._source_profile, self._target_profile, 'RGB', 'CMYK',
                renderingIntent=RENDERING_INTENT
            )
            return ImageCms.applyTransform(image, transform)
        except (ImageCms.PyCMSError, ValueError, OSError) as e:
            raise ProfileTransformError(str(e)) from e


def rgb_to_cmyk(r: int, g: int, b: int) -> Dict[str, int]:
    """Naive device CMYK in percent, no profile involved"""
    nr, ng, nb = r / 255, g / 255, b / 255
    k = 1 - max(nr, ng, nb)
    if k == 1:
        return {'c': 0, 'm': 0, 'y': 0, 'k': 100}

    c = (1 - nr - k) / (1 - k)
    m = (1 - ng - k) / (1 - k)
    y = (1 - nb - k) / (1 - k)
    return {
        'c': round(c * 100),
        'm': round(m * 100),
        'y': round(y * 100),
        'k': round(k * 100),
    }


def simulate_print_colors(image: Image.Image) -> Image.Image:
    """Darken an RGB image the way naive CMYK printing would.

    Converting a channel v to naive CMYK and multiplying back gives
    v * (1 - ink) * (1 - k) == v * v / 255, so a lookup table is enough.
    """
    if image.mode != 'RGB':
        image = image.convert('RGB')
    table = [round(v * v / 255) for v in range(256)] * 3
    return image.point(table)
