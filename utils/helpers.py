# utils/helpers.py
import base64
import binascii
import logging
import re

logger = logging.getLogger(__name__)

_DATA_URL_RE = re.compile(r'^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^;,]*)*?),(?P<data>.*)$', re.DOTALL)


def decode_image_payload(payload) -> bytes:
    """Image bytes from raw bytes, a data URL or a bare base64 string"""
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)
    if not isinstance(payload, str):
        raise TypeError(f"Unsupported image payload type: {type(payload).__name__}")

    match = _DATA_URL_RE.match(payload.strip())
    if match:
        if ';base64' not in (match.group('params') or ''):
            raise ValueError("Only base64 data URLs are supported")
        payload = match.group('data')

    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 image data: {e}") from e


def format_file_size(bytes_size: int) -> str:
    """Human readable file size"""
    if bytes_size == 0:
        return '0 B'
    for unit in ['B', 'KB', 'MB', 'GB']:
        if bytes_size < 1024.0:
            return f"{bytes_size:.2f} {unit}"
        bytes_size /= 1024.0
    return f"{bytes_size:.2f} TB"
