# tests/test_helpers.py
import base64
import unittest
import sys
import os

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from utils.helpers import decode_image_payload, format_file_size


class TestHelpers(unittest.TestCase):

    def test_decode_bytes(self):
        self.assertEqual(decode_image_payload(b'\x89PNG'), b'\x89PNG')
        self.assertEqual(decode_image_payload(bytearray(b'abc')), b'abc')

    def test_decode_data_url(self):
        encoded = base64.b64encode(b'image data').decode('ascii')

        self.assertEqual(decode_image_payload(f'data:image/jpeg;base64,{encoded}'), b'image data')
        self.assertEqual(decode_image_payload(encoded), b'image data')

    def test_decode_errors(self):
        with self.assertRaises(ValueError):
            decode_image_payload('data:image/png,plain')
        with self.assertRaises(ValueError):
            decode_image_payload('%%%')
        with self.assertRaises(TypeError):
            decode_image_payload(None)

    def test_format_file_size(self):
        self.assertEqual(format_file_size(0), '0 B')
        self.assertEqual(format_file_size(512), '512.00 B')
        self.assertEqual(format_file_size(1536), '1.50 KB')
        self.assertEqual(format_file_size(5 * 1024 * 1024), '5.00 MB')


if __name__ == '__main__':
    unittest.main()
