# tests/test_main.py
import json
import shutil
import tempfile
import unittest
import sys
import os

from PIL import Image

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

import main


class TestCommandLine(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        Image.new('RGB', (63, 88), 'red').save(os.path.join(self.temp_dir, 'card.png'))

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def write_job(self, job):
        path = os.path.join(self.temp_dir, 'job.json')
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(job, f)
        return path

    def test_exports_pdf(self):
        job = self.write_job({
            'dpi_tier': 'standard',
            'pages': [[{'path': 'card.png', 'scale': 1.2}, None], [None, {'path': 'card.png'}]],
        })
        output = os.path.join(self.temp_dir, 'out.pdf')

        self.assertEqual(main.main([job, '-o', output]), 0)
        with open(output, 'rb') as f:
            self.assertTrue(f.read().startswith(b'%PDF'))

    def test_exports_png(self):
        job = self.write_job({'pages': [[{'path': 'card.png'}]], 'color_mode': 'simulated',
                              'dpi_tier': 'standard'})
        output = os.path.join(self.temp_dir, 'out.png')

        self.assertEqual(main.main([job, '-o', output, '--format', 'png']), 0)
        with Image.open(output) as img:
            self.assertEqual(img.format, 'PNG')

    def test_failed_export(self):
        job = self.write_job({'pages': [], 'format': 'pdf'})
        output = os.path.join(self.temp_dir, 'out.pdf')

        self.assertEqual(main.main([job, '-o', output]), 1)
        self.assertFalse(os.path.exists(output))

    def test_missing_image_file(self):
        job = self.write_job({'pages': [[{'path': 'absent.png'}]]})
        output = os.path.join(self.temp_dir, 'out.pdf')

        with self.assertLogs('main', level='ERROR'):
            self.assertEqual(main.main([job, '-o', output]), 1)
        self.assertFalse(os.path.exists(output))

    def test_bad_config_file(self):
        job = self.write_job({'pages': [[{'path': 'card.png'}]]})
        config_path = os.path.join(self.temp_dir, 'config.json')
        with open(config_path, 'w', encoding='utf-8') as f:
            json.dump({'color_mode': 'neon'}, f)
        output = os.path.join(self.temp_dir, 'out.pdf')

        with self.assertLogs('main', level='ERROR'):
            self.assertEqual(main.main([job, '-o', output, '-c', config_path]), 1)

    def test_job_profile_path(self):
        job = self.write_job({'pages': [[{'path': 'card.png'}]], 'color_mode': 'accurate',
                              'profile': 'missing.icc'})
        output = os.path.join(self.temp_dir, 'out.pdf')

        self.assertEqual(main.main([job, '-o', output]), 0)


if __name__ == '__main__':
    unittest.main()
