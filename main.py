"""
Command line entry point: export a JSON print job to PDF or PNG
"""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from core.config import ExportConfig
from core.models import ExportFormat, ExportScope
from services.export_service import ExportService
from utils.helpers import format_file_size
from utils.logger import setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Lay out card images on print sheets")
    parser.add_argument('job', type=Path, help="JSON job file with pages of slot records")
    parser.add_argument('-o', '--output', type=Path, required=True, help="Output file")
    parser.add_argument('-c', '--config', type=Path, help="Export configuration JSON")
    parser.add_argument('-f', '--format', choices=[f.value for f in ExportFormat],
                        help="Output format, default from job or pdf")
    parser.add_argument('--log-dir', default=None, help="Also write logs to this directory")
    parser.add_argument('-v', '--verbose', action='store_true')
    return parser.parse_args(argv)


def load_pages(job: dict, base_dir: Path) -> list:
    """Slot records with image file paths replaced by their bytes"""
    pages = []
    for page in job.get('pages', []):
        slots = []
        for record in page:
            if record is not None and 'path' in record:
                record = dict(record)
                image_path = base_dir / record.pop('path')
                record['image'] = image_path.read_bytes()
            slots.append(record)
        pages.append(slots)
    return pages


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_dir, 'DEBUG' if args.verbose else None)

    try:
        config = ExportConfig.load(str(args.config)) if args.config else ExportConfig()
        with open(args.job, 'r', encoding='utf-8') as f:
            job = json.load(f)

        if job.get('profile'):
            config.profile_path = str(args.job.parent / job['profile'])

        pages = load_pages(job, args.job.parent)
        export_format = ExportFormat(args.format or job.get('format', ExportFormat.PDF.value))
        scope = ExportScope(job.get('scope', ExportScope.ALL_PAGES.value))
        current_page = int(job.get('current_page', 0))
    except (OSError, ValueError) as e:
        logger.error(f"Cannot load job {args.job}: {e}")
        return 1

    options = {key: job[key] for key in ('dpi_tier', 'color_mode', 'category', 'spacing') if key in job}

    service = ExportService(config)
    response = asyncio.run(service.export(
        pages,
        export_format=export_format,
        scope=scope,
        current_page=current_page,
        **options
    ))

    if not response.success:
        logger.error(response.message)
        return 1

    args.output.write_bytes(response.data)
    for skipped in response.skipped_slots:
        logger.warning(f"Page {skipped.page_index + 1}, slot {skipped.slot_index + 1}: {skipped.reason}")
    logger.info(f"{response.message}: {args.output} ({format_file_size(len(response.data))}, "
                f"{response.page_count} pages, color {response.color_mode.value})")
    return 0


if __name__ == '__main__':
    sys.exit(main())
