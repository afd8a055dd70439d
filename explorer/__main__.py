#!/usr/bin/env python3
"""
Command-line entry point
========================
Runs one exploration job and writes its status / results under the
artifacts directory.

All configuration flows through ``ExplorerRunConfig``.  Credentials come
from ``--email`` / ``--password``, the job file's ``auth`` object, or the
``EXPLORER_EMAIL`` / ``EXPLORER_PASSWORD`` environment variables (a ``.env``
file is honoured).

Run with: python -m explorer https://example.com
"""

import argparse
import asyncio
import json
import logging
import sys
import uuid
from pathlib import Path

from dotenv import load_dotenv

from .auth import Credentials
from .jobs import Job, JobRunner, JobStatus, JsonStatusStore, load_job
from .run_config import ExplorerRunConfig

# Load .env from the project root, falling back to the CWD
_env_path = Path(__file__).resolve().parent.parent / '.env'
if _env_path.exists():
    load_dotenv(_env_path)
else:
    load_dotenv()

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='site-explorer',
        description='Autonomous website explorer - bounded BFS crawl with login and safe interaction',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m explorer https://example.com
  python -m explorer https://app.example.com --email me@example.com --password secret
  python -m explorer --job-file job.json --job-id job-42 --output-json result.json
        """
    )

    parser.add_argument('url', nargs='?', help='Start URL (or use --job-file)')
    parser.add_argument('--job-file', type=str, metavar='PATH',
                        help='JSON job record {"url": ..., "auth": {"email": ..., "password": ...}}')
    parser.add_argument('--job-id', type=str, help='Job identifier (names the artifact directory)')

    budget_group = parser.add_argument_group('Budgets')
    budget_group.add_argument('--pages', type=int, help='Maximum pages per session (default: 50)')
    budget_group.add_argument('--max-duration', type=float, metavar='SECONDS',
                              help='Maximum session duration in seconds (default: 90)')
    budget_group.add_argument('--min-duration', type=float, metavar='SECONDS',
                              help='Minimum session duration in seconds (default: 15)')
    budget_group.add_argument('--max-interactions', type=int,
                              help='Maximum clicks / fills per page (default: 10)')

    auth_group = parser.add_argument_group(
        'Authentication',
        'Credentials are optional; without them only the public phase runs.')
    auth_group.add_argument('--email', type=str, help='Login email (or set EXPLORER_EMAIL)')
    auth_group.add_argument('--password', type=str, help='Login password (or set EXPLORER_PASSWORD)')

    parser.add_argument('--artifacts-dir', type=str, help='Artifacts root directory (default: artifacts)')
    parser.add_argument('--headed', action='store_true', help='Show the browser window')
    parser.add_argument('--output-json', type=str, help='Also write the result record to this file')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser


def print_summary(job: Job) -> None:
    """Print the job outcome."""
    results = job.results or {}
    stats = results.get('stats', {})
    print("\n" + "=" * 65)
    print(f"EXPLORATION {job.status.value.upper()}")
    print("=" * 65)
    print(f"  Job:            {job.id}")
    print(f"  URL:            {job.url}")
    print(f"  Pages visited:  {len(results.get('pagesVisited', []))}")
    print(f"  Screenshots:    {len(results.get('screenshots', []))}")
    print(f"  Actions logged: {len(results.get('actionLog', []))}")
    print(f"  Video:          {results.get('videoPath') or '-'}")
    if stats:
        print(f"  Elapsed:        {stats.get('elapsed_sec', 0):.1f}s")
        for phase, reason in stats.get('stop_reasons', {}).items():
            print(f"  Stop ({phase}):".ljust(18) + reason)
    if job.error:
        print(f"  Error:          {job.error}")
    print("=" * 65)


def run_cli_with_args(argv=None) -> int:
    """Parse argv, build ExplorerRunConfig, run one job."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s | %(levelname)s | %(message)s',
        datefmt='%H:%M:%S'
    )

    if not args.url and not args.job_file:
        parser.error('a start URL or --job-file is required')

    if args.job_file:
        try:
            job = load_job(args.job_file, job_id=args.job_id)
        except (OSError, ValueError) as e:
            parser.error(f'could not read job file: {e}')
    else:
        job = Job(id=args.job_id or uuid.uuid4().hex[:12], url=args.url)

    # Flags win over the job file, which wins over the environment
    file_auth = job.auth or Credentials()
    job.auth = Credentials.resolve(
        email=args.email or file_auth.email,
        password=args.password or file_auth.password,
    )

    cfg = ExplorerRunConfig.from_cli_args(args)
    runner = JobRunner(cfg, on_status=JsonStatusStore(cfg.artifacts_root))
    runner.report_status(job, JobStatus.QUEUED)
    asyncio.run(runner.process(job))

    if cfg.output_json and job.results is not None:
        with open(cfg.output_json, 'w', encoding='utf-8') as f:
            json.dump(job.results, f, indent=2, ensure_ascii=False)
        print(f"  Exported: {cfg.output_json}")

    print_summary(job)
    return 0 if job.status == JobStatus.COMPLETED else 1


if __name__ == '__main__':
    sys.exit(run_cli_with_args())
