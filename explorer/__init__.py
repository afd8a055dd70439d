"""
Website Explorer Package
Autonomous, budget-bounded exploration of a website with a real browser.

CLI Usage:
    python -m explorer <url> [options]

    Options:
        --pages             Maximum pages per session (default: 50)
        --max-duration      Maximum session duration in seconds (default: 90)
        --min-duration      Minimum session duration in seconds (default: 15)
        --max-interactions  Clicks / fills per page (default: 10)
        --email/--password  Optional login credentials
        --output-json       Export the result record to JSON
"""

from .auth import Credentials, LoginHandler
from .jobs import Job, JobRunner, JobStatus, JsonStatusStore, load_job
from .models import ActionLogEntry, ActionType, ExplorationResult, PageSnapshot, Phase
from .run_config import ExplorerRunConfig
from .scheduler import CrawlScheduler
from .session import ExplorationError, ExplorationSession
from .utils import URLNormalizer, normalize_url

__all__ = [
    'ExplorationSession',
    'ExplorationError',
    'ExplorerRunConfig',
    'CrawlScheduler',
    # Data model
    'ExplorationResult',
    'ActionLogEntry',
    'ActionType',
    'PageSnapshot',
    'Phase',
    # Auth
    'Credentials',
    'LoginHandler',
    # Jobs
    'Job',
    'JobRunner',
    'JobStatus',
    'JsonStatusStore',
    'load_job',
    # URL keys
    'URLNormalizer',
    'normalize_url',
]

__version__ = '1.0.0'
