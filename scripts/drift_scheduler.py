#!/usr/bin/env python3
"""
Drift Scheduler - Periodic drift analysis

Runs driftive on a schedule:
1. Cron: DRIFTIVE_SCHEDULE (crontab syntax, default every 6 hours)
2. File watcher: re-run when the repository config changes (local repositories only)
3. Initial run at start-up

Usage:
    python scripts/drift_scheduler.py
"""

import os
import sys
import threading
import time
import logging
from pathlib import Path
from datetime import datetime

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv
load_dotenv()

from driftive.app import run_driftive
from driftive.config import DriftiveConfig
from driftive.errors import DriftiveError, RunCancelledError
from driftive.logging_config import setup_logging
from driftive.repo_config import REPO_CONFIG_FILE_NAMES

logger = logging.getLogger(__name__)

DEFAULT_SCHEDULE = "0 */6 * * *"
DEBOUNCE_SECONDS = 5


class DriftRunner:
    """Runs driftive, one run at a time."""

    def __init__(self, config: DriftiveConfig, cancel_event: threading.Event):
        self.config = config
        self.cancel_event = cancel_event
        self._lock = threading.Lock()

    def run(self, reason: str = "scheduled") -> None:
        if not self._lock.acquire(blocking=False):
            logger.warning(f"⏭️  Skipping {reason} run, previous run still in progress")
            return
        try:
            logger.info(f"⏰ Drift analysis triggered ({reason})")
            result = run_driftive(self.config, self.cancel_event)
            analysis = result.analysis
            logger.info(f"✅ Run finished: {analysis.total_drifted} drifted, "
                        f"{analysis.total_errored} errored, {analysis.total_projects} projects")
        except RunCancelledError as e:
            logger.warning(f"🛑 {e}")
        except (DriftiveError, ValueError) as e:
            logger.error(f"❌ Drift analysis failed: {e}")
        finally:
            self._lock.release()


class RepoConfigFileHandler(FileSystemEventHandler):
    """Trigger a run when driftive.yml (or a variant) changes"""

    def __init__(self, scheduler, runner: DriftRunner):
        self.scheduler = scheduler
        self.runner = runner
        self.last_run = datetime.min
        self.debounce_seconds = DEBOUNCE_SECONDS

    def on_modified(self, event):
        if os.path.basename(event.src_path) not in REPO_CONFIG_FILE_NAMES:
            return
        now = datetime.now()
        if (now - self.last_run).total_seconds() <= self.debounce_seconds:
            return
        logger.info("📝 Repository config changed - triggering drift analysis")
        self.last_run = now
        self.scheduler.add_job(
            self.runner.run,
            kwargs={'reason': 'config change'},
            id='config_change_run',
            replace_existing=True
        )

    on_created = on_modified


def main():
    """Main scheduler loop"""
    config = DriftiveConfig()
    setup_logging(config.log_level)
    try:
        config.validate()
    except ValueError as e:
        logger.error(f"❌ {e}")
        return 2

    schedule = os.getenv("DRIFTIVE_SCHEDULE", DEFAULT_SCHEDULE)

    logger.info("="*80)
    logger.info("🚀 DRIFT SCHEDULER STARTING")
    logger.info("="*80)
    logger.info(f"📅 Schedule: {schedule}")
    logger.info("🛑 Press Ctrl+C to stop")
    logger.info("="*80)

    cancel_event = threading.Event()
    runner = DriftRunner(config, cancel_event)

    scheduler = BackgroundScheduler()
    scheduler.add_job(
        runner.run,
        CronTrigger.from_crontab(schedule),
        id='drift_analysis',
        name='Drift Analysis',
        replace_existing=True,
        max_instances=1,
        coalesce=True
    )
    scheduler.start()
    logger.info("✅ Scheduler started")

    observer = None
    if config.repository_path:
        observer = Observer()
        observer.schedule(RepoConfigFileHandler(scheduler, runner), config.repository_path, recursive=False)
        observer.start()
        logger.info(f"✅ File watcher started: {config.repository_path}")

    logger.info("🔄 Running initial drift analysis...")
    runner.run(reason='initial')

    try:
        while True:
            time.sleep(60)
    except (KeyboardInterrupt, SystemExit):
        logger.info("🛑 Stopping scheduler...")
        cancel_event.set()
        scheduler.shutdown()
        if observer is not None:
            observer.stop()
            observer.join()
        logger.info("✅ Scheduler stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
