"""
Jim's Clipboard Background Scheduler Service

Owns the process-wide APScheduler instance. The live game pollers add and
remove their own interval jobs on it; this service only registers the
periodic live-games broadcast.
"""

import atexit
import logging
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from clipboard.errors import SportsApiError

logger = logging.getLogger(__name__)


class SchedulerService:
    """Manages the background scheduler shared by the live game features"""

    def __init__(self, app=None):
        self.scheduler = None
        self.app = app
        self.is_running = False
        self.broadcast_stats = {
            "last_broadcast": None,
            "total_broadcasts": 0,
            "failed_broadcasts": 0,
            "last_error": None,
            "live_games": 0,
        }

        if app:
            self.init_app(app)

    def init_app(self, app):
        """Initialize scheduler with Flask app"""
        self.app = app
        self.scheduler = BackgroundScheduler(daemon=True, timezone="UTC")

        # Register shutdown
        atexit.register(self.shutdown)

        # Start scheduler if enabled
        if app.config.get("SCHEDULER_ENABLED", True):
            self.start()

    def start(self):
        """Start the background scheduler"""
        if self.is_running:
            return

        try:
            self.scheduler.remove_all_jobs()
            self._add_core_jobs()
            self.scheduler.start()
            self.is_running = True

            logger.info("Scheduler started successfully")

        except Exception as e:
            logger.error(f"Failed to start scheduler: {e}")
            raise

    def stop(self):
        """Stop the background scheduler"""
        if not self.is_running:
            return

        try:
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            logger.info("Scheduler stopped")

        except Exception as e:
            logger.error(f"Error stopping scheduler: {e}")

    def shutdown(self):
        """Graceful shutdown"""
        if self.app is not None:
            registry = self.app.extensions.get("live_pollers")
            if registry is not None:
                registry.shutdown()
        self.stop()

    def _add_core_jobs(self):
        """Add core scheduled jobs"""
        interval = self.app.config.get("LIVE_GAMES_BROADCAST_INTERVAL", 30)

        self.scheduler.add_job(
            func=self._broadcast_live_games,
            trigger=IntervalTrigger(seconds=interval),
            id="broadcast_live_games",
            name="Broadcast Live Games",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=interval,
        )

        logger.info("Core scheduled jobs added")

    def _broadcast_live_games(self):
        """Push the enriched live games list to every /scores client"""
        from clipboard.services.live_game_poller import fetch_live_games_with_details
        from clipboard.socketio_handlers import broadcast_live_games

        with self.app.app_context():
            try:
                client = self.app.extensions["espn_client"]
                games = fetch_live_games_with_details(client)
                broadcast_live_games(games)
                self._update_stats(True, len(games))

            except SportsApiError as e:
                logger.warning(f"Live games broadcast skipped: {e}")
                self._update_stats(False)
                self.broadcast_stats["last_error"] = str(e)

    def _update_stats(self, success, live_games=0):
        self.broadcast_stats["last_broadcast"] = datetime.now(timezone.utc)
        self.broadcast_stats["total_broadcasts"] += 1

        if success:
            self.broadcast_stats["live_games"] = live_games
            self.broadcast_stats["last_error"] = None
        else:
            self.broadcast_stats["failed_broadcasts"] += 1

    def get_status(self):
        """Get scheduler status information"""
        jobs = []
        if self.scheduler:
            for job in self.scheduler.get_jobs():
                next_run = job.next_run_time
                jobs.append(
                    {
                        "id": job.id,
                        "name": job.name,
                        "next_run": next_run.isoformat() if next_run else None,
                        "trigger": str(job.trigger),
                    }
                )

        return {
            "is_running": self.is_running,
            "jobs": jobs,
            "stats": self.broadcast_stats,
        }


# Global scheduler instance
scheduler_service = SchedulerService()
