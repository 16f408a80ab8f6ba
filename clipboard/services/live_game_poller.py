"""
Live game polling

A ``LiveGamePoller`` follows one game. It does a full fetch when activated
and, while the game is live, keeps two interval jobs on the shared
APScheduler scheduler: a light situation-only refresh and a slower full
refresh that notices when the game ends. Every snapshot is handed to the
``on_snapshot`` callback (the Socket.IO broadcaster in the running app).

Fetches capture a generation number when they start. Deactivating or
switching games bumps the generation, so a response that arrives late is
dropped instead of overwriting newer state.
"""

import logging
import threading
import uuid

from apscheduler.jobstores.base import JobLookupError
from apscheduler.triggers.interval import IntervalTrigger

from clipboard.errors import SportsApiError

logger = logging.getLogger(__name__)


class LiveGamePoller:
    def __init__(
        self,
        game_id,
        client,
        scheduler,
        on_snapshot=None,
        refresh_interval=10,
        full_refresh_interval=30,
        auto_refresh=True,
    ):
        self.game_id = str(game_id)
        self.client = client
        self.scheduler = scheduler
        self.on_snapshot = on_snapshot
        self.refresh_interval = refresh_interval
        self.full_refresh_interval = full_refresh_interval
        self.auto_refresh = auto_refresh

        self._lock = threading.RLock()
        self._token = uuid.uuid4().hex[:8]
        self._generation = 0
        self._active = False
        self._job_ids = set()

        self.game = None
        self.situation = None
        self.loading = False
        self.error = None

    def __repr__(self):
        return f"<LiveGamePoller {self.game_id} active={self._active}>"

    @property
    def is_active(self):
        return self._active

    @property
    def job_ids(self):
        return set(self._job_ids)

    def _is_stale(self, generation):
        return not self._active or generation != self._generation

    def _job_id(self, kind):
        return f"live_game_{self.game_id}_{kind}_{self._token}"

    def snapshot(self):
        with self._lock:
            return self._snapshot_locked()

    def _snapshot_locked(self):
        return {
            "gameId": self.game_id,
            "game": self.game.to_dict() if self.game else None,
            "situation": self.situation.to_dict() if self.situation else None,
            "loading": self.loading,
            "error": self.error,
            "isLive": bool(self.game and self.game.is_live),
        }

    def _publish(self, snapshot):
        if self.on_snapshot is None:
            return
        try:
            self.on_snapshot(self.game_id, snapshot)
        except Exception as e:
            logger.error(f"Error publishing snapshot for game {self.game_id}: {e}")

    # Lifecycle

    def activate(self):
        """Start following the game: one full fetch, then interval jobs while live"""
        with self._lock:
            self._active = True
            self.loading = True
            generation = self._generation

        logger.debug(f"Activating live poller for game {self.game_id}")
        self._full_fetch(generation)

    def deactivate(self):
        """Remove every job; responses still in flight are discarded"""
        with self._lock:
            self._active = False
            self._generation += 1
            self._remove_jobs()

        logger.debug(f"Deactivated live poller for game {self.game_id}")

    def change_game(self, game_id):
        self.deactivate()
        with self._lock:
            self.game_id = str(game_id)
            self.game = None
            self.situation = None
            self.error = None
            self.loading = False
        self.activate()

    def refresh(self):
        """Manual full fetch; restarts polling if the game is live again.

        A deactivated poller only returns its last snapshot. Polling resumes
        through ``activate()``.
        """
        with self._lock:
            if not self._active:
                return self._snapshot_locked()
            generation = self._generation
        self._full_fetch(generation)
        return self.snapshot()

    # Jobs

    def _schedule_jobs(self, generation):
        with self._lock:
            if self._is_stale(generation):
                return

            wanted = [("full", self._full_fetch, self.full_refresh_interval)]
            if self.auto_refresh:
                wanted.append(("situation", self._situation_fetch, self.refresh_interval))

            for kind, func, seconds in wanted:
                job_id = self._job_id(kind)
                if job_id in self._job_ids:
                    continue
                self.scheduler.add_job(
                    func=func,
                    args=[generation],
                    trigger=IntervalTrigger(seconds=seconds),
                    id=job_id,
                    name=f"Live game {self.game_id} {kind} refresh",
                    max_instances=1,
                    coalesce=True,
                    replace_existing=True,
                )
                self._job_ids.add(job_id)

    def _remove_jobs(self):
        with self._lock:
            for job_id in list(self._job_ids):
                try:
                    self.scheduler.remove_job(job_id)
                except JobLookupError:
                    pass
                self._job_ids.discard(job_id)

    # Fetches

    def _full_fetch(self, generation):
        try:
            game = self.client.get_live_game_details(self.game_id)
        except Exception as e:
            if not isinstance(e, SportsApiError):
                logger.exception(f"Unexpected error fetching game {self.game_id}")
            with self._lock:
                if self._is_stale(generation):
                    return
                self.loading = False
                self.error = str(e) or "Failed to fetch game details"
                snapshot = self._snapshot_locked()
            self._publish(snapshot)
            return

        with self._lock:
            if self._is_stale(generation):
                logger.debug(f"Dropping stale full fetch for game {self.game_id}")
                return

            self.loading = False
            if game is None:
                self.error = f"Game {self.game_id} not found"
            else:
                self.error = None
                self.game = game
                self.situation = game.situation
            live = bool(self.game and self.game.is_live)
            snapshot = self._snapshot_locked()

            if live:
                self._schedule_jobs(generation)
            else:
                self._remove_jobs()

        self._publish(snapshot)

    def _situation_fetch(self, generation):
        try:
            situation = self.client.get_game_situation(self.game_id)
        except Exception as e:
            logger.debug(f"Situation refresh failed for game {self.game_id}: {e}")
            return

        with self._lock:
            if self._is_stale(generation) or situation is None:
                return
            self.situation = situation
            if self.game is not None:
                self.game.situation = situation
            snapshot = self._snapshot_locked()

        self._publish(snapshot)


class LivePollerRegistry:
    """Shares one poller per game between all the clients watching it"""

    def __init__(
        self,
        client,
        scheduler,
        publish=None,
        refresh_interval=10,
        full_refresh_interval=30,
    ):
        self.client = client
        self.scheduler = scheduler
        self.publish = publish
        self.refresh_interval = refresh_interval
        self.full_refresh_interval = full_refresh_interval
        self._lock = threading.Lock()
        self._pollers = {}

    def __len__(self):
        return len(self._pollers)

    def get(self, game_id):
        entry = self._pollers.get(str(game_id))
        return entry[0] if entry else None

    def active_game_ids(self):
        return sorted(self._pollers)

    def acquire(self, game_id):
        game_id = str(game_id)
        with self._lock:
            entry = self._pollers.get(game_id)
            if entry is not None:
                entry[1] += 1
                return entry[0]

            poller = LiveGamePoller(
                game_id,
                self.client,
                self.scheduler,
                on_snapshot=self.publish,
                refresh_interval=self.refresh_interval,
                full_refresh_interval=self.full_refresh_interval,
            )
            self._pollers[game_id] = [poller, 1]

        poller.activate()
        return poller

    def release(self, game_id):
        game_id = str(game_id)
        with self._lock:
            entry = self._pollers.get(game_id)
            if entry is None:
                return
            entry[1] -= 1
            if entry[1] > 0:
                return
            del self._pollers[game_id]

        entry[0].deactivate()

    def switch(self, old_game_id, new_game_id):
        if old_game_id is not None:
            self.release(old_game_id)
        return self.acquire(new_game_id)

    def shutdown(self):
        with self._lock:
            pollers = [entry[0] for entry in self._pollers.values()]
            self._pollers = {}

        for poller in pollers:
            poller.deactivate()
        logger.info(f"Stopped {len(pollers)} live game pollers")


def fetch_live_games_with_details(client):
    """Live games with full details; a failed detail fetch falls back to the scoreboard entry"""
    games = client.get_live_games()

    results = []
    for game in games:
        try:
            detailed = client.get_live_game_details(game.id)
        except SportsApiError as e:
            logger.warning(f"Using scoreboard entry for game {game.id}: {e}")
            detailed = None
        results.append(detailed or game)

    return results
