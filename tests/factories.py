from datetime import datetime, timezone

from apscheduler.jobstores.base import JobLookupError

from clipboard.models.game import Game, Situation
from clipboard.models.team import Team
from clipboard.models.week import NflWeek

CRON_HEADERS = {"Authorization": "Bearer testing-cron-secret"}


class FakeScheduler:
    """Records jobs instead of running them; ``run`` fires one by hand"""

    def __init__(self):
        self.jobs = {}

    def add_job(self, func, args=None, id=None, **kwargs):
        self.jobs[id] = (func, list(args or []), kwargs)

    def remove_job(self, job_id):
        if job_id not in self.jobs:
            raise JobLookupError(job_id)
        del self.jobs[job_id]

    def run(self, job_id):
        func, args, _ = self.jobs[job_id]
        return func(*args)


def make_team(abbreviation, color="", alternate_color="", **kwargs):
    return Team(
        id=kwargs.pop("id", abbreviation.lower()),
        name=kwargs.pop("name", abbreviation.title()),
        abbreviation=abbreviation,
        color=color,
        alternate_color=alternate_color,
        logos=kwargs.pop(
            "logos",
            {
                "default": f"https://a.espncdn.com/{abbreviation.lower()}.png",
                "dark": f"https://a.espncdn.com/dark/{abbreviation.lower()}.png",
            },
        ),
        **kwargs,
    )


def make_game(game_id="401", status="live", home_score=0, away_score=0, **kwargs):
    return Game(
        id=str(game_id),
        date="2025-09-07T17:00Z",
        home_team=kwargs.pop("home_team", make_team("KC", "e31837", "ffb612")),
        away_team=kwargs.pop("away_team", make_team("BUF", "00338d", "d50a0a")),
        status=status,
        home_score=home_score,
        away_score=away_score,
        **kwargs,
    )


def make_situation(down=1, distance=10, quarter=2):
    return Situation(quarter=quarter, down=down, distance=distance)


def make_week(week=3, week_type="regular", season=2025, start=None, end=None, label=None):
    start = start or datetime(2025, 9, 16, 7, tzinfo=timezone.utc)
    end = end or datetime(2025, 9, 23, 6, 59, tzinfo=timezone.utc)
    return NflWeek(
        season=season,
        week=week,
        week_type=week_type,
        start_date=start,
        end_date=end,
        label=label,
    )
