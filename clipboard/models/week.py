from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from .pick import get_week_key, make_week_id

# ESPN season type ids
SEASON_TYPES = {1: "preseason", 2: "regular", 3: "postseason", 4: "offseason"}


def parse_espn_datetime(value):
    """Parse ESPN timestamps such as ``2025-09-04T07:00Z``"""
    if not value:
        return None
    value = value.replace("Z", "+00:00")
    # ESPN omits seconds on most timestamps
    if len(value) == len("2025-09-04T07:00+00:00"):
        value = value[:16] + ":00" + value[16:]
    return datetime.fromisoformat(value)


@dataclass
class NflWeek:
    season: int
    week: int
    week_type: str
    start_date: datetime
    end_date: datetime
    label: Optional[str] = None

    @property
    def key(self):
        return get_week_key(self.week_type, self.week, self.label)

    @property
    def week_id(self):
        return make_week_id(self.season, self.key)

    def previous(self):
        """Same-type week seven days earlier, used to re-run last week's jobs"""
        return NflWeek(
            season=self.season,
            week=self.week - 1,
            week_type=self.week_type,
            start_date=self.start_date - timedelta(days=7),
            end_date=self.end_date - timedelta(days=7),
            label=None,
        )

    def to_dict(self):
        return {
            "season": self.season,
            "week": self.week,
            "weekType": self.week_type,
            "label": self.label,
            "key": self.key,
            "weekId": self.week_id,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
        }
