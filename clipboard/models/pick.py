import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

PICK_SIDES = ("home", "away")


def get_week_key(week_type, week, label=None):
    """Week key used for pick and recap documents.

    ``week-3`` for the regular season, ``preseason-2`` for preseason and a
    slug of the ESPN label (``wild-card``) for postseason weeks.
    """
    if week_type == "preseason":
        return f"preseason-{week}"
    if week_type == "postseason" and label:
        return re.sub(r"\s+", "-", label.strip().lower())
    return f"week-{week}"


def make_week_id(season, week_key):
    return f"{season}_{week_key}"


@dataclass
class UserPick:
    """One user's pick for one game; stored inside the week picks document"""

    game_id: str
    picked_team: str
    picked_at: Optional[str] = None

    def __post_init__(self):
        if self.picked_team not in PICK_SIDES:
            raise ValueError(f"pickedTeam must be one of {PICK_SIDES}, got {self.picked_team!r}")
        if self.picked_at is None:
            self.picked_at = datetime.now(timezone.utc).isoformat()

    @classmethod
    def from_dict(cls, game_id, data):
        return cls(
            game_id=str(game_id),
            picked_team=data.get("pickedTeam"),
            picked_at=data.get("pickedAt"),
        )

    def to_dict(self):
        return {"pickedTeam": self.picked_team, "pickedAt": self.picked_at}


def picks_from_document(data):
    """Parse a week picks document into ``{game_id: UserPick}``, skipping junk entries"""
    picks = {}
    for game_id, value in (data or {}).items():
        if not isinstance(value, dict) or value.get("pickedTeam") not in PICK_SIDES:
            continue
        picks[game_id] = UserPick.from_dict(game_id, value)
    return picks
