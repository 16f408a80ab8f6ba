from clipboard import db  # noqa: F401 - imported for model imports

from .document import Document
from .game import Game, Situation
from .pick import UserPick
from .team import Team
from .team_color_mapping import TeamColorMapping
from .user import PHIL_USER, User

__all__ = [
    "Document",
    "Game",
    "Situation",
    "Team",
    "TeamColorMapping",
    "UserPick",
    "User",
    "PHIL_USER",
]
