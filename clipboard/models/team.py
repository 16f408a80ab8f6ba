from dataclasses import dataclass, field
from typing import Dict, Optional

LOGO_TYPES = ("default", "dark", "scoreboard", "darkScoreboard")


def format_hex_color(hex_value):
    """Return a CSS colour with a leading '#', or '' for empty input"""
    if not hex_value:
        return ""
    return hex_value if hex_value.startswith("#") else f"#{hex_value}"


def extract_logo_variations(logos):
    """Map an ESPN ``logos`` list onto the four logo variants by their ``rel`` tags"""
    variations = {}
    for logo in logos or []:
        href = logo.get("href", "")
        rel = logo.get("rel") or []

        if "default" in rel:
            variations["default"] = href
        if "dark" in rel and "scoreboard" in rel:
            variations["darkScoreboard"] = href
        elif "dark" in rel:
            variations["dark"] = href
        elif "scoreboard" in rel:
            variations["scoreboard"] = href

    return variations


@dataclass
class Team:
    id: str
    name: str
    abbreviation: str
    city: str = ""
    conference: str = ""
    division: str = ""
    color: str = ""
    alternate_color: str = ""
    logo: str = ""
    logos: Dict[str, str] = field(default_factory=dict)
    wins: Optional[int] = None
    losses: Optional[int] = None
    ties: Optional[int] = None

    def __repr__(self):
        return f"<Team {self.city} {self.name}>"

    @property
    def full_name(self):
        """Return full team name"""
        return f"{self.city} {self.name}".strip()

    def logo_url(self, logo_type):
        """Logo for a variant, falling back to the default logo"""
        return self.logos.get(logo_type) or self.logos.get("default") or self.logo

    @classmethod
    def from_espn(cls, team_info, conference=""):
        """Build a team from an ESPN ``team`` object"""
        logos = team_info.get("logos") or []
        if not logos and team_info.get("logo"):
            logos = [{"href": team_info["logo"], "rel": ["full", "default"]}]

        return cls(
            id=str(team_info.get("id", "")),
            name=team_info.get("name") or team_info.get("shortDisplayName", ""),
            abbreviation=team_info.get("abbreviation", "").upper(),
            city=team_info.get("location", ""),
            conference=conference,
            division=(team_info.get("division") or {}).get("name", ""),
            color=team_info.get("color", "") or "",
            alternate_color=team_info.get("alternateColor", "") or "",
            logo=logos[0].get("href", "") if logos else "",
            logos=extract_logo_variations(logos),
        )

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            abbreviation=data.get("abbreviation", ""),
            city=data.get("city", ""),
            conference=data.get("conference", ""),
            division=data.get("division", ""),
            color=data.get("color", ""),
            alternate_color=data.get("alternateColor", ""),
            logo=data.get("logo", ""),
            logos=dict(data.get("logos") or {}),
            wins=data.get("wins"),
            losses=data.get("losses"),
            ties=data.get("ties"),
        )

    def to_dict(self):
        """Convert team to dictionary for API responses"""
        return {
            "id": self.id,
            "name": self.name,
            "abbreviation": self.abbreviation,
            "city": self.city,
            "fullName": self.full_name,
            "conference": self.conference,
            "division": self.division,
            "color": self.color,
            "alternateColor": self.alternate_color,
            "logo": self.logo,
            "logos": dict(self.logos),
            "wins": self.wins,
            "losses": self.losses,
            "ties": self.ties,
        }
