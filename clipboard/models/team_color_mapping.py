from dataclasses import dataclass
from typing import Optional

from .team import LOGO_TYPES

BACKGROUND_CHOICES = ("primary", "secondary", "custom")

MAPPINGS_COLLECTION = "teamColorMappings"
MAPPINGS_DOC = "mappings"


@dataclass(frozen=True)
class TeamColorMapping:
    """Administrator override of a team's background colour and logo variant"""

    abbreviation: str
    background_color_choice: str = "primary"
    custom_color: Optional[str] = None
    logo_type: Optional[str] = None

    def __post_init__(self):
        if self.background_color_choice not in BACKGROUND_CHOICES:
            raise ValueError(
                f"backgroundColorChoice must be one of {BACKGROUND_CHOICES}"
            )
        if self.logo_type is not None and self.logo_type not in LOGO_TYPES:
            raise ValueError(f"logoType must be one of {LOGO_TYPES}")

    @classmethod
    def from_dict(cls, data):
        choice = data.get("backgroundColorChoice", "primary")
        return cls(
            abbreviation=data["abbreviation"].upper(),
            background_color_choice=choice,
            custom_color=data.get("customColor") if choice == "custom" else None,
            logo_type=data.get("logoType"),
        )

    def to_dict(self):
        # Unset optional fields are left out of the stored document
        data = {
            "abbreviation": self.abbreviation,
            "backgroundColorChoice": self.background_color_choice,
        }
        if self.custom_color:
            data["customColor"] = self.custom_color
        if self.logo_type:
            data["logoType"] = self.logo_type
        return data
