from flask_login import UserMixin

# Synthetic user whose picks always follow the favourite
PHIL_USER = {
    "id": "phil-hardcoded",
    "uid": "phil-hardcoded",
    "displayName": "Phil",
    "email": "phil@example.com",
    "superBowlPick": "CAR",
    "createdAt": "2024-01-01T00:00:00+00:00",
    "updatedAt": "2024-01-01T00:00:00+00:00",
}

# Profile fields that survive the season cleanup scripts
PRESERVED_PROFILE_FIELDS = (
    "name",
    "email",
    "displayName",
    "topMoviePicks",
    "moviePreferences",
    "createdAt",
    "lastLogin",
    "settings",
    "profileComplete",
)

# Legacy spellings included
SUPER_BOWL_PICK_FIELDS = (
    "superBowlPick",
    "superbowlPick",
    "nflPick",
    "championshipPick",
)


class User(UserMixin):
    """Session user backed by a ``users/<uid>`` profile document"""

    def __init__(self, uid, data=None, is_admin=False):
        self.id = uid
        self.data = data or {}
        self.is_admin = is_admin

    def __repr__(self):
        return f"<User {self.id} {self.email}>"

    @property
    def email(self):
        return self.data.get("email")

    @property
    def display_name(self):
        return self.data.get("displayName")

    @property
    def wants_email(self):
        return bool(self.data.get("emailNotifications"))

    def to_dict(self):
        """Profile fields safe to return to the owning user"""
        return {
            "id": self.id,
            "email": self.email,
            "displayName": self.display_name,
            "name": self.data.get("name"),
            "topMoviePicks": self.data.get("topMoviePicks", []),
            "moviePreferences": self.data.get("moviePreferences"),
            "superBowlPick": self.data.get("superBowlPick"),
            "emailNotifications": self.wants_email,
            "profileComplete": bool(self.data.get("profileComplete")),
            "isAdmin": self.is_admin,
        }
