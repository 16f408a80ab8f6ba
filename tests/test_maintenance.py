from clipboard.services.clipboard_visibility import (
    add_new_user_to_all,
    get_visible_users,
    visibility_path,
)
from clipboard.services.maintenance import (
    clear_pick_data,
    clear_sports_data,
    clear_superbowl_picks,
    init_team_colors,
)
from clipboard.services.team_colors import NFL_TEAM_ABBREVIATIONS


def seed_users(store):
    store.set(
        "users/a",
        {
            "email": "a@example.com",
            "displayName": "A",
            "superBowlPick": "KC",
            "nflPick": "BUF",
            "weeklyScore": 7,
        },
    )
    store.set("users/b", {"email": "b@example.com", "championshipPick": "DET"})
    store.set("users/c", {"email": "c@example.com"})
    store.set("users/a/picks/2025_week-1", {"1": {"pickedTeam": "home"}})
    store.set("users/a/picks/2025_week-2", {"2": {"pickedTeam": "away"}})
    store.set("users/b/picks/2025_week-1", {"1": {"pickedTeam": "away"}})
    store.set("weekRecaps/2025_week-1", {"userStats": []})


def test_clear_pick_data_keeps_profiles(store):
    seed_users(store)

    result = clear_pick_data(store)

    assert result == {"weekRecapsDeleted": 1, "picksDeleted": 3}
    assert store.list_documents("users/a/picks") == []
    assert store.get("users/a")["superBowlPick"] == "KC"


def test_clear_sports_data_strips_profiles(store):
    seed_users(store)
    store.set("games/1", {"status": "final"})
    store.set("liveGames/1", {"status": "live"})

    result = clear_sports_data(store)

    assert result["collectionsCleared"] == {
        "picks": 0,
        "games": 1,
        "weekRecaps": 1,
        "liveGames": 1,
    }
    assert result["usersCleaned"] == 3
    assert store.get("users/a") == {"email": "a@example.com", "displayName": "A"}


def test_clear_superbowl_picks_covers_legacy_fields(store):
    seed_users(store)

    result = clear_superbowl_picks(store)

    assert result == {"usersUpdated": 2}
    user_a = store.get("users/a")
    assert user_a["superBowlPick"] is None
    assert user_a["nflPick"] is None
    assert user_a["weeklyScore"] == 7
    assert store.get("users/b")["championshipPick"] is None
    assert "superBowlPick" not in store.get("users/c")


def test_init_team_colors_seeds_every_team(app, store):
    result = init_team_colors(app.extensions["team_colors"])

    assert result == {"mappings": 32}
    saved = store.get("teamColorMappings/mappings")["mappings"]
    assert [m["abbreviation"] for m in saved] == list(NFL_TEAM_ABBREVIATIONS)
    assert saved[0] == {
        "abbreviation": "BUF",
        "backgroundColorChoice": "primary",
        "logoType": "dark",
    }


def test_new_user_added_to_every_clipboard(store):
    seed_users(store)
    store.set(visibility_path("a"), {"visibleUsers": ["b"], "showNewUsersByDefault": False})
    store.set("users/new", {"email": "new@example.com"})

    written = add_new_user_to_all(store, "new")

    assert written == 3
    assert get_visible_users(store, "a") == ["b", "new"]
    assert store.get(visibility_path("a"))["showNewUsersByDefault"] is False
    assert get_visible_users(store, "c") == ["new"]
    assert store.get(visibility_path("c"))["showNewUsersByDefault"] is True
    assert store.get(visibility_path("new")) is None


def test_adding_user_twice_does_not_duplicate(store):
    store.set("users/a", {})
    store.set("users/new", {})

    add_new_user_to_all(store, "new")
    add_new_user_to_all(store, "new")

    assert get_visible_users(store, "a") == ["new"]
