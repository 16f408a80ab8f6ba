"""
Team style resolution

Works out the background colour and logo variant a team is drawn with.
Administrators can override either per team; the overrides live in a single
document and are held in memory by ``TeamColorMappingCache``, which is built
once in ``create_app`` and shared through ``app.extensions``.
"""

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass

from clipboard.errors import DocumentStoreUnavailable
from clipboard.models.team import format_hex_color
from clipboard.models.team_color_mapping import (
    MAPPINGS_COLLECTION,
    MAPPINGS_DOC,
    TeamColorMapping,
)
from clipboard.services.document_store import server_timestamp

logger = logging.getLogger(__name__)

DEFAULT_BACKGROUND = "#1a1a1a"
DEFAULT_LOGO_TYPE = "dark"

WHITE = "#ffffff"
BLACK = "#000000"

NFL_TEAM_ABBREVIATIONS = (
    "BUF", "MIA", "NE", "NYJ",
    "BAL", "CIN", "CLE", "PIT",
    "HOU", "IND", "JAX", "TEN",
    "DEN", "KC", "LAC", "LV",
    "DAL", "NYG", "PHI", "WSH",
    "CHI", "DET", "GB", "MIN",
    "ATL", "CAR", "NO", "TB",
    "ARI", "LAR", "SF", "SEA",
)

# Seed used by the init endpoint and CLI command
DEFAULT_MAPPINGS = [
    TeamColorMapping(abbreviation, "primary", logo_type=DEFAULT_LOGO_TYPE)
    for abbreviation in NFL_TEAM_ABBREVIATIONS
]


def _parse_hex(color):
    value = (color or "").strip().lstrip("#")
    if len(value) == 3:
        value = "".join(c * 2 for c in value)
    if len(value) != 6:
        return None
    try:
        return tuple(int(value[i : i + 2], 16) for i in (0, 2, 4))
    except ValueError:
        return None


def relative_luminance(color):
    """WCAG relative luminance of a hex colour, or None if it does not parse"""
    rgb = _parse_hex(color)
    if rgb is None:
        return None

    channels = []
    for component in rgb:
        c = component / 255
        channels.append(c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4)
    r, g, b = channels
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def contrast_ratio(color_a, color_b):
    """WCAG contrast ratio between two hex colours (1.0 to 21.0)"""
    la = relative_luminance(color_a)
    lb = relative_luminance(color_b)
    if la is None or lb is None:
        return 1.0
    lighter, darker = max(la, lb), min(la, lb)
    return (lighter + 0.05) / (darker + 0.05)


def is_light(color):
    return contrast_ratio(color, BLACK) > contrast_ratio(color, WHITE)


@dataclass(frozen=True)
class TeamStyle:
    background: str
    logo: str
    logo_url: str

    def to_dict(self):
        return {"background": self.background, "logo": self.logo, "logoUrl": self.logo_url}


def _mapped_background(team, mapping):
    if mapping.background_color_choice == "primary":
        return format_hex_color(team.color) or DEFAULT_BACKGROUND
    if mapping.background_color_choice == "secondary":
        return format_hex_color(team.alternate_color) or DEFAULT_BACKGROUND
    return mapping.custom_color or DEFAULT_BACKGROUND


def _fallback_background(team):
    # The dark logo variant is white artwork, so favour the darker colour
    candidates = [
        c
        for c in (format_hex_color(team.color), format_hex_color(team.alternate_color))
        if c and _parse_hex(c)
    ]
    if not candidates:
        return DEFAULT_BACKGROUND

    best = candidates[0]
    for candidate in candidates[1:]:
        if contrast_ratio(candidate, WHITE) > contrast_ratio(best, WHITE):
            best = candidate
    return best


def resolve_style(team, mapping=None):
    """Background colour and logo variant for a team"""
    if mapping is not None:
        background = _mapped_background(team, mapping)
        logo = mapping.logo_type or DEFAULT_LOGO_TYPE
    else:
        background = _fallback_background(team)
        logo = "default" if is_light(background) else DEFAULT_LOGO_TYPE

    return TeamStyle(background=background, logo=logo, logo_url=team.logo_url(logo))


UNLOADED = "unloaded"
LOADING = "loading"
LOADED = "loaded"


class TeamColorMappingCache:
    """
    In-memory copy of the administrator's team colour mappings.

    ``load`` is single-flight: callers arriving while a load is running wait
    on the same future, so one document read serves all of them. Listeners
    registered with ``subscribe`` are called once after every
    ``set_mappings``, with the new mapping list.
    """

    def __init__(self, store, path=f"{MAPPINGS_COLLECTION}/{MAPPINGS_DOC}"):
        self._store = store
        self._path = path
        self._lock = threading.Lock()
        self._state = UNLOADED
        self._mappings = {}
        self._has_loaded = False
        self._inflight = None
        self._listeners = []

    @property
    def state(self):
        return self._state

    def _fetch(self):
        document = self._store.get(self._path) or {}
        mappings = {}
        for entry in document.get("mappings") or []:
            try:
                mapping = TeamColorMapping.from_dict(entry)
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping invalid team colour mapping {entry!r}: {e}")
                continue
            mappings[mapping.abbreviation] = mapping
        return mappings

    def load(self, force_reload=False):
        """Return the mapping list, reading the store at most once at a time"""
        with self._lock:
            if self._state == LOADED and not force_reload:
                return list(self._mappings.values())
            if self._inflight is not None:
                future, owner = self._inflight, False
            else:
                future, owner = Future(), True
                self._inflight = future
                self._state = LOADING

        if not owner:
            return future.result()

        try:
            mappings = self._fetch()
        except DocumentStoreUnavailable as e:
            logger.warning(f"Team colour mappings unavailable, keeping cached copy: {e}")
            with self._lock:
                if self._inflight is future:
                    self._inflight = None
                    self._state = LOADED if self._has_loaded else UNLOADED
                result = list(self._mappings.values())
            future.set_result(result)
            return result
        except Exception as e:
            with self._lock:
                if self._inflight is future:
                    self._inflight = None
                    self._state = LOADED if self._has_loaded else UNLOADED
            future.set_exception(e)
            raise

        with self._lock:
            # An invalidate() during the read discards its result
            if self._inflight is future:
                self._mappings = mappings
                self._has_loaded = True
                self._state = LOADED
                self._inflight = None
            result = list(mappings.values())

        logger.info(f"Loaded {len(result)} team colour mappings")
        future.set_result(result)
        return result

    def get(self, abbreviation):
        if self._state != LOADED:
            self.load()
        return self._mappings.get((abbreviation or "").upper())

    def all(self):
        if self._state != LOADED:
            return self.load()
        return list(self._mappings.values())

    def style_for(self, team):
        return resolve_style(team, self.get(team.abbreviation))

    def set_mappings(self, mappings):
        """Persist the full mapping list, replace the cache, then notify listeners"""
        parsed = [
            m if isinstance(m, TeamColorMapping) else TeamColorMapping.from_dict(m)
            for m in mappings
        ]

        self._store.set(
            self._path,
            {"mappings": [m.to_dict() for m in parsed], "updatedAt": server_timestamp()},
        )

        with self._lock:
            self._mappings = {m.abbreviation: m for m in parsed}
            self._has_loaded = True
            self._state = LOADED
            self._inflight = None
            listeners = list(self._listeners)

        logger.info(f"Saved {len(parsed)} team colour mappings")

        for listener in listeners:
            try:
                listener(list(parsed))
            except Exception as e:
                logger.error(f"Team colour mapping listener failed: {e}", exc_info=True)

        return parsed

    def subscribe(self, listener):
        """Register a listener; the returned callable removes it again"""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def invalidate(self):
        with self._lock:
            self._state = UNLOADED
            self._inflight = None

    def dispose(self):
        with self._lock:
            self._listeners = []
            self._mappings = {}
            self._has_loaded = False
            self._state = UNLOADED
            self._inflight = None
