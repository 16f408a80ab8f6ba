from flask import current_app

from clipboard.errors import ConfigurationError


def _extension(name):
    service = current_app.extensions.get(name)
    if service is None:
        raise ConfigurationError(f"{name} is not initialized")
    return service


def get_document_store():
    return _extension("document_store")


def get_espn_client():
    return _extension("espn_client")


def get_tmdb_client():
    return _extension("tmdb_client")


def get_team_colors():
    return _extension("team_colors")


def get_poller_registry():
    return _extension("live_pollers")
