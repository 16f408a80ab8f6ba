#!/usr/bin/env python3
"""
Jim's Clipboard Management CLI

Maintenance commands that used to be run by hand against the database:
clearing season data, generating Phil's picks and calculating week recaps.
"""

import os

import click
from flask.cli import with_appcontext

# Commands run their jobs directly; no background polling from the CLI
os.environ.setdefault("SCHEDULER_ENABLED", "False")

from clipboard import create_app  # noqa: E402
from clipboard.errors import ClipboardError  # noqa: E402
from clipboard.services import (  # noqa: E402
    get_document_store,
    get_espn_client,
    get_team_colors,
)
from clipboard.services import maintenance  # noqa: E402
from clipboard.services.phil_picks import (  # noqa: E402
    ensure_phil_profile,
    generate_for_week,
)
from clipboard.services.week_recaps import calculate_missing_recaps  # noqa: E402

app = create_app()

PHIL_MAX_OFFSET = 4


@click.group()
def cli():
    """Jim's Clipboard Management CLI"""
    pass


# Maintenance Commands
@cli.group(name="maintenance")
def maintenance_group():
    """Destructive data maintenance commands"""
    pass


@maintenance_group.command("clear-pick-data")
@click.confirmation_option(prompt="Delete all picks and week recaps?")
@with_appcontext
def clear_pick_data():
    """Delete every user's picks and all week recaps"""
    try:
        result = maintenance.clear_pick_data(get_document_store())
    except ClipboardError as e:
        click.echo(f"❌ Error clearing pick data: {e}")
        return

    click.echo(
        f"✅ Deleted {result['picksDeleted']} pick documents "
        f"and {result['weekRecapsDeleted']} week recaps"
    )


@maintenance_group.command("clear-sports-data")
@click.confirmation_option(prompt="Clear all sports data and reset user profiles?")
@with_appcontext
def clear_sports_data():
    """Clear picks, games, recaps and live games; strip profiles to basics"""
    try:
        result = maintenance.clear_sports_data(get_document_store())
    except ClipboardError as e:
        click.echo(f"❌ Error clearing sports data: {e}")
        return

    click.echo(f"✅ Cleared collections: {', '.join(result['collectionsCleared'])}")
    click.echo(f"✅ Reset {result['usersCleaned']} user profiles")


@maintenance_group.command("clear-superbowl-picks")
@click.confirmation_option(prompt="Clear every user's Super Bowl pick?")
@with_appcontext
def clear_superbowl_picks():
    try:
        result = maintenance.clear_superbowl_picks(get_document_store())
    except ClipboardError as e:
        click.echo(f"❌ Error clearing Super Bowl picks: {e}")
        return

    click.echo(f"✅ Cleared Super Bowl picks for {result['usersUpdated']} users")


@maintenance_group.command("init-team-colors")
@with_appcontext
def init_team_colors():
    """Write the default colour mapping for all 32 teams"""
    try:
        result = maintenance.init_team_colors(get_team_colors())
    except ClipboardError as e:
        click.echo(f"❌ Error initializing team colors: {e}")
        return

    click.echo(f"✅ Initialized {result['mappings']} team color mappings")


# Picks Commands
@cli.group()
def picks():
    """Pick generation commands"""
    pass


@picks.command("generate-phil")
@click.argument("offset", default="0")
@with_appcontext
def generate_phil(offset):
    """Generate Phil's picks OFFSET weeks back (0 = current), or 'all'"""
    if offset == "all":
        offsets = range(PHIL_MAX_OFFSET + 1)
    elif offset.isdigit() and int(offset) <= PHIL_MAX_OFFSET:
        offsets = [int(offset)]
    else:
        raise click.BadParameter(
            f"must be a number from 0 to {PHIL_MAX_OFFSET} or 'all'",
            param_hint="OFFSET",
        )

    store = get_document_store()
    client = get_espn_client()

    try:
        week = client.get_current_week()
    except ClipboardError as e:
        click.echo(f"❌ Error fetching current week: {e}")
        return
    if week is None:
        click.echo("⚠️  No current NFL week (offseason?)")
        return

    ensure_phil_profile(store)

    for step in range(max(offsets) + 1):
        if step in offsets:
            try:
                result = generate_for_week(store, client, week)
            except ClipboardError as e:
                click.echo(f"❌ {week.week_id}: {e}")
            else:
                status = "created" if result["created"] else "skipped"
                click.echo(f"✅ {result['weekKey']}: {result['gamesCount']} games, {status}")
        week = week.previous()


# Recap Commands
@cli.group()
def recaps():
    """Week recap commands"""
    pass


@recaps.command("calculate")
@click.option("--season", type=int, help="Season year (defaults to the current one)")
@click.option("--force", is_flag=True, help="Recalculate weeks that already have a recap")
@with_appcontext
def calculate(season, force):
    """Calculate recaps for every finished week that is missing or stale"""
    client = get_espn_client()
    try:
        if season is None:
            week = client.get_current_week()
            if week is None:
                click.echo("⚠️  No current NFL week; pass --season explicitly")
                return
            season = week.season

        outcome = calculate_missing_recaps(
            get_document_store(), client, season, force=force
        )
    except ClipboardError as e:
        click.echo(f"❌ Error calculating recaps: {e}")
        return

    for result in outcome["results"]:
        mark = "✅" if result["success"] else "❌"
        click.echo(f"{mark} {result['weekId']}: {result.get('message', '')}")

    summary = outcome["summary"]
    click.echo(
        f"Processed {summary['total']} weeks: "
        f"{summary['succeeded']} succeeded, {summary['failed']} failed"
    )


@cli.command()
@with_appcontext
def status():
    """Show application status"""
    click.echo("Jim's Clipboard Status")
    click.echo("=" * 30)

    store = get_document_store()
    click.echo(f"👥 Users: {store.count('users')}")
    click.echo(f"📋 Week recaps: {store.count('weekRecaps')}")
    click.echo(f"🎨 Team color mappings: {len(get_team_colors().all())}")

    try:
        week = get_espn_client().get_current_week()
    except ClipboardError as e:
        click.echo(f"❌ ESPN unavailable: {e}")
        return

    if week:
        click.echo(f"✅ Current Week: {week.week_id}")
    else:
        click.echo("⚠️  Current Week: offseason")


if __name__ == "__main__":
    with app.app_context():
        cli()
