"""
Lychee Meta Tool Command Line Interface

Runs the API server and offers quick terminal views of the photos that
still need a title or description.
"""

import json
import logging
from typing import Optional, Tuple

import click

from .config import load_config, ConfigError
from .errors import MetadataError
from .titles import DEFAULT_RULE_SET
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)


def _get_config(ctx: click.Context) -> dict:
    """Load configuration on first use so commands without a database need none."""
    if ctx.obj.get('config') is None:
        try:
            config = load_config(ctx.obj.get('config_path'))
        except ConfigError as e:
            raise click.ClickException(str(e))

        log_config = config['logging']
        level = ctx.obj['log_level'] or log_config['level']
        setup_logging(level, color=log_config['color'], log_file=log_config['file'])
        ctx.obj['config'] = config
    return ctx.obj['config']


def _operations(ctx: click.Context):
    from .db.connection import configure_database
    from .db.operations import PhotoOperations, AlbumOperations

    config = _get_config(ctx)
    database = configure_database(config)
    pagination = config['pagination']
    photos = PhotoOperations(
        database,
        config['lychee_base_url'],
        default_limit=pagination['default_limit'],
        max_limit=pagination['max_limit'],
    )
    return photos, AlbumOperations(database)


@click.group()
@click.option('--config', '-c', 'config_path', type=click.Path(exists=True, dir_okay=False),
              help='Configuration file path (default: $CONFIG_PATH or config.yaml)')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-error output')
@click.pass_context
def main(ctx, config_path: Optional[str] = None, verbose: bool = False, quiet: bool = False):
    """
    Lychee Meta Tool - find and fix photos with generated titles

    Lists photos in a Lychee library whose titles came from a camera or
    an upload step, or that lack a description, and serves a small API
    for assigning titles, descriptions and albums.
    """
    if verbose and quiet:
        raise click.UsageError("--verbose and --quiet are mutually exclusive")

    log_level = 'DEBUG' if verbose else 'ERROR' if quiet else None
    setup_logging(log_level or 'INFO')

    ctx.ensure_object(dict)
    ctx.obj.update(config_path=config_path, config=None, log_level=log_level, quiet=quiet)


@main.command()
@click.option('--host', help='Address to bind (default: server.host)')
@click.option('--port', '-p', type=int, help='Port to listen on (default: server.port)')
@click.option('--debug', is_flag=True, help='Run Flask in debug mode')
@click.pass_context
def serve(ctx, host: Optional[str] = None, port: Optional[int] = None, debug: bool = False):
    """Run the HTTP API server."""
    from .api.app import create_app
    from .db.connection import configure_database

    config = _get_config(ctx)
    host = host or config['server']['host']
    port = port or config['server']['port']

    app = create_app(config, database=configure_database(config))
    if not ctx.obj['quiet']:
        click.echo(f"🚀 Serving Lychee Meta Tool on http://{host}:{port}")
    app.run(host=host, port=port, debug=debug)


@main.command('needs-metadata')
@click.option('--album', '-a', 'album_id', help='Only photos in this album')
@click.option('--limit', '-n', type=int, help='Number of photos to show')
@click.option('--offset', '-o', type=int, default=0, help='Number of photos to skip')
@click.option('--json', 'as_json', is_flag=True, help='Print JSON instead of a table')
@click.pass_context
def needs_metadata(ctx, album_id: Optional[str], limit: Optional[int], offset: int, as_json: bool):
    """List photos with generic titles or missing descriptions."""
    photo_ops, _ = _operations(ctx)
    try:
        photos = photo_ops.list_needing_metadata(album_id=album_id, limit=limit, offset=offset)
    except MetadataError as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps([photo.to_dict() for photo in photos], indent=2))
        return

    if not photos:
        click.echo("✅ No photos need metadata")
        return

    for photo in photos:
        title = photo.title if photo.title and photo.title.strip() else '(untitled)'
        album = photo.album_title or '-'
        description = 'no description' if not photo.description else 'described'
        click.echo(f"{photo.id:<24}  {title:<40}  {album:<24}  {description}")
    click.echo(f"\n📸 {len(photos)} photos")


@main.command()
@click.option('--with-counts', is_flag=True,
              help='Only albums with photos needing metadata, with counts')
@click.pass_context
def albums(ctx, with_counts: bool):
    """List regular (non-tag) albums."""
    _, album_ops = _operations(ctx)
    try:
        if with_counts:
            records = album_ops.list_albums_with_eligible_photo_counts()
        else:
            records = album_ops.list_albums()
    except MetadataError as e:
        raise click.ClickException(str(e))

    for album in records:
        if with_counts:
            click.echo(f"{album.id:<24}  {album.title:<40}  {album.photo_count}")
        else:
            click.echo(f"{album.id:<24}  {album.title}")


@main.command('check-title')
@click.argument('titles', nargs=-1, required=True)
def check_title(titles: Tuple[str, ...]):
    """Classify each TITLE as generated or human-written."""
    for title in titles:
        rule = DEFAULT_RULE_SET.match(title)
        verdict = f"generic ({rule})" if rule else "human"
        click.echo(f"{title!r}: {verdict}")


if __name__ == '__main__':
    main()
