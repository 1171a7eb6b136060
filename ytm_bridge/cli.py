"""
Command-line interface for ytm-bridge.

This module implements the CLI using Click, with rich-click for colored
help output. Every command builds one dispatcher request and prints the
JSON envelope on stdout.

Commands:
    ytm-bridge verify                                   Check the cookies work
    ytm-bridge account                                  Show the signed-in account
    ytm-bridge playlists                                List library playlists
    ytm-bridge tracks [ID] [--limit N] [--no-dedupe]    List playlist tracks
    ytm-bridge search QUERY                             First matching video id
    ytm-bridge like VIDEO_ID                            Like a track
    ytm-bridge unlike VIDEO_ID                          Remove a like
    ytm-bridge add PLAYLIST_ID VIDEO_ID                 Add a track to a playlist
    ytm-bridge remove PLAYLIST_ID SET_VIDEO_ID VIDEO_ID Remove a playlist entry
    ytm-bridge call REQUEST_JSON                        Send a raw request

Cookies:
    Taken from --cookies, else the --cookie-file contents, else the
    YTM_COOKIES environment variable (a .env file is honoured). Any format
    accepted by clean_cookies() works: a Cookie header, a copied curl
    command, a cookies.txt export or a JSON export.

Exit Codes:
    0   Success
    1   Execution failure (upstream, network or configuration error)
    2   Invalid request (missing or malformed input)
    130 Interrupted by user

Usage:
    ytm-bridge --cookie-file cookies.txt playlists
    ytm-bridge --cookie-file cookies.txt tracks LM --limit 200
    ytm-bridge --cookie-file cookies.txt --auth-user 1 like dQw4w9WgXcQ
"""

import json
import os
import sys
from pathlib import Path
from typing import Any

import rich_click as click
from tqdm import tqdm

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = ""
click.rich_click.MAX_WIDTH = 100
click.rich_click.OPTION_GROUPS = {
    "ytm-bridge": [
        {
            "name": "Authentication",
            "options": ["--cookies", "--cookie-file", "--auth-user", "--strict-auth-user"],
        },
        {
            "name": "Configuration",
            "options": ["--config", "--log-level", "--log-dir"],
        },
        {
            "name": "Info",
            "options": ["--version", "--help"],
        },
    ],
}

from ytm_bridge import __version__
from ytm_bridge.core import (
    ConfigError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from ytm_bridge.core.config import LOG_LEVELS
from ytm_bridge.innertube import Dispatcher
from ytm_bridge.innertube.models import LIKED_SONGS_ID

logger = get_logger(__name__)

COOKIES_ENV_VAR = "YTM_COOKIES"

EXIT_FAILURE = 1
EXIT_INVALID_REQUEST = 2
EXIT_INTERRUPTED = 130


@click.group()
@click.option(
    "--cookies",
    type=str,
    default=None,
    metavar="<cookie-text>",
    help="Cookie header from music.youtube.com"
)
@click.option(
    "--cookie-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    metavar="<file>",
    help="File holding the cookies (header, curl, cookies.txt or JSON)"
)
@click.option(
    "--auth-user",
    type=str,
    default="0",
    show_default=True,
    metavar="<index>",
    help="Preferred Google account index"
)
@click.option(
    "--strict-auth-user",
    is_flag=True,
    help="Only try the preferred account index"
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml if present)"
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Console log level (overrides config)"
)
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    metavar="<dir>",
    help="Write full and error log files to this directory"
)
@click.version_option(__version__, prog_name="ytm-bridge")
@click.pass_context
def cli(
    ctx: click.Context,
    cookies: str | None,
    cookie_file: Path | None,
    auth_user: str,
    strict_auth_user: bool,
    config_path: Path | None,
    log_level: str | None,
    log_dir: Path | None
) -> None:
    """
    ytm-bridge: Talk to YouTube Music with your browser cookies.

    \b
    BASIC USAGE:
        ytm-bridge --cookie-file cookies.txt verify
        ytm-bridge --cookie-file cookies.txt playlists
        ytm-bridge --cookie-file cookies.txt tracks PLxxxx --limit 500

    \b
    LIBRARY EDITS:
        ytm-bridge like dQw4w9WgXcQ
        ytm-bridge add PLxxxx dQw4w9WgXcQ
        ytm-bridge remove PLxxxx <setVideoId> dQw4w9WgXcQ
    """
    try:
        config = load_config(config_path)
    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        ctx.exit(EXIT_FAILURE)

    setup_logging(
        (log_level or config.logging.level).upper(),
        log_dir or config.logging.directory
    )
    ctx.call_on_close(shutdown_logging)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["cookies"] = _resolve_cookies(cookies, cookie_file)
    ctx.obj["auth_user"] = auth_user
    ctx.obj["strict_auth_user"] = strict_auth_user


def _resolve_cookies(cookies: str | None, cookie_file: Path | None) -> str | None:
    """
    Pick the cookie text from the option, the file or the environment.

    The environment is read after load_config() so that .env values apply.
    """
    if cookies:
        return cookies
    if cookie_file is not None:
        return cookie_file.read_text(encoding="utf-8")
    return os.getenv(COOKIES_ENV_VAR)


def _emit(ctx: click.Context, status: int, envelope: dict[str, Any]) -> None:
    click.echo(json.dumps(envelope, indent=2, ensure_ascii=False))
    if status == 400:
        ctx.exit(EXIT_INVALID_REQUEST)
    elif status != 200:
        ctx.exit(EXIT_FAILURE)


def _run(
    ctx: click.Context,
    request: dict[str, Any],
    show_progress: bool = False
) -> None:
    """
    Dispatch one request and print its envelope.

    Global cookie and account options fill in whatever the request lacks.
    """
    obj = ctx.obj
    request.setdefault("cookies", obj["cookies"])
    request.setdefault("authUser", obj["auth_user"])
    params = request.setdefault("params", {})
    if obj["strict_auth_user"] and isinstance(params, dict):
        params.setdefault("strictAuthUser", True)

    dispatcher = Dispatcher(obj["config"])

    try:
        if show_progress:
            with tqdm(desc="Fetching pages", unit="page", disable=None, leave=False) as bar:
                def on_page(pages: int, track_count: int) -> None:
                    bar.update(pages - bar.n)
                    bar.set_postfix(tracks=track_count)

                status, envelope = dispatcher.handle_request(request, on_page=on_page)
        else:
            status, envelope = dispatcher.handle_request(request)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        ctx.exit(EXIT_INTERRUPTED)

    _emit(ctx, status, envelope)


# =============================================================================
# COMMANDS
# =============================================================================

@cli.command()
@click.pass_context
def verify(ctx: click.Context) -> None:
    """Check that the cookies authenticate."""
    _run(ctx, {"action": "verify"})


@cli.command()
@click.pass_context
def account(ctx: click.Context) -> None:
    """Show the signed-in account's name, email and handle."""
    _run(ctx, {"action": "account_info"})


@cli.command()
@click.pass_context
def playlists(ctx: click.Context) -> None:
    """List library playlists, Liked Music first."""
    _run(ctx, {"action": "list_playlists"})


@cli.command()
@click.argument("playlist_id", required=False, default=LIKED_SONGS_ID)
@click.option(
    "--limit",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum number of tracks (capped by pagination.max_tracks)"
)
@click.option(
    "--no-dedupe",
    is_flag=True,
    help="Keep repeated video ids"
)
@click.pass_context
def tracks(
    ctx: click.Context,
    playlist_id: str,
    limit: int | None,
    no_dedupe: bool
) -> None:
    """
    List every track of a playlist (default: Liked Music).

    PLAYLIST_ID may be given with or without the VL prefix.
    """
    params: dict[str, Any] = {"id": playlist_id}
    if limit is not None:
        params["limit"] = limit
    if no_dedupe:
        params["dedupe"] = False
    _run(ctx, {"action": "get_playlist_tracks", "params": params}, show_progress=True)


@cli.command()
@click.argument("query")
@click.pass_context
def search(ctx: click.Context, query: str) -> None:
    """Print the video id of the first song matching QUERY."""
    _run(ctx, {"action": "search", "params": {"query": query}})


@cli.command()
@click.argument("video_id")
@click.pass_context
def like(ctx: click.Context, video_id: str) -> None:
    """Like a track."""
    _run(ctx, {"action": "like", "params": {"videoId": video_id}})


@cli.command()
@click.argument("video_id")
@click.pass_context
def unlike(ctx: click.Context, video_id: str) -> None:
    """Remove the like from a track."""
    _run(ctx, {"action": "remove_like", "params": {"videoId": video_id}})


@cli.command()
@click.argument("playlist_id")
@click.argument("video_id")
@click.option(
    "--allow-duplicates",
    is_flag=True,
    help="Add the track even if the playlist already contains it"
)
@click.pass_context
def add(ctx: click.Context, playlist_id: str, video_id: str, allow_duplicates: bool) -> None:
    """Add a track to a playlist."""
    params: dict[str, Any] = {"playlistId": playlist_id, "videoId": video_id}
    if allow_duplicates:
        params["dedupe"] = False
    _run(ctx, {"action": "add_to_playlist", "params": params})


@cli.command()
@click.argument("playlist_id")
@click.argument("set_video_id")
@click.argument("video_id")
@click.pass_context
def remove(ctx: click.Context, playlist_id: str, set_video_id: str, video_id: str) -> None:
    """
    Remove one entry from a playlist.

    SET_VIDEO_ID is the entry id reported as setVideoId by the tracks command.
    """
    _run(ctx, {
        "action": "remove_from_playlist",
        "params": {"playlistId": playlist_id, "setVideoId": set_video_id, "videoId": video_id},
    })


@cli.command()
@click.argument("request_json")
@click.pass_context
def call(ctx: click.Context, request_json: str) -> None:
    """
    Send a raw dispatcher request.

    REQUEST_JSON is a JSON object such as '{"action": "verify"}', or "-" to
    read it from stdin. cookies and authUser default to the global options.
    """
    text = sys.stdin.read() if request_json == "-" else request_json
    try:
        request = json.loads(text)
    except ValueError as e:
        raise click.BadParameter(f"not valid JSON ({e})", param_hint="REQUEST_JSON")
    if not isinstance(request, dict):
        raise click.BadParameter("must be a JSON object", param_hint="REQUEST_JSON")
    _run(ctx, request)


if __name__ == "__main__":
    cli()
