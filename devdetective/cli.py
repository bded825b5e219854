from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import requests

from .collector import collect_pair, collect_profile
from .comparison import compare
from .config import AppConfig, load_config
from .exceptions import DevDetectiveError
from .github_api import GitHubSession, fetch_user, normalize_username
from .insights import REPO_SORT_KEYS
from .report import REPORT_FORMATS, render_comparison, write_report
from .storage import JsonFileStore, ProfileShelf

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devdetective",
        description="Explore GitHub profiles: insights, developer score and comparisons.",
    )
    parser.add_argument("--config", type=Path, help="Path to settings YAML file", default=None)
    parser.add_argument("--token", help="GitHub token (defaults to the env var named in the config)", default=None)
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    show = commands.add_parser("show", help="Build a dashboard for one profile")
    show.add_argument("user", help="GitHub username or profile URL")
    show.add_argument("--format", dest="fmt", choices=REPORT_FORMATS, help="Report format")
    show.add_argument("--output-dir", dest="output_dir", type=Path, help="Directory for the generated report")
    show.add_argument("--filter", dest="query", default="", help="Only list repositories whose name or description contains this text")
    show.add_argument("--sort", dest="sort_by", choices=REPO_SORT_KEYS, default="updated", help="Repository ordering")

    compare_cmd = commands.add_parser("compare", help="Compare two profiles side by side")
    compare_cmd.add_argument("user_a", help="First GitHub username")
    compare_cmd.add_argument("user_b", help="Second GitHub username")

    history = commands.add_parser("history", help="List recently viewed profiles")
    history.add_argument("--clear", action="store_true", help="Forget the search history")

    bookmarks = commands.add_parser("bookmarks", help="Manage bookmarked profiles")
    bookmark_actions = bookmarks.add_subparsers(dest="action", required=True)
    bookmark_actions.add_parser("list", help="List bookmarks")
    add = bookmark_actions.add_parser("add", help="Bookmark a profile")
    add.add_argument("user")
    remove = bookmark_actions.add_parser("remove", help="Remove a bookmark")
    remove.add_argument("user")
    return parser


def _configure_logging(config: AppConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, config.logging.level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def app(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    _configure_logging(config, args.verbose)
    shelf = ProfileShelf(JsonFileStore(config.storage.path), max_history=config.storage.max_history)

    try:
        if args.command == "show":
            if args.output_dir:
                config.output.directory = args.output_dir
            data = collect_profile(args.user, config, token=args.token)
            shelf.add_to_history(data.profile)
            report_path = write_report(data, config, fmt=args.fmt, query=args.query, sort_by=args.sort_by)
            print(f"Report generated: {report_path}")
        elif args.command == "compare":
            data_a, data_b = collect_pair(args.user_a, args.user_b, config, token=args.token)
            print(render_comparison(compare(data_a, data_b)), end="")
        elif args.command == "history":
            _run_history(shelf, args.clear)
        elif args.command == "bookmarks":
            _run_bookmarks(shelf, config, args)
    except (DevDetectiveError, requests.RequestException, OSError, ValueError) as exc:
        logger.debug("Command failed", exc_info=True)
        parser.error(str(exc))


def _run_history(shelf: ProfileShelf, clear: bool) -> None:
    if clear:
        shelf.clear_history()
        print("Search history cleared.")
        return
    entries = shelf.history()
    if not entries:
        print("No recent searches.")
    for entry in entries:
        label = f"{entry.login} ({entry.name})" if entry.name else entry.login
        print(f"{entry.saved_at[:19]}  {label}")


def _run_bookmarks(shelf: ProfileShelf, config: AppConfig, args: argparse.Namespace) -> None:
    if args.action == "list":
        entries = shelf.bookmarks()
        if not entries:
            print("No bookmarks yet.")
        for entry in entries:
            print(f"{entry.login}  {entry.name or ''}".rstrip())
        return

    handle = normalize_username(args.user)
    if args.action == "remove":
        removed = shelf.remove_bookmark(handle)
        print(f"Removed {handle}." if removed else f"{handle} was not bookmarked.")
        return

    session = GitHubSession.create(token=args.token or config.api.resolve_token(), timeout=config.api.timeout)
    try:
        profile = fetch_user(session, handle)
    finally:
        session.close()
    added = shelf.add_bookmark(profile)
    print(f"Bookmarked {profile.login}." if added else f"{profile.login} is already bookmarked.")


def main() -> None:  # pragma: no cover
    app(sys.argv[1:])


if __name__ == "__main__":  # pragma: no cover
    main()
