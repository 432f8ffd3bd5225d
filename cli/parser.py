"""Argument parser for the PromptHub CLI.

Updates:
  v0.2.0 - 2026-10-15 - Add moderation queue and shared credential flags.
  v0.1.0 - 2026-10-09 - Browse, search, upload, delete and account commands.
"""

from __future__ import annotations

import argparse
from pathlib import Path


def _credentials_parent() -> argparse.ArgumentParser:
    """Return a parent parser carrying optional sign-in flags."""
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--email",
        type=str,
        default=None,
        help="Sign in with this email before running the command.",
    )
    parent.add_argument(
        "--password",
        type=str,
        default=None,
        help="Password for --email (prompted when omitted).",
    )
    return parent


def build_parser() -> argparse.ArgumentParser:
    """Return the configured PromptHub argument parser."""
    parser = argparse.ArgumentParser(description="PromptHub client")
    parser.add_argument(
        "--logging-config",
        type=Path,
        default=None,
        help="Path to logging configuration file (INI format)",
    )
    parser.add_argument(
        "--print-settings",
        action="store_true",
        help="Print resolved settings and exit",
    )
    credentials = _credentials_parent()

    subparsers = parser.add_subparsers(dest="command")

    list_parser = subparsers.add_parser("list", help="List shared prompts, newest first.")
    list_parser.add_argument("--tag", type=str, default=None, help="Only prompts with this tag.")
    list_parser.add_argument(
        "--author",
        type=str,
        default=None,
        help="Only prompts uploaded by this author id.",
    )
    list_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of prompts to display.",
    )

    search_parser = subparsers.add_parser(
        "search",
        help="Search prompt titles, descriptions and tags.",
    )
    search_parser.add_argument("query", type=str, help="Case-insensitive search text.")

    show_parser = subparsers.add_parser("show", help="Display one prompt in full.")
    show_parser.add_argument("prompt_id", type=str, help="Identifier of the prompt.")

    subparsers.add_parser("tags", help="List tags with the number of prompts using them.")

    upload_parser = subparsers.add_parser(
        "upload",
        parents=[credentials],
        help="Share a new prompt as the signed-in user.",
    )
    upload_parser.add_argument("--title", type=str, required=True, help="Prompt title.")
    upload_parser.add_argument(
        "--description",
        type=str,
        default="",
        help="Short description of what the prompt does.",
    )
    text_group = upload_parser.add_mutually_exclusive_group(required=True)
    text_group.add_argument("--text", type=str, help="Prompt body.")
    text_group.add_argument(
        "--text-file",
        type=Path,
        help="Read the prompt body from this file.",
    )
    upload_parser.add_argument(
        "--model",
        type=str,
        default="",
        help="Target model identifier (for example gpt-4o).",
    )
    upload_parser.add_argument(
        "--tags",
        type=str,
        default="",
        help='Comma-separated tags, e.g. "writing, marketing".',
    )

    delete_parser = subparsers.add_parser(
        "delete",
        parents=[credentials],
        help="Delete a prompt.",
    )
    delete_parser.add_argument("prompt_id", type=str, help="Identifier of the prompt.")

    subparsers.add_parser(
        "whoami",
        parents=[credentials],
        help="Show the signed-in user.",
    )

    login_parser = subparsers.add_parser(
        "login",
        parents=[credentials],
        help="Sign in with email/password or start an OAuth sign-in.",
    )
    login_parser.add_argument(
        "--oauth",
        action="store_true",
        help="Print the OAuth authorisation URL instead of using a password.",
    )
    login_parser.add_argument(
        "--provider",
        type=str,
        default=None,
        help="OAuth provider slug (defaults to the configured provider).",
    )

    signup_parser = subparsers.add_parser(
        "signup",
        parents=[credentials],
        help="Register a new account.",
    )
    signup_parser.add_argument("--username", type=str, required=True, help="Display name.")

    subparsers.add_parser(
        "logout",
        parents=[credentials],
        help="Sign out of the current session.",
    )

    subparsers.add_parser(
        "moderation",
        parents=[credentials],
        help="List pending and reported prompts (admin only).",
    )

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Return parsed CLI arguments for the PromptHub client."""
    return build_parser().parse_args(argv)
