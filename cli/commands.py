"""CLI command handlers for PromptHub.

Handlers are coroutines receiving the :class:`~core.factory.PromptHub`
container, parsed arguments, and the CLI logger; each returns a process exit
code.

Updates:
  v0.2.0 - 2026-10-15 - Add moderation queue for administrators.
  v0.1.1 - 2026-10-12 - Sign in from --email/--password before user-scoped commands.
  v0.1.0 - 2026-10-09 - Browse, search, upload, delete and account commands.
"""

from __future__ import annotations

import argparse
import getpass
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from core import (
    AuthenticationError,
    BackendUnavailableError,
    PromptCacheError,
    collect_tags,
    filter_by_tag,
    pending_prompts,
    prompts_by_author,
    reported_prompts,
    search_prompts,
)
from models.prompt_model import PromptDraft

from .utils import format_prompt_detail, format_prompt_line, format_timestamp, print_and_log

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from core import PromptHub
    from models.prompt_model import Prompt
    from models.user_model import UserProfile

EXIT_OK = 0
EXIT_BACKEND_UNAVAILABLE = 3
EXIT_NOT_AUTHORISED = 4
EXIT_FAILURE = 6

CommandHandler = Callable[["PromptHub", argparse.Namespace, logging.Logger], Awaitable[int]]


@dataclass(frozen=True)
class CommandSpec:
    """Metadata for dispatching CLI command handlers."""

    handler: CommandHandler
    requires_backend: bool = True


def report_backend_unavailable(logger: logging.Logger, exc: Exception | None = None) -> int:
    """Print the backend configuration error and return its exit code."""
    print_and_log(logger, logging.ERROR, str(exc or BackendUnavailableError()))
    return EXIT_BACKEND_UNAVAILABLE


def _print_prompts(prompts: list[Prompt], empty_message: str) -> None:
    if not prompts:
        print(empty_message)
        return
    for prompt in prompts:
        print(format_prompt_line(prompt))


async def _load_prompts(hub: PromptHub, logger: logging.Logger) -> list[Prompt] | None:
    try:
        return await hub.prompts.fetch_all()
    except PromptCacheError as exc:
        print_and_log(logger, logging.ERROR, str(exc))
        return None


async def _sign_in_from_args(
    hub: PromptHub,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> bool:
    """Sign in with ``--email``/``--password`` when supplied; return ``False`` on failure."""
    email = getattr(args, "email", None)
    if not email:
        return True
    password = getattr(args, "password", None) or getpass.getpass("Password: ")
    try:
        await hub.session.sign_in_with_password(email, password)
    except AuthenticationError as exc:
        print_and_log(logger, logging.ERROR, str(exc))
        return False
    return True


async def _require_user(
    hub: PromptHub,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> UserProfile | None:
    if not await _sign_in_from_args(hub, args, logger):
        return None
    user = await hub.session.resolve_current_user()
    if user is None:
        print_and_log(
            logger,
            logging.ERROR,
            "Not signed in. Pass --email (and --password) to sign in first.",
        )
    return user


# ----------------------------------------------------------------------
# Browsing
# ----------------------------------------------------------------------


async def run_list(hub: PromptHub, args: argparse.Namespace, logger: logging.Logger) -> int:
    prompts = await _load_prompts(hub, logger)
    if prompts is None:
        return EXIT_FAILURE
    tag = getattr(args, "tag", None)
    author = getattr(args, "author", None)
    if tag:
        prompts = filter_by_tag(prompts, tag)
    if author:
        prompts = prompts_by_author(prompts, author)
    limit = getattr(args, "limit", None)
    if limit is not None and limit > 0:
        prompts = prompts[:limit]
    _print_prompts(prompts, "No prompts found.")
    return EXIT_OK


async def run_search(hub: PromptHub, args: argparse.Namespace, logger: logging.Logger) -> int:
    prompts = await _load_prompts(hub, logger)
    if prompts is None:
        return EXIT_FAILURE
    matches = search_prompts(prompts, args.query)
    _print_prompts(matches, f"No prompts match '{args.query}'.")
    return EXIT_OK


async def run_show(hub: PromptHub, args: argparse.Namespace, logger: logging.Logger) -> int:
    prompt = await hub.prompts.fetch_by_id(args.prompt_id)
    if prompt is None:
        print_and_log(logger, logging.ERROR, f"Prompt {args.prompt_id} not found.")
        return EXIT_FAILURE
    print(format_prompt_detail(prompt))
    return EXIT_OK


async def run_tags(hub: PromptHub, args: argparse.Namespace, logger: logging.Logger) -> int:
    del args
    prompts = await _load_prompts(hub, logger)
    if prompts is None:
        return EXIT_FAILURE
    tags = collect_tags(prompts)
    if not tags:
        print("No tags in use.")
        return EXIT_OK
    width = max(len(tag) for tag, _ in tags)
    for tag, count in tags:
        print(f"{tag.ljust(width)}  {count}")
    return EXIT_OK


# ----------------------------------------------------------------------
# Writes
# ----------------------------------------------------------------------


async def run_upload(hub: PromptHub, args: argparse.Namespace, logger: logging.Logger) -> int:
    user = await _require_user(hub, args, logger)
    if user is None:
        return EXIT_NOT_AUTHORISED
    text = args.text
    text_file = getattr(args, "text_file", None)
    if text_file is not None:
        try:
            text = text_file.expanduser().read_text(encoding="utf-8")
        except OSError as exc:
            print_and_log(logger, logging.ERROR, f"Unable to read {text_file}: {exc}")
            return EXIT_FAILURE
    try:
        draft = PromptDraft.from_form(
            title=args.title,
            description=args.description or "",
            prompt_text=text or "",
            model=args.model or "",
            author_id=user.id,
            tags=args.tags,
        )
    except ValueError as exc:
        print_and_log(logger, logging.ERROR, f"Invalid prompt: {exc}")
        return EXIT_FAILURE
    try:
        created = await hub.prompts.create(draft)
    except PromptCacheError as exc:
        print_and_log(logger, logging.ERROR, str(exc))
        return EXIT_FAILURE
    print_and_log(logger, logging.INFO, f"Prompt uploaded: {created.id} ({created.title})")
    return EXIT_OK


async def run_delete(hub: PromptHub, args: argparse.Namespace, logger: logging.Logger) -> int:
    user = await _require_user(hub, args, logger)
    if user is None:
        return EXIT_NOT_AUTHORISED
    try:
        await hub.prompts.delete(args.prompt_id)
    except PromptCacheError as exc:
        print_and_log(logger, logging.ERROR, str(exc))
        return EXIT_FAILURE
    print_and_log(logger, logging.INFO, f"Prompt deleted: {args.prompt_id}")
    return EXIT_OK


# ----------------------------------------------------------------------
# Account
# ----------------------------------------------------------------------


async def run_whoami(hub: PromptHub, args: argparse.Namespace, logger: logging.Logger) -> int:
    user = await _require_user(hub, args, logger)
    if user is None:
        return EXIT_NOT_AUTHORISED
    lines = [
        f"Username: {user.username or 'n/a'}",
        f"Email: {user.email or 'n/a'}",
        f"User ID: {user.id}",
        f"Role: {user.role.value}",
        f"Member since: {format_timestamp(user.created_at)}",
    ]
    if user.avatar_url:
        lines.append(f"Avatar: {user.avatar_url}")
    if user.bio:
        lines.append(f"Bio: {user.bio}")
    print("\n".join(lines))
    return EXIT_OK


async def run_login(hub: PromptHub, args: argparse.Namespace, logger: logging.Logger) -> int:
    if getattr(args, "oauth", False):
        try:
            redirect = await hub.session.sign_in_with_oauth(getattr(args, "provider", None))
        except AuthenticationError as exc:
            print_and_log(logger, logging.ERROR, str(exc))
            return EXIT_FAILURE
        if not redirect.url:
            print_and_log(logger, logging.ERROR, "Provider did not return an authorisation URL.")
            return EXIT_FAILURE
        print(f"Open this URL to continue signing in with {redirect.provider}:")
        print(redirect.url)
        return EXIT_OK
    if not getattr(args, "email", None):
        print_and_log(logger, logging.ERROR, "login requires --email or --oauth.")
        return EXIT_FAILURE
    if not await _sign_in_from_args(hub, args, logger):
        return EXIT_FAILURE
    user = hub.session.user
    name = user.username if user is not None else args.email
    print_and_log(logger, logging.INFO, f"Signed in as {name}")
    return EXIT_OK


async def run_signup(hub: PromptHub, args: argparse.Namespace, logger: logging.Logger) -> int:
    email = getattr(args, "email", None)
    if not email:
        print_and_log(logger, logging.ERROR, "signup requires --email.")
        return EXIT_FAILURE
    password = getattr(args, "password", None) or getpass.getpass("Choose a password: ")
    try:
        session = await hub.session.sign_up(email, password, args.username)
    except AuthenticationError as exc:
        print_and_log(logger, logging.ERROR, str(exc))
        return EXIT_FAILURE
    if session.is_live and hub.session.user is not None:
        print_and_log(logger, logging.INFO, f"Account created; signed in as {args.username}")
    else:
        print_and_log(
            logger,
            logging.INFO,
            "Account created. Check your inbox to confirm the email address.",
        )
    return EXIT_OK


async def run_logout(hub: PromptHub, args: argparse.Namespace, logger: logging.Logger) -> int:
    if not await _sign_in_from_args(hub, args, logger):
        return EXIT_FAILURE
    try:
        await hub.session.sign_out()
    except AuthenticationError as exc:
        print_and_log(logger, logging.ERROR, str(exc))
        return EXIT_FAILURE
    print_and_log(logger, logging.INFO, "Signed out.")
    return EXIT_OK


async def run_moderation(
    hub: PromptHub,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    user = await _require_user(hub, args, logger)
    if user is None:
        return EXIT_NOT_AUTHORISED
    if not hub.session.is_admin:
        print_and_log(logger, logging.ERROR, "Moderation requires an administrator account.")
        return EXIT_NOT_AUTHORISED
    prompts = await _load_prompts(hub, logger)
    if prompts is None:
        return EXIT_FAILURE
    pending = pending_prompts(prompts)
    reported = reported_prompts(prompts)
    print(f"Pending review ({len(pending)})")
    print("-------------------")
    _print_prompts(pending, "Nothing awaiting review.")
    print("")
    print(f"Reported ({len(reported)})")
    print("-------------")
    for prompt in reported:
        print(f"{format_prompt_line(prompt)}  reports: {prompt.reported_count}")
    if not reported:
        print("No reported prompts.")
    return EXIT_OK


COMMAND_SPECS: dict[str | None, CommandSpec] = {
    "list": CommandSpec(run_list),
    "search": CommandSpec(run_search),
    "show": CommandSpec(run_show),
    "tags": CommandSpec(run_tags),
    "upload": CommandSpec(run_upload),
    "delete": CommandSpec(run_delete),
    "whoami": CommandSpec(run_whoami),
    "login": CommandSpec(run_login),
    "signup": CommandSpec(run_signup),
    "logout": CommandSpec(run_logout),
    "moderation": CommandSpec(run_moderation),
}


async def run_command(
    spec: CommandSpec,
    hub: PromptHub,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    """Run *spec* inside the hub lifecycle and map configuration errors to exit codes."""
    if spec.requires_backend and not hub.available:
        return report_backend_unavailable(logger)
    await hub.start()
    try:
        return await spec.handler(hub, args, logger)
    except BackendUnavailableError as exc:
        return report_backend_unavailable(logger, exc)
    finally:
        await hub.close()


__all__ = [
    "COMMAND_SPECS",
    "CommandSpec",
    "EXIT_BACKEND_UNAVAILABLE",
    "EXIT_FAILURE",
    "EXIT_NOT_AUTHORISED",
    "EXIT_OK",
    "report_backend_unavailable",
    "run_command",
]
