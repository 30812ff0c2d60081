# ruff: noqa: T201

from __future__ import annotations

import argparse
import asyncio
import logging
import math
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from rorlink.app import build_progress_tracker, open_progress_store, open_workflow
from rorlink.config import ConfigurationError, configure_logging
from rorlink.domain.errors import RorLinkError
from rorlink.domain.model import ClassifiedId
from rorlink.domain.progress import POINTS_KEY
from rorlink.domain.ranking import alias_list, display_name
from rorlink.domain.workflow import LinkStatus, WorkflowState

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence
    from types import FrameType

    from rorlink.domain.model import Identifier, RegistryCandidate
    from rorlink.domain.ports.persistence import KeyValueStore
    from rorlink.domain.progress import ProgressTracker
    from rorlink.domain.workflow import LinkWorkflow

    Prompt = Callable[[str], Awaitable[str]]

log = logging.getLogger(__name__)

HELP_TEXT = (
    "Commands: <number> select candidate, l link selected, n next random org, "
    "h history, p progress, q quit"
)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Link Pure external organisations to ROR")
    parser.add_argument(
        "--database-uri",
        type=str,
        help="SQLAlchemy URI of the progress store (defaults to the data directory)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("match", help="Interactive matching session (default)")
    subparsers.add_parser("progress", help="Show points and level")

    history = subparsers.add_parser("history", help="Show recent links")
    history.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Number of entries to show (default: %(default)s)",
    )

    clear = subparsers.add_parser("clear-history", help="Forget the link history")
    clear.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    return parser.parse_args(list(argv))


def fmt_score(value: object, digits: int = 3) -> str:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return "—"
    return f"{number:.{digits}f}" if math.isfinite(number) else "—"


def render_progress(progress: ProgressTracker) -> str:
    line = f"Level: {progress.level.label} · {progress.score} pts ({progress.progress_percent}%)"
    upcoming = progress.next_level
    if upcoming is not None:
        line += f" · next: {upcoming.label} at {upcoming.threshold}"
    return line


def render_history(progress: ProgressTracker, limit: int = 20) -> list[str]:
    entries = progress.history
    if not entries:
        return ["No links yet."]
    lines: list[str] = []
    for entry in entries[:limit]:
        match = f" · Match: {entry.match_type}" if entry.match_type else ""
        lines.append(
            f"{entry.timestamp:%Y-%m-%d %H:%M} {entry.display_name}\n"
            f"    UUID: {entry.record_id} · ROR: {entry.registry_id} · "
            f"Score: {fmt_score(entry.score)}{match}"
        )
    if len(entries) > limit:
        lines.append(f"… {len(entries) - limit} more")
    return lines


def render_candidate(
    index: int,
    candidate: RegistryCandidate,
    *,
    selected: bool,
) -> list[str]:
    marker = ">" if selected else " "
    flag = " [recommended]" if candidate.recommended else ""
    lines = [f"{marker} {index + 1}. {display_name(candidate)}{flag}"]
    aliases = alias_list(candidate)
    if aliases:
        lines.append(f"     aka: {', '.join(aliases)}")
    location = candidate.primary_location
    where = [
        part
        for part in (
            location.name if location else None,
            location.subdivision_name if location else None,
            candidate.country_name,
        )
        if part
    ]
    if where:
        lines.append(f"     location: {', '.join(where)}")
    lines.append(
        f"     {candidate.id} · {candidate.match_type.value} · "
        f"score: {fmt_score(candidate.score)}"
    )
    return lines


def render_identifier(identifier: Identifier, *, suffix: str) -> str:
    marker = " [ROR]" if identifier.is_registry_id(suffix) else ""
    if isinstance(identifier, ClassifiedId):
        label = next(iter(identifier.type_term.values()), None) or identifier.type_uri
        return f"{label}: {identifier.id}{marker}"
    payload = identifier.payload
    label = payload.get("typeDiscriminator") or "Identifier"
    value = payload.get("id", payload.get("value", "?"))
    return f"{label}: {value}{marker}"


def render_workflow(workflow: LinkWorkflow) -> list[str]:
    record = workflow.record
    if record is None:
        return ["No organisation loaded."]
    status = record.workflow_step or record.workflow_status.value
    lines = [f"{workflow.record_name or '(unnamed)'}  [{status}]", f"  UUID: {record.id}"]
    if record.country or record.city:
        where = ", ".join(part for part in (record.city, record.country) if part)
        lines.append(f"  Pure location: {where}")
    if record.identifiers:
        lines.append("  Identifiers:")
        lines.extend(
            f"    {render_identifier(identifier, suffix=workflow.registry_suffix)}"
            for identifier in record.identifiers
        )
    if not workflow.candidates:
        lines.append("  No ROR candidates.")
    for index, candidate in enumerate(workflow.candidates):
        lines.extend(render_candidate(index, candidate, selected=workflow.selected_index == index))
    return lines


async def _default_prompt(text: str) -> str:
    try:
        return await asyncio.to_thread(input, text)
    except EOFError:
        # stdin closed: leave the session like "q" would
        print()
        return "q"


async def _load(workflow: LinkWorkflow) -> None:
    try:
        await workflow.load_next()
    except RorLinkError as exc:
        print(f"Error: {exc}")
        if workflow.record is None:
            return
    print("\n".join(render_workflow(workflow)))


async def _confirm_and_link(workflow: LinkWorkflow, prompt: Prompt) -> None:
    candidate = workflow.selected_candidate
    if workflow.record is None or candidate is None:
        print("Select a candidate first.")
        return
    if workflow.state is not WorkflowState.CONFIRMING:
        workflow.begin_confirm()
    print(
        f"Link “{workflow.record_name}” ({workflow.record.id})\n"
        f"  to {candidate.id} · Match: {candidate.match_type.value} · "
        f"Score: {fmt_score(candidate.score)}"
    )
    answer = (await prompt("Confirm & link? [y/N] ")).strip().lower()
    if answer not in {"y", "yes"}:
        workflow.cancel_confirm()
        print("Cancelled.")
        return
    try:
        outcome = await workflow.confirm_link()
    except RorLinkError as exc:
        print(f"Failed to write to Pure: {exc}")
        return
    if outcome.status is LinkStatus.LINKED:
        print(f"{outcome.message} +{outcome.points_awarded} pts")
    else:
        print(outcome.message)
    if outcome.next_error is not None:
        print(f"Error: {outcome.next_error}")
    print("\n".join(render_workflow(workflow)))


async def run_session(workflow: LinkWorkflow, *, prompt: Prompt = _default_prompt) -> None:
    """Interactive loop; returns when the user quits."""

    print(render_progress(workflow.progress))
    print(HELP_TEXT)
    await _load(workflow)
    while True:
        command = (await prompt("> ")).strip().lower()
        if command in {"q", "quit", "exit"}:
            return
        if command in {"n", "next"}:
            await _load(workflow)
        elif command in {"l", "link"}:
            await _confirm_and_link(workflow, prompt)
        elif command in {"h", "history"}:
            print("\n".join(render_history(workflow.progress)))
        elif command in {"p", "progress"}:
            print(render_progress(workflow.progress))
        elif command.isdigit():
            index = int(command) - 1
            try:
                candidate = workflow.select(index)
            except (IndexError, RorLinkError) as exc:
                print(f"Error: {exc}")
                continue
            print(f"Selected {display_name(candidate)} ({candidate.id})")
        else:
            print(HELP_TEXT)


async def _run_match(store: KeyValueStore) -> None:
    def announce_points(value: str) -> None:
        log.debug("Score is now %s", value)

    unsubscribe = store.subscribe(POINTS_KEY, announce_points)
    try:
        async with open_workflow(store=store) as workflow:
            await run_session(workflow)
    finally:
        unsubscribe()


def _dispatch(command: str, parsed_args: argparse.Namespace, store: KeyValueStore) -> None:
    if command == "match":
        asyncio.run(_run_match(store))
        return
    progress = build_progress_tracker(store)
    if command == "progress":
        print(render_progress(progress))
    elif command == "history":
        print("\n".join(render_history(progress, limit=parsed_args.limit)))
    elif command == "clear-history":
        if not parsed_args.yes and input("Clear link history? [y/N] ").strip().lower() != "y":
            print("Cancelled.")
            return
        progress.clear_history()
        print("History cleared.")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
    command = parsed_args.command or "match"

    try:
        store = open_progress_store(database_uri=parsed_args.database_uri)
        try:
            _dispatch(command, parsed_args, store)
        finally:
            store.dispose()
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except Exception:
        log.exception("Unhandled error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
