"""Command-line entry point for the adventure book tools."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence, TextIO

from adventurebook import (
    AdventureDefinitionError,
    AdventureEngine,
    FileSessionStore,
    PlayState,
    SessionSnapshot,
    SessionStore,
    StoryEvent,
    parse_adventure_file,
    serialize_adventure,
)
from adventurebook.analytics import (
    compute_passage_reachability,
    format_reachability_report,
)

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class TranscriptLogger:
    """Structured writer that records play-test transcripts for debugging."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream
        self._turn = 0

    def log_player_input(self, text: str) -> None:
        """Record the reader's latest command."""

        formatted = text if text else "(empty)"
        self._write(f"Player input: {formatted}")
        self._stream.flush()

    def log_event(self, event: StoryEvent, state: PlayState) -> None:
        """Record a story event's narration, choices and the inventory."""

        self._turn += 1
        self._write("")
        self._write(f"=== Turn {self._turn} ===")
        if event.passage_id is not None:
            self._write(f"Passage: {event.passage_id}")
        self._write("Narration:")
        for line in event.narration.splitlines() or ("",):
            self._write(f"  {line}")

        if state.inventory:
            self._write("Inventory: " + ", ".join(state.inventory))
        else:
            self._write("Inventory: (empty)")

        if event.choices:
            self._write("Choices:")
            for choice in event.choices:
                self._write(f"  [{choice.command}] {choice.description}")
        else:
            self._write("Choices: (none)")

        self._stream.flush()

    def _write(self, text: str) -> None:
        self._stream.write(f"{text}\n")


_SYSTEM_COMMANDS = {
    "inventory": "Show the items currently held.",
    "restart": "Return to the introduction with an empty inventory.",
    "goto <id>": "Jump straight to a passage, applying its effects.",
    "save <name>": "Store the current position and inventory.",
    "load <name>": "Restore a previously saved position.",
    "help": "Show this overview.",
    "quit": "Leave the play-test.",
}


def _print_help() -> None:
    print("\n=== Help ===")
    print("Enter the number of a choice or one of the commands below.")
    for usage, description in _SYSTEM_COMMANDS.items():
        print(f"  {usage} - {description}")


def _print_inventory(engine: AdventureEngine, state: PlayState) -> None:
    if not state.inventory:
        print("\nInventory: (empty)")
        return

    names = []
    for item_id in state.inventory:
        item = engine.adventure.item(item_id)
        names.append(item.name if item is not None else item_id)
    print("\nInventory: " + ", ".join(names))


def run_cli(
    engine: AdventureEngine,
    state: PlayState,
    *,
    session_store: SessionStore | None = None,
    session_prefix: str = "",
    transcript_logger: TranscriptLogger | None = None,
) -> None:
    """Drive a very small interactive loop using ``input``/``print``."""

    print(f"Play-testing '{engine.adventure.metadata.title}'.")
    print("Type 'help' for a command overview or 'quit' to stop.")
    print()

    def _capture_event(new_event: StoryEvent) -> StoryEvent:
        if transcript_logger is not None:
            transcript_logger.log_event(new_event, state)
        return new_event

    event = _capture_event(engine.propose_event(state))

    while True:
        print(engine.format_event(event))

        try:
            raw_input = input("\n> ")
        except EOFError:
            print("\n\nReached end of input. Until next time!")
            break
        except KeyboardInterrupt:
            print("\n\nInterrupted.")
            break

        player_input = raw_input.strip()
        if transcript_logger is not None:
            transcript_logger.log_player_input(player_input)

        command, _, argument = player_input.partition(" ")
        command_lower = command.lower()
        argument = argument.strip()

        if command_lower in {"quit", "exit"}:
            print("\nThanks for playing!")
            break

        if command_lower == "help":
            _print_help()
            continue

        if command_lower == "inventory":
            _print_inventory(engine, state)
            continue

        if command_lower == "goto":
            try:
                passage_id = int(argument)
                event = _capture_event(engine.enter(state, passage_id))
            except ValueError:
                print("\nUsage: goto <passage-id>")
            except KeyError as exc:
                print(f"\n{exc}")
            continue

        if command_lower in {"save", "load"}:
            if session_store is None:
                print("\nSession persistence is not configured.")
                continue
            if not argument:
                print(f"\nUsage: {command_lower} <name>")
                continue

            session_id = f"{session_prefix}{argument}"
            if command_lower == "save":
                try:
                    session_store.save(session_id, SessionSnapshot.capture(state))
                except ValueError as exc:
                    print(f"\nCould not save session '{argument}': {exc}")
                    continue
                print(f"\nSaved session '{argument}'.")
                continue

            try:
                snapshot = session_store.load(session_id)
            except KeyError:
                print(f"\nNo saved session named '{argument}' was found.")
                continue
            except ValueError as exc:
                print(f"\nCould not load session '{argument}': {exc}")
                continue
            snapshot.apply_to(state)
            print(f"\nLoaded session '{argument}'.")
            if (
                state.passage_id is not None
                and state.passage_id not in engine.adventure.passages
            ):
                print(
                    f"Passage #{state.passage_id} no longer exists; "
                    "returning to the introduction."
                )
                state.restart()

        event = _capture_event(
            engine.propose_event(
                state,
                player_input=None if command_lower == "load" else player_input,
            )
        )


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(levelname)s %(name)s: %(message)s",
    )


def _command_play(args: argparse.Namespace) -> int:
    try:
        adventure = parse_adventure_file(args.file)
    except (AdventureDefinitionError, OSError) as exc:
        print(f"Failed to load '{args.file}': {exc}", file=sys.stderr)
        return 1

    session_store: SessionStore | None = None
    if not args.no_persistence:
        session_store = FileSessionStore(args.session_dir)

    log_handle: TextIO | None = None
    transcript_logger: TranscriptLogger | None = None
    try:
        if args.log_file is not None:
            args.log_file.parent.mkdir(parents=True, exist_ok=True)
            log_handle = args.log_file.open("a", encoding="utf-8")
            transcript_logger = TranscriptLogger(log_handle)

        run_cli(
            AdventureEngine(adventure),
            PlayState(),
            session_store=session_store,
            session_prefix=f"{Path(args.file).stem}--",
            transcript_logger=transcript_logger,
        )
    finally:
        if log_handle is not None:
            log_handle.close()
    return 0


def _command_check(args: argparse.Namespace) -> int:
    status = 0
    for path in args.files:
        try:
            adventure = parse_adventure_file(path)
        except AdventureDefinitionError as exc:
            print(f"{path}: {exc.kind} error: {exc}", file=sys.stderr)
            status = 1
            continue
        except OSError as exc:
            print(f"{path}: {exc}", file=sys.stderr)
            status = 1
            continue

        print(
            f"{path}: OK ({adventure.metadata.title}, "
            f"{len(adventure.passages)} passages, {len(adventure.items)} items)"
        )
        if args.analyse:
            engine = AdventureEngine(adventure)
            try:
                start = engine.start_passage_id
            except KeyError:
                print("Reachability: no passages to analyse.")
                continue
            report = compute_passage_reachability(adventure, start=start)
            print(format_reachability_report(report))
    return status


def _command_format(args: argparse.Namespace) -> int:
    try:
        adventure = parse_adventure_file(args.file)
    except (AdventureDefinitionError, OSError) as exc:
        print(f"Failed to load '{args.file}': {exc}", file=sys.stderr)
        return 1

    text = serialize_adventure(adventure)
    if args.output is None:
        sys.stdout.write(text)
    else:
        args.output.write_text(text, encoding="utf-8")
        logger.info("Wrote formatted adventure to %s", args.output)
    return 0


def _command_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run(
        "adventurebook.api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower(),
    )
    return 0


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Adventure book tools")
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="WARNING",
        type=str.upper,
        help="Verbosity of diagnostic logging (default: WARNING).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    play = subparsers.add_parser("play", help="Play-test an adventure interactively.")
    play.add_argument("file", type=Path, help="YAML adventure document.")
    play.add_argument(
        "--session-dir",
        type=Path,
        default=Path("sessions"),
        help="Directory used to store saved sessions (default: ./sessions).",
    )
    play.add_argument(
        "--no-persistence",
        action="store_true",
        help="Disable the save and load commands for this run.",
    )
    play.add_argument(
        "--log-file",
        type=Path,
        help="Path to a transcript log capturing narration and player input.",
    )
    play.set_defaults(handler=_command_play)

    check = subparsers.add_parser("check", help="Validate adventure documents.")
    check.add_argument("files", type=Path, nargs="+", help="YAML adventure documents.")
    check.add_argument(
        "--analyse",
        action="store_true",
        help="Also report unreachable passages and reachable endings.",
    )
    check.set_defaults(handler=_command_check)

    fmt = subparsers.add_parser(
        "format", help="Rewrite a document in canonical form."
    )
    fmt.add_argument("file", type=Path, help="YAML adventure document.")
    fmt.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Write the result here instead of standard output.",
    )
    fmt.set_defaults(handler=_command_format)

    serve = subparsers.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument(
        "--reload",
        action="store_true",
        help="Restart the server when source files change.",
    )
    serve.set_defaults(handler=_command_serve)

    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    """Run the requested adventure book command."""

    args = _parse_args(argv)
    _configure_logging(args.log_level)
    status = args.handler(args)
    if status:
        raise SystemExit(status)


if __name__ == "__main__":
    main()
