"""CLI entry point for vibe-builder.

Debugging tools around the core:
  parse FILE     render a saved response as segments
  deps FILE      print the dependency map of a saved response
  replay FILE    feed a captured SSE stream through the stream handler
  views FILE     run a JSON scenario through the view-state machine
"""

import argparse
import json
import logging
import sys
from dataclasses import fields
from pathlib import Path

from rich.console import Console
from rich.table import Table

import vibe_builder.io.logging_setup
import vibe_builder.io.settings
from vibe_builder.app.chat_session import ChatSession
from vibe_builder.app.iframe_inbox import IframeInbox
from vibe_builder.app.view_state import ViewInputs, ViewStateMachine
from vibe_builder.core.routes import ViewType
from vibe_builder.core.segmentation import ParseResult, parse_content, parse_dependencies
from vibe_builder.pipeline.stream_handler import StreamAccumulator, process_stream
from vibe_builder.rendering import render_result, summarize

logger = logging.getLogger(__name__)


class ScenarioError(ValueError):
    """A view-state scenario file is malformed."""


def _read_text(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def _result_to_json(result: ParseResult) -> dict:
    return {
        "dependencies_string": result.dependencies_string,
        "dependencies": parse_dependencies(result.dependencies_string),
        "segments": [{"type": s.kind.value, "content": s.content} for s in result.segments],
    }


# ─── Commands ────────────────────────────────────────────────────────────────


def cmd_parse(args, console: Console) -> int:
    result = parse_content(_read_text(args.file))
    if args.json:
        console.print_json(data=_result_to_json(result))
    else:
        console.print(render_result(result))
    return 0


def cmd_deps(args, console: Console) -> int:
    result = parse_content(_read_text(args.file))
    console.print_json(data=parse_dependencies(result.dependencies_string))
    return 0


def cmd_replay(args, console: Console) -> int:
    accumulator = StreamAccumulator()
    session = ChatSession(args.session or Path(args.file).stem)
    errors: list[Exception] = []

    def on_chunk(content: str) -> None:
        result = accumulator.feed(content)
        session.update_streaming(accumulator.text)
        if args.verbose:
            console.print(f"[dim]{accumulator.chunk_count:>5}[/dim] ", summarize(result))

    def on_complete() -> None:
        session.finish_streaming()

    with open(args.file, "rb") as f:
        process_stream(iter(lambda: f.read(args.chunk_size), b""), on_chunk, on_complete, errors.append)

    if errors:
        console.print(f"[red]stream failed:[/red] {errors[0]}")
        return 1
    logger.info("replayed %d chunk(s), %d chars", accumulator.chunk_count, len(accumulator.text))
    console.print(render_result(accumulator.result()))
    return 0


_INPUT_FIELDS = {f.name for f in fields(ViewInputs)}


def _inputs_from(raw: object, base: ViewInputs | None = None) -> ViewInputs:
    if not isinstance(raw, dict):
        raise ScenarioError(f"inputs must be an object, got {raw!r}")
    unknown = set(raw) - _INPUT_FIELDS
    if unknown:
        raise ScenarioError(f"unknown input field(s): {', '.join(sorted(unknown))}")
    return (base or ViewInputs()).with_changes(**raw)


def run_scenario(scenario: dict, config=None) -> list[dict]:
    """Run a view-state scenario, returning one record per step.

    Scenario shape:
        {"initial": {<ViewInputs fields>},
         "steps": [{"inputs": {...}} | {"iframe": {...}} | {"select": "code"}
                   | {"back": true} | {"advance": 0.1}]}

    The router is simulated: each navigate() call becomes the next path.
    Iframe payloads go through an IframeInbox and are drained before each poll.
    """
    now = [0.0]
    navigations: list[str] = []
    machine_ref: list[ViewStateMachine] = []

    def navigate(path: str) -> None:
        navigations.append(path)
        machine = machine_ref[0]
        machine.update(machine.inputs.with_changes(path=path))

    machine = ViewStateMachine(
        _inputs_from(scenario.get("initial", {})),
        navigate,
        config=config,
        clock=lambda: now[0],
    )
    machine_ref.append(machine)
    inbox = IframeInbox()

    records: list[dict] = []
    steps = scenario.get("steps", [])
    if not isinstance(steps, list):
        raise ScenarioError("steps must be a list")
    for i, step in enumerate(steps):
        if not isinstance(step, dict):
            raise ScenarioError(f"step {i} must be an object")
        before = len(navigations)
        if "inputs" in step:
            machine.update(_inputs_from(step["inputs"], machine.inputs))
        elif "iframe" in step:
            inbox.post(step["iframe"])
        elif "select" in step:
            try:
                view = ViewType(step["select"])
            except ValueError:
                raise ScenarioError(f"step {i}: unknown view {step['select']!r}") from None
            machine.navigate_to_view(view)
        elif "back" in step:
            machine.handle_back_action()
        elif "advance" in step:
            now[0] += float(step["advance"])
        else:
            raise ScenarioError(f"step {i}: unknown step {step!r}")
        inbox.drain(machine)
        machine.poll()
        state = machine.state
        records.append(
            {
                "step": i,
                "path": machine.inputs.path,
                "display_view": state.display_view.value,
                "current_view": state.current_view.value,
                "navigated": navigations[before:],
            }
        )
    return records


def cmd_views(args, console: Console) -> int:
    scenario = json.loads(_read_text(args.file))
    if not isinstance(scenario, dict):
        raise ScenarioError("scenario must be a JSON object")
    records = run_scenario(scenario, vibe_builder.io.settings.load_view_state_config())
    table = Table(show_header=True, header_style="bold")
    for column in ("step", "path", "display", "url view", "navigated"):
        table.add_column(column)
    for r in records:
        table.add_row(
            str(r["step"]),
            r["path"],
            r["display_view"],
            r["current_view"],
            ", ".join(r["navigated"]),
        )
    console.print(table)
    return 0


# ─── Entry point ─────────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vibe-builder",
        description="Inspect streamed app-builder responses and view-state behavior",
    )
    parser.add_argument("--log-level", type=str, default=None, help="Log level (default: INFO). Env: VIBE_BUILDER_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    p_parse = sub.add_parser("parse", help="Render a saved response as segments")
    p_parse.add_argument("file")
    p_parse.add_argument("--json", action="store_true", help="Emit JSON instead of rendered output")
    p_parse.set_defaults(func=cmd_parse)

    p_deps = sub.add_parser("deps", help="Print the dependency map of a saved response")
    p_deps.add_argument("file")
    p_deps.set_defaults(func=cmd_deps)

    p_replay = sub.add_parser("replay", help="Replay a captured SSE stream")
    p_replay.add_argument("file")
    p_replay.add_argument("--chunk-size", type=int, default=256, help="Bytes per simulated chunk (default: 256)")
    p_replay.add_argument("--session", type=str, default=None, help="Session id (default: file stem)")
    p_replay.add_argument("-v", "--verbose", action="store_true", help="Print a summary line per chunk")
    p_replay.set_defaults(func=cmd_replay)

    p_views = sub.add_parser("views", help="Run a view-state scenario (JSON)")
    p_views.add_argument("file")
    p_views.set_defaults(func=cmd_views)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    log_runtime = vibe_builder.io.logging_setup.configure(run_name=args.command, level=args.log_level)
    logger.debug("logging configured level=%s file=%s", log_runtime.level_name, log_runtime.file_path)

    console = Console()
    try:
        return args.func(args, console)
    except (OSError, json.JSONDecodeError, ScenarioError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        console.print(f"[red]error:[/red] {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
