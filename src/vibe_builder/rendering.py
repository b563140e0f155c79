"""Rich renderables for parsed responses (CLI and debugging views).

Pygments Syntax() is for generated code segments only; structural labels use
plain styled Text.
"""

from __future__ import annotations

from rich.console import ConsoleRenderable, Group
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from vibe_builder.core.segmentation import ParseResult, SegmentKind, parse_dependencies

CODE_THEME = "monokai"
CODE_LEXER = "jsx"


def render_dependencies(dependencies: dict[str, str]) -> ConsoleRenderable:
    table = Table(title="dependencies", show_header=True, header_style="bold")
    table.add_column("package")
    table.add_column("version")
    for name, version in sorted(dependencies.items()):
        table.add_row(name, version)
    return table


def render_result(result: ParseResult, *, code_theme: str = CODE_THEME) -> ConsoleRenderable:
    """Render segments in order: markdown as Markdown, code as Syntax panels."""
    parts: list[ConsoleRenderable] = []

    if result.dependencies_string is not None:
        deps = parse_dependencies(result.dependencies_string)
        if deps:
            parts.append(render_dependencies(deps))
        else:
            parts.append(Text("(empty dependency manifest)", style="dim"))

    code_index = 0
    for seg in result.segments:
        if seg.kind == SegmentKind.MARKDOWN:
            if seg.content.strip():
                parts.append(Markdown(seg.content, code_theme=code_theme))
        elif seg.kind == SegmentKind.CODE:
            code_index += 1
            parts.append(
                Panel(
                    Syntax(seg.content, CODE_LEXER, theme=code_theme, line_numbers=True),
                    title=f"code #{code_index}",
                    title_align="left",
                )
            )

    if not parts:
        return Text("(no content yet)", style="dim")
    if len(parts) == 1:
        return parts[0]
    return Group(*parts)


def summarize(result: ParseResult) -> Text:
    """One-line summary, e.g. `md code md | manifest`."""
    kinds = " ".join("md" if s.kind == SegmentKind.MARKDOWN else "code" for s in result.segments)
    line = Text(kinds or "(empty)")
    if result.dependencies_string is not None:
        line.append(" | manifest", style="cyan")
    return line
