# display.py
# All terminal output for the plan runner.
#
# This module owns presentation entirely. harness.py and api.py never format
# strings; they call named functions here. Swap this file to change the
# entire UI.
#
# Colour language:
#   cyan   : routing events
#   blue   : completion service calls
#   green  : success / completed
#   yellow : optional step failures
#   red    : aborts, request-level errors

import json
from typing import Any

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from plan_runner.models import ExecutionStatus, Plan, StepOutcome

console = Console()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _label(tag: str, color: str) -> Text:
    t = Text()
    t.append(f" {tag} ", style=f"bold white on {color}")
    return t


def _mono(value: str, max_len: int = 120) -> str:
    if len(value) > max_len:
        return escape(value[:max_len]) + "…"
    return escape(value)


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------


def banner(planner_model: str, synthesis_model: str, configured: bool) -> None:
    status = "[green]configured[/green]" if configured else "[red]missing OPENROUTER_API_KEY[/red]"
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]Plan Runner[/bold cyan]\n"
            "[dim]Plan → Execute → Synthesize[/dim]\n\n"
            f"[dim]Planner model   :[/dim] [white]{planner_model}[/white]\n"
            f"[dim]Synthesis model :[/dim] [white]{synthesis_model}[/white]\n"
            f"[dim]Completion      :[/dim] {status}",
            border_style="cyan",
            padding=(1, 4),
        )
    )


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------


def query_received(query: str) -> None:
    console.print()
    console.print(Rule("[cyan]NEW REQUEST[/cyan]", style="cyan"))
    console.print(
        Panel(
            f"[white]{escape(query)}[/white]",
            title=_label("USER QUERY", "cyan"),
            border_style="cyan",
            padding=(0, 2),
        )
    )


def calling_planner() -> None:
    console.print()
    console.print(_label("PLANNER", "blue"), "[blue] → Requesting execution plan…[/blue]")


def plan_parsed(plan: Plan) -> None:
    console.print()
    table = Table(
        box=box.SIMPLE_HEAVY,
        border_style="cyan",
        show_header=True,
        header_style="bold cyan",
        padding=(0, 1),
    )
    table.add_column("#", justify="center", width=4)
    table.add_column("Tool", style="bold white", width=20)
    table.add_column("Args", style="dim white", width=32)
    table.add_column("Optional", justify="center", width=8)
    table.add_column("Purpose", style="white")

    for index, step in enumerate(plan.steps):
        table.add_row(
            str(index + 1),
            escape(step.tool),
            _mono(json.dumps(step.arguments, default=str), 30),
            "yes" if step.optional else "",
            escape(step.purpose),
        )

    console.print(
        Panel(
            table,
            title=_label("PLAN PARSED", "cyan"),
            border_style="cyan",
            padding=(0, 1),
        )
    )


# ---------------------------------------------------------------------------
# Execution loop
# ---------------------------------------------------------------------------


def execution_start(total: int) -> None:
    console.print()
    console.print(Rule(f"[cyan]EXECUTION — {total} step(s)[/cyan]", style="cyan"))


def step_start(index: int, total: int, tool: str, args: Any) -> None:
    console.print()
    console.print(
        f"[bold cyan]  STEP [{index + 1}/{total}][/bold cyan]  [bold white]{escape(tool)}[/bold white]"
        f"  [dim]{_mono(json.dumps(args, default=str), 80)}[/dim]"
    )


def step_outcome(outcome: StepOutcome) -> None:
    if outcome.success:
        console.print(
            f"  [bold green]✓[/bold green] [white]{_mono(json.dumps(outcome.result, default=str), 140)}[/white]"
        )
    elif outcome.step.optional:
        console.print(f"  [yellow]✗ optional step failed, continuing:[/yellow] [white]{escape(outcome.error or '')}[/white]")
    else:
        console.print(f"  [bold red]✗ {escape(outcome.error or '')}[/bold red]")


def execution_aborted(index: int, total: int) -> None:
    console.print(
        Panel(
            f"[bold red]Required step {index + 1} failed.[/bold red]\n"
            f"[dim]{total - index - 1} remaining step(s) skipped. "
            "Earlier state changes are kept.[/dim]",
            title=_label("ABORTED", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )


def execution_summary(trace: list[StepOutcome], status: ExecutionStatus) -> None:
    console.print()
    table = Table(
        box=box.SIMPLE_HEAVY,
        border_style="dim",
        show_header=True,
        header_style="bold dim",
        padding=(0, 1),
    )
    table.add_column("Step", justify="center", width=6)
    table.add_column("Tool", width=20)
    table.add_column("OK", justify="center", width=4)
    table.add_column("Detail", style="dim white")

    for index, outcome in enumerate(trace):
        ok = "[bold green]✓[/bold green]" if outcome.success else "[bold red]✗[/bold red]"
        detail = json.dumps(outcome.result, default=str) if outcome.success else (outcome.error or "")
        table.add_row(str(index + 1), escape(outcome.step.tool), ok, _mono(detail, 60))

    console.print(
        Panel(
            table,
            title=f"[dim]EXECUTION SUMMARY — {status.value}[/dim]",
            border_style="dim",
            padding=(0, 1),
        )
    )


# ---------------------------------------------------------------------------
# Synthesis
# ---------------------------------------------------------------------------


def synthesis_start(successful: int) -> None:
    console.print()
    console.print(Rule("[cyan]SYNTHESIS[/cyan]", style="cyan"))
    console.print(f"[blue]  Summarizing {successful} successful result(s)…[/blue]")


def synthesis_skipped() -> None:
    console.print()
    console.print(
        _label("SYNTHESIS", "yellow"),
        "[yellow] No successful steps — returning fixed apology.[/yellow]",
    )


# ---------------------------------------------------------------------------
# Final result
# ---------------------------------------------------------------------------


def final_result(result: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[white]{escape(result)}[/white]",
            title=_label("RESULT", "green"),
            border_style="green",
            padding=(1, 2),
        )
    )
    console.print()


def halt(reason: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[bold white]{escape(reason)}[/bold white]",
            title=_label("HALT", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )
    console.print()
