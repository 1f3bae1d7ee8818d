from typing import Any, Dict

from rich.console import Console
from rich.markup import escape as rich_escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from planner_client.models import TravelPlan

console = Console()


def render_profile(profile: Dict[str, Any]):
    table = Table(title="Profile", show_header=False)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    for key, value in profile.items():
        table.add_row(rich_escape(str(key)), rich_escape(str(value)))
    console.print(table)


def render_plan(plan: TravelPlan):
    header = f"[bold]{rich_escape(plan.destination)}[/bold]"
    if plan.duration:
        header += f" - {rich_escape(str(plan.duration))} day(s)"
    console.print(Panel(Text.from_markup(header), title="Travel plan", border_style="green"))

    details = plan.details
    if details is None:
        if isinstance(plan.plan, str):
            console.print(Panel(rich_escape(plan.plan), title="Itinerary"))
        else:
            console.print_json(data=plan.plan)
        return

    for index, day in enumerate(details.days, start=1):
        title = f"Day {day.day if day.day is not None else index}"
        if day.date:
            title += f" ({day.date})"
        table = Table(title=rich_escape(title), title_justify="left")
        table.add_column("Time", style="cyan", no_wrap=True)
        table.add_column("Location", style="magenta")
        table.add_column("Activity")
        table.add_column("Tips", style="dim")
        for item in day.activities:
            table.add_row(
                rich_escape(item.time or ""),
                rich_escape(item.location or ""),
                rich_escape(item.activity or ""),
                rich_escape(item.tips or ""),
            )
        console.print(table)

    if details.summary:
        console.print(Panel(rich_escape(details.summary), title="Summary"))
    for tip in details.tips:
        console.print(f"  • {rich_escape(str(tip))}")


def render_suggestions(result: Any):
    if isinstance(result, dict):
        text = result.get("suggestions") or result.get("answer") or result
    else:
        text = result
    console.print(Panel(rich_escape(str(text)), title="Travel advice", border_style="blue"))


def render_login_required(login_path: str):
    console.print(
        Panel(
            Text.from_markup(
                "Your session has ended. Run [bold]planner login[/bold] to sign in again."
                f"\n[dim]({rich_escape(login_path)})[/dim]"
            ),
            border_style="yellow",
        )
    )
