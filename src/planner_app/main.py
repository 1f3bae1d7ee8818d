# src/planner_app/main.py
"""
Command-line front end for the travel planner API.

    planner login --email you@example.com
    planner plan Kyoto 4 --interests "temples, food" --start-date 2026-11-02
    planner suggest Lisbon "Where should I eat near Alfama?"
"""

import argparse
import asyncio
import dataclasses
import logging
import sys
from pathlib import Path
from typing import List, Optional

import colorlog
from dotenv import load_dotenv
from rich.console import Console
from rich.prompt import Prompt

from planner_client import ClientConfig, ConfigValidationError, PlannerClient
from planner_client.error_handler import PlannerClientError, classify_error
from planner_client.failure_logger import configure_failure_logger
from planner_client.utils.paths import get_default_root, get_logs_dir

from planner_app.render import (
    render_login_required,
    render_plan,
    render_profile,
    render_suggestions,
)
from planner_app.request_logger import get_event_hooks

console = Console()

# Exit codes per classified error type
EXIT_CODES = {
    "authentication": 2,
    "session_expired": 3,
    "transport": 4,
    "invalid_request": 5,
    "server_error": 6,
    "unknown": 1,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="planner", description="Travel planner API client"
    )
    parser.add_argument(
        "--api-url", type=str, default=None, help="Override PLANNER_API_URL."
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Log every request to the console."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Log in and store the session tokens.")
    login.add_argument("--email", type=str, default=None)
    login.add_argument("--password", type=str, default=None)

    register = sub.add_parser("register", help="Create an account.")
    register.add_argument("--email", type=str, required=True)
    register.add_argument("--username", type=str, required=True)
    register.add_argument("--nickname", type=str, default=None)
    register.add_argument("--password", type=str, default=None)

    sub.add_parser("logout", help="Forget the stored session tokens.")
    sub.add_parser("status", help="Show whether a session is stored.")
    sub.add_parser("profile", help="Show the current user's profile.")

    update = sub.add_parser("update-profile", help="Change nickname or password.")
    update.add_argument("--nickname", type=str, default=None)
    update.add_argument("--current-password", type=str, default=None)
    update.add_argument("--new-password", type=str, default=None)

    plan = sub.add_parser("plan", help="Generate an AI itinerary.")
    plan.add_argument("destination", type=str)
    plan.add_argument("duration", type=int, help="Trip length in days.")
    plan.add_argument("--interests", type=str, default=None)
    plan.add_argument("--start-date", type=str, default=None, help="YYYY-MM-DD")
    plan.add_argument(
        "--preference",
        dest="preferences",
        action="append",
        default=None,
        help="Repeatable travel preference.",
    )
    plan.add_argument("--budget", type=float, default=None)

    suggest = sub.add_parser("suggest", help="Ask for free-text travel advice.")
    suggest.add_argument("destination", type=str)
    suggest.add_argument("query", type=str)

    return parser


def configure_logging(log_dir: Path, verbose: bool = False) -> None:
    """Colored console output plus a plain-text log file."""
    console_handler = colorlog.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(
        colorlog.ColoredFormatter(
            "%(log_color)s%(message)s",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red,bg_white",
            },
        )
    )

    file_handler = logging.FileHandler(log_dir / "planner.log", encoding="utf-8")
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    # httpx logs every request at INFO; our own request logger covers it
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


async def run_command(args: argparse.Namespace, client: PlannerClient) -> int:
    if args.command == "login":
        email = args.email or Prompt.ask("Email")
        password = args.password or Prompt.ask("Password", password=True)
        await client.login(email, password)
        if client.is_authenticated():
            console.print("[green]Logged in.[/green]")
            return 0
        console.print("[red]Login succeeded but no session token was returned.[/red]")
        return 1

    if args.command == "register":
        password = args.password or Prompt.ask("Password", password=True)
        await client.register(
            email=args.email,
            username=args.username,
            password=password,
            nickname=args.nickname,
        )
        console.print("[green]Account created. You can now log in.[/green]")
        return 0

    if args.command == "logout":
        client.logout()
        console.print("Logged out.")
        return 0

    if args.command == "status":
        if client.is_authenticated():
            console.print("[green]Session stored.[/green]")
        else:
            console.print("[yellow]Not logged in.[/yellow]")
        return 0

    if args.command == "profile":
        render_profile(await client.get_user_profile())
        return 0

    if args.command == "update-profile":
        result = await client.update_profile(
            nickname=args.nickname,
            current_password=args.current_password,
            new_password=args.new_password,
        )
        console.print("[green]Profile updated.[/green]")
        if isinstance(result, dict) and result:
            render_profile(result)
        return 0

    if args.command == "plan":
        with console.status("[dim]Generating itinerary...", spinner="dots"):
            plan = await client.generate_travel_plan(
                destination=args.destination,
                duration=args.duration,
                interests=args.interests,
                start_date=args.start_date,
                preferences=args.preferences,
                budget=args.budget,
            )
        render_plan(plan)
        return 0

    if args.command == "suggest":
        with console.status("[dim]Asking for advice...", spinner="dots"):
            result = await client.get_travel_suggestions(args.destination, args.query)
        render_suggestions(result)
        return 0

    raise ValueError(f"Unknown command: {args.command}")


async def _run(args: argparse.Namespace, config: ClientConfig) -> int:
    async with PlannerClient(
        config=config,
        on_login_required=render_login_required,
        event_hooks=get_event_hooks(),
    ) as client:
        try:
            return await run_command(args, client)
        except PlannerClientError as e:
            classified = classify_error(e)
            console.print(f"[red]Error:[/red] {e}")
            return EXIT_CODES.get(classified.error_type, 1)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    root = get_default_root()
    load_dotenv(root / ".env")

    log_dir = get_logs_dir(root)
    configure_logging(log_dir, verbose=args.verbose)
    configure_failure_logger(log_dir)

    try:
        config = ClientConfig.from_env()
        if args.api_url:
            config = dataclasses.replace(config, api_url=args.api_url.rstrip("/"))
    except ConfigValidationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        return 1

    return asyncio.run(_run(args, config))


if __name__ == "__main__":
    sys.exit(main())
