"""Command-line interface for generating meeting reports and driving the agents."""

import argparse
import asyncio
import sys
from datetime import date
from typing import List, Optional

from .models.core import AgentEvent, ReportOptions
from .models.errors import MeetingReporterError
from .orchestration.orchestrator import ReportOrchestrator
from .utils.config import SystemConfig, get_config
from .utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def setup_logging(config: SystemConfig, verbose: bool = False, json_logs: bool = False):
    """Configure logging for the CLI.

    Args:
        config: Loaded configuration supplying the default level
        verbose: If True, log at DEBUG regardless of configuration
        json_logs: If True, render log lines as JSON
    """
    level = "DEBUG" if verbose else config.log_level
    configure_logging(level, json_logs or config.json_logging)


def parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}") from e


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser.

    Returns:
        Parser with ``report``, ``command`` and ``serve`` subcommands
    """
    parser = argparse.ArgumentParser(
        prog="meeting-reporter",
        description="Generate Excel meeting reports from Outlook calendars with AI analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Report on the first week of March with analysis and an executive summary
  meeting-reporter report --start 2024-03-01 --end 2024-03-07

  # Report on a shared calendar without AI analysis
  meeting-reporter report --start 2024-03-01 --end 2024-03-07 --user alex@contoso.com --no-analysis

  # Send a free-text instruction to the matching agent
  meeting-reporter command "Fetch all calendar events from 2024-03-01 to 2024-03-07"

  # Serve the HTTP API
  meeting-reporter serve --port 8000
        """
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    common.add_argument("--json-logs", action="store_true", help="Render log lines as JSON")

    subparsers = parser.add_subparsers(dest="subcommand", required=True)

    report = subparsers.add_parser("report", parents=[common], help="Generate a meeting report")
    report.add_argument("--start", type=parse_day, required=True, help="First day (YYYY-MM-DD)")
    report.add_argument("--end", type=parse_day, required=True, help="Last day, inclusive (YYYY-MM-DD)")
    report.add_argument("--user", default=None, help="Mailbox of a shared calendar")
    report.add_argument("--no-analysis", action="store_true", help="Skip AI analysis columns")
    report.add_argument("--no-summary", action="store_true", help="Skip the executive summary sheet")

    command = subparsers.add_parser("command", parents=[common], help="Route a free-text command to an agent")
    command.add_argument("text", help="Instruction text")

    serve = subparsers.add_parser("serve", parents=[common], help="Serve the HTTP API")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve.add_argument("--port", type=int, default=8000, help="Bind port")

    return parser


def print_event(event: AgentEvent) -> None:
    print(f"[{event.agent}] {event.type.value}: {event.message}")


async def run_report(args, orchestrator: ReportOrchestrator) -> int:
    """Run the report pipeline.

    Returns:
        Exit code (0 for success, 1 for failure or no data)
    """
    options = ReportOptions(
        start_date=args.start,
        end_date=args.end,
        target_user=args.user,
        include_analysis=not args.no_analysis,
        include_executive_summary=not args.no_summary
    )
    result = await orchestrator.generate_report(options)

    print(f"\n{result.message}")
    if result.success:
        print(f"Report: {result.filename}")
        if result.download_url:
            print(f"Download: {result.download_url}")
        print(f"AI analysis: {result.analysis_status.value}")
        return 0

    if result.error:
        print(f"Error: {result.error}", file=sys.stderr)
    return 1


async def run_command(args, orchestrator: ReportOrchestrator) -> int:
    result = await orchestrator.run_command(args.text)
    print(f"\n{result.message}")
    if not result.success:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1
    return 0


def serve(args) -> int:
    import uvicorn
    uvicorn.run("meeting_reporter.api.main:app", host=args.host, port=args.port)
    return 0


def run(argv: Optional[List[str]] = None, orchestrator: Optional[ReportOrchestrator] = None) -> int:
    """Parse arguments and execute a subcommand.

    Args:
        argv: Arguments without the program name, ``sys.argv[1:]`` by default
        orchestrator: Pre-wired orchestrator, built from configuration when omitted

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)
    config = get_config()
    setup_logging(config, verbose=args.verbose, json_logs=args.json_logs)

    if args.subcommand == "serve":
        return serve(args)

    if orchestrator is None:
        orchestrator = ReportOrchestrator.from_config(config)
    orchestrator.on_event(print_event)

    handler = run_report if args.subcommand == "report" else run_command
    try:
        return asyncio.run(handler(args, orchestrator))
    except MeetingReporterError as e:
        print(f"\nError: {e.message}", file=sys.stderr)
        return 1


def main():
    """Main entry point for the CLI."""
    sys.exit(run())


if __name__ == "__main__":
    main()
