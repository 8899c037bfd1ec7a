#!/usr/bin/env python3
"""
KPI engine command-line report.

Loads an exported JSON file of habits and daily records, scores any unscored
days and prints the analytics report as Rich tables or JSON.

Usage:
    kpi-engine report export.json                    # Report over all records
    kpi-engine report export.json --period year      # Forecast a year ahead
    kpi-engine report export.json --start 2024-01-01 --end 2024-01-31
    kpi-engine score day.json                        # Score a single day
    kpi-engine report export.json --json             # Output as JSON
"""

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from rich.box import ROUNDED
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .analytics import generate_report
from .config import FORECAST_PERIOD_DAYS, configure_logging
from .kpi_calculator import KPICalculator
from .models import AnalyticsReport, DailyRecord, Habit, KPIBreakdown, parse_date

logger = logging.getLogger(__name__)

console = Console()


def get_score_style(score: float, thresholds: tuple = (80, 110)) -> str:
    """Color for a KPI value: red below the low threshold, green at or above the high one."""
    low, high = thresholds
    if score >= high:
        return "green"
    elif score >= low:
        return "yellow"
    else:
        return "red"


def error_panel(title: str, message: str) -> None:
    console.print(Panel(
        f"[red]{escape(message)}[/red]",
        title=f"[bold red][ERROR] {title}[/bold red]",
        border_style="red",
        box=ROUNDED,
    ))


def load_export(path: Path) -> Tuple[List[Habit], Dict[str, Any]]:
    """Read a JSON export and return its habits plus the raw payload."""
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    habits = [Habit.from_dict(h) for h in payload.get("habits", [])]
    return habits, payload


def render_breakdown(breakdown: KPIBreakdown, day: date) -> None:
    table = Table(
        title=f"[bold]KPI for {day.isoformat()}[/bold]",
        box=ROUNDED,
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Component", style="cyan", no_wrap=True)
    table.add_column("Points", justify="right", style="bold")

    efficiency = breakdown.efficiency_coefficients
    table.add_row("Base score", f"{breakdown.base_score:.2f}")
    table.add_row("Habit efficiency", f"{efficiency.habit_average:.2f}")
    table.add_row("Task efficiency", f"{efficiency.task_average:.2f}")
    table.add_row("Compound effect", f"{efficiency.compound_effect:.2f}")
    table.add_row("Task bonus", str(breakdown.task_bonus))
    table.add_row("Q2 focus bonus", str(breakdown.q2_focus_bonus))
    table.add_row("Strategic bonus", str(breakdown.strategic_bonus))
    table.add_row("Revolut score", f"{breakdown.revolut_score:.2f}")
    style = get_score_style(breakdown.total_kpi)
    table.add_row("[bold]Total KPI[/bold]", f"[{style}]{breakdown.total_kpi:.2f}[/{style}]")
    console.print(table)

    if breakdown.skipped_habit_ids:
        console.print(f"[yellow]Skipped unknown habits: {', '.join(breakdown.skipped_habit_ids)}[/yellow]")


def render_report(report: AnalyticsReport) -> None:
    summary = report.summary
    style = get_score_style(summary.average_kpi)
    console.print(Panel(
        f"Average KPI: [{style}]{summary.average_kpi:.2f}[/{style}]\n"
        f"Total hours: {summary.total_hours:.2f}\n"
        f"Days recorded: {summary.completed_days}/{summary.total_days}",
        title=f"[bold]📊 {report.start.isoformat()} to {report.end.isoformat()}[/bold]",
        border_style="cyan",
        box=ROUNDED,
    ))

    if summary.top_habits:
        table = Table(title="[bold]Top Habits[/bold]", box=ROUNDED, header_style="bold cyan")
        table.add_column("Habit", style="white", no_wrap=True)
        table.add_column("Minutes", justify="right")
        table.add_column("Avg", justify="right")
        table.add_column("Done %", justify="right")
        table.add_column("Quality", justify="right")
        for habit in summary.top_habits:
            table.add_row(
                habit.habit_name,
                f"{habit.total_minutes:.0f}",
                f"{habit.average_minutes:.1f}",
                f"[{get_score_style(habit.completion_rate, (50, 70))}]{habit.completion_rate:.1f}[/]",
                f"{habit.average_quality:.1f}",
            )
        console.print(table)

    if report.trends:
        table = Table(title="[bold]📈 Trends[/bold]", box=ROUNDED, header_style="bold cyan")
        table.add_column("Habit", style="white", no_wrap=True)
        table.add_column("Trend", justify="center")
        table.add_column("%", justify="right")
        table.add_column("Consistency", justify="right")
        table.add_column("Guidance", no_wrap=False, max_width=50)
        colors = {"improving": "green", "declining": "red", "stable": "yellow"}
        for trend in report.trends:
            color = colors[trend.trend.value]
            table.add_row(
                trend.habit_name,
                f"[{color}]{trend.trend.value}[/{color}]",
                f"{trend.trend_percentage:.2f}",
                f"{trend.consistency:.1f}",
                trend.recommendation,
            )
        console.print(table)

    forecast = report.forecast
    console.print(
        f"\n🔮 Forecast ({forecast.period}): KPI {forecast.predicted_kpi:.2f}, "
        f"{forecast.predicted_hours:.2f}h/day, confidence {forecast.confidence:.0f}% "
        f"(growth {forecast.compound_growth_rate:.2f}%/day over {forecast.based_on_days} days)"
    )

    if report.recommendations:
        console.print("\n[bold]💡 Recommendations[/bold]")
        for rec in report.recommendations:
            color = "red" if rec.priority.value == "high" else "yellow"
            console.print(f"  [{color}]{rec.priority.value.upper()}[/{color}] {rec.title}: {rec.description}")
            for item in rec.action_items:
                console.print(f"    • {item}")


def cmd_report(args: argparse.Namespace) -> int:
    habits, payload = load_export(args.file)
    records = [DailyRecord.from_dict(r) for r in payload.get("records", [])]
    if not records and not (args.start and args.end):
        error_panel("No data", f"{args.file} contains no records")
        return 1

    scored, failures = KPICalculator().score_series(records, habits)
    for day, failure in failures.items():
        logger.warning(f"Could not score {day}: {failure.error}")

    start = parse_date(args.start) if args.start else scored[0].date
    end = parse_date(args.end) if args.end else scored[-1].date

    result = generate_report(scored, habits, start, end, args.period)
    if not result.success:
        if args.json:
            print(json.dumps(result.to_dict(), indent=2))
        else:
            error_panel(result.error, "\n".join(f"{e['path']}: {e['message']}" for e in result.errors))
        return 1

    if args.json:
        output = result.data.to_dict()
        output["unscored_days"] = sorted(failures)
        print(json.dumps(output, indent=2, ensure_ascii=False))
    else:
        render_report(result.data)
        if failures:
            console.print(f"\n[yellow]⚠️ {len(failures)} day(s) failed validation: {', '.join(sorted(failures))}[/yellow]")
    return 0


def cmd_score(args: argparse.Namespace) -> int:
    habits, payload = load_export(args.file)
    record = DailyRecord.from_dict(payload)

    result = KPICalculator().score_record(record, habits)
    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return 0 if result.success else 1

    if not result.success:
        error_panel(result.error, "\n".join(f"{e['path']}: {e['message']}" for e in result.errors))
        return 1

    render_breakdown(result.data, record.date)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kpi-engine",
        description="Score daily productivity records and report KPI analytics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s report export.json                   # Report over all records
  %(prog)s report export.json --period quarter  # Quarterly forecast
  %(prog)s score day.json --json                # Score one day as JSON
        """
    )
    parser.add_argument(
        '--log-level',
        default=None,
        help='Logging level (default: KPI_ENGINE_LOG_LEVEL or WARNING)'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    report = subparsers.add_parser('report', help='Analytics report for a JSON export')
    report.add_argument('file', type=Path, help='JSON file with "habits" and "records"')
    report.add_argument('--start', help='First day of the window (YYYY-MM-DD)')
    report.add_argument('--end', help='Last day of the window (YYYY-MM-DD)')
    report.add_argument(
        '--period',
        choices=sorted(FORECAST_PERIOD_DAYS),
        default='month',
        help='Forecast horizon (default: month)'
    )
    report.add_argument('--json', action='store_true', help='Output as JSON')
    report.set_defaults(func=cmd_report)

    score = subparsers.add_parser('score', help='Score a single day')
    score.add_argument('file', type=Path, help='JSON file with "habits" and one day of records')
    score.add_argument('--json', action='store_true', help='Output as JSON')
    score.set_defaults(func=cmd_score)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        return args.func(args)
    except FileNotFoundError as e:
        error_panel("File not found", str(e))
        return 1
    except (json.JSONDecodeError, KeyError, ValueError) as e:
        error_panel("Invalid export", f"{type(e).__name__}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
