"""Command-line interface."""

import asyncio
import signal
from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from wifi_reviews import __version__
from wifi_reviews.ai.processor import SummaryProcessor
from wifi_reviews.config import settings
from wifi_reviews.errors import ConfigurationError, PersistenceError
from wifi_reviews.models.review import Target
from wifi_reviews.models.stats import RunStats
from wifi_reviews.parsers.date_parser import DateNormalizer
from wifi_reviews.parsers.speed_parser import extract_speed
from wifi_reviews.pipeline import PipelineOrchestrator
from wifi_reviews.scraper.browser import BrowserManager
from wifi_reviews.scraper.collector import ReviewCollector
from wifi_reviews.scraper.session import CrawlSession
from wifi_reviews.storage.progress import ProgressTracker
from wifi_reviews.storage.repository import YAMLRepository
from wifi_reviews.storage.targets import load_targets
from wifi_reviews.utils.cancellation import CancellationToken
from wifi_reviews.utils.logging import setup_logging
from wifi_reviews.utils.rate_limiter import RateLimiter

app = typer.Typer(help="Hotel Wi-Fi Reviews - Collect and summarize Wi-Fi reviews for hotels")
console = Console()


def _load_targets_or_exit(path: Path, limit: Optional[int]) -> List[Target]:
    try:
        targets = load_targets(path)
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if limit:
        targets = targets[:limit]
    return targets


def _build_processor() -> SummaryProcessor:
    try:
        return SummaryProcessor()
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


@app.command()
def run(
    targets_file: Path = typer.Argument(
        ...,
        help="YAML file listing the hotels to process",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output directory for YAML files",
    ),
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-l",
        help="Maximum number of hotels to process",
    ),
    batch_size: Optional[int] = typer.Option(
        None,
        "--batch-size",
        "-b",
        help="Hotels per batch",
    ),
    headless: bool = typer.Option(
        settings.headless,
        "--headless/--no-headless",
        help="Run browser in headless mode",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
    resume: bool = typer.Option(
        True,
        "--resume/--no-resume",
        help="Skip hotels completed in a previous run",
    ),
):
    """Crawl, summarize and store Wi-Fi reviews for each hotel."""
    setup_logging(verbose or settings.verbose)

    targets = _load_targets_or_exit(targets_file, limit)
    if not targets:
        console.print("[yellow]No hotels to process![/yellow]")
        return

    # Fail on a missing API key before the browser starts
    processor = _build_processor()
    output = output or settings.output_dir

    console.print(f"[bold blue]Hotel Wi-Fi Reviews v{__version__}[/bold blue]")
    console.print(f"Output directory: {output}")
    console.print(f"Hotels: {len(targets)}")
    console.print()

    stats = asyncio.run(
        _run_pipeline(
            targets=targets,
            processor=processor,
            output=output,
            batch_size=batch_size,
            headless=headless,
            resume=resume,
        )
    )

    console.print()
    if stats.cancelled:
        console.print("[bold yellow]Pipeline cancelled[/bold yellow]")
    else:
        console.print("[bold green]Pipeline complete![/bold green]")
    _print_report(stats)


async def _run_pipeline(
    targets: List[Target],
    processor: SummaryProcessor,
    output: Path,
    batch_size: Optional[int],
    headless: bool,
    resume: bool,
) -> RunStats:
    """Async pipeline implementation."""
    cancel_token = CancellationToken()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel_token.cancel, "interrupted")
    except NotImplementedError:
        # Windows event loops; Ctrl+C then raises KeyboardInterrupt as usual
        pass

    browser = BrowserManager(headless=headless)
    rate_limiter = RateLimiter(
        min_delay=settings.rate_limit_min_delay,
        max_delay=settings.rate_limit_max_delay,
    )
    session = CrawlSession(browser, rate_limiter)
    collector = ReviewCollector(session, cancel_token=cancel_token)
    orchestrator = PipelineOrchestrator(
        collector=collector,
        processor=processor,
        repository=YAMLRepository(output),
        progress=ProgressTracker(settings.progress_file),
        batch_size=batch_size,
        cancel_token=cancel_token,
    )

    try:
        await browser.start()

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as progress:
            task = progress.add_task("Processing hotels...", total=len(targets))
            stats = await orchestrator.run(
                targets,
                resume=resume,
                on_outcome=lambda outcome: progress.advance(task),
            )
            if stats.hotels_skipped:
                progress.advance(task, stats.hotels_skipped)

        rate_stats = rate_limiter.get_stats()
        console.print(
            f"Crawl success rate: {rate_stats['success_rate'] * 100:.0f}% "
            f"over {rate_stats['total_requests']} hotels"
        )
        return stats

    finally:
        await browser.stop()
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except NotImplementedError:
            pass


@app.command()
def summarize(
    targets_file: Path = typer.Argument(
        ...,
        help="YAML file listing the hotels to summarize",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Directory holding previously collected reviews",
    ),
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-l",
        help="Maximum number of hotels to summarize",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
):
    """Re-summarize reviews already stored on disk, without crawling."""
    setup_logging(verbose or settings.verbose)

    targets = _load_targets_or_exit(targets_file, limit)
    processor = _build_processor()
    repository = YAMLRepository(output or settings.output_dir)

    failures: Dict[str, str] = {}
    items = []
    for target in targets:
        if not repository.reviews_exist(target.id):
            console.print(f"[yellow]No stored reviews for {target.name}[/yellow]")
            continue
        try:
            reviews = repository.load_reviews(target.id)
        except PersistenceError as e:
            console.print(f"[red]{e}[/red]")
            failures[target.id] = str(e)
            continue
        if not reviews:
            failures[target.id] = "No reviews collected"
            continue
        items.append((target.name, reviews))

    summaries = asyncio.run(processor.summarize_batch(items)) if items else []

    saved = []
    for summary in summaries:
        try:
            repository.save_summary(summary)
        except PersistenceError as e:
            console.print(f"[red]{e}[/red]")
            failures[summary.target_id] = str(e)
            continue
        saved.append(summary)

    summarized = {summary.target_id for summary in summaries}
    for _, reviews in items:
        if reviews[0].target_id not in summarized:
            failures[reviews[0].target_id] = "Summary generation failed"

    if not items:
        console.print("[yellow]Nothing to summarize![/yellow]")
    else:
        table = Table(title=f"Generated {len(saved)} Summaries")
        table.add_column("Hotel", style="cyan")
        table.add_column("Score", style="green")
        table.add_column("Tier", style="yellow")
        table.add_column("Reviews")
        table.add_column("Confidence")

        for summary in saved:
            table.add_row(
                summary.target_id,
                f"{summary.overall_score}/5",
                summary.speed_tier,
                str(summary.review_count),
                summary.confidence_level,
            )

        console.print(table)
        cost = processor.get_cost_summary()
        console.print(f"Total AI cost: ${cost['total_cost']:.4f}")

    _print_failures(failures)


@app.command()
def parse_date(
    date_text: str = typer.Argument(..., help='Date string as shown on a review, e.g. "3 months ago"'),
    years: int = typer.Option(
        settings.review_window_years,
        "--years",
        "-y",
        help="Retention window in years",
    ),
    strict: bool = typer.Option(
        settings.strict_dates,
        "--strict/--lenient",
        help="Treat unparseable dates as outside the window",
    ),
):
    """Show how a review date string is normalized."""
    normalizer = DateNormalizer(strict=strict)
    parsed = normalizer.parse(date_text)

    table = Table(title="Date Normalization")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Input", date_text)
    table.add_row("Parsed", parsed.isoformat() if parsed else "unparseable")
    table.add_row("Cutoff", normalizer.cutoff(years).isoformat())
    table.add_row("Within window", str(normalizer.is_within_window(date_text, years)))

    console.print(table)


@app.command(name="extract-speed")
def extract_speed_command(
    text: str = typer.Argument(..., help="Review text to scan for a speed mention"),
):
    """Show the speed figure extracted from a review text."""
    speed = extract_speed(text)
    if speed is None:
        console.print("[yellow]No speed mention found[/yellow]")
    else:
        console.print(f"[green]{speed:g} Mbps[/green]")


@app.command()
def clear_progress():
    """Clear pipeline progress."""
    progress_tracker = ProgressTracker(settings.progress_file)
    stats = progress_tracker.get_stats()
    progress_tracker.clear()
    console.print(
        f"[green]Progress cleared[/green] ({stats['completed']} completed, {stats['failed']} failed)"
    )


@app.command()
def version():
    """Show version information."""
    console.print(f"Hotel Wi-Fi Reviews v{__version__}")


def _print_report(stats: RunStats):
    """Print the final pipeline report."""
    report = stats.to_report()

    table = Table(title="Pipeline Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Hotels Processed", str(report["hotels_processed"]))
    table.add_row("Hotels Failed", str(report["hotels_failed"]))
    table.add_row("Hotels Skipped", str(report["hotels_skipped"]))
    table.add_row("Reviews Collected", str(report["reviews_collected"]))
    table.add_row("AI Summaries Generated", str(report["summaries_generated"]))
    table.add_row("Total AI Cost", f"${report['total_cost']:.4f}")
    table.add_row("Average Cost per Hotel", f"${report['average_cost_per_hotel']:.4f}")
    table.add_row("Processing Time", f"{report['elapsed_seconds']}s")
    table.add_row("Average Time per Hotel", f"{report['average_seconds_per_hotel']}s")
    table.add_row("Crawl Efficiency", f"{stats.crawl.efficiency_ratio:.1f}%")

    console.print(table)

    _print_failures(report["failures"])


def _print_failures(failures: Dict[str, Optional[str]]):
    if not failures:
        return

    table = Table(title="Failed Hotels")
    table.add_column("Hotel", style="cyan")
    table.add_column("Reason", style="red")
    for target_id, reason in failures.items():
        table.add_row(target_id, reason or "")
    console.print(table)


if __name__ == "__main__":
    app()
