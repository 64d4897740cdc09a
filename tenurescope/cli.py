"""tenurescope CLI: analyze company people pages and inspect stored results.

Usage:
    tenurescope analyze https://www.linkedin.com/company/acme/people/
    tenurescope analyze URL --browser-profile ~/.config/tenurescope/browser
    tenurescope analyze-html page1.html page2.html --past past1.html
    tenurescope show acme
    tenurescope export acme --format csv -o acme.csv
    tenurescope settings --max-records 100 --strategy profile
    tenurescope cache clear
    tenurescope cleanup
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import click

from tenurescope.analyzer import TenureAnalyzer
from tenurescope.common.exceptions import (
    DataFormatAssumptionException,
    NoUsableDataException,
)
from tenurescope.export import (
    analysis_to_json,
    export_filename,
    records_to_csv,
)
from tenurescope.extractor import ExtractionStrategy
from tenurescope.models import AnalysisResult
from tenurescope.selectors import DEFAULT_SELECTORS, SelectorConfig
from tenurescope.settings import AnalyzerSettings
from tenurescope.storage import AnalysisStore
from tenurescope.view import DocumentView

DEFAULT_DB = "tenurescope.db"


def _settings_options(func: Any) -> Any:
    """Options that override stored settings for a single run."""
    func = click.option(
        "--strategy",
        type=click.Choice([s.value for s in ExtractionStrategy]),
        default=None,
        help="Read start dates from cards (fast) or profiles (accurate).",
    )(func)
    func = click.option(
        "--include-past/--no-include-past",
        default=None,
        help="Also analyze past members.",
    )(func)
    func = click.option(
        "--max-records",
        type=click.IntRange(1, 1000),
        default=None,
        help="Target number of members per view.",
    )(func)
    func = click.option(
        "--selectors",
        "selectors_path",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        default=None,
        help="JSON file overriding the default selector sets.",
    )(func)
    func = click.option(
        "--use-cache",
        is_flag=True,
        help="Reuse records cached for this company in the last 24 hours.",
    )(func)
    return func


def _overrides(
    max_records: int | None,
    include_past: bool | None,
    strategy: str | None,
) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if max_records is not None:
        overrides["max_records"] = max_records
    if include_past is not None:
        overrides["include_past_records"] = include_past
    if strategy is not None:
        overrides["strategy"] = strategy
    return overrides


def _load_selectors(path: Path | None) -> SelectorConfig:
    return SelectorConfig.from_file(path) if path else DEFAULT_SELECTORS


async def _run_analysis(
    view: DocumentView,
    db_path: Path,
    overrides: dict[str, Any],
    selectors: SelectorConfig,
    use_cache: bool,
) -> AnalysisResult:
    async with AnalysisStore.open(db_path) as store:
        stored = await store.get_settings()
        settings = AnalyzerSettings.model_validate(
            {**stored.model_dump(), **overrides}
        )
        analyzer = TenureAnalyzer(
            view,
            settings,
            selectors,
            store=store,
            use_cache=use_cache,
        )
        return await analyzer.analyze()


def _echo_result(result: AnalysisResult) -> None:
    stats = result.stats
    click.echo(f"Company: {result.company_name} ({result.company_id})")
    click.echo(
        f"Members: {stats.count} "
        f"({stats.current_count} current, {stats.past_count} past)"
    )
    click.echo(
        f"Tenure (months): mean {stats.mean}, median {stats.median}, "
        f"p25 {stats.p25}, p75 {stats.p75}, p90 {stats.p90}, "
        f"min {stats.min}, max {stats.max}"
    )
    click.echo("Distribution:")
    width = max(stats.histogram.values(), default=0) or 1
    for label, count in stats.histogram.items():
        bar = "#" * round(count / width * 30)
        click.echo(f"  {label:>6} {count:>5} {bar}")
    quality = stats.data_quality
    click.echo(
        f"Data quality: {quality.missing_start_date} missing start, "
        f"{quality.missing_end_date} missing end, "
        f"{quality.ambiguous_dates} ambiguous"
    )


def _analyze_or_fail(coro: Any) -> AnalysisResult:
    try:
        return asyncio.run(coro)
    except NoUsableDataException as e:
        raise click.ClickException(e.message) from e


@click.group()
@click.version_option(package_name="tenurescope")
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_DB,
    show_default=True,
    envvar="TENURESCOPE_DB",
    help="SQLite database for analyses, cache and settings.",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
@click.pass_context
def cli(ctx: click.Context, db_path: Path, verbose: bool) -> None:
    """tenurescope: member tenure analysis for company people pages."""
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db_path


@cli.command()
@click.argument("url")
@_settings_options
@click.option(
    "--browser-profile",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Persistent browser profile directory to reuse.",
)
@click.option(
    "--headless/--headed",
    default=True,
    show_default=True,
    help="Run the browser without a window.",
)
@click.pass_context
def analyze(
    ctx: click.Context,
    url: str,
    use_cache: bool,
    selectors_path: Path | None,
    max_records: int | None,
    include_past: bool | None,
    strategy: str | None,
    browser_profile: Path | None,
    headless: bool,
) -> None:
    """Analyze a live company people page in a browser.

    \b
    Examples:
        tenurescope analyze https://www.linkedin.com/company/acme/people/
        tenurescope analyze URL --strategy profile --max-records 20
    """
    from tenurescope.driver.playwright_view import PlaywrightDocumentView

    overrides = _overrides(max_records, include_past, strategy)
    selectors = _load_selectors(selectors_path)

    async def run() -> AnalysisResult:
        async with PlaywrightDocumentView.launch(
            url, headless=headless, user_data_dir=browser_profile
        ) as view:
            return await _run_analysis(
                view, ctx.obj["db_path"], overrides, selectors, use_cache
            )

    _echo_result(_analyze_or_fail(run()))


@cli.command("analyze-html")
@click.argument(
    "pages",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--url",
    default="https://www.linkedin.com/",
    show_default=True,
    help="URL the snapshots were taken from (company id, link base).",
)
@click.option(
    "--past",
    "past_pages",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Snapshot of the past-members view (repeatable).",
)
@click.option(
    "--profiles",
    "profiles_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory of saved profile pages named <slug>.html.",
)
@_settings_options
@click.pass_context
def analyze_html(
    ctx: click.Context,
    pages: tuple[Path, ...],
    url: str,
    past_pages: tuple[Path, ...],
    profiles_dir: Path | None,
    use_cache: bool,
    selectors_path: Path | None,
    max_records: int | None,
    include_past: bool | None,
    strategy: str | None,
) -> None:
    """Analyze saved HTML snapshots of a company people page.

    PAGES are snapshots in the order "next"/"show more" would reveal them.
    """
    from tenurescope.driver.static_view import StaticDocumentView

    view = StaticDocumentView.from_files(
        list(pages),
        url=url,
        past_paths=list(past_pages),
        profiles_dir=profiles_dir,
    )
    overrides = _overrides(max_records, include_past, strategy)
    selectors = _load_selectors(selectors_path)

    result = _analyze_or_fail(
        _run_analysis(
            view, ctx.obj["db_path"], overrides, selectors, use_cache
        )
    )
    _echo_result(result)


async def _load_analysis(
    db_path: Path, company_id: str | None
) -> AnalysisResult:
    async with AnalysisStore.open(db_path) as store:
        try:
            if company_id is None:
                analysis = await store.get_last_analysis()
            else:
                analysis = await store.get_analysis(company_id)
        except DataFormatAssumptionException as e:
            raise click.ClickException(e.message) from e
    if analysis is None:
        target = company_id or "any company"
        raise click.ClickException(f"No stored analysis for {target}")
    return analysis


@cli.command()
@click.argument("company_id", required=False)
@click.pass_context
def show(ctx: click.Context, company_id: str | None) -> None:
    """Show the latest stored analysis (for COMPANY_ID if given)."""
    analysis = asyncio.run(_load_analysis(ctx.obj["db_path"], company_id))
    _echo_result(analysis)


@cli.command()
@click.argument("company_id", required=False)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["csv", "json"]),
    default="csv",
    show_default=True,
)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Output file (default: <company>-tenure-analysis.<format>).",
)
@click.pass_context
def export(
    ctx: click.Context,
    company_id: str | None,
    fmt: str,
    output: Path | None,
) -> None:
    """Export a stored analysis as CSV (records) or JSON (everything)."""
    analysis = asyncio.run(_load_analysis(ctx.obj["db_path"], company_id))
    if fmt == "csv":
        content = records_to_csv(analysis.records)
    else:
        content = analysis_to_json(analysis)

    output = output or Path(export_filename(analysis.company_name, fmt))
    output.write_text(content, encoding="utf-8")
    click.echo(f"Exported {len(analysis.records)} records to {output}")


@cli.command()
@click.option("--max-records", type=click.IntRange(1, 1000), default=None)
@click.option("--include-past/--no-include-past", default=None)
@click.option(
    "--strategy",
    type=click.Choice([s.value for s in ExtractionStrategy]),
    default=None,
)
@click.option("--reset", is_flag=True, help="Delete all data and restore defaults.")
@click.pass_context
def settings(
    ctx: click.Context,
    max_records: int | None,
    include_past: bool | None,
    strategy: str | None,
    reset: bool,
) -> None:
    """Show or change stored settings."""
    overrides = _overrides(max_records, include_past, strategy)

    async def run() -> AnalyzerSettings:
        async with AnalysisStore.open(ctx.obj["db_path"]) as store:
            if reset:
                await store.clear_all_data()
            if overrides:
                return await store.save_settings(**overrides)
            return await store.get_settings()

    current = asyncio.run(run())
    click.echo(f"max_records:          {current.max_records}")
    click.echo(f"include_past_records: {current.include_past_records}")
    click.echo(f"strategy:             {current.strategy.value}")


@cli.group()
def cache() -> None:
    """Manage the per-company record cache."""


@cache.command("clear")
@click.pass_context
def cache_clear(ctx: click.Context) -> None:
    """Remove every cached entry."""

    async def run() -> None:
        async with AnalysisStore.open(ctx.obj["db_path"]) as store:
            await store.clear_cache()

    asyncio.run(run())
    click.echo("Cache cleared")


@cli.command()
@click.pass_context
def cleanup(ctx: click.Context) -> None:
    """Drop cache entries older than 30 days."""

    async def run() -> int:
        async with AnalysisStore.open(ctx.obj["db_path"]) as store:
            return await store.cleanup_old_data()

    removed = asyncio.run(run())
    click.echo(f"Removed {removed} stale cache entries")


if __name__ == "__main__":
    cli()
