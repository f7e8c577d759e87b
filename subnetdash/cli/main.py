#!/usr/bin/env python3
"""
subnetdash CLI - Subset winners analysis for the subnet dashboard

Views over the live summary table (or a saved JSON snapshot):
- subnetdash matrix : UpSet-style subset winners matrix
- subnetdash ledger : Subset winners ledger (optionally exported as CSV)
- subnetdash points : Points by subset size, stacked by winner
- subnetdash envs   : Inferred environments and their coverage
- subnetdash watch  : Poll the endpoints and re-render a view on every refresh
"""

import sys
import asyncio
import click

from subnetdash.core.setup import setup_logging, logger
from subnetdash.src.subsets.config import SubsetConfig
from subnetdash.utils.errors import SubnetDashError


def _top_m_callback(ctx, param, value):
    return SubsetConfig.clamp_top_m(value) if value is not None else None


def analysis_options(func):
    """Options shared by every view command."""
    func = click.option(
        "--input", "input_path",
        type=click.Path(exists=True, dir_okay=False),
        default=None,
        help="Analyze a saved summary/miners JSON file instead of fetching",
    )(func)
    func = click.option(
        "--metric",
        type=click.Choice(SubsetConfig.BAR_METRICS),
        default=SubsetConfig.DEFAULT_BAR_METRIC,
        show_default=True,
        help="Bar metric: winner points, winner weight, or winner's subset score sum",
    )(func)
    func = click.option(
        "--top", "top_m",
        type=int,
        default=SubsetConfig.DEFAULT_TOP_M,
        show_default=True,
        callback=_top_m_callback,
        help=f"Subsets shown before the rest is folded into 'other' ({SubsetConfig.TOP_M_MIN}-{SubsetConfig.TOP_M_MAX})",
    )(func)
    func = click.option("--primary-url", default=None, help="Override the live miners endpoint")(func)
    func = click.option("--fallback-url", default=None, help="Override the fallback summary endpoint")(func)
    return func


def _run(coro):
    try:
        return asyncio.run(coro)
    except SubnetDashError as e:
        logger.error(f"{e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.group()
@click.option(
    "-v", "--verbosity",
    count=True,
    help="Increase logging verbosity (-v=INFO, -vv=DEBUG, -vvv=TRACE)"
)
def cli(verbosity):
    """
    subnetdash - Subset winners analysis over the subnet summary table.

    Use -v, -vv, or -vvv for different logging levels.
    """
    setup_logging(min(verbosity, 3))


def _view_command(view: str, help_text: str):
    @cli.command(name=view, help=help_text)
    @analysis_options
    def command(input_path, metric, top_m, primary_url, fallback_url):
        from subnetdash.src.subsets.main import run_once

        _run(run_once(
            view,
            metric=metric,
            top_m=top_m,
            input_path=input_path,
            primary_url=primary_url,
            fallback_url=fallback_url,
        ))

    return command


matrix = _view_command("matrix", "Show the UpSet-style subset winners matrix.")
points = _view_command("points", "Show winner points by subset size.")
envs = _view_command("envs", "Show inferred environments and per-environment coverage.")


@cli.command()
@analysis_options
@click.option("--csv", "csv_path", type=click.Path(dir_okay=False, writable=True), default=None,
              help=f"Also export the ledger as CSV (e.g. {SubsetConfig.LEDGER_CSV_FILENAME})")
def ledger(input_path, metric, top_m, primary_url, fallback_url, csv_path):
    """Show the subset winners ledger."""
    from subnetdash.src.subsets.main import run_once

    _run(run_once(
        "ledger",
        metric=metric,
        top_m=top_m,
        input_path=input_path,
        csv_path=csv_path,
        primary_url=primary_url,
        fallback_url=fallback_url,
    ))


@cli.command()
@click.option("--view", type=click.Choice(["matrix", "ledger", "points", "envs"]), default="matrix", show_default=True)
@click.option("--metric", type=click.Choice(SubsetConfig.BAR_METRICS), default=SubsetConfig.DEFAULT_BAR_METRIC, show_default=True)
@click.option("--top", "top_m", type=int, default=SubsetConfig.DEFAULT_TOP_M, show_default=True, callback=_top_m_callback)
@click.option("--interval", type=float, default=None, help="Seconds between refreshes (default: SUBNETDASH_POLL_SECONDS or 30)")
@click.option("--iterations", type=int, default=None, help="Stop after N snapshots (default: run until interrupted)")
@click.option("--primary-url", default=None, help="Override the live miners endpoint")
@click.option("--fallback-url", default=None, help="Override the fallback summary endpoint")
def watch(view, metric, top_m, interval, iterations, primary_url, fallback_url):
    """Poll the summary endpoints and re-render a view on every refresh."""
    from subnetdash.src.subsets.main import run_watch

    try:
        _run(run_watch(
            view,
            metric=metric,
            top_m=top_m,
            interval_seconds=interval,
            iterations=iterations,
            primary_url=primary_url,
            fallback_url=fallback_url,
        ))
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")


def main():
    """Main entry point"""
    cli()


if __name__ == "__main__":
    main()
