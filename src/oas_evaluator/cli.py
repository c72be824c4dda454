"""CLI entry point for oas-evaluator."""

import asyncio
import fnmatch
import json
from pathlib import Path
from urllib.parse import urlsplit

import click

from oas_evaluator.config import Settings
from oas_evaluator.errors import EvaluatorError
from oas_evaluator.log import setup_logging
from oas_evaluator.parser.base import Endpoint
from oas_evaluator.parser.detect import load_spec
from oas_evaluator.parser.openapi import normalize
from oas_evaluator.parser.schema import RefResolver
from oas_evaluator.runner.executor import build_headers, run_tests_sync
from oas_evaluator.runner.report import (
    default_export_name,
    export_results,
    load_results,
    success_rate,
    success_rate_by_path,
    summarize,
)
from oas_evaluator.runner.store import ResultStore


def _load(source: str) -> tuple[dict, list[Endpoint]]:
    try:
        doc = load_spec(source)
        return doc, normalize(doc)
    except EvaluatorError as e:
        raise click.ClickException(f"Error parsing OpenAPI specification: {e}") from e


def _filter_endpoints(endpoints: list[Endpoint], patterns: tuple[str, ...]) -> list[Endpoint]:
    """Keep endpoints matching any "METHOD /glob" or "/glob" pattern.

    Globs match the URL path of the endpoint, base path included.
    """
    if not patterns:
        return endpoints

    def matches(ep: Endpoint, pattern: str) -> bool:
        method, _, path_glob = pattern.strip().rpartition(" ")
        if method and method.lower() != ep.method:
            return False
        return fnmatch.fnmatchcase(urlsplit(ep.path).path or ep.path, path_glob)

    return [ep for ep in endpoints if any(matches(ep, p) for p in patterns)]


def _status_line(result) -> str:
    ep = result.endpoint
    mark = "PASS" if result.passed else "FAIL"
    return f"{mark} {result.status:>3} {ep.method.upper():<7} {ep.path} ({result.duration} ms)"


@click.group()
@click.option("-v", "--verbose", count=True, help="Log requests (-v) or everything (-vv).")
@click.pass_context
def main(ctx: click.Context, verbose: int):
    """OAS evaluator: run smoke tests against every endpoint of an OpenAPI/Swagger spec."""
    settings = Settings.from_env()
    if verbose:
        settings = settings.model_copy(update={"log_level": "DEBUG" if verbose > 1 else "INFO"})
    setup_logging(settings.log_level)
    ctx.obj = settings


@main.command()
@click.argument("spec")
@click.option("--json", "as_json", is_flag=True, help="Dump the normalized endpoints as JSON.")
def endpoints(spec: str, as_json: bool):
    """List the endpoints found in SPEC (file path or URL)."""
    _, found = _load(spec)
    if as_json:
        click.echo(json.dumps([ep.to_wire() for ep in found], indent=2, ensure_ascii=False))
        return
    for ep in found:
        flag = " [deprecated]" if ep.deprecated else ""
        click.echo(f"{ep.method.upper():<7} {ep.path}  {ep.summary}{flag}")
    click.echo(f"Found {len(found)} endpoints.")


@main.command()
@click.argument("spec")
@click.option("-H", "--header", "header_pairs", multiple=True, help='Header sent with every request, e.g. "Authorization: Bearer xyz".')
@click.option("-o", "--output", type=click.Path(path_type=Path), default=None, help="Write results JSON here (a directory gets a timestamped file).")
@click.option("--store-url", default=None, help="Result store base URL (default: OAS_EVALUATOR_STORE_URL).")
@click.option("--no-store", is_flag=True, help="Do not send results to the result store.")
@click.option("--timeout", type=float, default=None, help="Per-request timeout in seconds.")
@click.option("--resolve-refs", is_flag=True, help="Resolve local $ref schemas when building bodies.")
@click.option("--filter", "filters", multiple=True, help='Only test matching endpoints, e.g. "POST /pets" or "/pets/*".')
@click.pass_obj
def run(settings: Settings, spec: str, header_pairs: tuple[str, ...], output: Path | None,
        store_url: str | None, no_store: bool, timeout: float | None, resolve_refs: bool,
        filters: tuple[str, ...]):
    """Send one request per endpoint in SPEC and report the outcome."""
    doc, found = _load(spec)
    selected = _filter_endpoints(found, filters)
    if not selected:
        raise click.ClickException("No endpoints to test.")

    if timeout is not None:
        settings = settings.model_copy(update={"request_timeout": timeout})
    store = None
    base_url = store_url or settings.store_url
    if base_url and not no_store:
        store = ResultStore(base_url, timeout=settings.store_timeout)

    click.echo(f"Testing {len(selected)} endpoints...")
    results = run_tests_sync(
        selected,
        build_headers(header_pairs),
        settings=settings,
        store=store,
        resolver=RefResolver(doc) if resolve_refs else None,
    )

    for result in results:
        click.echo(_status_line(result))
    click.echo(f"Success rate: {success_rate(results):.1f}% ({sum(r.passed for r in results)}/{len(results)})")

    if output is not None:
        target = output / default_export_name() if output.is_dir() else output
        export_results(results, target)
        click.echo(f"Results saved to {target}")


@main.command()
@click.option("--store-url", default=None, help="Result store base URL (default: OAS_EVALUATOR_STORE_URL).")
@click.option("--json", "as_json", is_flag=True, help="Dump the stored records as JSON.")
@click.pass_obj
def history(settings: Settings, store_url: str | None, as_json: bool):
    """Show previously stored test results."""
    base_url = store_url or settings.store_url
    if not base_url:
        raise click.ClickException("No result store configured.")
    store = ResultStore(base_url, timeout=settings.store_timeout)
    try:
        records = asyncio.run(store.history())
    except EvaluatorError as e:
        raise click.ClickException(f"Failed to fetch test history: {e}") from e

    if as_json:
        click.echo(json.dumps([r.to_wire() for r in records], indent=2, ensure_ascii=False))
        return
    for r in records:
        click.echo(f"{r.timestamp}  {r.spec_title} {r.spec_version}  {_status_line(r)}")
    click.echo(f"{len(records)} stored results.")


@main.command()
@click.argument("results_path", type=click.Path(exists=True, path_type=Path))
def stats(results_path: Path):
    """Summarize an exported results file."""
    try:
        results = load_results(results_path)
    except ValueError as e:
        raise click.ClickException(f"Cannot read {results_path}: {e}") from e

    summary = summarize(results)
    click.echo(f"Total: {summary.total}  Passed: {summary.successful}  Failed: {summary.failed}")
    click.echo(f"Success rate: {summary.success_rate:.1f}%")
    click.echo("By method:")
    for m in summary.by_method:
        click.echo(f"  {m.method:<7} {m.successful}/{m.count}")
    click.echo("By path:")
    for path, rate in success_rate_by_path(results).items():
        click.echo(f"  {path}  {rate:.1f}%")
    click.echo("Top paths:")
    for p in summary.top_paths:
        click.echo(f"  {p.path}  count={p.count} avg_status={p.avg_status:.0f}")
