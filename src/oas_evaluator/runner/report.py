"""Summaries and JSON export of test results."""

import json
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel

from oas_evaluator.parser.base import TestResult

TOP_PATHS = 10


class MethodStat(BaseModel):
    method: str
    count: int
    successful: int


class PathStat(BaseModel):
    path: str
    count: int
    avg_status: float


class RunStats(BaseModel):
    total: int
    successful: int
    failed: int
    success_rate: float
    by_method: list[MethodStat]
    top_paths: list[PathStat]


def success_rate(results: list[TestResult]) -> float:
    """Percentage of results with a 2xx status; 0.0 for an empty run."""
    if not results:
        return 0.0
    return sum(r.passed for r in results) / len(results) * 100


def success_rate_by_path(results: list[TestResult]) -> dict[str, float]:
    """Success rate per endpoint path, in first-seen order."""
    grouped: dict[str, list[TestResult]] = {}
    for r in results:
        grouped.setdefault(r.endpoint.path, []).append(r)
    return {path: success_rate(group) for path, group in grouped.items()}


def summarize(results: list[TestResult]) -> RunStats:
    successful = sum(r.passed for r in results)

    methods: dict[str, MethodStat] = {}
    for r in results:
        method = r.endpoint.method.upper()
        stat = methods.get(method) or MethodStat(method=method, count=0, successful=0)
        methods[method] = stat.model_copy(
            update={"count": stat.count + 1, "successful": stat.successful + int(r.passed)}
        )

    statuses: dict[str, list[int]] = {}
    for r in results:
        statuses.setdefault(r.endpoint.path, []).append(r.status)
    paths = [
        PathStat(path=path, count=len(codes), avg_status=sum(codes) / len(codes))
        for path, codes in statuses.items()
    ]
    # stable sort keeps first-seen order among equal counts
    paths.sort(key=lambda p: p.count, reverse=True)

    return RunStats(
        total=len(results),
        successful=successful,
        failed=len(results) - successful,
        success_rate=success_rate(results),
        by_method=list(methods.values()),
        top_paths=paths[:TOP_PATHS],
    )


def default_export_name(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    stamp = now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return f"api-test-results-{stamp}.json"


def export_results(results: list[TestResult], path: Path) -> Path:
    """Write results as a JSON list of wire-format records."""
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [r.to_wire() for r in results]
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def load_results(path: Path) -> list[TestResult]:
    """Read a file written by export_results."""
    records = json.loads(path.read_text(encoding="utf-8"))
    return [TestResult.model_validate(r) for r in records]
