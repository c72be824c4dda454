"""Spec document loading and dialect detection."""

from pathlib import Path

import httpx
import yaml

from oas_evaluator.errors import SpecLoadError, UnsupportedVersion

FETCH_TIMEOUT = 30.0


def load_spec(source: str | Path) -> dict:
    """Load a spec document from a local JSON/YAML file or an http(s) URL.

    JSON is a subset of YAML, so one safe_load covers both encodings.
    """
    if isinstance(source, str) and source.startswith(("http://", "https://")):
        text = _fetch(source)
    else:
        try:
            text = Path(source).read_text(encoding="utf-8")
        except OSError as e:
            raise SpecLoadError(f"Cannot read {source}: {e}") from e

    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise SpecLoadError(f"Cannot decode {source}: {e}") from e

    if not isinstance(doc, dict):
        raise SpecLoadError(f"{source} does not contain a JSON/YAML object")
    return doc


def _fetch(url: str) -> str:
    try:
        response = httpx.get(url, timeout=FETCH_TIMEOUT, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise SpecLoadError(f"Failed to fetch {url}: {e}") from e
    return response.text


def detect_dialect(doc: dict) -> str:
    """Return 'swagger2' or 'openapi3'.

    Raises UnsupportedVersion for anything else.
    """
    if not isinstance(doc, dict):
        raise UnsupportedVersion()
    if str(doc.get("swagger", "")).startswith("2"):
        return "swagger2"
    if str(doc.get("openapi", "")).startswith("3"):
        return "openapi3"
    raise UnsupportedVersion()
