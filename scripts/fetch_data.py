"""
scripts/fetch_data.py
=====================
Fetch pre-aggregated book-borrowing counts from the library stats API and
gap-fill them into dense series.

Two endpoints, both returning a JSON list of {"_id": <key>, "count": <n>}:
  ANNUAL   — GET {base}/api/counts/annual          (_id = year)
  MONTHLY  — GET {base}/api/counts/monthly/<year>  (_id = month 1–12)

Every failure (connection refused, HTTP 4xx/5xx, body that isn't JSON,
JSON that isn't a list of count records) takes the same path: print an
[error] line and return None.  Nothing is retried and nothing is cached;
each call hits the server.

Usage:
    python scripts/fetch_data.py                       # localhost:3000, current year
    python scripts/fetch_data.py --year 2023
    python scripts/fetch_data.py --base-url http://stats.example.org

─────────────────────────────────────────────────────────────────────────────
R → Python translation guide
─────────────────────────────────────────────────────────────────────────────
  R                           Python / requests equivalent
  ─────────────────────────── ────────────────────────────────────────────
  httr2::request(url) |>      requests.get(url, timeout=...)
    req_perform()
  httr::stop_for_status()     resp.raise_for_status()
  jsonlite::fromJSON()        resp.json()
  tryCatch(expr, error=)      try / except requests.RequestException
─────────────────────────────────────────────────────────────────────────────
"""

import sys
import argparse
from datetime import date

import requests
import pandas as pd

from densify import (
    ANNUAL_YEARS,
    COUNT_COL,
    KEY_COL,
    MONTHS,
    densify_annual,
    densify_monthly,
    validate_dense,
)


# ─────────────────────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────────────────────
API_BASE_URL    = "http://localhost:3000"
ANNUAL_PATH     = "/api/counts/annual"
MONTHLY_PATH    = "/api/counts/monthly/{year}"
REQUEST_TIMEOUT = 30   # seconds

# Polite HTTP headers: always identify your client
HEADERS = {"User-Agent": "borrow-stats-viz/1.0", "Accept": "application/json"}


def annual_url(base_url: str = API_BASE_URL) -> str:
    return base_url.rstrip("/") + ANNUAL_PATH


def monthly_url(year: int, base_url: str = API_BASE_URL) -> str:
    return base_url.rstrip("/") + MONTHLY_PATH.format(year=int(year))


# =============================================================================
# HTTP
# =============================================================================

def fetch_json(url: str, session: requests.Session | None = None) -> list | None:
    """
    GET ``url`` and decode the JSON body.

    Returns None on any fetch error.  ``session`` may be a requests.Session
    (or anything with a compatible .get()); by default the module-level
    requests.get() is used.
    """
    http = session if session is not None else requests

    print(f"[fetch] GET {url}")
    try:
        resp = http.get(url, headers=HEADERS, timeout=REQUEST_TIMEOUT)
        # raise_for_status() throws an exception on 4xx/5xx HTTP errors
        resp.raise_for_status()
        # requests' JSONDecodeError subclasses RequestException
        return resp.json()
    except (requests.RequestException, ValueError) as e:
        print(f"[error] Fetch failed for {url}: {e}")
        return None


def densify_body(data, densifier, url: str) -> pd.DataFrame | None:
    """
    Run ``densifier`` on a decoded body, or return None if the body is the
    wrong shape (an error object, a list of scalars, ...).
    """
    if not isinstance(data, list):
        print(f"[error] Unexpected response from {url}: expected a list, got {type(data).__name__}")
        return None
    try:
        return densifier(data)
    except (ValueError, TypeError) as e:
        print(f"[error] Could not parse counts from {url}: {e}")
        return None


def fetch_annual_counts(
    base_url: str = API_BASE_URL,
    session: requests.Session | None = None,
) -> pd.DataFrame | None:
    """Dense annual series (2020–2025), or None if the fetch failed."""
    url  = annual_url(base_url)
    data = fetch_json(url, session=session)
    if data is None:
        return None
    return densify_body(data, densify_annual, url)


def fetch_monthly_counts(
    year: int,
    base_url: str = API_BASE_URL,
    session: requests.Session | None = None,
) -> pd.DataFrame | None:
    """Dense 12-month series for ``year``, or None if the fetch failed."""
    url  = monthly_url(year, base_url)
    data = fetch_json(url, session=session)
    if data is None:
        return None
    return densify_body(data, densify_monthly, url)


# =============================================================================
# MAIN
# =============================================================================

def print_series(title: str, df: pd.DataFrame) -> None:
    print(f"\n[info]  ── {title} ──")
    print(df.rename(columns={KEY_COL: "key", COUNT_COL: "count"}).to_string(index=False))


def main(base_url: str = API_BASE_URL, year: int | None = None) -> None:
    year = year if year is not None else date.today().year

    print("=" * 62)
    print("  Library Borrowing Statistics — Fetch & Gap-fill")
    print("=" * 62)

    annual = fetch_annual_counts(base_url)
    if annual is None:
        print(f"\n[error] Could not load annual counts from {base_url}.\n"
              f"        Is the stats server running?")
        sys.exit(1)
    print_series("Annual borrowings", annual)
    validate_dense(annual, ANNUAL_YEARS)

    monthly = fetch_monthly_counts(year, base_url)
    if monthly is None:
        print(f"\n[warn]  No monthly counts for {year}; showing annual only.")
        return
    print_series(f"Monthly borrowings for {year}", monthly)
    validate_dense(monthly, MONTHS)

    print(f"\n[done]  Run 'python scripts/visualize.py --year {year}' to draw the charts.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Fetch and gap-fill library borrowing counts.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--base-url",
        default=API_BASE_URL,
        help=f"Root URL of the stats server (default: {API_BASE_URL}).",
    )
    parser.add_argument(
        "--year",
        type=int,
        default=None,
        help="Year for the monthly breakdown (default: current year).",
    )
    args = parser.parse_args()
    main(base_url=args.base_url, year=args.year)
