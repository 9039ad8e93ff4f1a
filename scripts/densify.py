"""
scripts/densify.py
==================
Turn sparse borrowing-count responses into dense, ordered series.

The counts API only returns the years / months that actually had borrow
events.  A chart needs every slot on the axis, so we gap-fill:

    [{_id: 2021, count: 5}, {_id: 2023, count: 2}]
        →  2020:0  2021:5  2022:0  2023:2  2024:0  2025:0

Both densifiers are pure functions built on the same pandas recipe:
parse → de-duplicate → reindex onto the full domain with fill_value=0.

─────────────────────────────────────────────────────────────────────────────
R → Python translation guide
─────────────────────────────────────────────────────────────────────────────
  R                                   Python / pandas equivalent
  ─────────────────────────────────── ──────────────────────────────────────
  tidyr::complete(year = 2020:2025,   series.reindex(range(2020, 2026),
                  fill = list(n = 0))                fill_value=0)
  dplyr::distinct(.keep_all = TRUE)   df.drop_duplicates(keep="last")
  readr::parse_number()               pd.to_numeric(errors="coerce")
  stopifnot()                         assert condition, "message"
─────────────────────────────────────────────────────────────────────────────
"""

from collections.abc import Iterable

import numpy as np
import pandas as pd


# ─────────────────────────────────────────────────────────────────────────────
# Domains
# ─────────────────────────────────────────────────────────────────────────────
ANNUAL_FIRST_YEAR = 2020
ANNUAL_LAST_YEAR  = 2025
ANNUAL_YEARS      = range(ANNUAL_FIRST_YEAR, ANNUAL_LAST_YEAR + 1)
MONTHS            = range(1, 13)
MONTH_LABELS      = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
                     "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

# Wire field names, as the counts API sends them
KEY_COL   = "_id"
COUNT_COL = "count"


def empty_series() -> pd.DataFrame:
    """A zero-row DenseSeries, used as the state before the first fetch."""
    return pd.DataFrame({KEY_COL: pd.Series(dtype=int),
                         COUNT_COL: pd.Series(dtype=int)})


# =============================================================================
# Parsing
# =============================================================================

def to_sparse(records: Iterable[dict] | pd.DataFrame | None) -> pd.DataFrame:
    """
    Parse raw CountPoint records into a clean SparseSeries frame.

    Accepts the decoded JSON list straight from the API, or a DataFrame
    that already has ``_id`` / ``count`` columns (so a dense series can be
    fed back in).  Rows whose key or count can't be parsed are dropped, as
    are non-finite or non-integral keys and counts.  When a key repeats,
    the LAST row wins.  Records that aren't mappings raise ValueError.
    """
    if records is None:
        return empty_series()

    if isinstance(records, pd.DataFrame):
        # reindex(columns=...) adds any missing column as NaN
        df = records.reindex(columns=[KEY_COL, COUNT_COL])
    else:
        records = list(records)
        if not all(isinstance(r, dict) for r in records):
            raise ValueError("Count records must be JSON objects with _id and count")
        df = pd.DataFrame(records, columns=[KEY_COL, COUNT_COL])

    if df.empty:
        return empty_series()

    df = df.copy()
    df[KEY_COL]   = pd.to_numeric(df[KEY_COL], errors="coerce")
    df[COUNT_COL] = pd.to_numeric(df[COUNT_COL], errors="coerce")

    valid = pd.Series(True, index=df.index)
    for col in (KEY_COL, COUNT_COL):
        # isfinite() is False for NaN as well as ±inf
        valid &= np.isfinite(df[col]) & (df[col] == df[col].round())
    if not valid.all():
        print(f"[warn]  Dropping {int((~valid).sum())} unparseable count record(s)")
    df = df[valid]

    df = df.astype({KEY_COL: int, COUNT_COL: int})
    return df.drop_duplicates(subset=KEY_COL, keep="last").reset_index(drop=True)


# =============================================================================
# Densifiers
# =============================================================================

def densify(records, domain: Iterable[int]) -> pd.DataFrame:
    """
    Gap-fill ``records`` onto ``domain``: one row per key, ascending,
    count 0 where the key is missing.  Keys outside the domain vanish.
    """
    return _reindex(to_sparse(records), domain)


def _reindex(sparse: pd.DataFrame, domain: Iterable[int]) -> pd.DataFrame:
    domain = sorted(domain)
    counts = sparse.set_index(KEY_COL)[COUNT_COL]
    # R: tidyr::complete(key = domain, fill = list(count = 0))
    dense = counts.reindex(domain, fill_value=0)

    return (
        dense
        .rename_axis(KEY_COL)
        .reset_index()
        .astype({KEY_COL: int, COUNT_COL: int})
    )


def densify_annual(
    records,
    first_year: int = ANNUAL_FIRST_YEAR,
    last_year: int = ANNUAL_LAST_YEAR,
) -> pd.DataFrame:
    """Dense annual series for ``first_year..last_year`` (inclusive)."""
    return densify(records, range(first_year, last_year + 1))


def densify_monthly(records) -> pd.DataFrame:
    """
    Dense 12-row series for one year's monthly counts.

    Months outside 1–12 are ignored, never written into a slot.
    """
    sparse = to_sparse(records)
    out_of_range = sorted(set(sparse[KEY_COL]) - set(MONTHS))
    if out_of_range:
        print(f"[warn]  Ignoring out-of-range month key(s): {out_of_range}")
    return _reindex(sparse, MONTHS)


# =============================================================================
# Validation
# =============================================================================

def validate_dense(df: pd.DataFrame, domain: Iterable[int]) -> None:
    """
    Sanity-check a DenseSeries and print a one-block quality report.

    R equivalent: stopifnot() + testthat::expect_*()
    """
    domain = list(domain)
    keys   = df[KEY_COL].tolist()

    print(f"[validate] {len(df)} rows | keys {keys[:1]}…{keys[-1:]} | "
          f"total count {int(df[COUNT_COL].sum()):,}")

    assert len(df) == len(domain), f"Expected {len(domain)} rows, got {len(df)}"
    assert keys == sorted(domain), "Keys do not cover the domain in ascending order"
    assert df[KEY_COL].is_unique, "Found repeated keys"
    assert df[COUNT_COL].notna().all(), "Found null counts"
    assert pd.api.types.is_integer_dtype(df[COUNT_COL]), "Counts are not integers"
