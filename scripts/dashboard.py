"""
scripts/dashboard.py
====================
Presentation controller for the borrowing charts.

Owns the three pieces of chart state:
    annual_data    — dense annual series (bar chart)
    monthly_data   — dense 12-month series for selected_year (line chart)
    selected_year  — the year picked in the year selector

and is the only thing that writes them.  Fetches either run inline, or on a
concurrent.futures executor when one is supplied.

Stale responses: each fetch is stamped with a generation number when it is
issued.  If the year changes again before a monthly fetch completes, the
older response is discarded instead of overwriting the newer one.
"""

import threading
from concurrent.futures import Executor, Future
from datetime import date

import pandas as pd
import requests

from densify import KEY_COL, empty_series
from fetch_data import API_BASE_URL, fetch_annual_counts, fetch_monthly_counts


class BorrowingDashboard:
    def __init__(
        self,
        base_url: str = API_BASE_URL,
        session: requests.Session | None = None,
        executor: Executor | None = None,
        selected_year: int | None = None,
    ):
        self.base_url = base_url
        self.session  = session
        self.executor = executor

        self.annual_data: pd.DataFrame  = empty_series()
        self.monthly_data: pd.DataFrame = empty_series()
        self.selected_year = selected_year if selected_year is not None else date.today().year

        self._lock = threading.Lock()
        self._annual_generation  = 0
        self._monthly_generation = 0

    # ── Dispatch ─────────────────────────────────────────────────────────────

    def _dispatch(self, fn, *args) -> Future | bool:
        if self.executor is None:
            return fn(*args)
        return self.executor.submit(fn, *args)

    def _issue_annual(self) -> int:
        with self._lock:
            self._annual_generation += 1
            return self._annual_generation

    def _issue_monthly(self, year: int | None = None) -> tuple[int, int]:
        # Year and generation change together so a completion's year always
        # matches selected_year when its generation is current.
        with self._lock:
            if year is not None:
                self.selected_year = year
            self._monthly_generation += 1
            return self.selected_year, self._monthly_generation

    # ── Public transitions ───────────────────────────────────────────────────

    def refresh(self) -> list:
        """
        Fetch annual counts and the selected year's monthly counts.

        The two fetches are independent.  Returns their results: booleans
        (applied or not) when running inline, futures with an executor.
        """
        annual_gen  = self._issue_annual()
        year, monthly_gen = self._issue_monthly()
        return [
            self._dispatch(self._load_annual, annual_gen),
            self._dispatch(self._load_monthly, year, monthly_gen),
        ]

    def select_year(self, year: int) -> Future | bool:
        """Change the selected year and re-issue the monthly fetch."""
        year, generation = self._issue_monthly(int(year))
        return self._dispatch(self._load_monthly, year, generation)

    on_year_changed = select_year

    def year_options(self) -> list[int]:
        """Years offered by the year selector: whatever the annual series holds."""
        return self.annual_data[KEY_COL].astype(int).tolist()

    # ── Completion handlers ──────────────────────────────────────────────────

    def _load_annual(self, generation: int) -> bool:
        dense = fetch_annual_counts(self.base_url, session=self.session)
        if dense is None:
            print("[error] Error fetching annual data; keeping previous chart state")
            return False

        with self._lock:
            if generation != self._annual_generation:
                print("[skip]  Discarding superseded annual response")
                return False
            self.annual_data = dense
        return True

    def _load_monthly(self, year: int, generation: int) -> bool:
        dense = fetch_monthly_counts(year, self.base_url, session=self.session)
        if dense is None:
            print(f"[error] Error fetching monthly data for {year}; keeping previous chart state")
            return False

        with self._lock:
            if generation != self._monthly_generation:
                print(f"[skip]  Discarding superseded monthly response for {year}")
                return False
            self.monthly_data = dense
        return True
