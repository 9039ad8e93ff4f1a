"""
Tests for chart models and rendering — scripts/visualize.py

Rendering tests write real PNGs into tmp_path and check them with Pillow.
"""
import pytest
from PIL import Image

import visualize
from densify import densify_annual, densify_monthly, empty_series


@pytest.fixture
def annual():
    return densify_annual([{"_id": 2021, "count": 5}, {"_id": 2023, "count": 2}])


@pytest.fixture
def monthly():
    return densify_monthly([{"_id": 3, "count": 7}, {"_id": 11, "count": 1200}])


class TestChartModels:
    def test_annual_model(self, annual):
        model = visualize.annual_chart_model(annual)
        assert model["labels"] == [2020, 2021, 2022, 2023, 2024, 2025]
        assert model["datasets"][0]["label"] == "Books Borrowed"
        assert model["datasets"][0]["data"] == [0, 5, 0, 2, 0, 0]
        assert model["title"] == "Book Borrowing Statistics"

    def test_monthly_model(self, monthly):
        model = visualize.monthly_chart_model(monthly)
        assert model["labels"][0] == "Jan"
        assert model["labels"][-1] == "Dec"
        data = model["datasets"][0]["data"]
        assert len(data) == 12
        assert data[2] == 7
        assert data[10] == 1200

    def test_monthly_model_before_first_fetch(self):
        model = visualize.monthly_chart_model(empty_series())
        assert model["datasets"][0]["data"] == [0] * 12


class TestFormatting:
    def test_counts_fmt(self):
        assert visualize.counts_fmt(1200, 0) == "1,200"
        assert visualize.counts_fmt(0, 0) == "0"


class TestRendering:
    def test_annual_chart_png(self, annual, tmp_path):
        path = visualize.create_annual_chart(annual, tmp_path / "annual.png")
        assert path.exists()
        assert Image.open(path).size == (visualize.PX, visualize.PX)

    def test_monthly_chart_png(self, monthly, tmp_path):
        path = visualize.create_monthly_chart(monthly, 2024, tmp_path / "sub" / "m.png")
        assert path.exists()
        assert Image.open(path).size == (visualize.PX, visualize.PX)

    def test_all_zero_series_still_renders(self, tmp_path):
        path = visualize.create_annual_chart(densify_annual([]), tmp_path / "zero.png")
        assert path.exists()


class TestMain:
    def test_writes_both_charts(self, fake_session, monkeypatch, tmp_path):
        session = fake_session({
            "/annual": [{"_id": 2024, "count": 9}],
            "/monthly/2024": [{"_id": 6, "count": 9}],
        })
        real = visualize.BorrowingDashboard
        monkeypatch.setattr(
            visualize, "BorrowingDashboard",
            lambda **kw: real(session=session, **kw),
        )
        visualize.main(base_url="http://x", year=2024, output_dir=tmp_path)
        assert (tmp_path / "annual_borrowings.png").exists()
        assert (tmp_path / "monthly_borrowings_2024.png").exists()

    def test_exits_without_annual_data(self, fake_session, monkeypatch, tmp_path):
        session = fake_session({})
        real = visualize.BorrowingDashboard
        monkeypatch.setattr(
            visualize, "BorrowingDashboard",
            lambda **kw: real(session=session, **kw),
        )
        with pytest.raises(SystemExit):
            visualize.main(base_url="http://x", year=2024, output_dir=tmp_path)
        assert not list(tmp_path.iterdir())
