# tests/test_history.py
from datetime import datetime

import polars as pl
import pytest
from polars.testing import assert_frame_equal

from delivery_advisor.core.history import RECORD_COLUMNS, RouteHistoryBuilder


def _records() -> pl.DataFrame:
    return pl.DataFrame({
        "Delivery_ID": ["DA1", "DA2", "DA3", "DA4"],
        "Pickup_DateTime": [
            datetime(2025, 1, 10, 9, 0),
            datetime(2025, 1, 20, 9, 0),
            datetime(2025, 7, 5, 9, 0),
            datetime(2025, 3, 1, 9, 0),
        ],
        "Destination": ["Lviv", "Lviv", "Lviv", "Odesa"],
        "Method": ["ukrposhta", "ukrposhta", "ukrposhta", "nova-poshta-warehouse"],
        "Promised_Days": [6, 6, 6, 2],
        "Transit_Days": [8, 6, 5, 2],
        "Damaged": [True, False, False, False],
        "Satisfaction": [1, 4, 5, 5],
    })


def test_transform_adds_route_month_and_status():
    """
    Unit test for the status rule: a delivery is "Delayed" only when its transit
    time exceeds the promised time.
    """
    result = RouteHistoryBuilder().transform(_records())

    expected = pl.DataFrame({
        "Route": ["kyiv-lviv-ukrposhta", "kyiv-lviv-ukrposhta", "kyiv-lviv-ukrposhta", "kyiv-odesa-nova-poshta-warehouse"],
        "Status": ["Delayed", "On-time", "On-time", "On-time"],
    })
    assert_frame_equal(result.select("Route", "Status"), expected)
    assert result["Month"].to_list() == [1, 1, 7, 3]


def test_transform_parses_text_timestamps():
    records = _records().with_columns(pl.col("Pickup_DateTime").dt.strftime("%Y-%m-%dT%H:%M:%S"))

    result = RouteHistoryBuilder().transform(records)

    assert result["Month"].to_list() == [1, 1, 7, 3]


def test_transform_rejects_incomplete_records():
    with pytest.raises(ValueError, match="Transit_Days"):
        RouteHistoryBuilder().transform(_records().drop("Transit_Days"))


def test_aggregate_per_route():
    builder = RouteHistoryBuilder()

    stats = builder.aggregate(builder.transform(_records()))

    assert stats["Route"].to_list() == ["kyiv-lviv-ukrposhta", "kyiv-odesa-nova-poshta-warehouse"]
    lviv = stats.row(0, named=True)
    assert lviv["Average_Time"] == pytest.approx(6.33)
    assert lviv["On_Time_Rate"] == pytest.approx(66.67)
    assert lviv["Damage_Rate"] == pytest.approx(33.33)
    assert lviv["Customer_Satisfaction"] == pytest.approx(3.33)
    assert lviv["Last_Updated"] == datetime(2025, 7, 5, 9, 0)


def test_seasonal_variations_by_month():
    builder = RouteHistoryBuilder()

    variations = builder.seasonal_variations(builder.transform(_records()))

    assert variations["kyiv-lviv-ukrposhta"] == {"1": 7.0, "7": 5.0}
    assert variations["kyiv-odesa-nova-poshta-warehouse"] == {"3": 2.0}


def test_build_returns_route_history():
    history = RouteHistoryBuilder().build(_records())

    route = history["kyiv-lviv-ukrposhta"]
    assert route.on_time_rate == pytest.approx(66.67)
    assert route.seasonal_variations == {"1": 7.0, "7": 5.0}
    assert RouteHistoryBuilder().build(_records().clear()) == {}


def test_generated_records_are_consistent():
    records = RouteHistoryBuilder(seed=42).generate_records(500)

    assert records.height == 500
    assert records.columns == RECORD_COLUMNS
    assert records["Delivery_ID"].n_unique() == 500
    assert (records["Transit_Days"] >= records["Promised_Days"]).all()
    pickup_destinations = set(records.filter(pl.col("Method") == "pickup")["Destination"].to_list())
    assert pickup_destinations <= {"Kyiv"}


def test_generation_is_reproducible_with_a_seed():
    first = RouteHistoryBuilder(seed=7).generate_records(200)
    second = RouteHistoryBuilder(seed=7).generate_records(200)

    assert_frame_equal(first.drop("Pickup_DateTime"), second.drop("Pickup_DateTime"))


def test_load_raw_records_from_csv(tmp_path):
    path = tmp_path / "records.csv"
    _records().write_csv(path)

    history = RouteHistoryBuilder().load(str(path))

    assert set(history) == {"kyiv-lviv-ukrposhta", "kyiv-odesa-nova-poshta-warehouse"}
    assert history["kyiv-lviv-ukrposhta"].damage_rate == pytest.approx(33.33)


def test_load_aggregated_statistics_from_parquet(tmp_path):
    builder = RouteHistoryBuilder()
    path = tmp_path / "stats.parquet"
    builder.aggregate(builder.transform(_records())).write_parquet(path)

    history = builder.load(str(path))

    assert history["kyiv-odesa-nova-poshta-warehouse"].average_time == 2.0
    assert history["kyiv-odesa-nova-poshta-warehouse"].seasonal_variations == {}


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        RouteHistoryBuilder().load(str(tmp_path / "missing.csv"))
