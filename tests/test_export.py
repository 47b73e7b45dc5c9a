# tests/test_export.py
import json
import os
from datetime import datetime

import polars as pl
import pytest
from polars.testing import assert_frame_equal

from delivery_advisor.advisor import DeliveryAdvisor
from delivery_advisor.core.export import Exporter, options_table
from delivery_advisor.sources import readers

NOW = datetime(2025, 10, 15, 12, 0)


@pytest.fixture
def analysis(offline_client, canvas_project):
    return DeliveryAdvisor(novaposhta_client=offline_client).analyze_delivery([canvas_project], "Kyiv", now=NOW)


def test_options_table_has_one_row_per_option(analysis):
    table = options_table(analysis)

    assert table.height == 4
    assert table["Method"].to_list() == ["nova-poshta-warehouse", "nova-poshta-courier", "ukrposhta", "pickup"]
    assert table["Recommended"].to_list() == [True, False, False, False]
    assert table["Total_Cost"].to_list() == [574.0, 810.0, 148.5, 42.5]


def test_export_analysis_to_csv(tmp_path, analysis):
    """
    Integration test for the analysis export.

    Checks that the data file and the manifest are written and describe the same table.
    """
    # 1. Setup
    base_path = str(tmp_path / "out" / "analysis")
    exporter = Exporter({"output": {"path": base_path, "format": "csv"}})

    # 2. Execution
    written = exporter.export_analysis(analysis)

    # 3. Assertion
    assert written == [f"{base_path}.csv", f"{base_path}_manifest.json"]
    assert all(os.path.exists(path) for path in written)

    result = pl.read_csv(f"{base_path}.csv")
    assert result.shape == (4, 19)

    with open(f"{base_path}_manifest.json", 'r') as f:
        manifest = json.load(f)
    assert manifest["polars_version"] is not None
    assert manifest["dataset_shape"] == {"rows": 4, "columns": 19}
    assert manifest["recommended"] == "nova-poshta-warehouse"
    assert manifest["destination"] == "Kyiv"


def test_preview_writes_nothing(tmp_path, analysis):
    exporter = Exporter({"output": {"path": str(tmp_path / "analysis"), "format": "preview"}})

    assert exporter.export_analysis(analysis) == []
    assert list(tmp_path.iterdir()) == []


def test_all_but_xlsx_round_trips_through_readers(tmp_path):
    df = pl.DataFrame({"Route": ["kyiv-lviv-ukrposhta"], "Average_Time": [6.33], "On_Time_Rate": [66.67]})
    base_path = str(tmp_path / "stats")

    written = Exporter({"output": {"path": base_path, "format": "all_but_xlsx"}}).export_table(df)

    assert sorted(os.path.basename(path) for path in written) == [
        "stats.csv", "stats.json", "stats.parquet", "stats_manifest.json",
    ]
    for extension in (".csv", ".json", ".parquet"):
        assert_frame_equal(readers.read_table(base_path + extension), df)


def test_xlsx_export(tmp_path):
    df = pl.DataFrame({"Route": ["kyiv-odesa-pickup"], "Last_Updated": [datetime(2025, 7, 5, 9, 0)]})
    base_path = str(tmp_path / "stats")

    Exporter({"output": {"path": base_path, "format": "xlsx"}}).export_table(df)

    assert os.path.exists(f"{base_path}.xlsx")


def test_unsupported_format(tmp_path):
    exporter = Exporter({"output": {"path": str(tmp_path / "x"), "format": "db"}})

    with pytest.raises(ValueError, match="Unsupported output format"):
        exporter.export_table(pl.DataFrame({"a": [1]}))


def test_unsupported_input_file():
    with pytest.raises(ValueError, match="Unsupported file type"):
        readers.read_table("stats.txt")
