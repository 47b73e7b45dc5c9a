# tests/test_cli.py
import json
import logging
import os

from typer.testing import CliRunner

from delivery_advisor import config, domain
from delivery_advisor.main import app

runner = CliRunner()


def _projects_file(tmp_path):
    path = tmp_path / "order.json"
    path.write_text(json.dumps([
        {"id": "p1", "product_type": "canvas", "width": 40, "height": 60, "quantity": 1, "current_price": 800},
    ]))
    return str(path)


def test_analyze_writes_exports(tmp_path):
    base_path = str(tmp_path / "analysis")

    result = runner.invoke(app, [
        "analyze", _projects_file(tmp_path), "--destination", "Kyiv", "--budget", "low",
        "--output-path", base_path, "--output-format", "csv",
    ])

    assert result.exit_code == 0, result.output
    assert "Recommended:" in result.output
    assert "pickup" in result.output
    assert os.path.exists(f"{base_path}.csv")
    assert os.path.exists(f"{base_path}_manifest.json")


def test_analyze_unknown_city_exits_with_error(tmp_path):
    result = runner.invoke(app, ["analyze", _projects_file(tmp_path), "--destination", "Atlantis"])

    assert result.exit_code == 1
    assert "City Atlantis not found" in result.output


def test_analyze_rejects_bad_preference(tmp_path):
    result = runner.invoke(app, ["analyze", _projects_file(tmp_path), "--destination", "Kyiv", "--speed", "warp"])

    assert result.exit_code == 1


def test_history_generates_statistics(tmp_path):
    base_path = str(tmp_path / "history")

    result = runner.invoke(app, [
        "history", "--generate-rows", "200", "--seed", "5", "--output-path", base_path, "--output-format", "parquet",
    ])

    assert result.exit_code == 0, result.output
    assert os.path.exists(f"{base_path}.parquet")
    assert os.path.exists(f"{base_path}_records.parquet")


def test_cities_lists_builtin_destinations():
    result = runner.invoke(app, ["cities"])

    assert result.exit_code == 0
    assert "Lviv" in result.output
    assert "Одеса" in result.output


def test_pay_ranks_methods():
    result = runner.invoke(app, ["pay", "800"])

    assert result.exit_code == 0
    assert "Suggested:" in result.output
    assert "apple-pay" not in result.output


def test_analyze_with_cities_file(tmp_path):
    cities_path = tmp_path / "cities.json"
    cities_path.write_text(json.dumps([city for city in domain.CITIES if city["name"] != "Kyiv"], ensure_ascii=False), encoding="utf-8")

    result = runner.invoke(app, [
        "analyze", _projects_file(tmp_path), "--destination", "Odesa", "--cities-file", str(cities_path),
    ])
    missing = runner.invoke(app, [
        "analyze", _projects_file(tmp_path), "--destination", "Kyiv", "--cities-file", str(cities_path),
    ])

    assert result.exit_code == 0, result.output
    assert "Delivery to Odesa" in result.output
    assert missing.exit_code == 1
    assert "City Kyiv not found" in missing.output


def test_log_file_option(tmp_path):
    log_path = tmp_path / "logs" / "advisor.log"

    result = runner.invoke(app, ["--log-file", str(log_path), "analyze", _projects_file(tmp_path), "--destination", "Lviv"])

    assert result.exit_code == 0, result.output
    assert "Analyzing delivery" in log_path.read_text()

    for handler in config.logger.handlers[:]:
        if isinstance(handler, logging.FileHandler):
            handler.close()
            config.logger.removeHandler(handler)
