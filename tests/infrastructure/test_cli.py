"""Smoke tests for the click command line over a temporary data directory."""

import json

import pytest
from click.testing import CliRunner

from storefront.infrastructure import bootstrap
from storefront.infrastructure.cli.main import cli


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setenv("STOREFRONT_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("STOREFRONT_LOG_LEVEL", "ERROR")
    monkeypatch.delenv("STOREFRONT_BLOB_BUCKET", raising=False)
    for cached in (bootstrap.settings, bootstrap.collection_store, bootstrap.stock_ledger):
        cached.cache_clear()
    yield CliRunner()
    for cached in (bootstrap.settings, bootstrap.collection_store, bootstrap.stock_ledger):
        cached.cache_clear()


def _first_product(runner) -> dict:
    result = runner.invoke(cli, ["db", "dump", "--collection", "products"])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)["products"][0]


def test_seed_then_show_inventory(runner):
    result = runner.invoke(cli, ["db", "seed"])
    assert result.exit_code == 0, result.output
    assert "products" in result.output

    result = runner.invoke(cli, ["inventory", "show"])
    assert result.exit_code == 0, result.output
    assert "Evening dress" in result.output


def test_stock_decrease_refused_when_short(runner):
    runner.invoke(cli, ["db", "seed"])
    product = _first_product(runner)

    result = runner.invoke(
        cli, ["stock", "decrease", "--product", product["id"], "--quantity", "999"]
    )

    assert result.exit_code != 0
    assert "Insufficient stock" in result.output


def test_stock_increase_and_show(runner):
    runner.invoke(cli, ["db", "seed"])
    product = _first_product(runner)

    result = runner.invoke(
        cli,
        ["stock", "increase", "--product", product["id"], "--quantity", "2", "--reason", "return"],
    )
    assert result.exit_code == 0, result.output
    assert f"is now {product['stock'] + 2}" in result.output

    result = runner.invoke(cli, ["stock", "show", "--product", product["id"]])
    assert result.exit_code == 0, result.output
    assert "return" in result.output


def test_migrate_requires_object_storage(runner):
    result = runner.invoke(cli, ["db", "migrate"])
    assert result.exit_code != 0
    assert "Object storage is not configured" in result.output


def test_unknown_coupon_is_reported(runner):
    result = runner.invoke(cli, ["coupon", "validate", "--code", "NOPE", "--subtotal", "1000"])
    assert result.exit_code != 0
    assert "not found" in result.output
