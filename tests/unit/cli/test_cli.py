"""
Unit tests for the cycleops command line interface.
"""

import logging
import os
from datetime import timedelta
from decimal import Decimal

import pytest
from click.testing import CliRunner

from cycleops.cli.main import cli
from cycleops.infrastructure.storage import Database, SqlRequestStore
from cycleops.logging import LoggingManager
from cycleops.models import ItemCategory, LineItem, RentalRequest, RepairRequest, StatusChange, TransitionEvent
from cycleops.utils import utc_now


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep CLI runs away from real configuration and restore logging afterwards."""
    for name in list(os.environ):
        if name.startswith("CYCLEOPS_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    root = logging.getLogger()
    level = root.level
    yield
    manager = LoggingManager()
    for handler in manager.handlers:
        root.removeHandler(handler)
        handler.close()
    manager.handlers.clear()
    root.setLevel(level)
    logging.getLogger("cycleops").setLevel(logging.NOTSET)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'cycleops.db'}"


@pytest.fixture
def config_file(tmp_path, database_url):
    path = tmp_path / "cycleops.toml"
    path.write_text(
        "[general.logging]\nlevel = \"WARNING\"\n\n"
        "[gateway]\nkey_id = \"rzp_test_key\"\nkey_secret = \"very-secret\"\n\n"
        f"[storage]\ndatabase_url = \"{database_url}\"\n"
    )
    return path


def _seed(database_url):
    """Store one stale repair, one stale unpaid rental and one fresh repair."""
    now = utc_now()
    database = Database(database_url)
    database.create_schema()
    store = SqlRequestStore(database)

    def history(status):
        return [StatusChange(None, status, TransitionEvent.SUBMIT, now - timedelta(hours=2))]

    repair_items = [LineItem("brake-tune", "Brake tune-up", Decimal("150"), 1, ItemCategory.REPAIR_SERVICES)]
    rental_items = [LineItem("city-bike", "City bike", Decimal("300"), 1, ItemCategory.RENTAL_BICYCLES)]
    common = dict(user_id="u-1", created_at=now - timedelta(hours=2), updated_at=now - timedelta(hours=2))

    store.create(
        RepairRequest(
            id="stale-repair", line_items=repair_items, mechanic_charge=Decimal("200"),
            gross_amount=Decimal("350"), net_amount=Decimal("350"), status="pending",
            expires_at=now - timedelta(minutes=5), history=history("pending"), **common,
        )
    )
    store.create(
        RentalRequest(
            id="stale-rental", line_items=rental_items, delivery_charge=Decimal("100"),
            gross_amount=Decimal("400"), net_amount=Decimal("400"), status="waiting_payment",
            expires_at=now - timedelta(minutes=1), history=history("waiting_payment"), **common,
        )
    )
    store.create(
        RepairRequest(
            id="fresh-repair", line_items=repair_items, mechanic_charge=Decimal("200"),
            gross_amount=Decimal("350"), net_amount=Decimal("350"), status="pending",
            expires_at=now + timedelta(minutes=10), history=history("pending"), **common,
        )
    )
    return database, store


@pytest.mark.unit
class TestSweepCommand:
    def test_single_sweep_expires_stale_requests(self, runner, config_file, database_url):
        """Test ``sweep --once`` expires elapsed holds and reports them."""
        database, store = _seed(database_url)

        result = runner.invoke(cli, ["--config", str(config_file), "sweep", "--once"])

        assert result.exit_code == 0, result.output
        assert "Expiry Sweep" in result.output
        assert "repair: 1 expired" in result.output
        assert "rental: 1 expired" in result.output
        assert store.get_by_id("stale-repair").status.value == "expired"
        assert store.get_by_id("stale-rental").status.value == "expired"
        assert store.get_by_id("fresh-repair").status.value == "pending"
        database.dispose()

    def test_database_url_from_environment(self, runner, tmp_path, monkeypatch):
        monkeypatch.setenv("CYCLEOPS_DATABASE_URL", f"sqlite:///{tmp_path / 'env.db'}")
        config_file = tmp_path / "empty.toml"
        config_file.write_text("")

        result = runner.invoke(cli, ["--config", str(config_file), "sweep", "--once"])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "env.db").exists()

    def test_unusable_database_exits_with_error(self, runner, tmp_path):
        config_file = tmp_path / "cycleops.toml"
        config_file.write_text("[storage]\ndatabase_url = \"nosuchdialect://nowhere\"\n")

        result = runner.invoke(cli, ["--config", str(config_file), "sweep", "--once"])

        assert result.exit_code == 1
        assert "Store or gateway unavailable" in result.output

    def test_interval_is_bounded(self, runner, config_file):
        result = runner.invoke(cli, ["--config", str(config_file), "sweep", "--interval", "0"])
        assert result.exit_code == 2


@pytest.mark.unit
class TestConfigCommand:
    def test_show_masks_the_secret(self, runner, config_file):
        """Test the gateway secret is never printed."""
        result = runner.invoke(cli, ["--config", str(config_file), "config", "--show"])

        assert result.exit_code == 0, result.output
        assert "rzp_test_key" in result.output
        assert "********" in result.output
        assert "very-secret" not in result.output

    def test_export_writes_effective_configuration(self, runner, config_file, tmp_path, monkeypatch):
        monkeypatch.setenv("CYCLEOPS_REPAIR_HOLD_MINUTES", "25")
        export = tmp_path / "effective.toml"

        result = runner.invoke(cli, ["--config", str(config_file), "config", "--export", str(export)])

        assert result.exit_code == 0, result.output
        assert "repair_minutes = 25" in export.read_text()

    def test_invalid_configuration_is_reported(self, runner, tmp_path):
        config_file = tmp_path / "cycleops.toml"
        config_file.write_text("[holds]\nrepair_minutes = -1\n")

        result = runner.invoke(cli, ["--config", str(config_file), "config", "--show"])

        assert result.exit_code == 1
        assert "Configuration validation failed" in result.output
