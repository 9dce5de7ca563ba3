"""Tests for demo data seeding."""

from unittest.mock import patch

from coffeeos.scripts.seed import main
from coffeeos.services.context import BranchContext
from coffeeos.services.menu_service import MenuService
from coffeeos.services.order_lifecycle import OrderLifecycleController
from coffeeos.services.seed import MENU_ITEMS, STAFF, TABLES, seed_demo_data
from coffeeos.services.table_service import TableService


class TestSeedDemoData:
    def test_creates_cafe_without_orders(self, store):
        summary = seed_demo_data(store, sample_orders=0)

        assert store.get(f"tenants/{summary.tenant_id}").get("name") == "The Cozy Bean Corp."
        assert store.get(f"branches/{summary.branch_id}").get("tenantId") == summary.tenant_id
        assert len(summary.table_ids) == len(TABLES)
        assert len(summary.user_ids) == len(STAFF)
        items = MenuService(store).list_menu_items(summary.menu_id, include_unavailable=True)
        assert len(items) == len(MENU_ITEMS)
        assert summary.order_ids == []

    def test_sample_orders_keep_tables_consistent(self, store):
        summary = seed_demo_data(store, sample_orders=3, seed=7)
        context = BranchContext(tenant_id=summary.tenant_id, branch_id=summary.branch_id)

        assert len(summary.order_ids) == 3
        assert len(summary.paid_order_ids) == 2
        assert OrderLifecycleController(store).check_table_consistency(context) == []
        stats = TableService(store).get_table_stats(context)
        assert stats.by_status["occupied"] == 1
        assert stats.by_status["cleaning"] == 2

    def test_summary_dict(self, store):
        summary = seed_demo_data(store, tenant_name="Urban Grind", sample_orders=0)
        data = summary.to_dict()
        assert data["tables"] == len(TABLES)
        assert data["orders"] == 0


class TestSeedCommand:
    def test_main_seeds_configured_store(self, store, capsys):
        with patch("coffeeos.scripts.seed.build_store", return_value=store):
            exit_code = main(["--tenant-name", "Urban Grind", "--orders", "1", "--seed", "1"])

        assert exit_code == 0
        assert "Seed complete!" in capsys.readouterr().out
        assert [s.get("name") for s in store.list_collection("tenants")] == ["Urban Grind"]
