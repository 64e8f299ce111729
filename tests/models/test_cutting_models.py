"""
ORM model and engine tests: table constraints, DTO conversion and
session_scope transaction handling.
"""

from datetime import UTC, datetime
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from cutting_kernel.db.engine import get_engine, get_session, session_scope
from cutting_kernel.domain.values import InventoryRow
from cutting_kernel.models.inventory import InventoryRowModel
from cutting_kernel.models.plan import CutPlanModel
from cutting_modules.order_queue.orm import OrderEntryModel


def _row_count(session) -> int:
    return session.scalar(select(func.count()).select_from(InventoryRowModel))


class TestInventoryRowModel:
    def test_to_dto(self, session):
        model = InventoryRowModel(material_class="Komarnici", length_mm=3000, qty=4)
        session.add(model)
        session.flush()

        assert model.to_dto() == InventoryRow(
            id=model.id, material_class="Komarnici", length_mm=3000, qty=4
        )
        assert "3000" in repr(model)

    def test_negative_qty_rejected_by_database(self, session):
        session.add(InventoryRowModel(material_class="Komarnici", length_mm=3000, qty=-1))

        with pytest.raises(IntegrityError):
            session.flush()

    def test_class_and_length_unique(self, session):
        session.add(InventoryRowModel(material_class="Komarnici", length_mm=3000, qty=1))
        session.flush()
        session.add(InventoryRowModel(material_class="Komarnici", length_mm=3000, qty=2))

        with pytest.raises(IntegrityError):
            session.flush()


class TestCutPlanModel:
    def test_unknown_status_rejected(self, session):
        session.add(
            CutPlanModel(
                id=uuid4(),
                status="DRAFT",
                material_class="Komarnici",
                width_only=False,
                params_json={},
                demand_json=[],
                pieces_json=[],
                result_json={},
                created_at=datetime(2024, 1, 1, tzinfo=UTC),
            )
        )

        with pytest.raises(IntegrityError):
            session.flush()


class TestOrderEntryModel:
    def test_non_positive_width_rejected(self, session):
        session.add(
            OrderEntryModel(
                id=uuid4(),
                material_class="Komarnici",
                height_mm=None,
                width_mm=0,
                qty=1,
                width_only=False,
                derived_from_width=False,
                status="PENDING",
                created_at=datetime(2024, 1, 1, tzinfo=UTC),
                accepted_plan_ids=[],
            )
        )

        with pytest.raises(IntegrityError):
            session.flush()


class TestSessionScope:
    def test_commits_on_exit(self, sqlite_engine):
        with session_scope() as session:
            session.add(InventoryRowModel(material_class="Komarnici", length_mm=5000, qty=1))

        check = get_session()
        try:
            assert _row_count(check) == 1
        finally:
            check.close()

    def test_rolls_back_on_error(self, sqlite_engine, captured_logs):
        with pytest.raises(RuntimeError):
            with session_scope() as session:
                session.add(
                    InventoryRowModel(material_class="Komarnici", length_mm=5000, qty=1)
                )
                session.flush()
                raise RuntimeError("abort")

        check = get_session()
        try:
            assert _row_count(check) == 0
        finally:
            check.close()
        assert any(r["message"] == "transaction_rolled_back" for r in captured_logs())

    def test_engine_is_sqlite(self, sqlite_engine):
        assert get_engine() is sqlite_engine
        assert sqlite_engine.dialect.name == "sqlite"
