"""Tests for cutting_kernel.domain.values and the piece expander."""

import math
from datetime import UTC, datetime
from uuid import uuid4

import pytest

from cutting_kernel.domain.pieces import expand_demand_lines, expand_width_only, normalize_pieces
from cutting_kernel.domain.values import (
    DEFAULT_ALLOWANCE_MM,
    DEFAULT_KERF_MM,
    DEFAULT_MIN_REMNANT_MM,
    DemandLine,
    InventoryRow,
    PlanParams,
    PlanRecord,
    PlanResult,
    PlanState,
    PlanStatus,
    to_non_negative_int,
)
from cutting_kernel.exceptions import InvalidInventoryRowError


class TestToNonNegativeInt:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (10, 10),
            (10.4, 10),
            (10.5, 11),
            (2.5, 3),
            ("7", 7),
            (-3, 0),
            (-0.4, 0),
            (math.nan, 0),
            (math.inf, 0),
            (None, 0),
            ("abc", 0),
        ],
    )
    def test_rounds_half_up_and_clamps(self, value, expected):
        assert to_non_negative_int(value) == expected


class TestPlanParams:
    def test_defaults(self):
        params = PlanParams()

        assert params.kerf_mm == DEFAULT_KERF_MM == 3
        assert params.allowance_mm == DEFAULT_ALLOWANCE_MM == 1
        assert params.min_remnant_mm == DEFAULT_MIN_REMNANT_MM == 100

    def test_merge_camel_case_patch(self):
        params = PlanParams.merge({"kerfMm": 0, "minRemnantMm": 300})

        assert params == PlanParams(kerf_mm=0, allowance_mm=1, min_remnant_mm=300)

    def test_merge_snake_case_patch_over_custom_defaults(self):
        defaults = PlanParams(kerf_mm=5, allowance_mm=2, min_remnant_mm=50)
        params = PlanParams.merge({"allowance_mm": 0}, defaults=defaults)

        assert params == PlanParams(kerf_mm=5, allowance_mm=0, min_remnant_mm=50)

    def test_merge_ignores_none_values(self):
        assert PlanParams.merge({"kerfMm": None}) == PlanParams()

    def test_merge_without_patch_returns_defaults(self):
        assert PlanParams.merge(None) == PlanParams()

    @pytest.mark.parametrize("field", ["kerf_mm", "allowance_mm", "min_remnant_mm"])
    def test_negative_values_rejected(self, field):
        with pytest.raises(ValueError, match=field):
            PlanParams(**{field: -1})

    def test_non_integer_rejected(self):
        with pytest.raises(ValueError, match="integer"):
            PlanParams(kerf_mm=1.5)

    def test_wire_shape(self):
        assert PlanParams().to_dict() == {"kerfMm": 3, "allowanceMm": 1, "minRemnantMm": 100}


class TestInventoryRow:
    def test_zero_qty_allowed(self):
        row = InventoryRow(id=1, material_class="Komarnici", length_mm=3000, qty=0)

        assert row.to_dict() == {
            "id": 1,
            "inventoryClass": "Komarnici",
            "lengthMm": 3000,
            "qty": 0,
        }

    def test_negative_qty_rejected(self):
        with pytest.raises(InvalidInventoryRowError) as exc_info:
            InventoryRow(id=1, material_class="Komarnici", length_mm=3000, qty=-1)

        assert exc_info.value.field == "qty"
        assert exc_info.value.code == "INVALID_INVENTORY_ROW"

    def test_non_positive_length_rejected(self):
        with pytest.raises(InvalidInventoryRowError):
            InventoryRow(id=1, material_class="Komarnici", length_mm=0, qty=1)


class TestPieceExpander:
    def test_height_width_pairs_four_per_unit(self):
        pieces = expand_demand_lines([DemandLine(1200, 800, 2)])

        assert pieces == [1200, 800] * 4

    def test_lines_expand_in_order(self):
        pieces = expand_demand_lines([DemandLine(1000, 500, 1), DemandLine(300, 200, 1)])

        assert pieces == [1000, 500, 1000, 500, 300, 200, 300, 200]

    def test_fractional_values_round_half_up(self):
        assert expand_demand_lines([DemandLine(999.5, 400.4, 0.6)]) == [1000, 400, 1000, 400]

    def test_non_positive_dimension_dropped(self):
        assert expand_demand_lines([DemandLine(0, 700, 1)]) == [700, 700]

    def test_non_finite_quantity_yields_nothing(self):
        assert expand_demand_lines([DemandLine(1000, 700, math.inf)]) == []

    def test_width_only_two_per_unit(self):
        assert expand_width_only([DemandLine(1200, 650, 3)]) == [650] * 6

    def test_normalize_flat_pieces(self):
        assert normalize_pieces([100.4, 0, -20, math.nan, 250.5]) == [100, 251]

    def test_demand_line_wire_shape(self):
        line = DemandLine(1200, 800, 2)

        assert DemandLine.from_dict(line.to_dict()) == line


class TestPlanRecord:
    def test_is_committed(self):
        record = PlanRecord(
            id=uuid4(),
            state=PlanState.PLANNED,
            material_class="Komarnici",
            params=PlanParams(),
            demand_lines=(),
            pieces=(),
            result=PlanResult(status=PlanStatus.SUCCESS),
            created_at=datetime(2024, 1, 1, tzinfo=UTC),
        )

        assert not record.is_committed
        assert record.committed_at is None
