"""Tests for region allocation and witness bookkeeping."""

import pytest

from constraints.errors import AssignmentError
from constraints.system import ConstraintSystem
from primitives.field import FF
from protocol.data import WitnessData
from witness.layouter import Layouter


def _layouter(k: int = 4):
    meta = ConstraintSystem()
    a = meta.advice_column()
    b = meta.advice_column()
    f = meta.fixed_column()
    q = meta.selector()
    table = meta.lookup_table_column()
    data = WitnessData.empty(meta, k)
    return Layouter(meta, data), meta, data, (a, b, f, q, table)


class TestRegions:

    def test_regions_are_sequential(self) -> None:
        """Each region starts where the previous one ended."""
        layouter, _, data, (a, b, _, _, _) = _layouter()
        with layouter.region("first") as region:
            region.assign_advice("a", a, 0, 1)
            region.assign_advice("a", a, 2, 3)
        with layouter.region("second") as region:
            cell = region.assign_advice("b", b, 0, 4)
        assert [(r.name, r.start, r.height) for r in data.regions] == [("first", 0, 3), ("second", 3, 1)]
        assert cell.row == 3
        assert data.value(b, 3) == FF(4)

    def test_assign_region_returns_result(self) -> None:
        layouter, _, data, (a, _, _, q, _) = _layouter()

        def assignment(region):
            q.enable(region, 0)
            return region.assign_advice("a", a, 0, 7)

        cell = layouter.assign_region("r", assignment)
        assert cell.value == FF(7)
        assert data.is_enabled(q, 0)
        assert data.is_assigned(a, 0)

    def test_double_write_rejected(self) -> None:
        layouter, _, _, (a, _, _, _, _) = _layouter()
        with pytest.raises(AssignmentError):
            with layouter.region("r") as region:
                region.assign_advice("a", a, 0, 1)
                region.assign_advice("a again", a, 0, 1)

    def test_failed_region_commits_nothing(self) -> None:
        layouter, _, data, (a, b, _, q, _) = _layouter()
        with pytest.raises(AssignmentError):
            with layouter.region("bad") as region:
                q.enable(region, 0)
                region.assign_advice("a", a, 0, 1)
                region.assign_advice("b", b, 0, 2)
                region.assign_advice("b", b, 0, 2)
        assert data.regions == []
        assert not data.is_assigned(a, 0)
        assert not data.is_enabled(q, 0)
        # The cursor did not move
        with layouter.region("good") as region:
            assert region.assign_advice("a", a, 0, 1).row == 0

    def test_nested_region_rejected(self) -> None:
        layouter, _, data, (a, b, _, _, _) = _layouter()
        with pytest.raises(AssignmentError, match="inside region 'outer'"):
            with layouter.region("outer") as outer:
                outer.assign_advice("a", a, 0, 1)
                outer.assign_advice("a", a, 1, 9)
                with layouter.namespace("chip").region("inner") as inner:
                    inner.assign_advice("b", b, 0, 2)
        assert data.regions == []
        assert data.cells() == []
        # Both regions were released, so the next one opens normally
        with layouter.region("after") as region:
            assert region.assign_advice("a", a, 0, 3).row == 0

    def test_commit_writes_all_or_nothing(self) -> None:
        """A cell written behind the region's back fails the commit without leaving earlier cells."""
        layouter, _, data, (a, b, _, q, _) = _layouter()
        with pytest.raises(AssignmentError, match="assigned elsewhere"):
            with layouter.region("r") as region:
                q.enable(region, 0)
                region.assign_advice("a", a, 0, 1)
                region.assign_advice("b", b, 1, 2)
                data.write(b, 1, 5)
        assert data.cells() == [("advice", 1, 1, 5)]
        assert not data.is_enabled(q, 0)
        assert data.regions == []

    def test_closed_region_rejected(self) -> None:
        layouter, _, _, (a, _, _, _, _) = _layouter()
        with layouter.region("r") as region:
            pass
        with pytest.raises(AssignmentError, match="closed"):
            region.assign_advice("a", a, 0, 1)

    def test_offset_outside_circuit_rejected(self) -> None:
        layouter, _, _, (a, _, _, _, _) = _layouter(k=2)
        with pytest.raises(AssignmentError):
            with layouter.region("r") as region:
                region.assign_advice("a", a, 4, 1)
        with pytest.raises(AssignmentError):
            with layouter.region("r") as region:
                region.assign_advice("a", a, -1, 1)

    def test_column_kind_checked(self) -> None:
        layouter, _, _, (a, _, f, _, table) = _layouter()
        with pytest.raises(AssignmentError):
            with layouter.region("r") as region:
                region.assign_advice("f", f, 0, 1)
        with pytest.raises(AssignmentError):
            with layouter.region("r") as region:
                region.assign_fixed("a", a, 0, 1)
        with pytest.raises(AssignmentError, match="assign_table"):
            with layouter.region("r") as region:
                region.assign_fixed("t", table.column, 0, 1)

    def test_namespace_labels_regions(self) -> None:
        layouter, _, data, (a, _, _, _, _) = _layouter()
        with layouter.namespace("chip").region("row") as region:
            cell = region.assign_advice("a", a, 0, 1)
        assert data.regions[0].name == "chip/row"
        assert cell.name == "chip/a"


class TestTables:

    def _load(self, layouter, table, values):
        def assignment(t):
            for offset, value in enumerate(values):
                t.assign_cell("value", table, offset, value)
        layouter.assign_table("table", assignment)

    def test_table_starts_at_row_zero(self) -> None:
        layouter, _, data, (_, _, _, _, table) = _layouter()
        self._load(layouter, table, [5, 6, 7])
        assert [int(data.value(table.column, r)) for r in range(3)] == [5, 6, 7]
        assert data.regions == []

    def test_load_twice_is_idempotent(self) -> None:
        layouter, _, data, (_, _, _, _, table) = _layouter()
        self._load(layouter, table, [0, 1, 2, 3])
        once = data.cells()
        self._load(layouter, table, [0, 1, 2, 3])
        assert data.cells() == once

    def test_conflicting_reload_rejected(self) -> None:
        layouter, _, _, (_, _, _, _, table) = _layouter()
        self._load(layouter, table, [0, 1])
        with pytest.raises(AssignmentError):
            self._load(layouter, table, [0, 9])

    def test_conflicting_reload_leaves_table_unchanged(self) -> None:
        layouter, _, data, (_, _, _, _, table) = _layouter()
        self._load(layouter, table, [0, 1, 2, 3])
        before = data.cells()

        def assignment(t):
            t.assign_cell("value", table, 5, 7)
            t.assign_cell("value", table, 0, 0)
            t.assign_cell("value", table, 2, 9)

        with pytest.raises(AssignmentError, match="already holds 2"):
            layouter.assign_table("table", assignment)
        assert data.cells() == before
        assert not data.is_assigned(table.column, 5)

    def test_table_requires_table_column(self) -> None:
        layouter, _, _, (_, _, f, _, _) = _layouter()
        with pytest.raises(AssignmentError):
            layouter.assign_table("t", lambda t: t.assign_cell("f", f, 0, 1))


class TestCopies:

    def test_copy_advice_requires_equality(self) -> None:
        layouter, meta, _, (a, b, _, _, _) = _layouter()
        with layouter.region("r") as region:
            cell = region.assign_advice("a", a, 0, 3)
        with pytest.raises(AssignmentError, match="equality"):
            with layouter.region("r2") as region:
                region.copy_advice("b", cell, b, 0)

    def test_copy_advice_records_copy(self) -> None:
        layouter, meta, data, (a, b, _, _, _) = _layouter()
        meta.enable_equality(a)
        meta.enable_equality(b)
        with layouter.region("r") as region:
            cell = region.assign_advice("a", a, 0, 3)
        with layouter.region("r2") as region:
            copied = region.copy_advice("b", cell, b, 0)
        assert copied.value == FF(3)
        assert data.copies == [((a, 0), (b, 1))]


class TestDeterminism:

    def test_same_inputs_same_cells(self) -> None:
        snapshots = []
        for _ in range(2):
            layouter, _, data, (a, b, _, q, _) = _layouter()
            for value in (3, 5, 8):
                with layouter.region("row") as region:
                    q.enable(region, 0)
                    region.assign_advice("a", a, 0, value)
                    region.assign_advice("b", b, 0, -value)
            snapshots.append(data.to_dict())
        assert snapshots[0] == snapshots[1]
