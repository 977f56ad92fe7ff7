"""Tests for ConstraintSystem registration rules."""

import pytest

from constraints.errors import ConfigurationError
from constraints.expression import Query, SelectorExpr
from constraints.system import ColumnKind, Constraints, ConstraintSystem, TableColumn


class TestAllocation:

    def test_columns_are_indexed_per_kind(self) -> None:
        meta = ConstraintSystem()
        a0 = meta.advice_column()
        f0 = meta.fixed_column()
        a1 = meta.advice_column()
        i0 = meta.instance_column()
        assert (a0.kind, a0.index) == (ColumnKind.ADVICE, 0)
        assert (a1.kind, a1.index) == (ColumnKind.ADVICE, 1)
        assert (f0.kind, f0.index) == (ColumnKind.FIXED, 0)
        assert (i0.kind, i0.index) == (ColumnKind.INSTANCE, 0)
        assert meta.columns_of(ColumnKind.ADVICE) == [a0, a1]

    def test_table_column_is_fixed(self) -> None:
        meta = ConstraintSystem()
        table = meta.lookup_table_column()
        assert isinstance(table, TableColumn)
        assert table.column.kind is ColumnKind.FIXED
        assert meta.is_table_column(table.column)

    def test_selector_kinds(self) -> None:
        meta = ConstraintSystem()
        simple = meta.selector()
        complex_ = meta.complex_selector()
        assert simple.is_simple()
        assert not complex_.is_simple()
        assert simple != complex_

    def test_table_column_cannot_enable_equality(self) -> None:
        meta = ConstraintSystem()
        with pytest.raises(ConfigurationError):
            meta.enable_equality(meta.lookup_table_column())


class TestGates:

    def test_create_gate_records_selectors(self) -> None:
        meta = ConstraintSystem()
        a = meta.advice_column()
        q = meta.selector()
        gate = meta.create_gate("bool", lambda vc: [
            ("bool", vc.query_selector(q) * vc.query_advice(a) * (1 - vc.query_advice(a))),
        ])
        assert gate.selectors == [q]
        assert [c.name for c in gate.constraints] == ["bool"]
        assert gate.degree() == 3
        assert meta.gates == [gate]

    def test_unnamed_constraints_get_index_names(self) -> None:
        meta = ConstraintSystem()
        a = meta.advice_column()
        gate = meta.create_gate("g", lambda vc: [vc.query_advice(a), vc.query_advice(a) * 2])
        assert [c.name for c in gate.constraints] == ["0", "1"]
        assert gate.selectors == []

    def test_with_selector_multiplies_every_constraint(self) -> None:
        meta = ConstraintSystem()
        a = meta.advice_column()
        q = meta.selector()
        gate = meta.create_gate("g", lambda vc: Constraints.with_selector(
            vc.query_selector(q), [("x", vc.query_advice(a)), ("y", vc.query_advice(a) - 1)],
        ))
        for constraint in gate.constraints:
            assert constraint.expression.selectors() == [q]

    def test_empty_gate_rejected(self) -> None:
        meta = ConstraintSystem()
        with pytest.raises(ConfigurationError):
            meta.create_gate("empty", lambda vc: [])

    def test_simple_selector_twice_rejected(self) -> None:
        meta = ConstraintSystem()
        a = meta.advice_column()
        q = meta.selector()
        with pytest.raises(ConfigurationError):
            meta.create_gate("square", lambda vc: [
                vc.query_selector(q) * vc.query_selector(q) * vc.query_advice(a),
            ])

    def test_complex_selector_twice_allowed(self) -> None:
        meta = ConstraintSystem()
        a = meta.advice_column()
        q = meta.complex_selector()
        meta.create_gate("square", lambda vc: [
            vc.query_selector(q) * vc.query_selector(q) * vc.query_advice(a),
        ])

    def test_query_wrong_kind_rejected(self) -> None:
        meta = ConstraintSystem()
        f = meta.fixed_column()
        with pytest.raises(ConfigurationError):
            meta.create_gate("g", lambda vc: [vc.query_advice(f)])

    def test_query_unallocated_column_rejected(self) -> None:
        other = ConstraintSystem()
        other.advice_column()
        foreign = other.advice_column()
        meta = ConstraintSystem()
        meta.advice_column()
        with pytest.raises(ConfigurationError):
            meta.create_gate("g", lambda vc: [vc.query_advice(foreign)])


class TestLookups:

    def test_lookup_records_complex_selectors(self) -> None:
        meta = ConstraintSystem()
        a = meta.advice_column()
        q = meta.complex_selector()
        table = meta.lookup_table_column()
        lookup = meta.lookup("range", lambda vc: [(vc.query_selector(q) * vc.query_advice(a), table)])
        assert lookup.selectors == [q]
        assert lookup.table == [table]
        assert lookup.degree() == 3
        assert meta.degree() == 3

    def test_simple_selector_rejected(self) -> None:
        meta = ConstraintSystem()
        a = meta.advice_column()
        q = meta.selector()
        table = meta.lookup_table_column()
        with pytest.raises(ConfigurationError, match="complex selector"):
            meta.lookup("range", lambda vc: [(vc.query_selector(q) * vc.query_advice(a), table)])

    def test_non_table_column_rejected(self) -> None:
        meta = ConstraintSystem()
        a = meta.advice_column()
        f = meta.fixed_column()
        with pytest.raises(ConfigurationError):
            meta.lookup("range", lambda vc: [(vc.query_advice(a), f)])

    def test_empty_lookup_rejected(self) -> None:
        meta = ConstraintSystem()
        with pytest.raises(ConfigurationError):
            meta.lookup("none", lambda vc: [])

    def test_lookup_without_selector(self) -> None:
        meta = ConstraintSystem()
        a = meta.advice_column()
        table = meta.lookup_table_column()
        lookup = meta.lookup("plain", lambda vc: [(Query(a), table)])
        assert lookup.selectors == []

    def test_registration_does_not_need_witness(self) -> None:
        """Builders only see symbolic queries."""
        meta = ConstraintSystem()
        a = meta.advice_column()
        q = meta.complex_selector()
        seen = []

        def builder(vc):
            expr = vc.query_selector(q) * vc.query_advice(a)
            seen.append(expr)
            return [expr]

        meta.create_gate("g", builder)
        assert isinstance(seen[0].left, SelectorExpr)
