"""Tests for the table comparison engine."""

import pytest

from explorer.core.exceptions import FetchFailed
from explorer.schemas.comparison import DiffType
from explorer.schemas.metadata import ColumnInfo, TableInfo
from explorer.services.comparison import compare_structure


def column(name, data_type, nullable=True, default=None, constraints=()):
    return ColumnInfo(
        name=name,
        data_type=data_type,
        is_nullable=nullable,
        default_value=default,
        constraints=list(constraints),
    )


class TestCompareStructure:
    """Column-level diff rules."""

    def test_added_and_modified(self, table_factory):
        """[a:int, b:text] vs [a:int, b:varchar, c:int]."""
        source = table_factory("t", ("a", "int"), ("b", "text"))
        target = table_factory("t", ("a", "int"), ("b", "varchar"), ("c", "int"))

        diffs = compare_structure(source, target)

        assert [(d.column_name, d.diff_type) for d in diffs] == [
            ("c", DiffType.ADDED),
            ("b", DiffType.MODIFIED),
        ]
        assert diffs[0].source1_value is None
        assert diffs[0].source2_value.data_type == "int"
        assert diffs[1].source1_value.data_type == "text"
        assert diffs[1].source2_value.data_type == "varchar"

    def test_identical_structures(self, table_factory):
        table = table_factory("t", ("a", "int"), ("b", "text"))
        assert compare_structure(table, table) == []

    def test_matches_by_name_not_position(self, table_factory):
        """Reordered columns are not a difference."""
        source = table_factory("t", ("a", "int"), ("b", "text"))
        target = table_factory("t", ("b", "text"), ("a", "int"))
        assert compare_structure(source, target) == []

    @pytest.mark.parametrize(
        "after",
        [
            column("a", "int", nullable=False),
            column("a", "int", default="0"),
            column("a", "bigint"),
        ],
    )
    def test_nullability_default_and_type_are_modifications(self, after):
        source = TableInfo(name="t", columns=[column("a", "int")])
        target = TableInfo(name="t", columns=[after])

        diffs = compare_structure(source, target)

        assert len(diffs) == 1
        assert diffs[0].diff_type == DiffType.MODIFIED

    def test_constraint_only_change_is_ignored(self):
        source = TableInfo(name="t", columns=[column("id", "int")])
        target = TableInfo(name="t", columns=[column("id", "int", constraints=["PRIMARY KEY"])])
        assert compare_structure(source, target) == []

    def test_bucket_order_and_sorting(self):
        """Added, then removed, then modified; each bucket sorted by name."""
        source = TableInfo(
            name="t",
            columns=[column("z", "int"), column("m", "int"), column("y", "int"), column("k", "int")],
        )
        target = TableInfo(
            name="t",
            columns=[column("k", "text"), column("q", "int"), column("m", "text"), column("b", "int")],
        )

        diffs = compare_structure(source, target)

        assert [(d.column_name, d.diff_type.value) for d in diffs] == [
            ("b", "added"),
            ("q", "added"),
            ("y", "removed"),
            ("z", "removed"),
            ("k", "modified"),
            ("m", "modified"),
        ]

    def test_symmetry(self, table_factory):
        """Swapping sides swaps added/removed and before/after."""
        a = table_factory("t", ("id", "int"), ("name", "text"), ("legacy", "text"))
        b = table_factory("t", ("id", "bigint"), ("name", "text"), ("email", "text"))

        forward = {d.column_name: d for d in compare_structure(a, b)}
        backward = {d.column_name: d for d in compare_structure(b, a)}

        assert forward["email"].diff_type == DiffType.ADDED
        assert backward["email"].diff_type == DiffType.REMOVED
        assert forward["legacy"].diff_type == DiffType.REMOVED
        assert backward["legacy"].diff_type == DiffType.ADDED
        assert forward["id"].source1_value == backward["id"].source2_value
        assert forward["id"].source2_value == backward["id"].source1_value


class TestComparisonEngine:
    """End-to-end comparisons against fake adapters."""

    def test_row_count_diff_is_source1_minus_source2(
        self, comparison_engine, pg_adapter, mysql_adapter, pg_source, mysql_source, table_factory
    ):
        """Identical structures, 100 vs 130 rows."""
        pg_adapter.add_table(table_factory("orders", ("id", "int")), row_count=100)
        mysql_adapter.add_table(table_factory("orders", ("id", "int"), schema="shop"), row_count=130)

        result = comparison_engine.compare(pg_source, mysql_source, "public", None, "orders")

        assert result.structure_diff == []
        assert result.row_count_diff == -30
        assert result.source1.row_count == 100
        assert result.source2.row_count == 130
        assert result.source2.schema_name == "shop"
        # Adapter values are not mutated
        assert pg_adapter.tables["orders"].row_count is None

    def test_reverse_comparison_negates(
        self, comparison_engine, pg_adapter, mysql_adapter, pg_source, mysql_source, table_factory
    ):
        pg_adapter.add_table(table_factory("orders", ("id", "int"), ("note", "text")), row_count=7)
        mysql_adapter.add_table(table_factory("orders", ("id", "int")), row_count=3)

        forward = comparison_engine.compare(pg_source, mysql_source, None, None, "orders")
        backward = comparison_engine.compare(mysql_source, pg_source, None, None, "orders")

        assert forward.row_count_diff == 4
        assert backward.row_count_diff == -4
        assert forward.structure_diff[0].diff_type == DiffType.REMOVED
        assert backward.structure_diff[0].diff_type == DiffType.ADDED

    def test_schemas_passed_per_source(
        self, comparison_engine, pg_adapter, mysql_adapter, pg_source, mysql_source, table_factory
    ):
        pg_adapter.add_table(table_factory("orders", ("id", "int")), row_count=1)
        mysql_adapter.add_table(table_factory("orders", ("id", "int")), row_count=1)

        comparison_engine.compare(pg_source, mysql_source, "sales", "shop", "orders")

        assert ("fetch_table_structure", 1, "sales", "orders") in pg_adapter.calls
        assert ("fetch_row_count", 2, "shop", "orders") in mysql_adapter.calls

    def test_row_count_failure_aborts(
        self, comparison_engine, pg_adapter, mysql_adapter, pg_source, mysql_source, table_factory
    ):
        """A failing row count yields no partial comparison."""
        pg_adapter.add_table(table_factory("orders", ("id", "int")), row_count=1)
        mysql_adapter.tables["orders"] = table_factory("orders", ("id", "int"))

        with pytest.raises(FetchFailed) as exc_info:
            comparison_engine.compare(pg_source, mysql_source, None, None, "orders")

        assert exc_info.value.operation == "fetch_row_count"
        assert exc_info.value.source_id == 2

    def test_missing_table_aborts(self, comparison_engine, pg_adapter, pg_source, mysql_source, table_factory):
        pg_adapter.add_table(table_factory("orders", ("id", "int")), row_count=1)

        with pytest.raises(FetchFailed):
            comparison_engine.compare(pg_source, mysql_source, None, None, "orders")
