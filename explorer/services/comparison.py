"""Structural comparison of one table across two data sources."""

import logging
from operator import attrgetter
from typing import List, Optional

from explorer.schemas.comparison import DiffType, StructureDiff, TableComparison
from explorer.schemas.data_source import DataSourceRef
from explorer.schemas.metadata import ColumnInfo, TableInfo
from source_adapters.fetcher import MetadataFetcher

logger = logging.getLogger(__name__)


def _column_changed(before: ColumnInfo, after: ColumnInfo) -> bool:
    # Constraint differences alone are not reported
    return (
        before.data_type != after.data_type
        or before.is_nullable != after.is_nullable
        or before.default_value != after.default_value
    )


def compare_structure(source: TableInfo, target: TableInfo) -> List[StructureDiff]:
    """
    Column-level diff of source against target, matched by column name.

    Added columns come first, then removed, then modified; each group is
    sorted by column name.
    """
    source_cols = {c.name: c for c in source.columns}
    target_cols = {c.name: c for c in target.columns}

    added = [
        StructureDiff(column_name=name, diff_type=DiffType.ADDED, source2_value=col)
        for name, col in target_cols.items()
        if name not in source_cols
    ]
    removed = [
        StructureDiff(column_name=name, diff_type=DiffType.REMOVED, source1_value=col)
        for name, col in source_cols.items()
        if name not in target_cols
    ]
    modified = [
        StructureDiff(
            column_name=name,
            diff_type=DiffType.MODIFIED,
            source1_value=col,
            source2_value=target_cols[name],
        )
        for name, col in source_cols.items()
        if name in target_cols and _column_changed(col, target_cols[name])
    ]

    by_name = attrgetter("column_name")
    return sorted(added, key=by_name) + sorted(removed, key=by_name) + sorted(modified, key=by_name)


class ComparisonEngine:
    """Fetches a table's structure and row count from two sources and diffs them."""

    def __init__(self, fetcher: MetadataFetcher):
        self.fetcher = fetcher

    def compare(
        self,
        source1: DataSourceRef,
        source2: DataSourceRef,
        schema1: Optional[str],
        schema2: Optional[str],
        table_name: str,
    ) -> TableComparison:
        """
        Compare table_name on source1 against source2.

        Any failed fetch aborts the comparison. row_count_diff is
        source1 minus source2.
        """
        table1 = self.fetcher.get_table_structure(source1, schema1, table_name)
        table2 = self.fetcher.get_table_structure(source2, schema2, table_name)

        row_count1 = self.fetcher.get_table_row_count(source1, schema1, table_name)
        row_count2 = self.fetcher.get_table_row_count(source2, schema2, table_name)

        structure_diff = compare_structure(table1, table2)
        logger.info(
            f"Compared {table_name} between sources {source1.id} and {source2.id}: "
            f"{len(structure_diff)} column difference(s), rows {row_count1} vs {row_count2}"
        )

        return TableComparison(
            table_name=table_name,
            source1=table1.with_row_count(row_count1),
            source2=table2.with_row_count(row_count2),
            structure_diff=structure_diff,
            row_count_diff=row_count1 - row_count2,
        )
