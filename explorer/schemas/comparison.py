"""Table comparison schemas."""

import enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from explorer.schemas.metadata import ColumnInfo, TableInfo


class DiffType(str, enum.Enum):
    """Classification of a column-level difference."""

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


class StructureDiff(BaseModel):
    """Difference for one column between source1 and source2."""

    model_config = ConfigDict(frozen=True)

    column_name: str
    diff_type: DiffType
    source1_value: Optional[ColumnInfo] = None
    source2_value: Optional[ColumnInfo] = None


class TableComparison(BaseModel):
    """Structure and row count comparison of one table across two sources."""

    model_config = ConfigDict(frozen=True)

    table_name: str
    source1: TableInfo
    source2: TableInfo
    structure_diff: List[StructureDiff] = Field(default_factory=list)
    row_count_diff: int
