from __future__ import annotations

from dataclasses import dataclass, field

from .roles import CanonicalRole, role_for

"""Table and metrics models produced by the price-list analyzer.

``NormalizedTable`` is the long-lived artifact of an import: it is immutable,
and every structural change (role reassignment, column selection) produces a
new snapshot. ``AnalysisMetrics`` is always derived from one snapshot.
"""

__all__ = [
    "NormalizedTable",
    "AnalysisMetrics",
]


@dataclass(frozen=True)
class NormalizedTable:
    """Normalized header plus data rows, all rows padded to header width."""
    original_header: tuple[str, ...]  # source header text, "" for inserted columns
    header: tuple[str, ...]  # role values, passthrough tokens or colN placeholders
    rows: tuple[tuple[str, ...], ...]
    synthetic_columns: frozenset[int] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        width = len(self.header)
        if len(self.original_header) != width:
            raise ValueError(
                f"original header width {len(self.original_header)} != header width {width}"
            )
        for i, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(f"row {i} has {len(row)} cells, expected {width}")

    @property
    def width(self) -> int:
        return len(self.header)

    def header_map(self) -> dict[CanonicalRole, int]:
        """Role -> column index for every column that holds a role."""
        mapping: dict[CanonicalRole, int] = {}
        for index, name in enumerate(self.header):
            role = role_for(name)
            if role is not None and role not in mapping:
                mapping[role] = index
        return mapping

    def column(self, index: int) -> list[str]:
        return [row[index] for row in self.rows]

    def as_grid(self) -> list[list[str]]:
        """Header followed by the data rows (header counts as one row)."""
        return [list(self.header)] + [list(row) for row in self.rows]


@dataclass(frozen=True)
class AnalysisMetrics:
    """Read-only reliability snapshot of one analyzed table."""
    essential_found: int
    essential_total: int
    rows_with_valid_barcode: int
    total_rows: int
    extra_found: int
    extra_total: int
    confidence_score: float  # clamped to [0, 1]
    issues: tuple[str, ...] = ()

    @property
    def barcode_fill_ratio(self) -> float:
        if self.total_rows == 0:
            return 0.0
        return self.rows_with_valid_barcode / self.total_rows
