from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from functools import cached_property

from ..excel.scoring import compute_metrics
from ..models.roles import ESSENTIAL_ROLES, CanonicalRole, placeholder_header, role_for
from ..models.table import AnalysisMetrics, NormalizedTable

"""Import session: immutable table snapshot plus column selection.

Every command (assign_role, clear_role, toggle_column, ...) returns a new
``ImportSession``; metrics are derived from the snapshot they belong to, so
they can never go stale. Columns holding an essential role are always
selected.
"""

__all__ = [
    "ImportSession",
]

logger = logging.getLogger(__name__)


def _is_essential_name(name: str) -> bool:
    role = role_for(name)
    return role is not None and role in ESSENTIAL_ROLES


@dataclass(frozen=True)
class ImportSession:
    table: NormalizedTable
    selected: tuple[bool, ...]

    def __post_init__(self) -> None:
        if len(self.selected) != self.table.width:
            raise ValueError(
                f"selection width {len(self.selected)} != table width {self.table.width}"
            )

    @classmethod
    def start(cls, table: NormalizedTable) -> ImportSession:
        """New session with every column selected."""
        return cls(table=table, selected=(True,) * table.width)

    # -- read accessors -------------------------------------------------

    @cached_property
    def metrics(self) -> AnalysisMetrics:
        return compute_metrics(self.table)

    @property
    def header(self) -> tuple[str, ...]:
        return self.table.header

    def header_map(self) -> dict[CanonicalRole, int]:
        return self.table.header_map()

    def is_essential(self, column: int) -> bool:
        return _is_essential_name(self.table.header[column])

    def is_selected(self, column: int) -> bool:
        return self.selected[column]

    def selected_indices(self) -> list[int]:
        return [i for i, flag in enumerate(self.selected) if flag]

    def selected_header(self) -> list[str]:
        return [self.table.header[i] for i in self.selected_indices()]

    def selected_rows(self) -> list[list[str]]:
        indices = self.selected_indices()
        return [[row[i] for i in indices] for row in self.table.rows]

    def preview_rows(self, limit: int = 20) -> list[list[str]]:
        """First ``limit`` data rows restricted to the selected columns."""
        return self.selected_rows()[:limit]

    # -- commands -------------------------------------------------------

    def _with_header(self, header: list[str]) -> ImportSession:
        table = replace(self.table, header=tuple(header))
        selected = tuple(
            flag or _is_essential_name(header[i]) for i, flag in enumerate(self.selected)
        )
        return ImportSession(table=table, selected=selected)

    def assign_role(self, column: int, role: CanonicalRole) -> ImportSession:
        """Give ``role`` to ``column``.

        If the role already lives in another column, both columns exchange
        their headers. Otherwise the column takes the role and whatever role
        it held is dropped, except an essential one: that request is refused
        and the snapshot is returned unchanged.
        """
        self._check_column(column)
        header = list(self.table.header)
        current = header[column]
        if current == role.value:
            return self
        other = self.table.header_map().get(role)
        if other is not None:
            header[column], header[other] = header[other], header[column]
            logger.debug("swapped role=%s column=%d other=%d", role.value, column, other)
            return self._with_header(header)
        if _is_essential_name(current):
            logger.debug("refused to replace essential role=%s column=%d", current, column)
            return self
        header[column] = role.value
        logger.debug("assigned role=%s column=%d replaced=%s", role.value, column, current)
        return self._with_header(header)

    def clear_role(self, column: int) -> ImportSession:
        """Replace the column's role with a ``colN`` placeholder (no-op on essential roles)."""
        self._check_column(column)
        current = self.table.header[column]
        if _is_essential_name(current) or role_for(current) is None:
            return self
        header = list(self.table.header)
        header[column] = placeholder_header(column)
        return self._with_header(header)

    def set_column_selected(self, column: int, selected: bool) -> ImportSession:
        self._check_column(column)
        if not selected and self.is_essential(column):
            return self
        flags = list(self.selected)
        flags[column] = selected
        return replace(self, selected=tuple(flags))

    def toggle_column(self, column: int) -> ImportSession:
        self._check_column(column)
        return self.set_column_selected(column, not self.selected[column])

    def set_all_columns(self, selected: bool) -> ImportSession:
        """Select or deselect every column; essential columns always stay selected."""
        flags = tuple(
            selected or self.is_essential(i) for i in range(self.table.width)
        )
        return replace(self, selected=flags)

    def _check_column(self, column: int) -> None:
        if not 0 <= column < self.table.width:
            raise IndexError(f"column {column} out of range 0..{self.table.width - 1}")
