"""
Grid row reconciliation for the Movers table.

The Movers table is an ag-Grid: virtualized and column-split. One logical
row is rendered as several `.ag-row` elements (pinned-left segment,
scrollable centre segment, ...) sharing a `row-index` attribute, and several
Movers tool windows can be mounted in the workspace at once.

Extraction is done in two halves:
- COLLECT_GRID_JS runs in the page and returns plain data: for every
  mounted Movers instance its text and its row fragments.
- Everything else (picking the instance, grouping, merging, validating) is
  pure Python below and is what the tests exercise.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Sequence

from movers_bot.config import (
    GRID_COLUMNS, TOOL_CONTAINER_SELECTOR, MOVERS_TOOL_LABEL,
    FILTER_TYPE_LABEL, FILTER_SESSION_LABEL
)
from movers_bot.utils import clean_text

logger = logging.getLogger('movers_bot.grid')

REQUIRED_FIELDS = ('ticker', 'price')

# Returns {instances: [{text, fragments}], document: fragments|null}.
# document is only collected when no Movers container exists at all.
COLLECT_GRID_JS = """
({containerSelector, marker, columns}) => {
    const collect = (scope) => Array.from(scope.querySelectorAll('.ag-row'))
        .filter(row => row.getAttribute('row-index') !== null)
        .map(row => {
            const cells = {};
            for (const colId of columns) {
                const cell = row.querySelector(`[col-id="${colId}"]`);
                cells[colId] = cell ? (cell.innerText || '').trim() : null;
            }
            return { rowIndex: row.getAttribute('row-index'), columns: cells };
        });

    const instances = Array.from(document.querySelectorAll(containerSelector))
        .filter(c => (c.innerText || '').includes(marker))
        .map(c => ({ text: c.innerText || '', fragments: collect(c) }));

    return {
        instances: instances,
        document: instances.length ? null : collect(document),
    };
}
"""


@dataclass
class RowFragment:
    """Partial column data for one logical row, from one DOM subtree."""
    row_index: str
    columns: Dict[str, Optional[str]]

    @classmethod
    def from_dict(cls, data: Dict) -> 'RowFragment':
        return cls(row_index=str(data.get('rowIndex')), columns=dict(data.get('columns') or {}))


@dataclass
class GridInstance:
    """One mounted Movers tool window as seen at extraction time."""
    text: str
    fragments: List[RowFragment]

    @classmethod
    def from_dict(cls, data: Dict) -> 'GridInstance':
        return cls(
            text=data.get('text') or '',
            fragments=[RowFragment.from_dict(f) for f in data.get('fragments') or []],
        )


@dataclass
class ReconciledRecord:
    """One output row."""
    ticker: str
    company: str
    price: str
    change: str
    volume: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


# =============================================================================
# PURE RECONCILIATION
# =============================================================================
def select_instance(instances: Sequence[GridInstance], labels: Sequence[str]) -> Optional[GridInstance]:
    """
    Pick the Movers window that was just configured.

    Prefers the first instance whose text shows every applied label (e.g.
    "Gainers" and "PreMarket"); otherwise the last mounted one. This is a
    guess from visible text, not proof that the window carries our filters.

    Returns:
        The chosen instance, or None if there are none
    """
    if not instances:
        return None

    for instance in instances:
        if all(label in instance.text for label in labels):
            return instance

    logger.warning(
        f"No Movers window shows all of {list(labels)}; "
        f"falling back to the last of {len(instances)} mounted"
    )
    return instances[-1]


def group_fragments(fragments: Sequence[RowFragment]) -> Dict[str, List[RowFragment]]:
    """Group fragments by row index, keeping first-seen order of indices."""
    groups: Dict[str, List[RowFragment]] = {}
    for fragment in fragments:
        groups.setdefault(fragment.row_index, []).append(fragment)
    return groups


def merge_fragments(fragments: Sequence[RowFragment],
                    columns: Dict[str, str] = GRID_COLUMNS) -> Dict[str, Optional[str]]:
    """
    Merge one row's fragments column by column.

    For each field the first fragment that has the cell at all (value is not
    None) wins; later fragments repeating the column are ignored.

    Args:
        fragments: Fragments sharing one row index, in encounter order
        columns: Output field -> grid col-id

    Returns:
        Field -> raw text, or None where no fragment had the cell
    """
    merged: Dict[str, Optional[str]] = {}
    for field_name, col_id in columns.items():
        merged[field_name] = None
        for fragment in fragments:
            value = fragment.columns.get(col_id)
            if value is not None:
                merged[field_name] = value
                break
    return merged


def build_record(merged: Dict[str, Optional[str]]) -> Optional[ReconciledRecord]:
    """Validate a merged row; ticker and price must be non-empty after trimming."""
    values = {name: clean_text(value) for name, value in merged.items()}
    if not all(values.get(name) for name in REQUIRED_FIELDS):
        return None
    # Sparse rows keep empty strings for the optional fields
    return ReconciledRecord(
        ticker=values['ticker'],
        company=values.get('company', ''),
        price=values['price'],
        change=values.get('change', ''),
        volume=values.get('volume', ''),
    )


def reconcile(fragments: Sequence[RowFragment],
              columns: Dict[str, str] = GRID_COLUMNS) -> List[ReconciledRecord]:
    """
    Turn fragments into records.

    Order follows first appearance of each row index, not numeric index.
    """
    records = []
    dropped = 0
    for row_index, group in group_fragments(fragments).items():
        record = build_record(merge_fragments(group, columns))
        if record is None:
            dropped += 1
            logger.debug(f"Row {row_index}: missing ticker or price, dropped")
            continue
        records.append(record)

    if dropped:
        logger.debug(f"Dropped {dropped} incomplete rows")
    return records


# =============================================================================
# PAGE-FACING RECONCILER
# =============================================================================
class GridRowReconciler:
    """
    Extracts ReconciledRecords from the live Movers grid.

    Usage:
        records = GridRowReconciler(driver).extract()
    """

    def __init__(self, driver, labels: Sequence[str] = (FILTER_TYPE_LABEL, FILTER_SESSION_LABEL),
                 columns: Dict[str, str] = GRID_COLUMNS,
                 container_selector: str = TOOL_CONTAINER_SELECTOR,
                 marker: str = MOVERS_TOOL_LABEL):
        self.driver = driver
        self.labels = list(labels)
        self.columns = dict(columns)
        self.container_selector = container_selector
        self.marker = marker

    def collect(self) -> List[RowFragment]:
        """Fetch the fragments of the chosen grid instance (or the whole document)."""
        snapshot = self.driver.evaluate(COLLECT_GRID_JS, {
            'containerSelector': self.container_selector,
            'marker': self.marker,
            'columns': list(self.columns.values()),
        }) or {}

        instances = [GridInstance.from_dict(i) for i in snapshot.get('instances') or []]
        chosen = select_instance(instances, self.labels)
        if chosen is not None:
            position = next(i for i, inst in enumerate(instances) if inst is chosen) + 1
            logger.info(
                f"Extracting from Movers window {position}/{len(instances)}: "
                f"{len(chosen.fragments)} row elements"
            )
            return chosen.fragments

        fragments = [RowFragment.from_dict(f) for f in snapshot.get('document') or []]
        logger.info(f"No Movers window found, extracting from document scope: {len(fragments)} row elements")
        return fragments

    def extract(self) -> List[ReconciledRecord]:
        fragments = self.collect()
        records = reconcile(fragments, self.columns)
        logger.info(
            f"Reconciled {len(records)} records from "
            f"{len(group_fragments(fragments))} logical rows"
        )
        return records
