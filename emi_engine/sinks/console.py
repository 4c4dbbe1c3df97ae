"""Console sink for eyeballing schedules while developing."""

import json
from typing import Any

from emi_engine.models.schedule import ScheduleModel
from emi_engine.sinks.serialization import period_rows, to_dict

RULE = "=" * 60

# Columns of the schedule table: (row key, header, width)
SCHEDULE_COLUMNS = [
    ("period_number", "#", 3),
    ("due_date", "due date", 10),
    ("emi", "emi", 12),
    ("due_principal", "principal", 12),
    ("due_interest", "interest", 10),
    ("outstanding_loan_balance", "balance", 12),
]


class ConsoleSink:
    """Print batches as JSON lines and schedules as tables on stdout.

    Parameters
    ----------
    pretty : bool
        Indent JSON output.
    max_records : int | None
        Records shown per batch; the rest are only counted.
    """

    def __init__(self, pretty: bool = True, max_records: int | None = None) -> None:
        self.pretty = pretty
        self.max_records = max_records
        self._counts: dict[str, int] = {}

    def write_batch(self, entity_type: str, records: list[Any]) -> None:
        self._header(f"Entity: {entity_type} ({len(records)} records)")
        shown = records if self.max_records is None else records[: self.max_records]
        for record in shown:
            print(json.dumps(to_dict(record), indent=2 if self.pretty else None, ensure_ascii=False, default=str))
        hidden = len(records) - len(shown)
        if hidden > 0:
            print(f"... and {hidden} more records")
        self._count(entity_type, len(records))

    def write_schedule(self, model: ScheduleModel, title: str = "schedule") -> None:
        """Print one line per repayment period, amounts right-aligned."""
        rows = period_rows(model)
        self._header(f"Schedule: {title} ({len(rows)} periods)")
        print(" ".join(self._cell(key, header, width) for key, header, width in SCHEDULE_COLUMNS))
        for row in rows:
            print(" ".join(self._cell(key, row[key], width) for key, _, width in SCHEDULE_COLUMNS))
        self._count("schedules", 1)

    def close(self) -> None:
        self._header("Console Sink Summary")
        for entity_type, count in self._counts.items():
            print(f"  {entity_type}: {count} records")

    @staticmethod
    def _cell(key: str, value: Any, width: int) -> str:
        # Dates read left to right, numbers line up on the right
        return f"{value!s:<{width}}" if key == "due_date" else f"{value!s:>{width}}"

    @staticmethod
    def _header(title: str) -> None:
        print(f"\n{RULE}\n{title}\n{RULE}")

    def _count(self, entity_type: str, count: int) -> None:
        self._counts[entity_type] = self._counts.get(entity_type, 0) + count
