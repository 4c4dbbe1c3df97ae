"""JSON file sink for exporting schedules to files."""

import json
import logging
from pathlib import Path
from typing import Any

from emi_engine.exceptions import SinkError
from emi_engine.models.schedule import ScheduleModel
from emi_engine.sinks.serialization import schedule_to_dict, to_dict

logger = logging.getLogger(__name__)


class JsonFileSink:
    """Output records to JSON files."""

    def __init__(self, output_dir: str | Path, pretty: bool = False) -> None:
        """Initialize JSON file sink.

        Parameters
        ----------
        output_dir : str | Path
            Directory to write JSON files.
        pretty : bool
            Pretty-print JSON output.
        """
        self.output_dir = Path(output_dir)
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SinkError(f"Cannot create output directory {self.output_dir}: {e}") from e
        self.pretty = pretty
        self._counts: dict[str, int] = {}

    def write_batch(self, entity_type: str, records: list[Any]) -> None:
        """Write a batch of records to a JSON file."""
        self._dump(self.output_dir / f"{entity_type}.json", [to_dict(record) for record in records])
        self._counts[entity_type] = len(records)

    def write_schedule(self, model: ScheduleModel, name: str) -> Path:
        """Write a full schedule snapshot to ``<name>.schedule.json``."""
        file_path = self.output_dir / f"{name}.schedule.json"
        self._dump(file_path, schedule_to_dict(model))
        self._counts["schedules"] = self._counts.get("schedules", 0) + 1
        return file_path

    def close(self) -> None:
        """Log summary."""
        logger.info("JSON files written to: %s", self.output_dir)
        for entity_type, count in self._counts.items():
            logger.info("  %s: %d records", entity_type, count)

    def _dump(self, file_path: Path, data: Any) -> None:
        try:
            with open(file_path, "w", encoding="utf-8") as f:
                if self.pretty:
                    json.dump(data, f, indent=2, ensure_ascii=False, default=str)
                else:
                    json.dump(data, f, ensure_ascii=False, default=str)
        except OSError as e:
            raise SinkError(f"Failed to write {file_path}: {e}") from e
