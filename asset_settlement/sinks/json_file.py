"""JSON file sink for exporting events and entities to files."""

import json
from pathlib import Path
from typing import Any

from asset_settlement.exceptions import SinkError
from asset_settlement.sinks.serialization import to_dict


class JsonFileSink:
    """Output records to JSON files, one file per entity type."""

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
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.pretty = pretty
        self._counts: dict[str, int] = {}

    def write_batch(self, entity_type: str, records: list[Any]) -> None:
        """Write a batch of records to ``<entity_type>.json``."""
        file_path = self.output_dir / f"{entity_type}.json"

        data = [to_dict(record) for record in records]

        try:
            with open(file_path, "w", encoding="utf-8") as f:
                if self.pretty:
                    json.dump(data, f, indent=2, ensure_ascii=False, default=str)
                else:
                    json.dump(data, f, ensure_ascii=False, default=str)
        except OSError as e:
            raise SinkError(f"Cannot write {file_path}: {e}") from e

        self._counts[entity_type] = len(records)

    def write_lines(self, name: str, records: list[Any]) -> Path:
        """Append records to ``<name>.jsonl``, one JSON object per line."""
        file_path = self.output_dir / f"{name.replace('.', '_')}.jsonl"
        try:
            with open(file_path, "a", encoding="utf-8") as f:
                for record in records:
                    f.write(json.dumps(to_dict(record), ensure_ascii=False, default=str) + "\n")
        except OSError as e:
            raise SinkError(f"Cannot write {file_path}: {e}") from e

        self._counts[name] = self._counts.get(name, 0) + len(records)
        return file_path

    def close(self) -> None:
        """Print summary."""
        print(f"JSON files written to: {self.output_dir}")
        for entity_type, count in self._counts.items():
            print(f"  {entity_type}: {count} records")
