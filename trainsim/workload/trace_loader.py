"""Load pre-made train schedules and crew travel times."""

import csv
import json
from pathlib import Path
from typing import List

from .value_source import TrainValues
from ..utils.logger import setup_logger


class ScheduleLoader:
    """Load replay data from various formats.

    Supports:
    - Plain text: one record per line, whitespace separated
      (``gap unload shift`` for trains, one delay per line for crews)
    - CSV with ``arrival``, ``unload_time``, ``remaining_shift`` /
      ``delay`` columns
    - JSON: list of objects with the same keys, or list of numbers for crews
    """

    def __init__(self, path: str):
        """Initialize schedule loader.

        Args:
            path: Path to schedule file
        """
        self.path = Path(path)
        self.logger = setup_logger(self.__class__.__name__)

        if not self.path.exists():
            raise FileNotFoundError(f"Schedule file not found: {path}")

    def load_trains(self, absolute_times: bool = False) -> List[TrainValues]:
        """Load train records.

        Args:
            absolute_times: Whether the first column holds absolute arrival
                times rather than gaps since the previous arrival

        Returns:
            List of per-train values, arrival column expressed as gaps
        """
        rows = self._read_rows(['arrival', 'unload_time', 'remaining_shift'])
        trains = []
        previous = 0.0
        for line_no, (arrival, unload, shift) in rows:
            if absolute_times:
                if arrival < previous:
                    raise ValueError(
                        f"{self.path}:{line_no}: arrival time {arrival} "
                        f"is earlier than previous arrival {previous}"
                    )
                gap = arrival - previous
                previous = arrival
            else:
                gap = arrival
            trains.append(TrainValues(arrival_gap=gap, unload_time=unload, remaining_shift=shift))

        self.logger.info(f"Loaded {len(trains)} trains from {self.path.name}")
        return trains

    def load_crew_delays(self) -> List[float]:
        """Load replacement crew travel times.

        Returns:
            List of delays in file order
        """
        delays = [values[0] for _, values in self._read_rows(['delay'])]
        self.logger.info(f"Loaded {len(delays)} crew delays from {self.path.name}")
        return delays

    def _read_rows(self, columns: List[str]):
        suffix = self.path.suffix.lower()
        if suffix == '.json':
            return self._read_json(columns)
        elif suffix == '.csv':
            return self._read_csv(columns)
        else:
            return self._read_text(columns)

    def _read_text(self, columns: List[str]):
        rows = []
        with open(self.path, 'r') as f:
            for line_no, line in enumerate(f, start=1):
                fields = line.split()
                if not fields or fields[0].startswith('#'):
                    continue
                if len(fields) != len(columns):
                    raise ValueError(
                        f"{self.path}:{line_no}: expected {len(columns)} values, got {len(fields)}"
                    )
                rows.append((line_no, self._to_floats(fields, line_no)))
        return rows

    def _read_csv(self, columns: List[str]):
        rows = []
        with open(self.path, 'r', newline='') as f:
            reader = csv.DictReader(f)
            missing = [c for c in columns if c not in (reader.fieldnames or [])]
            if missing:
                raise ValueError(f"{self.path}: missing columns {missing}")
            # Header is line 1
            for line_no, row in enumerate(reader, start=2):
                rows.append((line_no, self._to_floats([row[c] for c in columns], line_no)))
        return rows

    def _read_json(self, columns: List[str]):
        with open(self.path, 'r') as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get('trains') or data.get('crews') or data.get('entries', [])

        rows = []
        for index, entry in enumerate(data):
            if isinstance(entry, dict):
                missing = [c for c in columns if c not in entry]
                if missing:
                    raise ValueError(f"{self.path}: entry {index} missing keys {missing}")
                fields = [entry[c] for c in columns]
            elif isinstance(entry, (list, tuple)):
                fields = list(entry)
            else:
                fields = [entry]
            if len(fields) != len(columns):
                raise ValueError(
                    f"{self.path}: entry {index} expected {len(columns)} values, got {len(fields)}"
                )
            rows.append((index, self._to_floats(fields, index)))
        return rows

    def _to_floats(self, fields, line_no) -> List[float]:
        try:
            return [float(v) for v in fields]
        except (TypeError, ValueError):
            raise ValueError(f"{self.path}:{line_no}: non-numeric value in {fields}") from None

    @staticmethod
    def write_schedule(output_path: str, trains: List[TrainValues]) -> None:
        """Write train values in the plain-text schedule format.

        Args:
            output_path: Output file path
            trains: Train values to write, arrival column as gaps
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w') as f:
            for t in trains:
                f.write(f"{t.arrival_gap} {t.unload_time} {t.remaining_shift}\n")
