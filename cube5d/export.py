"""
cube5d/export.py - Trajectory and Output Export

CSV for trajectories (header t,x0..x4), JSON for full pipeline outputs,
JSONL for a run's receipts.
"""

import csv
import json
from pathlib import Path
from typing import IO, List, Sequence, Tuple, Union

from receipts import write_receipt_jsonl

from .constants import STATE_DIM
from .types_result import PipelineOutput
from .types_state import StateVector, Trajectory

CSV_HEADER = ["t"] + [f"x{i}" for i in range(STATE_DIM)]


def trajectory_to_csv(trajectory: Sequence[StateVector], h: float, fh: IO[str]) -> int:
    """
    Write one row per sample: t = index * h, then the 5 components.

    Returns:
        int: rows written (excluding header)
    """
    writer = csv.writer(fh)
    writer.writerow(CSV_HEADER)
    for n, state in enumerate(trajectory):
        writer.writerow([repr(n * h)] + [repr(c) for c in state])
    return len(trajectory)


def trajectory_from_csv(fh: IO[str]) -> Tuple[List[float], Trajectory]:
    """Read a CSV written by trajectory_to_csv. Returns (times, trajectory)."""
    reader = csv.reader(fh)
    header = next(reader, None)
    if header != CSV_HEADER:
        raise ValueError(f"unexpected CSV header {header!r}")
    times: List[float] = []
    states: List[StateVector] = []
    for row in reader:
        if not row:
            continue
        times.append(float(row[0]))
        states.append(StateVector(tuple(float(v) for v in row[1:])))
    return times, tuple(states)


def output_to_json(output: PipelineOutput) -> str:
    """Format a PipelineOutput as JSON."""
    return json.dumps(output.to_dict(), indent=2, sort_keys=True)


def write_output_json(output: PipelineOutput, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.write_text(output_to_json(output), encoding="utf-8")
    return path


def write_receipts(output: PipelineOutput, fh: IO[str]) -> int:
    """Append the run's receipts as JSON lines. Returns the count."""
    for receipt in output.receipts:
        write_receipt_jsonl(receipt, fh)
    return len(output.receipts)
