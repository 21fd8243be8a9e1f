# liftsim/utils/io.py
"""
IO helpers: tabular views of engine outputs and JSON/YAML persistence.
"""
import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict

import pandas as pd
import yaml


def analytical_frame(result) -> pd.DataFrame:
    """Analytical output table: metrics as rows, 'network' and stations as columns."""
    table = result.as_table()
    return pd.DataFrame(table, columns=list(table.keys()))


def occupancy_frame(output) -> pd.DataFrame:
    """Per-resource occupancy timeline of a SimulationOutput."""
    rows = [asdict(sample) for sample in output.occupancy]
    return pd.DataFrame(rows, columns=['resource', 'time', 'queue_length',
                                       'busy_servers', 'capacity'])


def customer_frame(output) -> pd.DataFrame:
    """One row per customer with its timing metrics."""
    rows = [{
        'customer_id': c.customer_id,
        'arrival_time': c.arrival_time,
        'exit_time': c.exit_time,
        'status': c.status.value,
        'rejected': c.rejected,
        'rejected_at': c.rejected_at,
        'activity_time': c.activity_time,
        'waiting_time': c.waiting_time,
        'flow_time': c.flow_time,
    } for c in output.customers]
    return pd.DataFrame(rows, columns=['customer_id', 'arrival_time', 'exit_time',
                                       'status', 'rejected', 'rejected_at',
                                       'activity_time', 'waiting_time', 'flow_time'])


def event_frame(output) -> pd.DataFrame:
    """Dispatched events in dispatch order."""
    return pd.DataFrame([e.as_tuple() for e in output.event_log],
                        columns=['time', 'event_type', 'customer_id', 'resource_id'])


def export_simulation(output, directory: str) -> Dict[str, Path]:
    """Write occupancy, customer and event tables as CSV files.

    Returns:
        Mapping table name -> written path
    """
    path = Path(directory)
    path.mkdir(parents=True, exist_ok=True)

    written = {}
    for name, frame in (('occupancy', occupancy_frame(output)),
                        ('customers', customer_frame(output)),
                        ('events', event_frame(output))):
        target = path / f"{name}.csv"
        frame.to_csv(target, index=False)
        written[name] = target
    return written


def save_json(obj: Any, file_path: str, indent: int = 2):
    """Save object as JSON."""
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w') as f:
        json.dump(obj, f, indent=indent)


def save_yaml(obj: Any, file_path: str):
    """Save object as YAML."""
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w') as f:
        yaml.dump(obj, f, default_flow_style=False, sort_keys=False)
