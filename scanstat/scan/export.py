"""
Result tables for the observed scan and the Monte Carlo replicates.

Both tables have the columns zone, duration, score, relrisk_in, relrisk_out.
The exporter only reads from the ResultStore; sorting and MLC extraction
happen in the caller.
"""

import pandas as pd

from ..data_models import RESULT_COLUMNS, ScanResult
from .storage import ResultStore


class ResultExporter:
    """
    Builds pandas DataFrames from a ResultStore.

    Example:
        >>> exporter = ResultExporter(scan.results)
        >>> exporter.observed_table().columns.tolist()
        ['zone', 'duration', 'score', 'relrisk_in', 'relrisk_out']
    """

    def __init__(self, store: ResultStore):
        self.store = store

    def observed_table(self) -> pd.DataFrame:
        """One row per retained observed candidate (all of them, or the maximum)."""
        return pd.DataFrame(self.store.observed(), columns=list(RESULT_COLUMNS))

    def simulation_table(self) -> pd.DataFrame:
        """Exactly one row per simulation round."""
        return pd.DataFrame(self.store.simulated(), columns=list(RESULT_COLUMNS))

    def observed_results(self):
        """Observed rows as ScanResult records."""
        return [ScanResult(**row) for row in _records(self.observed_table())]

    def simulation_results(self):
        """Per-round maxima as ScanResult records."""
        return [ScanResult(**row) for row in _records(self.simulation_table())]


def _records(table: pd.DataFrame):
    return [
        {
            "zone": int(row.zone),
            "duration": int(row.duration),
            "score": float(row.score),
            "relrisk_in": float(row.relrisk_in),
            "relrisk_out": float(row.relrisk_out),
        }
        for row in table.itertuples(index=False)
    ]
