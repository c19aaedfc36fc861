"""
Scan operator - yields record batches from a source

This is a leaf operator (has no child). It wraps an arrow table, a list of
record batches or a Parquet file and re-chunks the data to a fixed batch
size, so tests can feed the same rows to accumulators in different
chunkings.
"""

from collections.abc import Iterator
from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq

from aggextra.operators.base import Operator


class BatchScan(Operator):
    """
    Scan operator over in-memory or Parquet data

    Example:
        >>> scan = BatchScan(table, batch_size=2)
        >>> [len(b) for b in scan]
        [2, 2, 1]
    """

    def __init__(
        self,
        source: pa.Table | list[pa.RecordBatch] | str | Path,
        batch_size: int | None = None,
        columns: list[str] | None = None,
    ):
        """
        Initialize scan operator

        Args:
            source: Table, list of record batches, or path to a Parquet file
            batch_size: Maximum rows per yielded batch (None keeps the
                source's own chunking)
            columns: Columns to read (all when None)
        """
        super().__init__(child=None)
        if batch_size is not None and batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.source = source
        self.batch_size = batch_size
        self.columns = columns

    def __iter__(self) -> Iterator[pa.RecordBatch]:
        if isinstance(self.source, (str, Path)):
            path = Path(self.source)
            if not path.exists():
                raise FileNotFoundError(f"Parquet file not found: {path}")
            parquet_file = pq.ParquetFile(str(path))
            yield from parquet_file.iter_batches(
                batch_size=self.batch_size or 65_536, columns=self.columns
            )
            return

        if isinstance(self.source, pa.Table):
            table = self.source
        elif not self.source:
            return
        else:
            table = pa.Table.from_batches(self.source)

        if self.columns is not None:
            table = table.select(self.columns)

        yield from table.to_batches(max_chunksize=self.batch_size)

    def __repr__(self) -> str:
        source = self.source if isinstance(self.source, (str, Path)) else type(self.source).__name__
        return f"BatchScan({source}, batch_size={self.batch_size})"
