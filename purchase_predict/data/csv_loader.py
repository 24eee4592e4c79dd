# purchase_predict/data/csv_loader.py
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import numpy as np
import pandas as pd
import pyarrow as pa
import pyarrow.csv as pv

from purchase_predict import logs
from purchase_predict.data.events import RawEvent

COLUMNS = [
    "event_time",
    "event_type",
    "product_id",
    "category_id",
    "category_code",
    "brand",
    "price",
    "user_id",
    "user_session",
]
NUMERIC_COLUMNS = ["product_id", "category_id", "price", "user_id"]


class EventCsvLoader:
    """
    EventCsvLoader（ingestion boundary）

    Responsibility:
    - read the 9-column event log (header row expected)
    - reject malformed rows BEFORE they reach the training core:
        - wrong column count      → skipped by the CSV parser
        - null / non-numeric ids  → dropped after coercion
    - return immutable RawEvent records in file order

    Numeric columns are read as strings and coerced here so one bad
    cell never aborts the whole file.
    """

    def __init__(self, separator: str = ",", block_size: int = 1 << 22):
        self.separator = separator
        self.block_size = block_size
        self.skipped_rows = 0

    @logs.catch()
    def load(self, path: str | Path, *, max_rows: Optional[int] = None) -> List[RawEvent]:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Event log not found: {path}")

        self.skipped_rows = 0
        table = self._read_table(path, max_rows=max_rows)
        df = self._clean(table.to_pandas())

        logs.info(
            f"[EventCsvLoader] loaded rows={len(df)} "
            f"skipped={self.skipped_rows} file={path.name}"
        )

        return [
            RawEvent(
                event_time=row.event_time,
                event_type=row.event_type,
                product_id=float(row.product_id),
                category_id=float(row.category_id),
                category_code=row.category_code,
                brand=row.brand,
                price=float(row.price),
                user_id=float(row.user_id),
                user_session=row.user_session,
            )
            for row in df.itertuples(index=False)
        ]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------
    def _on_invalid_row(self, row) -> str:
        self.skipped_rows += 1
        return "skip"

    def _read_table(self, path: Path, *, max_rows: Optional[int]) -> pa.Table:
        read_opts = pv.ReadOptions(block_size=self.block_size)
        parse_opts = pv.ParseOptions(
            delimiter=self.separator,
            invalid_row_handler=self._on_invalid_row,
        )
        convert_opts = pv.ConvertOptions(
            include_columns=COLUMNS,
            column_types={c: pa.string() for c in COLUMNS},
            strings_can_be_null=True,
        )

        reader = pv.open_csv(
            path,
            read_options=read_opts,
            parse_options=parse_opts,
            convert_options=convert_opts,
        )

        batches: list[pa.RecordBatch] = []
        rows = 0
        try:
            schema = reader.schema
            for batch in reader:
                batches.append(batch)
                rows += batch.num_rows
                if max_rows is not None and rows >= max_rows:
                    break
        finally:
            reader.close()

        table = pa.Table.from_batches(batches, schema=schema)
        if max_rows is not None:
            table = table.slice(0, max_rows)
        return table

    def _clean(self, df: pd.DataFrame) -> pd.DataFrame:
        for col in NUMERIC_COLUMNS:
            df[col] = pd.to_numeric(df[col], errors="coerce")

        numeric = df[NUMERIC_COLUMNS].to_numpy(dtype=np.float64)
        mask = np.isfinite(numeric).all(axis=1) & df["event_type"].notna().to_numpy()

        dropped = int((~mask).sum())
        if dropped:
            logs.warning(f"[EventCsvLoader] dropped {dropped} rows with invalid numeric fields")
            self.skipped_rows += dropped

        df = df.loc[mask].reset_index(drop=True)

        # optional text fields (category_code / brand) are often empty
        for col in ("event_time", "category_code", "brand", "user_session"):
            df[col] = df[col].fillna("")
        return df


def load_events(path: str | Path, *, separator: str = ",", max_rows: Optional[int] = None) -> List[RawEvent]:
    return EventCsvLoader(separator=separator).load(path, max_rows=max_rows)
