"""Candle ingestion: validate and convert to the OHLCV DataFrame used everywhere else."""

from __future__ import annotations
from typing import Sequence

import numpy as np
import pandas as pd

from confluence_bot.core.types import Candle

OHLCV_COLUMNS = ["time", "open", "high", "low", "close", "volume"]


def candles_to_frame(candles: Sequence[Candle]) -> pd.DataFrame:
    """
    Build a DataFrame (time, open, high, low, close, volume) from candles.
    Rejects non-finite prices/volumes and timestamps that are not strictly increasing.
    """
    df = pd.DataFrame(
        [(c.time, c.open, c.high, c.low, c.close, c.volume) for c in candles],
        columns=OHLCV_COLUMNS,
    )
    if df.empty:
        return df
    values = df[["open", "high", "low", "close", "volume"]].to_numpy(dtype=float)
    if not np.isfinite(values).all():
        raise ValueError("candles contain non-finite price or volume")
    if (df["time"].diff().iloc[1:] <= 0).any():
        raise ValueError("candle times must be strictly increasing")
    return df.astype({"time": "int64", "open": float, "high": float, "low": float, "close": float, "volume": float})


def frame_to_candles(df: pd.DataFrame) -> list[Candle]:
    """Inverse of candles_to_frame (indicator columns are ignored)."""
    return [
        Candle(int(r.time), float(r.open), float(r.high), float(r.low), float(r.close), float(r.volume))
        for r in df[OHLCV_COLUMNS].itertuples(index=False)
    ]
