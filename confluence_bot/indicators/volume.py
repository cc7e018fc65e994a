"""Volume confirmation: current bar volume vs trailing average."""

from __future__ import annotations
from dataclasses import dataclass

import pandas as pd


@dataclass(frozen=True)
class VolumeCheck:
    confirmed: bool
    ratio: float


def average_volume(df: pd.DataFrame, index: int, period: int = 20) -> float:
    """Mean volume of the `period` bars before `index` (fewer near the series start)."""
    start = max(0, index - period)
    window = df["volume"].iloc[start:index]
    if window.empty:
        return 0.0
    return float(window.mean())


def volume_confirmation(df: pd.DataFrame, index: int, period: int = 20, multiplier: float = 1.5) -> VolumeCheck:
    """Confirmed when volume[index] / average_volume >= multiplier."""
    avg = average_volume(df, index, period)
    ratio = float(df["volume"].iloc[index]) / avg if avg > 0 else 0.0
    return VolumeCheck(confirmed=ratio >= multiplier, ratio=ratio)
