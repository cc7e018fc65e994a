"""Abstract detector: one strategy's rule evaluated on one bar."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional

import pandas as pd

from confluence_bot.core.types import StrategyCandidate, StrategyName


def value_at(df: pd.DataFrame, column: str, index: int) -> Optional[float]:
    """Column value at row `index`, or None if the row/column is missing or NaN."""
    if index < 0 or index >= len(df) or column not in df.columns:
        return None
    v = df[column].iloc[index]
    if pd.isna(v):
        return None
    return float(v)


class BaseDetector(ABC):
    """A detector inspects bar `index` (and at most a few bars before it) of an indicator frame."""

    name: StrategyName

    @abstractmethod
    def detect(self, df: pd.DataFrame, index: int) -> Optional[StrategyCandidate]:
        """
        Return a directional candidate for bar `index` or None.
        Missing indicator values mean no signal is possible on this bar.
        """
        pass
