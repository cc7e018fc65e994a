"""Risk: stop-loss / take-profit placement and risk-reward checks."""

from confluence_bot.risk.manager import RiskManager, RiskResult

__all__ = ["RiskManager", "RiskResult"]
