import logging

from models import Category, IndexQuote, ThresholdPolicy

logger = logging.getLogger(__name__)


def is_triggered(change: float, threshold: float, policy: ThresholdPolicy) -> bool:
    """
    Decide whether an index move is significant. Comparisons are inclusive:
    a move of exactly `threshold` triggers.

      ABSOLUTE: abs(change) >= threshold
      DOWNSIDE: change <= -threshold
    """
    if policy is ThresholdPolicy.ABSOLUTE:
        return abs(change) >= threshold
    if policy is ThresholdPolicy.DOWNSIDE:
        return change <= -threshold
    raise ValueError(f"Unknown threshold policy: {policy!r}")


def evaluate(
    quotes: list[IndexQuote], threshold: float, policy: ThresholdPolicy
) -> dict[Category, bool]:
    triggered = {}
    for quote in quotes:
        triggered[quote.category] = is_triggered(quote.change, threshold, policy)
        logger.info(
            "%s change %.2f%% (threshold %.2f, policy %s): %s",
            quote.label, quote.change, threshold, policy.value,
            "TRIGGERED" if triggered[quote.category] else "quiet",
        )
    return triggered
