BASE_COINS = 2
COIN_INTERVAL_SEC = 20
COIN_LIFETIME_MS = 3000


def threshold_index(total_seconds: int, interval: int = COIN_INTERVAL_SEC) -> int:
    """Number of coin intervals reached after ``total_seconds`` active seconds."""
    if interval <= 0:
        raise ValueError('interval must be positive')
    return max(0, int(total_seconds)) // interval


def should_fire(total_seconds: int, events_triggered: int, interval: int = COIN_INTERVAL_SEC,
                offer_pending: bool = False) -> bool:
    """Whether a new coin offer should be surfaced.

    Several thresholds crossed since the last evaluation (for example after
    the page was in the background) still count as one event; the skipped
    intervals are not separately claimable.
    """
    if offer_pending:
        return False
    return threshold_index(total_seconds, interval) > int(events_triggered or 0)


def available_coins(coins_claimed: int, coins_spent: int, base_coins: int = BASE_COINS) -> int:
    """Spendable coins. Always derived, never stored."""
    return base_coins + int(coins_claimed or 0) - int(coins_spent or 0)
