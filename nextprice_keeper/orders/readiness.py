from __future__ import annotations

from nextprice_keeper.domain import STALE_ROUNDS, Verdict


def _as_round(value: int | str, name: str) -> int:
    # Floats lose precision above 2**53; round ids are uint80.
    if isinstance(value, float):
        raise TypeError(f"{name} must be an integer or decimal string, got float")
    return int(value)


def classify(
    current_round: int | str,
    target_round_id: int | str,
    *,
    stale_rounds: int = STALE_ROUNDS,
) -> Verdict:
    current = _as_round(current_round, "current_round")
    target = _as_round(target_round_id, "target_round_id")
    if current >= target + stale_rounds:
        return Verdict.STALE
    if current >= target:
        return Verdict.READY
    return Verdict.PENDING
