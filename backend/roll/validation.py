# roll/validation.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_FLOOR
from typing import Iterable, Optional

from django.conf import settings

from .errors import (
    ExposureLimitExceededError,
    InsufficientBalanceError,
    InvalidStateError,
    ValidationError,
)
from .models import RollRound

MIN_MULTIPLIER = 100  # 1.00x, a bet must target strictly more
MAX_DIGITS = 18  # wider than any sub-unit amount or multiplier the limits allow


@dataclass(frozen=True)
class RoundStats:
    total_bet: int = 0
    total_potential_winnings: int = 0


def format_amount(sub_units: int) -> str:
    return f"R${sub_units / settings.CURRENCY_SUBUNITS:,.2f}"


def potential_winnings(amount: int, multiplier: int) -> int:
    return amount * multiplier // 100


def _floor_number(value) -> Optional[int]:
    """Floor a numeric-looking value, None when it is not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite() or number.adjusted() >= MAX_DIGITS:
        return None
    return int(number.to_integral_value(rounding=ROUND_FLOOR))


def validate_format(data, roll_settings) -> tuple[int, int]:
    """
    Check a raw bet payload and return its floored ``(amount, multiplier)``.
    """
    if not isinstance(data, Mapping):
        raise ValidationError()

    amount = _floor_number(data.get("amount"))
    if amount is None or amount <= 0:
        raise ValidationError("You’ve entered an invalid bet amount.")

    multiplier = _floor_number(data.get("multiplier"))
    if multiplier is None or multiplier <= MIN_MULTIPLIER:
        raise ValidationError("Your entered bet multiplier is invalid.")

    if amount < roll_settings.min_amount:
        raise ValidationError(
            f"You can only bet a min amount of {format_amount(roll_settings.min_amount)} per game."
        )

    return amount, multiplier


def compute_user_round_stats(user_id, bets: Iterable) -> RoundStats:
    total_bet = 0
    total_winnings = 0

    for bet in bets:
        if bet.user_id == user_id:
            total_bet += bet.amount
            total_winnings += potential_winnings(bet.amount, bet.multiplier)

    return RoundStats(total_bet=total_bet, total_potential_winnings=total_winnings)


def validate_user(amount: int, multiplier: int, balance: int, stats: RoundStats, roll_settings) -> None:
    # Balance is whatever is stored now; earlier bets were already debited.
    if balance < amount:
        raise InsufficientBalanceError()

    if stats.total_bet + amount > roll_settings.max_amount_per_round:
        raise ExposureLimitExceededError(
            f"You can only bet a total max amount of "
            f"{format_amount(roll_settings.max_amount_per_round)} per game."
        )

    if stats.total_potential_winnings + potential_winnings(amount, multiplier) > roll_settings.max_profit_per_round:
        raise ExposureLimitExceededError(
            f"You can only have a total max win amount of "
            f"{format_amount(roll_settings.max_profit_per_round)} per game."
        )


def validate_round_state(round_obj) -> None:
    if round_obj is None:
        raise InvalidStateError()
    if round_obj.state != RollRound.OPEN:
        raise InvalidStateError("You need to wait for the next round before you can bet.")
