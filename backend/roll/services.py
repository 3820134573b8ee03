import logging

from django.db import transaction
import redis

from wallets.services import WalletError, debit_for_bet, get_wallet_for_update

from .engine import get_active_round
from .errors import InsufficientBalanceError, RoundBusyError
from .models import RollBet, RollRound, RollSettings
from .redis_lock import LockNotAcquired, round_bets_lock
from .validation import (
    compute_user_round_stats,
    validate_format,
    validate_round_state,
    validate_user,
)

logger = logging.getLogger(__name__)


def admit_bet(user_id, data) -> RollBet:
    """
    Validate a wager against the active round and record it.

    The read of the player's round totals, the checks and the write all
    happen under the round's bets lock inside one transaction, so two
    concurrent near-limit bets cannot both pass the exposure ceilings.
    Nothing is written unless every check passes.
    """
    roll_settings = RollSettings.get()
    amount, multiplier = validate_format(data, roll_settings)

    round_obj = get_active_round()
    validate_round_state(round_obj)

    try:
        with round_bets_lock(round_obj.pk):
            with transaction.atomic():
                round_obj = RollRound.objects.select_for_update().get(pk=round_obj.pk)
                validate_round_state(round_obj)

                wallet = get_wallet_for_update(user_id)
                stats = compute_user_round_stats(
                    user_id, RollBet.objects.filter(round=round_obj, user_id=user_id)
                )
                validate_user(amount, multiplier, wallet.balance, stats, roll_settings)

                debit_for_bet(wallet, amount)
                bet = RollBet.objects.create(
                    user_id=user_id,
                    round=round_obj,
                    amount=amount,
                    multiplier=multiplier,
                )
    except (LockNotAcquired, redis.RedisError) as e:
        raise RoundBusyError() from e
    except WalletError as e:
        raise InsufficientBalanceError() from e

    logger.info("Bet %s admitted: user %s, round %s, %s @ %s", bet.id, user_id, round_obj.pk, amount, multiplier)
    return bet
