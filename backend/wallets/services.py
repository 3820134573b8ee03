from django.db import transaction
from django.db.models import F
from .models import Wallet


class WalletError(Exception):
    pass


# ======================================================
# INTERNAL
# ======================================================
def get_wallet_for_update(user_id: int) -> Wallet:
    wallet, _ = Wallet.objects.select_for_update().get_or_create(user_id=user_id)
    return wallet


# ======================================================
# PLACE BET (DEBIT balance, LOCK the stake)
# ======================================================
@transaction.atomic
def debit_for_bet(wallet: Wallet, amount: int) -> int:
    """
    Move ``amount`` from balance into locked_balance.

    The caller has already checked the balance while holding the row lock;
    the conditional update still refuses to drive the balance negative.
    Returns the new balance.
    """
    if amount <= 0:
        raise WalletError("Invalid bet amount")

    updated = Wallet.objects.filter(pk=wallet.pk, balance__gte=amount).update(
        balance=F("balance") - amount,
        locked_balance=F("locked_balance") + amount,
    )
    if not updated:
        raise WalletError("Insufficient funds")

    wallet.refresh_from_db(fields=["balance", "locked_balance"])
    return wallet.balance
