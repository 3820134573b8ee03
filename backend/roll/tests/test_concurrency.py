import threading

import pytest
from channels.layers import InMemoryChannelLayer
from django.core.management import call_command
from django.db import connection

from roll.engine import create_round
from roll.errors import ExposureLimitExceededError, InvalidStateError
from roll.models import RollBet, RollRound, RollSeed
from roll.services import admit_bet
from wallets.models import Wallet


def race(target, callers, expected=(InvalidStateError,)):
    barrier = threading.Barrier(callers)
    results = []
    errors = []

    def run():
        try:
            barrier.wait()
            results.append(target())
        except expected as e:
            errors.append(e)
        finally:
            connection.close()

    threads = [threading.Thread(target=run) for _ in range(callers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results, errors


@pytest.mark.django_db(transaction=True)
def test_concurrent_round_creation_opens_one_round(roll_settings):
    results, errors = race(create_round, 8)

    assert len(results) == 1
    assert len(errors) == 7
    assert RollRound.objects.filter(state=RollRound.OPEN).count() == 1
    assert RollSeed.objects.filter(state=RollSeed.PENDING).count() <= 1
    assert RollSeed.objects.filter(state=RollSeed.CONSUMED).count() == 1


@pytest.mark.django_db(transaction=True)
def test_concurrent_bets_stay_under_max_bet(make_user, roll_settings):
    roll_settings.max_amount_per_round = 1000
    roll_settings.save()
    round_obj = create_round()
    user = make_user(balance=100_000)

    results, errors = race(
        lambda: admit_bet(user.id, {"amount": 300, "multiplier": 150}),
        8,
        expected=(ExposureLimitExceededError,),
    )

    assert len(results) == 3
    assert len(errors) == 5
    amounts = RollBet.objects.filter(round=round_obj, user=user).values_list("amount", flat=True)
    assert sum(amounts) == 900
    assert Wallet.objects.get(user=user).balance == 100_000 - 900


@pytest.mark.django_db(transaction=True)
def test_concurrent_bets_stay_under_max_profit(make_user, roll_settings):
    roll_settings.max_profit_per_round = 1000
    roll_settings.save()
    round_obj = create_round()
    user = make_user(balance=100_000)

    results, errors = race(
        lambda: admit_bet(user.id, {"amount": 200, "multiplier": 200}),
        8,
        expected=(ExposureLimitExceededError,),
    )

    assert len(results) == 2
    assert len(errors) == 6
    bets = RollBet.objects.filter(round=round_obj, user=user)
    assert sum(bet.potential_winnings for bet in bets) == 800


@pytest.mark.django_db
def test_engine_command_plays_rounds(roll_settings, settings, monkeypatch):
    settings.ROLL_BETTING_DURATION = 0
    settings.ROLL_ROLLING_DURATION = 0
    layer = InMemoryChannelLayer()
    monkeypatch.setattr("roll.engine.get_channel_layer", lambda: layer)

    call_command("run_roll_engine", rounds=3)

    rounds = list(RollRound.objects.order_by("id"))
    assert len(rounds) == 3
    assert all(r.state == RollRound.RESOLVED and r.outcome >= 100 for r in rounds)
    assert len({r.seed_id for r in rounds}) == 3
    assert not RollSeed.objects.filter(state=RollSeed.PENDING).exists()
