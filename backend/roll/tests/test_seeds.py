import pytest

from roll.errors import SeedConsumedError
from roll.models import RollSeed
from roll.provably_fair import sha256_hex
from roll.seeds import consume, current_pending_seed

pytestmark = pytest.mark.django_db


def test_generates_seed_when_none_pending():
    assert not RollSeed.objects.exists()

    seed = current_pending_seed()

    assert seed.state == RollSeed.PENDING
    assert len(seed.server_seed) == 64
    assert len(seed.hash) == 64
    # the commitment is independent random material, not a digest of the secret
    assert seed.hash != sha256_hex(seed.server_seed)


def test_returns_outstanding_seed_instead_of_creating_another():
    first = current_pending_seed()
    second = current_pending_seed()

    assert first.pk == second.pk
    assert RollSeed.objects.filter(state=RollSeed.PENDING).count() == 1


def test_consume_marks_seed_and_next_call_generates_fresh_one():
    seed = current_pending_seed()
    consume(seed)

    seed.refresh_from_db()
    assert seed.state == RollSeed.CONSUMED

    fresh = current_pending_seed()
    assert fresh.pk != seed.pk
    assert fresh.server_seed != seed.server_seed


def test_consuming_twice_is_a_programming_error():
    seed = current_pending_seed()
    consume(seed)

    with pytest.raises(SeedConsumedError):
        consume(seed)

    # a stale in-memory copy is refused as well
    stale = RollSeed.objects.get(pk=seed.pk)
    stale.state = RollSeed.PENDING
    with pytest.raises(SeedConsumedError):
        consume(stale)
