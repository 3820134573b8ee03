import logging

from django.db import transaction

from .errors import SeedConsumedError
from .models import RollSeed
from .provably_fair import generate_commitment, generate_server_seed

logger = logging.getLogger(__name__)


@transaction.atomic
def current_pending_seed() -> RollSeed:
    """
    Return the outstanding PENDING seed, generating one if none exists.

    Callers must hold the round creation lock; that is what keeps a second
    PENDING seed from being generated concurrently.
    """
    seed = (
        RollSeed.objects.select_for_update()
        .filter(state=RollSeed.PENDING)
        .order_by("-id")
        .first()
    )
    if seed:
        return seed

    seed = RollSeed.objects.create(
        server_seed=generate_server_seed(),
        hash=generate_commitment(),
        state=RollSeed.PENDING,
    )
    logger.info("Generated seed %s with commitment %s", seed.id, seed.hash)
    return seed


def consume(seed: RollSeed) -> None:
    updated = RollSeed.objects.filter(pk=seed.pk, state=RollSeed.PENDING).update(
        state=RollSeed.CONSUMED
    )
    if not updated:
        raise SeedConsumedError(f"Seed {seed.pk} is not pending")
    seed.state = RollSeed.CONSUMED
