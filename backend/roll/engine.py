import logging
import time

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone
import redis

from .errors import InvalidStateError, RoundBusyError, RoundCreationError
from .models import RollRound, RollSettings
from .provably_fair import generate_round_result
from .redis_lock import LockNotAcquired, round_bets_lock, round_creation_lock
from .seeds import consume, current_pending_seed
from .serializers import sanitize_round

logger = logging.getLogger(__name__)

GROUP_NAME = "roll"


def get_active_round():
    return (
        RollRound.objects.select_related("seed")
        .exclude(state=RollRound.RESOLVED)
        .order_by("-id")
        .first()
    )


def create_round() -> RollRound:
    """
    Open a new round bound to the pending seed.

    Seed consumption and round creation commit together; the global creation
    lock keeps a second caller from opening a parallel round or consuming the
    same seed.
    """
    try:
        with round_creation_lock():
            with transaction.atomic():
                if RollRound.objects.exclude(state=RollRound.RESOLVED).exists():
                    raise InvalidStateError("The previous round has not been resolved yet.")

                seed = current_pending_seed()
                round_obj = RollRound.objects.create(seed=seed, state=RollRound.OPEN)
                consume(seed)
    except LockNotAcquired as e:
        logger.error("Round creation lock busy: %s", e)
        raise RoundCreationError() from e
    except redis.RedisError as e:
        logger.exception("Round creation lock unavailable")
        raise RoundCreationError() from e
    except DatabaseError as e:
        logger.exception("Round creation failed")
        raise RoundCreationError() from e

    logger.info("Round %s opened with seed %s", round_obj.id, seed.id)
    return round_obj


def _transition(round_obj: RollRound, from_state: str, **fields) -> None:
    # Compare-and-set on the stored state; a stale copy can never move a round backwards.
    updated = RollRound.objects.filter(pk=round_obj.pk, state=from_state).update(**fields)
    if not updated:
        logger.warning(
            "Round %s rejected transition %s -> %s", round_obj.pk, from_state, fields.get("state")
        )
        raise InvalidStateError()
    for name, value in fields.items():
        setattr(round_obj, name, value)


def start_rolling(round_obj: RollRound) -> RollRound:
    """OPEN -> RESOLVING; the outcome is derived and stored here."""
    try:
        with round_bets_lock(round_obj.pk):
            with transaction.atomic():
                current = RollRound.objects.select_for_update().select_related("seed").get(pk=round_obj.pk)
                if current.state != RollRound.OPEN:
                    raise InvalidStateError()

                house_edge = RollSettings.get().house_edge
                outcome = generate_round_result(current.seed.server_seed, current.pk, house_edge)

                _transition(
                    round_obj,
                    RollRound.OPEN,
                    state=RollRound.RESOLVING,
                    outcome=outcome,
                    resolving_at=timezone.now(),
                )
    except (LockNotAcquired, redis.RedisError) as e:
        raise RoundBusyError() from e

    logger.info("Round %s rolling, outcome %s", round_obj.pk, outcome)
    return round_obj


def resolve(round_obj: RollRound) -> RollRound:
    if round_obj.state == RollRound.OPEN:
        start_rolling(round_obj)
    elif round_obj.state != RollRound.RESOLVING:
        raise InvalidStateError()

    _transition(
        round_obj,
        RollRound.RESOLVING,
        state=RollRound.RESOLVED,
        resolved_at=timezone.now(),
    )
    logger.info("Round %s resolved at %s", round_obj.pk, round_obj.outcome)
    return round_obj


def run_single_round(
    round_obj: RollRound,
    heartbeat=None,
    channel_layer=None,
    betting_duration=None,
    rolling_duration=None,
):
    """
    Blocking loop for ONE round: betting window, rolling, resolution.
    heartbeat (optional): LockHeartbeat instance to keep the engine lock alive.
    """
    channel_layer = channel_layer or get_channel_layer()
    if betting_duration is None:
        betting_duration = settings.ROLL_BETTING_DURATION
    if rolling_duration is None:
        rolling_duration = settings.ROLL_ROLLING_DURATION

    def check_heartbeat():
        if heartbeat:
            heartbeat.tick()

    def broadcast(event, data):
        async_to_sync(channel_layer.group_send)(GROUP_NAME, {"type": event, "data": data})

    # 1. BETTING PHASE
    check_heartbeat()
    broadcast("roll.round", sanitize_round(round_obj))

    betting_end = time.monotonic() + betting_duration
    while time.monotonic() < betting_end:
        check_heartbeat()
        broadcast("roll.countdown", {"round_id": round_obj.pk, "remaining": betting_end - time.monotonic()})
        time.sleep(min(0.5, max(betting_end - time.monotonic(), 0)))

    # 2. ROLLING
    check_heartbeat()
    start_rolling(round_obj)
    broadcast("roll.round", sanitize_round(round_obj))

    rolling_end = time.monotonic() + rolling_duration
    while time.monotonic() < rolling_end:
        check_heartbeat()
        time.sleep(min(0.5, max(rolling_end - time.monotonic(), 0)))

    # 3. RESOLVED
    check_heartbeat()
    resolve(round_obj)
    broadcast("roll.round", sanitize_round(round_obj))

    return round_obj
