import logging
import signal
import time

from django.conf import settings
from django.core.management.base import BaseCommand

from roll.engine import create_round, get_active_round, resolve, run_single_round
from roll.errors import InvalidStateError, RoundCreationError
from roll.models import RollSettings
from roll.redis_lock import LockHeartbeat, RedisLock

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Run the roll round scheduler with a Redis single-instance lock"

    def add_arguments(self, parser):
        parser.add_argument(
            "--lock-ttl",
            type=int,
            default=settings.ROLL_ENGINE_LOCK_TTL,
            help="Lock TTL in seconds",
        )
        parser.add_argument(
            "--heartbeat-interval",
            type=float,
            default=10,
            help="Heartbeat interval in seconds (default: 10)",
        )
        parser.add_argument(
            "--rounds",
            type=int,
            default=0,
            help="Stop after this many rounds (default: run until signalled)",
        )

    def handle(self, *args, **options):
        lock_ttl = options["lock_ttl"]
        heartbeat_interval = options["heartbeat_interval"]
        max_rounds = options["rounds"]

        self.stdout.write(f"[ROLL] Starting with lock TTL: {lock_ttl}s, heartbeat: {heartbeat_interval}s")

        lock = RedisLock("roll:engine", lock_ttl)

        if not lock.acquire():
            self.stdout.write(self.style.WARNING("[ROLL] Another engine already running. Exiting."))
            return

        self.stdout.write(self.style.SUCCESS("[ROLL] Lock acquired. Engine starting."))

        heartbeat = LockHeartbeat(lock, every_seconds=heartbeat_interval)

        running = True

        def shutdown(*_):
            nonlocal running
            running = False
            self.stdout.write(self.style.WARNING("[ROLL] Shutdown requested."))

        previous = {sig: signal.signal(sig, shutdown) for sig in (signal.SIGINT, signal.SIGTERM)}

        played = 0
        try:
            RollSettings.get()

            # A round left behind by a crashed engine is finished first
            leftover = get_active_round()
            if leftover:
                self.stdout.write(self.style.WARNING(f"[ROLL] Resolving leftover round {leftover.id}"))
                resolve(leftover)

            while running:
                heartbeat.tick()

                round_start = time.time()
                try:
                    round_obj = create_round()
                except (RoundCreationError, InvalidStateError) as e:
                    self.stdout.write(self.style.ERROR(f"[ROLL] Could not open round: {e}"))
                    raise

                run_single_round(round_obj, heartbeat=heartbeat)

                round_duration = time.time() - round_start
                self.stdout.write(
                    self.style.SUCCESS(
                        f"[ROLL] Round {round_obj.id} resolved at {round_obj.outcome} in {round_duration:.2f} seconds"
                    )
                )

                played += 1
                if max_rounds and played >= max_rounds:
                    break

        except RuntimeError as e:
            if "Lost engine lock" in str(e):
                self.stdout.write(
                    self.style.ERROR("[ROLL] Engine lock lost. Another instance may have taken over.")
                )
            else:
                logger.exception("Roll engine stopped")
            raise

        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)
            if lock.release():
                self.stdout.write(self.style.SUCCESS("[ROLL] Lock released. Engine stopped."))
