from django.conf import settings
from django.db import models


class RollSeed(models.Model):
    PENDING = "PENDING"
    CONSUMED = "CONSUMED"

    SEED_STATE = [
        (PENDING, "Pending"),
        (CONSUMED, "Consumed"),
    ]

    server_seed = models.CharField(max_length=64)  # secret, revealed with its round
    hash = models.CharField(max_length=64)  # public commitment
    state = models.CharField(max_length=16, choices=SEED_STATE, default=PENDING, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-id"]

    def __str__(self):
        return f"Seed {self.id} ({self.state})"


class RollRound(models.Model):
    OPEN = "OPEN"
    RESOLVING = "RESOLVING"
    RESOLVED = "RESOLVED"

    ROUND_STATE = [
        (OPEN, "Open for bets"),
        (RESOLVING, "Rolling"),
        (RESOLVED, "Resolved"),
    ]

    # Outcome and seed are public in these states
    VISIBLE_STATES = (RESOLVING, RESOLVED)

    state = models.CharField(max_length=16, choices=ROUND_STATE, default=OPEN, db_index=True)
    seed = models.ForeignKey(RollSeed, on_delete=models.PROTECT, related_name="rounds")
    outcome = models.PositiveBigIntegerField(null=True, blank=True)  # multiplier x100
    created_at = models.DateTimeField(auto_now_add=True)
    resolving_at = models.DateTimeField(null=True, blank=True)
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-id"]

    @property
    def is_revealed(self):
        return self.state in self.VISIBLE_STATES

    def __str__(self):
        return f"Round {self.id} [{self.state}]"


class RollBet(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="roll_bets")
    round = models.ForeignKey(RollRound, on_delete=models.CASCADE, related_name="bets")
    amount = models.PositiveBigIntegerField()
    multiplier = models.PositiveIntegerField()  # x100, 150 == 1.50x
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]
        indexes = [
            models.Index(fields=["round", "user"], name="roll_bet_round_user_idx"),
        ]

    @property
    def potential_winnings(self):
        return self.amount * self.multiplier // 100

    def __str__(self):
        return f"Bet {self.id} on Round {self.round_id}"


class RollSettings(models.Model):
    # Singleton row, seeded from the ROLL_* settings on first access.
    # Amounts are in currency sub-units.
    min_amount = models.PositiveBigIntegerField()
    max_amount_per_round = models.PositiveBigIntegerField()
    max_profit_per_round = models.PositiveBigIntegerField()
    house_edge = models.DecimalField(max_digits=5, decimal_places=4)

    def __str__(self):
        return "Roll Game Settings"

    @staticmethod
    def defaults():
        units = settings.CURRENCY_SUBUNITS
        return {
            "min_amount": int(round(settings.ROLL_MIN_AMOUNT * units)),
            "max_amount_per_round": int(round(settings.ROLL_MAX_AMOUNT * units)),
            "max_profit_per_round": int(round(settings.ROLL_MAX_PROFIT * units)),
            "house_edge": str(settings.ROLL_HOUSE_EDGE),
        }

    @staticmethod
    def get():
        obj, _ = RollSettings.objects.get_or_create(pk=1, defaults=RollSettings.defaults())
        return obj
