# accounts/models.py
from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    RANK_USER = "user"
    RANK_PARTNER = "partner"
    RANK_MOD = "mod"
    RANK_ADMIN = "admin"

    RANK_CHOICES = [
        (RANK_USER, "User"),
        (RANK_PARTNER, "Partner"),
        (RANK_MOD, "Moderator"),
        (RANK_ADMIN, "Admin"),
    ]

    RAKEBACK_CHOICES = [
        ("none", "None"),
        ("bronze", "Bronze"),
        ("silver", "Silver"),
        ("gold", "Gold"),
        ("platinum", "Platinum"),
        ("diamond", "Diamond"),
    ]

    email = models.EmailField(unique=True, db_index=True)

    avatar = models.URLField(blank=True)
    rank = models.CharField(max_length=16, choices=RANK_CHOICES, default=RANK_USER)
    level = models.PositiveIntegerField(default=0)
    rakeback = models.CharField(max_length=16, choices=RAKEBACK_CHOICES, default="none")

    # Aggregate wagering stats shown on public profiles, e.g. {"bet": 0, "won": 0}
    stats = models.JSONField(default=dict, blank=True)

    @property
    def rakeback_name(self):
        return self.get_rakeback_display()

    def __str__(self):
        return self.username
