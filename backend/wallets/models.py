from django.conf import settings
from django.db import models

class Wallet(models.Model):
    # Amounts are integer currency sub-units (see CURRENCY_SUBUNITS)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="wallet",
    )
    balance = models.BigIntegerField(default=0)
    locked_balance = models.BigIntegerField(default=0)

    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Wallet({self.user_id})"
