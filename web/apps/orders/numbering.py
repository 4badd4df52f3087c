"""Human readable order numbers: ``<PREFIX>-YYYYMMDD-NNNN``.

The sequence restarts every day. The next value is read from the highest
number already issued today under a row lock, and the unique constraint on
``OrderModel.number`` settles the case where two transactions read the same
maximum (the first order of the day has no row to lock): the loser retries.
"""

from django.conf import settings
from django.db.models.functions import Length
from django.utils import timezone

from .models import OrderModel

MAX_ATTEMPTS = 5


def day_prefix(now=None) -> str:
    now = now or timezone.now()
    return f"{settings.ORDER_NUMBER_PREFIX}-{now:%Y%m%d}-"


def next_order_number(now=None) -> str:
    """Return the next free number for today. Call inside a transaction."""
    prefix = day_prefix(now)
    # Past 9999 the suffix widens, so longer numbers are higher ones.
    last = (
        OrderModel.objects.select_for_update()
        .filter(number__startswith=prefix)
        .order_by(Length("number").desc(), "-number")
        .values_list("number", flat=True)
        .first()
    )
    seq = int(last[len(prefix):]) + 1 if last else 1
    return f"{prefix}{seq:04d}"
