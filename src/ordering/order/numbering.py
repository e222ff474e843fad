"""Human-legible order numbers: ``ORD-<epoch millis>-<6 uppercase alphanumerics>``.

Uniqueness is probabilistic. The unique constraint on ``orders.order_number``
is the real guard, and the lifecycle service retries with a fresh number when
it trips.
"""

import secrets
import string
import time

ORDER_NUMBER_PREFIX = "ORD"
SUFFIX_LENGTH = 6
_ALPHABET = string.ascii_uppercase + string.digits


def generate_order_number(clock=time.time) -> str:
    millis = int(clock() * 1000)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"{ORDER_NUMBER_PREFIX}-{millis}-{suffix}"
