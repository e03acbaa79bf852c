"""Human-facing reference numbers for transactions and repayments"""

import secrets
import string
import time
from typing import Callable, Optional

from savings_credit.domain.exceptions import ReferenceGenerationError

BASE36_UPPER = string.digits + string.ascii_uppercase
DIGITS = string.digits

TRANSACTION_PREFIX = "TXN"
TRANSACTION_SUFFIX_LENGTH = 7

REPAYMENT_PREFIX = "CR"
REPAYMENT_SUFFIX_LENGTH = 3


def generate_reference(prefix: str, alphabet: str = BASE36_UPPER, length: int = 7) -> str:
    """
    Build a candidate reference: prefix + epoch milliseconds + random suffix.

    Example:
        TXN1760648400123K3F9QZ2
    """
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(alphabet) for _ in range(length))
    return f"{prefix}{millis}{suffix}"


def generate_unique_reference(
    prefix: str,
    exists: Callable[[str], bool],
    alphabet: str = BASE36_UPPER,
    length: int = 7,
    max_attempts: int = 10_000,
    on_collision: Optional[Callable[[], None]] = None,
) -> str:
    """
    Generate a reference that the store does not already hold.

    Candidates are probed with `exists` and regenerated on collision. The
    loop only gives up after `max_attempts` probes, which at realistic
    request rates never happens.

    Raises:
        ReferenceGenerationError: every probed candidate was taken
    """
    for _ in range(max_attempts):
        candidate = generate_reference(prefix, alphabet, length)
        if not exists(candidate):
            return candidate
        if on_collision is not None:
            on_collision()

    raise ReferenceGenerationError(
        f"Could not allocate a unique {prefix} reference after {max_attempts} attempts"
    )
