"""
Card number generation and validation.

A generated number is 16 digits:

    [network prefix: 4 or 5][14 random digits][Luhn check digit]

Randomness comes from the `secrets` module (the OS CSPRNG), so numbers
cannot be predicted from earlier ones.

Uniqueness is NOT checked here. The cards table holds a unique digest of
every number; card_service retries generation when a digest already exists.
"""

import secrets

CARD_NUMBER_LENGTH = 16

VISA_PREFIX = "4"
MASTERCARD_PREFIX = "5"
NETWORK_PREFIXES = (VISA_PREFIX, MASTERCARD_PREFIX)


def luhn_checksum(partial_number: str) -> int:
    """
    Compute the Luhn check digit to append to `partial_number`.

    Walks the digits right to left, doubling the first one visited and every
    second one after it (those land on even positions once the check digit
    is appended). Doubled values above 9 have 9 subtracted.
    """
    total = 0
    double = True
    for char in reversed(partial_number):
        digit = int(char)
        if double:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
        double = not double
    return (10 - (total % 10)) % 10


def is_luhn_valid(number: str) -> bool:
    """True when the last digit of `number` is the Luhn check digit of the rest."""
    if len(number) < 2 or not number.isdigit():
        return False
    return luhn_checksum(number[:-1]) == int(number[-1])


def generate_card_number() -> str:
    """Generate a random, Luhn-valid 16-digit card number starting with 4 or 5."""
    prefix = secrets.choice(NETWORK_PREFIXES)
    body = "".join(
        str(secrets.randbelow(10)) for _ in range(CARD_NUMBER_LENGTH - 2)
    )
    partial = prefix + body
    return partial + str(luhn_checksum(partial))


def mask_card_number(last_four: str | None) -> str:
    """Render a card number for display, e.g. "**** **** **** 4242"."""
    if not last_four or len(last_four) != 4:
        return "**** **** **** ****"
    return f"**** **** **** {last_four}"
