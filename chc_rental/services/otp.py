"""Delivery verification codes handed over between deliverer and renter."""

from __future__ import annotations

import random
import secrets

OTP_MIN = 1000
OTP_MAX = 9999

_system_rng = secrets.SystemRandom()


def generate_otp(rng: random.Random | None = None) -> str:
    """Return a 4-digit code drawn uniformly from 1000-9999; never a leading zero."""
    return str((rng or _system_rng).randint(OTP_MIN, OTP_MAX))
