from __future__ import annotations

import hashlib
import secrets
from random import Random


def derive_seed(base_seed: int, *, deployment_id: str, stream: str, purpose: str) -> int:
    payload = f"{base_seed}|{deployment_id}|{stream}|{purpose}".encode("utf-8")
    digest = hashlib.blake2b(payload, digest_size=8).digest()
    return int.from_bytes(digest, "big")


def fresh_seed() -> int:
    return secrets.randbits(64)


class SeededDice:
    """Roll source for one deployment, derived from a base seed.

    Outcome rolls come from their own stream so that changing how other
    randomness is drawn never shifts phase results.
    """

    def __init__(self, base_seed: int, deployment_id: str) -> None:
        self._rng = Random(
            derive_seed(base_seed, deployment_id=deployment_id, stream="outcomes", purpose="roll")
        )

    def roll(self) -> int:
        return self._rng.randint(1, 100)
