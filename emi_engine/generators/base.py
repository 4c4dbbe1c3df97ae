"""Seeded randomness shared by scenario generators."""

from __future__ import annotations

import random
from abc import ABC

from faker import Faker


class BaseGenerator(ABC):
    """Owns the Faker instance and random source of a generator.

    Both are seeded from the same value, so two generators built with the
    same seed produce the same loans regardless of what else ran before.

    Parameters
    ----------
    seed : int | None
        Random seed; ``None`` draws fresh entropy.
    locale : str
        Faker locale used for dates and identifiers.
    """

    def __init__(self, seed: int | None = None, locale: str = "en_US") -> None:
        self.seed = seed
        self.rng = random.Random(seed)
        self.fake = Faker(locale)
        if seed is not None:
            self.fake.seed_instance(seed)

    def chance(self, probability: float) -> bool:
        """True with the given probability."""
        return self.rng.random() < probability
