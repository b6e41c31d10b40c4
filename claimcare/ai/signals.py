# claimcare/ai/signals.py
"""
Model-based fraud signals.

The decisioning core never draws random numbers itself. Anything a trained
model would produce (anomaly score, duplicate similarity, pattern match,
network link score) comes from a FraudSignalProvider, and blacklist and claim
history lookups come from their own collaborators.
"""

import random
import threading
from typing import Iterable, Optional, Protocol, Set

from claimcare.models.claim import Claim, ClaimHistory


class FraudSignalProvider(Protocol):
    def anomaly_score(self, claim: Claim) -> float: ...
    def duplicate_similarity(self, claim: Claim) -> float: ...
    def pattern_match_score(self, claim: Claim) -> float: ...
    def network_score(self, claim: Claim) -> float: ...


class BlacklistService(Protocol):
    def is_blacklisted(self, nik: str) -> bool: ...


class ClaimHistoryProvider(Protocol):
    def history_for(self, claim: Claim) -> ClaimHistory: ...


class RandomSignalProvider:
    """Seedable stand-in for the fraud models."""

    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)
        self._lock = threading.Lock()

    def _draw(self) -> float:
        with self._lock:
            return self._random.random()

    def anomaly_score(self, claim: Claim) -> float:
        return self._draw()

    def duplicate_similarity(self, claim: Claim) -> float:
        return self._draw()

    def pattern_match_score(self, claim: Claim) -> float:
        return self._draw()

    def network_score(self, claim: Claim) -> float:
        return self._draw()


class StaticSignalProvider:
    """Fixed scores, for tests and for running without fraud models."""

    def __init__(
        self,
        anomaly: float = 0.0,
        duplicate: float = 0.0,
        pattern: float = 0.0,
        network: float = 0.0
    ):
        self.anomaly = anomaly
        self.duplicate = duplicate
        self.pattern = pattern
        self.network = network

    def anomaly_score(self, claim: Claim) -> float:
        return self.anomaly

    def duplicate_similarity(self, claim: Claim) -> float:
        return self.duplicate

    def pattern_match_score(self, claim: Claim) -> float:
        return self.pattern

    def network_score(self, claim: Claim) -> float:
        return self.network


class SetBlacklist:
    """Blacklist backed by an in-memory set of national IDs (NIK)."""

    def __init__(self, niks: Iterable[str] = ()):
        self._niks: Set[str] = set(niks)

    def add(self, nik: str):
        self._niks.add(nik)

    def is_blacklisted(self, nik: str) -> bool:
        return nik in self._niks


class NoHistory:
    """History provider for claims evaluated outside any store."""

    def history_for(self, claim: Claim) -> ClaimHistory:
        return ClaimHistory()
