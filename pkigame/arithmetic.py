"""
pkigame Arithmetic Backends

Payout functions and feasibility predicates are written once and evaluated
in different arithmetics: exact Python numbers for concrete evaluation, or
solver terms when a property is discharged symbolically. A backend supplies
the few operations that differ between the two (floor, conjunction, and
construction of parameter records from variable bindings).
"""

import math
from abc import ABC, abstractmethod
from typing import Any, Dict


class Arithmetic(ABC):
    """Operations the payout model needs beyond +, -, * and comparisons."""

    name = "abstract"

    @abstractmethod
    def floor(self, value: Any) -> Any:
        """Largest integer not greater than value."""

    @abstractmethod
    def conj(self, *terms: Any) -> Any:
        """Logical AND of the given terms."""

    @abstractmethod
    def reward_parameters(self, env: Dict[str, Any]) -> Any:
        """Build a reward parameter record from variable bindings."""

    @abstractmethod
    def payout_context(self, env: Dict[str, Any]) -> Any:
        """Build a payout context record from variable bindings."""


class ExactArithmetic(Arithmetic):
    """
    Concrete evaluation over int and Fraction.

    math.floor on a Fraction is exact, so the termination split matches
    standard floor semantics without rounding error.
    """

    name = "exact"

    def floor(self, value: Any) -> int:
        return math.floor(value)

    def conj(self, *terms: Any) -> bool:
        return all(terms)

    def reward_parameters(self, env: Dict[str, Any]):
        from .parameters import RewardParameters

        return RewardParameters(
            price=env["price"],
            aff_dom_payout=env["aff_dom_payout"],
            term_payout=env["term_payout"],
            det_payout=env["det_payout"],
        )

    def payout_context(self, env: Dict[str, Any]):
        from .parameters import PayoutContext

        return PayoutContext(
            rem_life=env["rem_life"],
            min_term_payout=env["min_term_payout"],
            reporting_fee=env["reporting_fee"],
        )


EXACT = ExactArithmetic()
