"""
pkigame Payout Engine

Pure functions computing each participant's payoff for one outcome.

Every function is total: it returns an integer (or, under a symbolic
arithmetic, an integer term) for every outcome and every well-typed
parameter record. Payoffs may be negative; a negative payoff is a net loss,
not an error.

The functions only read attributes of rp and context, so they accept the
validated RewardParameters / PayoutContext records as well as the symbolic
records built by a solver backend.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable

from .arithmetic import Arithmetic, EXACT
from .outcomes import ALL_OUTCOMES, OneShotOutcome, Participant
from .parameters import PayoutContext, RewardParameters


def term_split(rp, rem_life, min_term_payout, arithmetic: Arithmetic = EXACT):
    """
    Termination payout allocated on a valid report.

    split = floor(rem_life * (term_payout - min_term_payout)) + min_term_payout

    When 0 < min_term_payout <= term_payout and rem_life lies in [0, 1], the
    result lies in [min_term_payout, term_payout] and is non-decreasing in
    rem_life.
    """
    return arithmetic.floor(rem_life * (rp.term_payout - min_term_payout)) + min_term_payout


def domain_payoff(
    outcome: OneShotOutcome,
    rp,
    rem_life,
    min_term_payout,
    arithmetic: Arithmetic = EXACT
):
    """Payoff of the affected domain."""
    if not (outcome.is_non_compliant() and outcome.is_reported()):
        return -rp.price

    split = term_split(rp, rem_life, min_term_payout, arithmetic)
    if outcome.is_registered():
        return rp.aff_dom_payout + split - rp.price
    return split - rp.price


def detector_payoff(outcome: OneShotOutcome, rp, reporting_fee):
    """
    Payoff of the detector.

    Reporting a non-compliant certificate from an unregistered CA pays 0:
    unregistered CAs sit outside the reward protocol, so no reward path
    exists for catching them.
    """
    if not outcome.is_reported():
        return 0
    if not outcome.is_non_compliant():
        return -reporting_fee
    if outcome.is_registered():
        return rp.det_payout - reporting_fee
    return 0


def ca_payoff(
    outcome: OneShotOutcome,
    rp,
    rem_life,
    min_term_payout,
    arithmetic: Arithmetic = EXACT
):
    """Payoff of the CA: collected price minus all disbursements when caught."""
    if not (outcome.is_registered() and outcome.is_reported() and outcome.is_non_compliant()):
        return 0

    split = term_split(rp, rem_life, min_term_payout, arithmetic)
    return rp.price - split - rp.aff_dom_payout - rp.det_payout


@dataclass(frozen=True)
class Payoffs:
    """Payoff of each participant for one outcome."""
    ca: Any
    domain: Any
    detector: Any

    def of(self, participant: Participant):
        if participant == Participant.CA:
            return self.ca
        if participant == Participant.DOMAIN:
            return self.domain
        if participant == Participant.DETECTOR:
            return self.detector
        raise ValueError(f"Unknown participant: {participant}")

    def coalition(self, members: Iterable[Participant]):
        """Joint payoff of a set of participants."""
        total = 0
        for member in members:
            total = total + self.of(member)
        return total

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ca": self.ca,
            "domain": self.domain,
            "detector": self.detector,
        }


def evaluate_payoffs(
    outcome: OneShotOutcome,
    rp,
    context,
    arithmetic: Arithmetic = EXACT
) -> Payoffs:
    """Compute all three payoffs for one outcome."""
    return Payoffs(
        ca=ca_payoff(outcome, rp, context.rem_life, context.min_term_payout, arithmetic),
        domain=domain_payoff(outcome, rp, context.rem_life, context.min_term_payout, arithmetic),
        detector=detector_payoff(outcome, rp, context.reporting_fee),
    )


def payoff_table(rp: RewardParameters, context: PayoutContext) -> Dict[OneShotOutcome, Payoffs]:
    """Evaluate every outcome of the game, in ALL_OUTCOMES order."""
    return {outcome: evaluate_payoffs(outcome, rp, context) for outcome in ALL_OUTCOMES}
