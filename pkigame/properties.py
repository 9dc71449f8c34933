"""
pkigame Incentive Properties

Each property is a universally quantified statement over the outcome space
and the economic parameters:

    for every case in cases(), for every binding env of variables:
        precondition(env) implies postcondition(case, env)

A case is a tuple of outcomes (one outcome, or a pair being compared).
Variables are either monetary amounts (non-negative integers) or fractions
(reals in [0, 1]). Preconditions and postconditions are written against an
Arithmetic backend so the same definition is checked concretely by sampling
or symbolically by a solver.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Tuple

from .arithmetic import Arithmetic
from .outcomes import (
    COLLUSION_COALITIONS,
    Detection,
    Issuance,
    OneShotOutcome,
    Registration,
    select_outcomes,
)
from .parameters import (
    min_term_payout_feasible,
    price_feasible,
    reporting_fee_feasible,
)
from .payouts import detector_payoff, evaluate_payoffs, term_split


class VariableKind(str, Enum):
    """Domain of a quantified variable."""
    AMOUNT = "AMOUNT"      # non-negative integer
    FRACTION = "FRACTION"  # real in [0, 1]


@dataclass(frozen=True)
class Variable:
    name: str
    kind: VariableKind


BASE_VARIABLES: Tuple[Variable, ...] = (
    Variable("price", VariableKind.AMOUNT),
    Variable("aff_dom_payout", VariableKind.AMOUNT),
    Variable("term_payout", VariableKind.AMOUNT),
    Variable("det_payout", VariableKind.AMOUNT),
    Variable("rem_life", VariableKind.FRACTION),
    Variable("min_term_payout", VariableKind.AMOUNT),
    Variable("reporting_fee", VariableKind.AMOUNT),
)

Case = Tuple[OneShotOutcome, ...]


class PropertyDefinitionError(ValueError):
    """Raised when a property's cases fall outside the outcome space."""


class Property(ABC):
    """Abstract base class for all incentive properties."""

    name = "abstract"
    description = ""
    variables: Tuple[Variable, ...] = BASE_VARIABLES

    @abstractmethod
    def cases(self) -> Tuple[Case, ...]:
        """Outcome tuples the statement quantifies over."""

    def precondition(self, env: Dict[str, Any], arithmetic: Arithmetic) -> Any:
        """Constraint on the parameters; unconstrained by default."""
        return True

    @abstractmethod
    def postcondition(self, case: Case, env: Dict[str, Any], arithmetic: Arithmetic) -> Any:
        """Statement that must hold whenever the precondition does."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "variables": [{"name": v.name, "kind": v.kind.value} for v in self.variables],
            "cases": [[o.label for o in case] for case in self.cases()],
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


def _payoffs(outcome: OneShotOutcome, env: Dict[str, Any], arithmetic: Arithmetic):
    rp = arithmetic.reward_parameters(env)
    context = arithmetic.payout_context(env)
    return evaluate_payoffs(outcome, rp, context, arithmetic)


class ReportingIncentiveProperty(Property):
    """
    A truthful report of a non-compliant certificate from a registered CA
    pays the detector strictly more than staying silent.
    """

    name = "reporting_incentive"
    description = (
        "For any feasible reporting fee, reporting a non-compliant certificate "
        "issued by a registered CA yields a strictly greater detector payoff "
        "than not reporting."
    )

    def cases(self) -> Tuple[Case, ...]:
        return tuple(
            (o, o.with_detection(Detection.NO_REPORT))
            for o in select_outcomes(
                registration=Registration.REGISTER,
                issuance=Issuance.NON_COMPLIANT,
                detection=Detection.REPORT,
            )
        )

    def precondition(self, env, arithmetic):
        rp = arithmetic.reward_parameters(env)
        return reporting_fee_feasible(env["reporting_fee"], rp, arithmetic)

    def postcondition(self, case, env, arithmetic):
        reported, silent = case
        rp = arithmetic.reward_parameters(env)
        fee = env["reporting_fee"]
        return detector_payoff(reported, rp, fee) > detector_payoff(silent, rp, fee)


class NoSpuriousReportsProperty(Property):
    """Falsely reporting a compliant certificate costs the detector."""

    name = "no_spurious_reports"
    description = (
        "For any feasible reporting fee, reporting a compliant certificate "
        "yields a strictly lower detector payoff than not reporting."
    )

    def cases(self) -> Tuple[Case, ...]:
        return tuple(
            (o, o.with_detection(Detection.NO_REPORT))
            for o in select_outcomes(
                issuance=Issuance.COMPLIANT,
                detection=Detection.REPORT,
            )
        )

    def precondition(self, env, arithmetic):
        rp = arithmetic.reward_parameters(env)
        return reporting_fee_feasible(env["reporting_fee"], rp, arithmetic)

    def postcondition(self, case, env, arithmetic):
        reported, silent = case
        rp = arithmetic.reward_parameters(env)
        fee = env["reporting_fee"]
        return detector_payoff(reported, rp, fee) < detector_payoff(silent, rp, fee)


class NoCollusionProfitsProperty(Property):
    """No coalition containing an unregistered CA has positive joint payoff."""

    name = "no_collusion_profits"
    description = (
        "For any outcome with an unregistered CA and jointly feasible minimum "
        "termination payout and price, CA+domain, CA+detector and "
        "CA+domain+detector payoffs are all non-positive."
    )

    def cases(self) -> Tuple[Case, ...]:
        return tuple((o,) for o in select_outcomes(registration=Registration.NO_REGISTER))

    def precondition(self, env, arithmetic):
        rp = arithmetic.reward_parameters(env)
        minimum = env["min_term_payout"]
        return arithmetic.conj(
            min_term_payout_feasible(minimum, rp, arithmetic),
            price_feasible(rp, minimum, arithmetic),
        )

    def postcondition(self, case, env, arithmetic):
        (outcome,) = case
        payoffs = _payoffs(outcome, env, arithmetic)
        return arithmetic.conj(*[
            payoffs.coalition(members) <= 0 for members in COLLUSION_COALITIONS
        ])


class SplitBoundsProperty(Property):
    """The termination split stays within [min_term_payout, term_payout]."""

    name = "split_bounds"
    description = (
        "For every feasible minimum termination payout and every remaining "
        "lifetime in [0, 1], min_term_payout <= split <= term_payout."
    )

    def cases(self) -> Tuple[Case, ...]:
        # Outcome-independent
        return ((),)

    def precondition(self, env, arithmetic):
        rp = arithmetic.reward_parameters(env)
        return min_term_payout_feasible(env["min_term_payout"], rp, arithmetic)

    def postcondition(self, case, env, arithmetic):
        rp = arithmetic.reward_parameters(env)
        minimum = env["min_term_payout"]
        split = term_split(rp, env["rem_life"], minimum, arithmetic)
        return arithmetic.conj(minimum <= split, split <= rp.term_payout)


class SplitMonotonicityProperty(Property):
    """More remaining lifetime never shrinks the termination split."""

    name = "split_monotonicity"
    description = (
        "For fixed parameters and feasible minimum termination payout, the "
        "split is non-decreasing in the remaining lifetime."
    )
    variables = BASE_VARIABLES + (Variable("rem_life_later", VariableKind.FRACTION),)

    def cases(self) -> Tuple[Case, ...]:
        return ((),)

    def precondition(self, env, arithmetic):
        rp = arithmetic.reward_parameters(env)
        return arithmetic.conj(
            min_term_payout_feasible(env["min_term_payout"], rp, arithmetic),
            env["rem_life"] <= env["rem_life_later"],
        )

    def postcondition(self, case, env, arithmetic):
        rp = arithmetic.reward_parameters(env)
        minimum = env["min_term_payout"]
        return (
            term_split(rp, env["rem_life"], minimum, arithmetic)
            <= term_split(rp, env["rem_life_later"], minimum, arithmetic)
        )


class UnregisteredReportUnrewardedProperty(Property):
    """
    Known asymmetry: catching an unregistered CA earns the detector nothing.

    Unregistered CAs are outside the reward protocol, so the detector has no
    reward path for reporting their non-compliant certificates. Kept as a
    checked property so a change to this branch is noticed.
    """

    name = "unregistered_report_unrewarded"
    description = (
        "Reporting a non-compliant certificate issued by an unregistered CA "
        "yields a detector payoff of exactly 0."
    )

    def cases(self) -> Tuple[Case, ...]:
        return tuple(
            (o,) for o in select_outcomes(
                registration=Registration.NO_REGISTER,
                issuance=Issuance.NON_COMPLIANT,
                detection=Detection.REPORT,
            )
        )

    def postcondition(self, case, env, arithmetic):
        (outcome,) = case
        rp = arithmetic.reward_parameters(env)
        return detector_payoff(outcome, rp, env["reporting_fee"]) == 0


# Property type registry
PROPERTY_TYPES = {
    "reporting_incentive": ReportingIncentiveProperty,
    "no_spurious_reports": NoSpuriousReportsProperty,
    "no_collusion_profits": NoCollusionProfitsProperty,
    "split_bounds": SplitBoundsProperty,
    "split_monotonicity": SplitMonotonicityProperty,
    "unregistered_report_unrewarded": UnregisteredReportUnrewardedProperty,
}


def create_property(name: str) -> Property:
    """Factory function to create a property by catalog name."""
    prop_class = PROPERTY_TYPES.get(name)
    if not prop_class:
        raise ValueError(f"Unknown property: {name}")
    return prop_class()


def default_properties() -> List[Property]:
    """The full catalog, in registry order."""
    return [cls() for cls in PROPERTY_TYPES.values()]
