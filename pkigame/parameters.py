"""
pkigame Economic Parameter Model

Reward protocol pricing schemes, the protocol scalars of one evaluation,
and the feasibility predicates constraining them.

Parameters are validated at construction: negative or non-integer amounts
never reach the payout engine. Feasibility is not an invariant of the
parameters; it is checked per property through the predicates below, which
return False for infeasible combinations and never raise.
"""

from dataclasses import dataclass
from decimal import Decimal
from fractions import Fraction
from typing import Any, Dict, Union

from .arithmetic import Arithmetic, EXACT


FractionLike = Union[int, float, str, Decimal, Fraction]

# Accepted spellings for reward parameter keys
_FIELD_ALIASES = {
    "price": "price",
    "aff_dom_payout": "aff_dom_payout",
    "affDomPayout": "aff_dom_payout",
    "term_payout": "term_payout",
    "termPayout": "term_payout",
    "det_payout": "det_payout",
    "detPayout": "det_payout",
}


class ParameterValidationError(ValueError):
    """Raised when a parameter value is outside its domain."""

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}={value!r}: {reason}")


def _validate_amount(field: str, value: Any) -> int:
    # bool is an int subclass but never a monetary amount
    if isinstance(value, bool) or not isinstance(value, int):
        raise ParameterValidationError(field, value, "must be an integer")
    if value < 0:
        raise ParameterValidationError(field, value, "must be non-negative")
    return value


def to_fraction(value: FractionLike, field: str = "rem_life") -> Fraction:
    """
    Convert a remaining-lifetime value to an exact Fraction in [0, 1].

    Accepts ints, Fractions, Decimals, floats and strings such as "3/4" or
    "0.25". Floats go through their shortest decimal form, so 0.29 read
    from JSON equals the string "0.29".
    """
    if isinstance(value, bool):
        raise ParameterValidationError(field, value, "must be a number in [0, 1]")
    source = repr(value) if isinstance(value, float) else value
    try:
        fraction = Fraction(source)
    except (TypeError, ValueError, ZeroDivisionError, OverflowError):
        raise ParameterValidationError(field, value, "must be a number in [0, 1]")

    if fraction < 0 or fraction > 1:
        raise ParameterValidationError(field, value, "must lie in [0, 1]")
    return fraction


@dataclass(frozen=True)
class RewardParameters:
    """
    Pricing scheme of one reward protocol instance.

    - price: paid by the CA to participate
    - aff_dom_payout: payout to the affected domain
    - term_payout: payout allocable at certificate termination
    - det_payout: payout to a successful detector
    """
    price: int
    aff_dom_payout: int
    term_payout: int
    det_payout: int

    def __post_init__(self):
        self._validate()

    def _validate(self):
        for name in ("price", "aff_dom_payout", "term_payout", "det_payout"):
            _validate_amount(name, getattr(self, name))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "price": self.price,
            "aff_dom_payout": self.aff_dom_payout,
            "term_payout": self.term_payout,
            "det_payout": self.det_payout,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RewardParameters':
        """Create from a dictionary with snake_case or camelCase keys."""
        values: Dict[str, Any] = {}
        for key, value in data.items():
            name = _FIELD_ALIASES.get(key)
            if name is not None:
                values[name] = value

        required = ["price", "aff_dom_payout", "term_payout", "det_payout"]
        missing = [f for f in required if f not in values]
        if missing:
            raise ValueError(f"Missing required fields: {missing}")

        return cls(**values)


@dataclass(frozen=True)
class PayoutContext:
    """
    Protocol scalars for one evaluation.

    - rem_life: fraction of certificate lifetime remaining at detection
    - min_term_payout: floor of the termination split
    - reporting_fee: fee paid by the detector to file a report
    """
    rem_life: Fraction = Fraction(0)
    min_term_payout: int = 0
    reporting_fee: int = 0

    def __post_init__(self):
        object.__setattr__(self, "rem_life", to_fraction(self.rem_life))
        _validate_amount("min_term_payout", self.min_term_payout)
        _validate_amount("reporting_fee", self.reporting_fee)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rem_life": self.rem_life,
            "min_term_payout": self.min_term_payout,
            "reporting_fee": self.reporting_fee,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PayoutContext':
        return cls(
            rem_life=data.get("rem_life", data.get("remLife", 0)),
            min_term_payout=data.get("min_term_payout", data.get("minTermPayout", 0)),
            reporting_fee=data.get("reporting_fee", data.get("reportingFee", 0)),
        )


# ============================================================
# Feasibility predicates
# ============================================================

def reporting_fee_feasible(fee, rp, arithmetic: Arithmetic = EXACT):
    """A reporting fee is feasible iff 0 < fee < det_payout."""
    return arithmetic.conj(0 < fee, fee < rp.det_payout)


def min_term_payout_feasible(min_term_payout, rp, arithmetic: Arithmetic = EXACT):
    """A minimum termination payout is feasible iff 0 < min <= term_payout."""
    return arithmetic.conj(0 < min_term_payout, min_term_payout <= rp.term_payout)


def price_feasible(rp, min_term_payout, arithmetic: Arithmetic = EXACT):
    """A price is feasible iff term_payout < price < aff_dom_payout + min."""
    return arithmetic.conj(
        rp.term_payout < rp.price,
        rp.price < rp.aff_dom_payout + min_term_payout,
    )


def feasibility_report(rp: RewardParameters, context: PayoutContext) -> Dict[str, bool]:
    """Evaluate all three predicates for display."""
    return {
        "reporting_fee": reporting_fee_feasible(context.reporting_fee, rp),
        "min_term_payout": min_term_payout_feasible(context.min_term_payout, rp),
        "price": price_feasible(rp, context.min_term_payout),
    }
