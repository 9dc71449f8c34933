"""
pkigame Property Discharging Engines

An engine decides whether a property holds:

    for every case, for every binding within the variable domains:
        precondition implies postcondition

Two engines implement the same interface:

- Z3Engine: symbolic. Each case is checked by asking the solver for a
  binding that satisfies the domain constraints and the precondition but
  violates the postcondition. UNSAT for every case proves the property;
  SAT yields a counterexample read from the model. A timeout or an
  undecidable query is reported as UNKNOWN, never as proved.
- SamplingEngine: concrete fallback. Boundary values first, then seeded
  uniform samples. A clean run reports NOT_FALSIFIED together with the
  number of samples that satisfied the precondition; a run in which no
  sample satisfied the precondition is UNKNOWN rather than a pass.
"""

import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

import z3

from . import config
from .arithmetic import Arithmetic, EXACT
from .canonicalization import fraction_str
from .payouts import evaluate_payoffs
from .properties import Case, Property, Variable, VariableKind

logger = logging.getLogger(__name__)


class Verdict(str, Enum):
    """
    Outcome of checking one property.

    PROVED: holds for every binding (symbolic engine)
    NOT_FALSIFIED: no counterexample found in the sampled bindings
    FALSIFIED: a counterexample was found
    UNKNOWN: the engine could not decide
    """
    PROVED = "PROVED"
    NOT_FALSIFIED = "NOT_FALSIFIED"
    FALSIFIED = "FALSIFIED"
    UNKNOWN = "UNKNOWN"


class PointResult(str, Enum):
    """Outcome of checking a property at one concrete binding."""
    HOLDS = "HOLDS"
    VIOLATED = "VIOLATED"
    INFEASIBLE = "INFEASIBLE"


def _render(value: Any) -> Any:
    return fraction_str(value) if isinstance(value, Fraction) else value


@dataclass
class Counterexample:
    """A falsifying binding of outcomes and parameters."""
    property_name: str
    outcomes: List[str]
    bindings: Dict[str, Any]
    payoffs: Dict[str, Dict[str, int]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "property": self.property_name,
            "outcomes": list(self.outcomes),
            "bindings": {k: _render(v) for k, v in self.bindings.items()},
            "payoffs": self.payoffs,
        }


@dataclass
class CheckResult:
    """Result of checking one property with one engine."""
    property_name: str
    verdict: Verdict
    engine: str
    cases: int = 0
    samples: Optional[int] = None
    counterexample: Optional[Counterexample] = None
    reason: Optional[str] = None

    def holds(self) -> bool:
        return self.verdict in (Verdict.PROVED, Verdict.NOT_FALSIFIED)

    @classmethod
    def proved(cls, property_name: str, engine: str, cases: int) -> 'CheckResult':
        return cls(property_name, Verdict.PROVED, engine, cases=cases)

    @classmethod
    def not_falsified(cls, property_name: str, engine: str, cases: int, samples: int) -> 'CheckResult':
        return cls(
            property_name,
            Verdict.NOT_FALSIFIED,
            engine,
            cases=cases,
            samples=samples,
            reason=f"no counterexample found in {samples} samples",
        )

    @classmethod
    def falsified(
        cls,
        property_name: str,
        engine: str,
        cases: int,
        counterexample: Counterexample,
        samples: Optional[int] = None
    ) -> 'CheckResult':
        return cls(
            property_name,
            Verdict.FALSIFIED,
            engine,
            cases=cases,
            samples=samples,
            counterexample=counterexample,
        )

    @classmethod
    def unknown(cls, property_name: str, engine: str, cases: int, reason: str) -> 'CheckResult':
        return cls(property_name, Verdict.UNKNOWN, engine, cases=cases, reason=reason)

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "property": self.property_name,
            "verdict": self.verdict.value,
            "engine": self.engine,
            "cases": self.cases,
        }
        if self.samples is not None:
            d["samples"] = self.samples
        if self.reason:
            d["reason"] = self.reason
        if self.counterexample:
            d["counterexample"] = self.counterexample.to_dict()
        return d


def build_counterexample(prop: Property, case: Case, env: Dict[str, Any]) -> Counterexample:
    """Attach concrete payoffs of every outcome in the case to a binding."""
    rp = EXACT.reward_parameters(env)
    context = EXACT.payout_context(env)
    return Counterexample(
        property_name=prop.name,
        outcomes=[o.label for o in case],
        bindings=dict(env),
        payoffs={o.label: evaluate_payoffs(o, rp, context).to_dict() for o in case},
    )


def find_violation(prop: Property, env: Dict[str, Any]) -> Optional[Counterexample]:
    """Return a counterexample if some case violates the postcondition at env."""
    for case in prop.cases():
        if not prop.postcondition(case, env, EXACT):
            return build_counterexample(prop, case, env)
    return None


def check_point(prop: Property, env: Dict[str, Any]) -> PointResult:
    """
    Evaluate a property at one concrete binding.

    env must bind every variable of the property; amounts are validated as
    reward parameters are built, so a negative amount raises
    ParameterValidationError.
    """
    missing = [v.name for v in prop.variables if v.name not in env]
    if missing:
        raise ValueError(f"Missing bindings for {prop.name}: {missing}")

    if not prop.precondition(env, EXACT):
        return PointResult.INFEASIBLE
    if find_violation(prop, env) is not None:
        return PointResult.VIOLATED
    return PointResult.HOLDS


class PropertyEngine(ABC):
    """Abstract base class for property discharging engines."""

    name = "abstract"

    @abstractmethod
    def check(self, prop: Property) -> CheckResult:
        """Decide a property. Must return a CheckResult, never raise on falsification."""

    def describe(self) -> Dict[str, Any]:
        return {"name": self.name}


# ============================================================
# Symbolic engine
# ============================================================

class SymbolicRewardParameters(NamedTuple):
    price: Any
    aff_dom_payout: Any
    term_payout: Any
    det_payout: Any


class SymbolicPayoutContext(NamedTuple):
    rem_life: Any
    min_term_payout: Any
    reporting_fee: Any


class Z3Arithmetic(Arithmetic):
    """Evaluation over z3 terms; floor is ToInt, which floors reals."""

    name = "z3"

    def floor(self, value: Any) -> Any:
        if z3.is_int(value):
            return value
        return z3.ToInt(value)

    def conj(self, *terms: Any) -> Any:
        return z3.And(*terms)

    def reward_parameters(self, env: Dict[str, Any]) -> SymbolicRewardParameters:
        return SymbolicRewardParameters(
            price=env["price"],
            aff_dom_payout=env["aff_dom_payout"],
            term_payout=env["term_payout"],
            det_payout=env["det_payout"],
        )

    def payout_context(self, env: Dict[str, Any]) -> SymbolicPayoutContext:
        return SymbolicPayoutContext(
            rem_life=env["rem_life"],
            min_term_payout=env["min_term_payout"],
            reporting_fee=env["reporting_fee"],
        )


Z3_ARITHMETIC = Z3Arithmetic()


def _declare(variables: Tuple[Variable, ...]) -> Tuple[Dict[str, Any], List[Any]]:
    """Create solver symbols and their domain constraints."""
    env: Dict[str, Any] = {}
    domain: List[Any] = []
    for variable in variables:
        if variable.kind == VariableKind.AMOUNT:
            symbol = z3.Int(variable.name)
            domain.append(symbol >= 0)
        else:
            symbol = z3.Real(variable.name)
            domain.extend([symbol >= 0, symbol <= 1])
        env[variable.name] = symbol
    return env, domain


def _model_value(model: z3.ModelRef, symbol: Any, kind: VariableKind) -> Any:
    value = model.eval(symbol, model_completion=True)
    if kind == VariableKind.AMOUNT:
        return value.as_long()

    if z3.is_algebraic_value(value):
        # Irrational witness; keep a close rational inside [0, 1]
        value = value.approx(20)
    fraction = Fraction(value.numerator_as_long(), value.denominator_as_long())
    return min(max(fraction, Fraction(0)), Fraction(1))


class Z3Engine(PropertyEngine):
    """
    Symbolic engine backed by the z3 SMT solver.

    Outcome cases are enumerated explicitly; only the continuous and
    integer parameters are left to the solver. Each query carries a
    timeout so an undecided nonlinear query ends as UNKNOWN.
    """

    name = "z3"

    def __init__(self, timeout_ms: Optional[int] = None):
        self.timeout_ms = timeout_ms if timeout_ms is not None else config.Z3_TIMEOUT_MS

    def describe(self) -> Dict[str, Any]:
        return {"name": self.name, "timeout_ms": self.timeout_ms}

    def check(self, prop: Property) -> CheckResult:
        cases = prop.cases()

        for case in cases:
            env, domain = _declare(prop.variables)

            solver = z3.Solver()
            solver.set("timeout", self.timeout_ms)
            solver.add(*domain)
            solver.add(prop.precondition(env, Z3_ARITHMETIC))
            solver.add(z3.Not(prop.postcondition(case, env, Z3_ARITHMETIC)))

            result = solver.check()
            logger.debug("z3 %s %s: %s", prop.name, [o.label for o in case], result)

            if result == z3.unsat:
                continue

            if result == z3.sat:
                model = solver.model()
                bindings = {
                    v.name: _model_value(model, env[v.name], v.kind)
                    for v in prop.variables
                }
                return CheckResult.falsified(
                    prop.name,
                    self.name,
                    len(cases),
                    build_counterexample(prop, case, bindings),
                )

            return CheckResult.unknown(
                prop.name,
                self.name,
                len(cases),
                reason=solver.reason_unknown(),
            )

        return CheckResult.proved(prop.name, self.name, len(cases))


# ============================================================
# Sampling engine
# ============================================================

FRACTION_BOUNDARIES = (Fraction(0), Fraction(1, 2), Fraction(1))


class SamplingEngine(PropertyEngine):
    """
    Concrete fallback engine.

    The first quarter of the budget draws every variable from its boundary
    values (0, 1, 2 and max_amount for amounts; 0, 1/2 and 1 for
    fractions); the rest draws uniformly. Samples whose precondition fails
    are discarded and do not count towards the reported coverage.
    """

    name = "sampling"

    def __init__(
        self,
        samples: Optional[int] = None,
        seed: Optional[int] = None,
        max_amount: Optional[int] = None
    ):
        self.samples = samples if samples is not None else config.SAMPLES
        self.seed = seed if seed is not None else config.SEED
        self.max_amount = max_amount if max_amount is not None else config.MAX_AMOUNT

        if self.samples <= 0:
            raise ValueError("samples must be positive")
        if self.max_amount <= 0:
            raise ValueError("max_amount must be positive")

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "samples": self.samples,
            "seed": self.seed,
            "max_amount": self.max_amount,
        }

    def _draw(self, rng: random.Random, variables: Tuple[Variable, ...], boundary: bool) -> Dict[str, Any]:
        env: Dict[str, Any] = {}
        for variable in variables:
            if variable.kind == VariableKind.AMOUNT:
                if boundary:
                    env[variable.name] = rng.choice((0, 1, 2, self.max_amount))
                else:
                    env[variable.name] = rng.randint(0, self.max_amount)
            else:
                if boundary:
                    env[variable.name] = rng.choice(FRACTION_BOUNDARIES)
                else:
                    denominator = rng.randint(1, 1000)
                    env[variable.name] = Fraction(rng.randint(0, denominator), denominator)
        return env

    def check(self, prop: Property) -> CheckResult:
        rng = random.Random(self.seed)
        cases = prop.cases()
        boundary_budget = self.samples // 4
        satisfied = 0

        for i in range(self.samples):
            env = self._draw(rng, prop.variables, boundary=i < boundary_budget)
            if not prop.precondition(env, EXACT):
                continue
            satisfied += 1

            counterexample = find_violation(prop, env)
            if counterexample is not None:
                return CheckResult.falsified(
                    prop.name,
                    self.name,
                    len(cases),
                    counterexample,
                    samples=satisfied,
                )

        if satisfied == 0:
            return CheckResult.unknown(
                prop.name,
                self.name,
                len(cases),
                reason=f"precondition never satisfied in {self.samples} samples",
            )

        return CheckResult.not_falsified(prop.name, self.name, len(cases), satisfied)


def create_engine(name: Optional[str] = None, **options: Any) -> PropertyEngine:
    """
    Factory function to create an engine by name.

    Options not given fall back to the configured defaults.
    """
    name = name or config.ENGINE
    if name == "z3":
        return Z3Engine(timeout_ms=options.get("timeout_ms"))
    if name == "sampling":
        return SamplingEngine(
            samples=options.get("samples"),
            seed=options.get("seed"),
            max_amount=options.get("max_amount"),
        )
    raise ValueError(f"Unknown engine: {name}")
