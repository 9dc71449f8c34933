"""
pkigame: Incentive Model of a PKI Accountability Protocol

Version: 1.0.0
License: Apache 2.0

A CA may register with an oversight authority and issues a certificate
that is either policy-compliant or not; an independent detector may report
it. pkigame computes each participant's payoff for one play of this
one-shot game and checks, over all 8 outcomes and all feasible pricing
schemes, that:

    - reporting bad certificates is rewarded
    - spurious reports are punished
    - no coalition with an unregistered CA can profit

Usage:
    from pkigame import (
        RewardParameters,
        PayoutContext,
        OneShotOutcome,
        evaluate_payoffs,
        PropertyVerifier,
        Z3Engine,
    )

    rp = RewardParameters(price=5, aff_dom_payout=10, term_payout=3, det_payout=4)
    context = PayoutContext(rem_life="1/2", min_term_payout=2, reporting_fee=2)
    payoffs = evaluate_payoffs(OneShotOutcome.from_label("REGISTER/NON_COMPLIANT/REPORT"), rp, context)

    report = PropertyVerifier(engine=Z3Engine()).verify()
    if not report.passed():
        for failure in report.failures():
            print(failure.to_dict())
"""

__version__ = "1.0.0"
__author__ = "pkigame contributors"
__license__ = "Apache-2.0"

# Outcomes
from .outcomes import (
    Registration,
    Issuance,
    Detection,
    Participant,
    OneShotOutcome,
    ALL_OUTCOMES,
    COLLUSION_COALITIONS,
    select_outcomes,
)

# Parameters
from .arithmetic import Arithmetic, ExactArithmetic, EXACT
from .parameters import (
    RewardParameters,
    PayoutContext,
    ParameterValidationError,
    to_fraction,
    reporting_fee_feasible,
    min_term_payout_feasible,
    price_feasible,
    feasibility_report,
)

# Payouts
from .payouts import (
    Payoffs,
    term_split,
    domain_payoff,
    detector_payoff,
    ca_payoff,
    evaluate_payoffs,
    payoff_table,
)

# Properties
from .properties import (
    Property,
    PropertyDefinitionError,
    Variable,
    VariableKind,
    BASE_VARIABLES,
    PROPERTY_TYPES,
    create_property,
    default_properties,
    ReportingIncentiveProperty,
    NoSpuriousReportsProperty,
    NoCollusionProfitsProperty,
    SplitBoundsProperty,
    SplitMonotonicityProperty,
    UnregisteredReportUnrewardedProperty,
)

# Engines
from .engines import (
    PropertyEngine,
    Z3Engine,
    SamplingEngine,
    CheckResult,
    Counterexample,
    Verdict,
    PointResult,
    check_point,
    create_engine,
)

# Verifier
from .verifier import (
    PropertyVerifier,
    VerificationReport,
    validate_property,
    verify_properties,
)

# Canonicalization and hashing
from .canonicalization import canonicalize, canonicalize_str
from .hashing import sha256_hash, parameters_hash, report_hash


__all__ = [
    # Version
    "__version__",

    # Outcomes
    "Registration",
    "Issuance",
    "Detection",
    "Participant",
    "OneShotOutcome",
    "ALL_OUTCOMES",
    "COLLUSION_COALITIONS",
    "select_outcomes",

    # Parameters
    "Arithmetic",
    "ExactArithmetic",
    "EXACT",
    "RewardParameters",
    "PayoutContext",
    "ParameterValidationError",
    "to_fraction",
    "reporting_fee_feasible",
    "min_term_payout_feasible",
    "price_feasible",
    "feasibility_report",

    # Payouts
    "Payoffs",
    "term_split",
    "domain_payoff",
    "detector_payoff",
    "ca_payoff",
    "evaluate_payoffs",
    "payoff_table",

    # Properties
    "Property",
    "PropertyDefinitionError",
    "Variable",
    "VariableKind",
    "BASE_VARIABLES",
    "PROPERTY_TYPES",
    "create_property",
    "default_properties",
    "ReportingIncentiveProperty",
    "NoSpuriousReportsProperty",
    "NoCollusionProfitsProperty",
    "SplitBoundsProperty",
    "SplitMonotonicityProperty",
    "UnregisteredReportUnrewardedProperty",

    # Engines
    "PropertyEngine",
    "Z3Engine",
    "SamplingEngine",
    "CheckResult",
    "Counterexample",
    "Verdict",
    "PointResult",
    "check_point",
    "create_engine",

    # Verifier
    "PropertyVerifier",
    "VerificationReport",
    "validate_property",
    "verify_properties",

    # Canonicalization
    "canonicalize",
    "canonicalize_str",
    "sha256_hash",
    "parameters_hash",
    "report_hash",
]
