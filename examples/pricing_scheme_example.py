#!/usr/bin/env python3
"""
pkigame Example - Auditing a Pricing Scheme End to End

This example takes a candidate parameter set for a PKI accountability
deployment, checks it is feasible, prints who earns what in every outcome,
proves the incentive catalog symbolically and publishes a signed report
that a third party can verify.

Run with: python examples/pricing_scheme_example.py
"""

import json
from fractions import Fraction

from pkigame import (
    ALL_OUTCOMES,
    COLLUSION_COALITIONS,
    PayoutContext,
    PropertyVerifier,
    RewardParameters,
    SamplingEngine,
    Z3Engine,
    default_properties,
    evaluate_payoffs,
    feasibility_report,
    parameters_hash,
)
from pkigame.logging_config import configure_logging
from pkigame.signing import SigningService, verify_report_signature


def propose_scheme():
    """
    A pricing scheme as a deployment would draft it.

    The CA pays 7 per registration; a caught misissuance sends 10 to the
    affected domain, 4 to the detector, and between 2 and 3 back to the CA
    depending on how much lifetime the bad certificate had left.
    """
    rp = RewardParameters(price=7, aff_dom_payout=10, term_payout=3, det_payout=4)
    context = PayoutContext(rem_life=Fraction(1, 2), min_term_payout=2, reporting_fee=2)
    return rp, context


def main():
    configure_logging(level="WARNING", json_format=False)

    print("=" * 70)
    print("pkigame Pricing Scheme Audit - Example")
    print("=" * 70)

    rp, context = propose_scheme()
    parameters = {**rp.to_dict(), **context.to_dict()}

    # =========================================================================
    # STEP 1: Feasibility
    # =========================================================================

    print("\n[STEP 1] Checking feasibility...")
    print(f"  Parameters hash: {parameters_hash(parameters)}")

    feasibility = feasibility_report(rp, context)
    for predicate, ok in feasibility.items():
        print(f"  {'✓' if ok else '✗'} {predicate}")

    if not all(feasibility.values()):
        print("\n  ✗ SCHEME REJECTED: infeasible parameters")
        return 1

    # =========================================================================
    # STEP 2: Payoff table
    # =========================================================================

    print("\n[STEP 2] Payoffs per outcome (ca, domain, detector)...")
    for outcome in ALL_OUTCOMES:
        payoffs = evaluate_payoffs(outcome, rp, context)
        print(f"  {outcome.label:<38} {payoffs.ca:>4} {payoffs.domain:>4} {payoffs.detector:>4}")

    print("\n  Coalition totals when the CA never registered:")
    for outcome in ALL_OUTCOMES:
        if outcome.is_registered():
            continue
        payoffs = evaluate_payoffs(outcome, rp, context)
        totals = [payoffs.coalition(c) for c in COLLUSION_COALITIONS]
        print(f"  {outcome.label:<38} {totals}")

    # =========================================================================
    # STEP 3: Prove the incentive catalog
    # =========================================================================

    print("\n[STEP 3] Checking incentive properties with z3...")

    report = PropertyVerifier(engine=Z3Engine(timeout_ms=10000)).verify()
    undecided = [r.property_name for r in report.results if not r.holds()]

    for result in report.results:
        print(f"  {'✓' if result.holds() else '✗'} {result.property_name}: {result.verdict.value}")

    if undecided:
        # Nonlinear split queries may time out; back them with samples
        print("\n  Re-checking undecided properties by sampling...")
        fallback = PropertyVerifier(
            engine=SamplingEngine(samples=5000, seed=1),
            properties=[p for p in default_properties() if p.name in undecided],
        ).verify()
        for result in fallback.results:
            print(f"  {'✓' if result.holds() else '✗'} {result.property_name}: "
                  f"{result.verdict.value} ({result.reason})")

    # =========================================================================
    # STEP 4: Publish a signed report
    # =========================================================================

    print("\n[STEP 4] Signing the report...")

    service = SigningService()
    key_pair = service.generate_key_pair("kid:pkigame-example-001")
    signature = report.sign(service)
    published = json.loads(json.dumps(report.to_dict()))

    print(f"  Report hash: {published['report_hash']}")
    print(f"  Signed by: {signature['key_id']}")

    # =========================================================================
    # STEP 5: Third-party verification
    # =========================================================================

    print("\n[STEP 5] Verifying as a third party...")

    if verify_report_signature(published, key_pair.public_entry()):
        print("  ✓ Signature valid")
    else:
        print("  ✗ Signature invalid")

    published["passed"] = not published["passed"]
    if not verify_report_signature(published, key_pair.public_entry()):
        print("  ✓ Tampered copy rejected")

    print("\n" + "=" * 70)
    print("Example complete.")
    print("=" * 70)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
