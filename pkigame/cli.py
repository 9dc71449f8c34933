#!/usr/bin/env python3
"""
pkigame Command Line Interface

Usage:
    pkigame outcomes
    pkigame payoffs --price 5 --aff-dom-payout 10 --term-payout 3 --det-payout 4 --reporting-fee 2
    pkigame feasibility --params <file>
    pkigame verify [--engine z3|sampling] [--property <name>] [--output <file>] [--sign-key <file>]
    pkigame keygen --output <file>
    pkigame verify-report --report <file> --public-key <file>
    pkigame config
    pkigame demo
"""

import argparse
import json
import sys
from datetime import datetime

from . import config


def load_json(path: str) -> dict:
    """Load JSON from file."""
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def save_json(data: dict, path: str):
    """Save JSON to file."""
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2)


def _parameters_from_args(args):
    """Build RewardParameters and PayoutContext from a file and/or flags."""
    from pkigame import RewardParameters, PayoutContext

    data = load_json(args.params) if args.params else {}
    overrides = {
        "price": args.price,
        "aff_dom_payout": args.aff_dom_payout,
        "term_payout": args.term_payout,
        "det_payout": args.det_payout,
        "rem_life": args.rem_life,
        "min_term_payout": args.min_term_payout,
        "reporting_fee": args.reporting_fee,
    }
    data.update({k: v for k, v in overrides.items() if v is not None})

    return RewardParameters.from_dict(data), PayoutContext.from_dict(data)


def cmd_outcomes(args):
    """List the outcome space."""
    from pkigame import ALL_OUTCOMES

    for outcome in ALL_OUTCOMES:
        print(outcome.label)
    return 0


def cmd_payoffs(args):
    """Print the payoff table for a parameter set."""
    from pkigame import payoff_table, parameters_hash, canonicalize_str

    rp, context = _parameters_from_args(args)
    table = payoff_table(rp, context)

    if args.outcome:
        from pkigame import OneShotOutcome
        wanted = OneShotOutcome.from_label(args.outcome)
        table = {wanted: table[wanted]}

    parameters = {**rp.to_dict(), **context.to_dict()}
    output = {
        "parameters": json.loads(canonicalize_str(parameters)),
        "parameters_hash": parameters_hash(parameters),
        "payoffs": {outcome.label: payoffs.to_dict() for outcome, payoffs in table.items()},
    }
    print(json.dumps(output, indent=2))
    return 0


def cmd_feasibility(args):
    """Evaluate the feasibility predicates for a parameter set."""
    from pkigame import feasibility_report

    rp, context = _parameters_from_args(args)
    report = feasibility_report(rp, context)
    print(json.dumps(report, indent=2))
    return 0 if all(report.values()) else 1


def cmd_verify(args):
    """Check incentive properties with a discharging engine."""
    from pkigame import PropertyVerifier, create_engine, create_property, default_properties

    engine = create_engine(
        args.engine,
        timeout_ms=args.timeout_ms,
        samples=args.samples,
        seed=args.seed,
        max_amount=args.max_amount,
    )
    properties = [create_property(n) for n in args.property] if args.property else default_properties()

    verifier = PropertyVerifier(engine=engine, properties=properties)
    report = verifier.verify()

    if args.sign_key:
        from pkigame.signing import SigningService, load_key_pair

        service = SigningService()
        service.add_key_pair(load_key_pair(args.sign_key))
        report.sign(service)

    data = report.to_dict()
    if args.output:
        save_json(data, args.output)
        print(f"Report saved to: {args.output}", file=sys.stderr)
    else:
        print(json.dumps(data, indent=2))

    for result in report.results:
        mark = "✓" if result.holds() else "✗"
        line = f"{mark} {result.property_name}: {result.verdict.value}"
        if result.reason:
            line += f" ({result.reason})"
        print(line, file=sys.stderr)

    return 0 if report.passed() else 1


def cmd_keygen(args):
    """Generate an Ed25519 key pair for report signing."""
    from pkigame.signing import SigningService

    key_id = args.key_id or f"kid:pkigame-{datetime.now().strftime('%Y%m%d')}-001"
    key_pair = SigningService().generate_key_pair(key_id)

    save_json(key_pair.to_dict(), args.output)
    print(f"Key pair saved to: {args.output}", file=sys.stderr)
    print(json.dumps(key_pair.public_entry(), indent=2))
    return 0


def cmd_verify_report(args):
    """Check a saved report's hash and signature."""
    from pkigame.hashing import report_hash
    from pkigame.signing import verify_report_signature

    report = load_json(args.report)
    public_key = load_json(args.public_key)

    if report_hash(report) != report.get("report_hash"):
        print("✗ INVALID: report hash mismatch")
        return 1
    if not verify_report_signature(report, public_key):
        print("✗ INVALID: signature does not verify")
        return 1

    print(f"✓ VALID ({public_key.get('key_id')})")
    return 0


def cmd_config(args):
    """Show the effective settings and whether each is valid."""
    settings = {
        "engine": config.ENGINE,
        "z3_timeout_ms": config.Z3_TIMEOUT_MS,
        "samples": config.SAMPLES,
        "seed": config.SEED,
        "max_amount": config.MAX_AMOUNT,
        "log_level": config.LOG_LEVEL,
        "log_format": config.LOG_FORMAT,
        "log_file": config.LOG_FILE,
        "debug": config.is_debug(),
    }
    validation = config.validate_config()
    print(json.dumps({"settings": settings, "valid": validation}, indent=2))
    return 0 if all(validation.values()) else 1


def cmd_demo(args):
    """Run the worked examples."""
    from pkigame import (
        RewardParameters,
        PayoutContext,
        Registration,
        detector_payoff,
        evaluate_payoffs,
        select_outcomes,
        OneShotOutcome,
    )

    print("=" * 60)
    print("pkigame Incentive Model Demonstration")
    print("=" * 60)

    rp = RewardParameters(price=5, aff_dom_payout=10, term_payout=3, det_payout=4)
    fee = 2

    print("\n" + "-" * 60)
    print(f"Reporting incentive: {rp.to_dict()}, fee={fee}")
    print("-" * 60)
    reported = OneShotOutcome.from_label("REGISTER/NON_COMPLIANT/REPORT")
    silent = OneShotOutcome.from_label("REGISTER/NON_COMPLIANT/NO_REPORT")
    print(f"  {reported.label}: detector {detector_payoff(reported, rp, fee)}")
    print(f"  {silent.label}: detector {detector_payoff(silent, rp, fee)}")

    print("\n" + "-" * 60)
    print("No spurious reports")
    print("-" * 60)
    reported = OneShotOutcome.from_label("REGISTER/COMPLIANT/REPORT")
    silent = OneShotOutcome.from_label("REGISTER/COMPLIANT/NO_REPORT")
    print(f"  {reported.label}: detector {detector_payoff(reported, rp, fee)}")
    print(f"  {silent.label}: detector {detector_payoff(silent, rp, fee)}")

    rp = RewardParameters(price=7, aff_dom_payout=10, term_payout=3, det_payout=4)
    context = PayoutContext(rem_life=1, min_term_payout=2, reporting_fee=fee)

    print("\n" + "-" * 60)
    print(f"No collusion profits: {rp.to_dict()}, min_term_payout=2")
    print("-" * 60)
    for outcome in select_outcomes(registration=Registration.NO_REGISTER):
        payoffs = evaluate_payoffs(outcome, rp, context)
        print(f"  {outcome.label}: {payoffs.to_dict()}")

    print("\n" + "=" * 60)
    print("Demonstration complete.")
    print("=" * 60)
    return 0


def _add_parameter_arguments(parser):
    parser.add_argument("-p", "--params", help="Parameter JSON file")
    parser.add_argument("--price", type=int, help="Price paid by the CA")
    parser.add_argument("--aff-dom-payout", type=int, help="Payout to the affected domain")
    parser.add_argument("--term-payout", type=int, help="Payout allocable at termination")
    parser.add_argument("--det-payout", type=int, help="Payout to a successful detector")
    parser.add_argument("--rem-life", help="Remaining lifetime fraction, e.g. 3/4")
    parser.add_argument("--min-term-payout", type=int, help="Minimum termination payout")
    parser.add_argument("--reporting-fee", type=int, help="Detector reporting fee")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pkigame",
        description="PKI accountability incentive model",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pkigame demo                            Run demonstration
  pkigame payoffs -p params.json
  pkigame verify --engine sampling --samples 5000 --seed 7
  pkigame keygen -o signing_key.json
  pkigame verify -o report.json -k signing_key.json
        """
    )
    parser.add_argument("--log-level", default=None, help="Log level (default: PKIGAME_LOG_LEVEL)")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("outcomes", help="List the 8 outcomes")

    payoffs_parser = subparsers.add_parser("payoffs", help="Compute the payoff table")
    _add_parameter_arguments(payoffs_parser)
    payoffs_parser.add_argument("-O", "--outcome", help="Single outcome label")

    feasibility_parser = subparsers.add_parser("feasibility", help="Evaluate feasibility predicates")
    _add_parameter_arguments(feasibility_parser)

    verify_parser = subparsers.add_parser("verify", help="Check incentive properties")
    verify_parser.add_argument("-e", "--engine", choices=config.ENGINE_NAMES, help="Discharging engine")
    verify_parser.add_argument("-P", "--property", action="append", help="Property name (repeatable)")
    verify_parser.add_argument("--timeout-ms", type=int, help="z3 timeout per query")
    verify_parser.add_argument("--samples", type=int, help="Sampling budget")
    verify_parser.add_argument("--seed", type=int, help="Sampling seed")
    verify_parser.add_argument("--max-amount", type=int, help="Largest sampled amount")
    verify_parser.add_argument("-o", "--output", help="Output file for the report")
    verify_parser.add_argument("-k", "--sign-key", help="Key pair file to sign the report")

    keygen_parser = subparsers.add_parser("keygen", help="Generate report signing key pair")
    keygen_parser.add_argument("-o", "--output", required=True, help="Output file for the key pair")
    keygen_parser.add_argument("-i", "--key-id", help="Key identifier")

    verify_report_parser = subparsers.add_parser("verify-report", help="Check a signed report")
    verify_report_parser.add_argument("-r", "--report", required=True, help="Report JSON file")
    verify_report_parser.add_argument("-k", "--public-key", required=True, help="Public key JSON file")

    subparsers.add_parser("config", help="Show effective settings")

    subparsers.add_parser("demo", help="Run demonstration")

    return parser


COMMANDS = {
    "outcomes": cmd_outcomes,
    "payoffs": cmd_payoffs,
    "feasibility": cmd_feasibility,
    "verify": cmd_verify,
    "keygen": cmd_keygen,
    "verify-report": cmd_verify_report,
    "config": cmd_config,
    "demo": cmd_demo,
}


def main(argv=None) -> int:
    from pkigame.logging_config import configure_logging

    parser = build_parser()
    args = parser.parse_args(argv)

    level = args.log_level or ("DEBUG" if config.is_debug() else config.LOG_LEVEL)
    try:
        configure_logging(
            level=level,
            json_format=config.LOG_FORMAT == "json",
            log_file=config.LOG_FILE,
        )
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 0

    try:
        return command(args)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
