"""
pkigame Property Verifier

Drives a catalog of incentive properties through a discharging engine and
assembles the verdicts into a verification report.

Before any property is handed to an engine its cases are checked against
the closed outcome space: every case must be a tuple of members of
ALL_OUTCOMES, so a property can never quantify over an outcome the game
does not have.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from . import __version__
from .engines import CheckResult, PropertyEngine, Verdict, create_engine
from .hashing import report_hash
from .logging_config import VerificationAuditLogger, audit_log, set_run_id
from .outcomes import ALL_OUTCOMES
from .properties import (
    BASE_VARIABLES,
    Property,
    PropertyDefinitionError,
    default_properties,
)


def validate_property(prop: Property) -> None:
    """
    Check a property definition against the outcome space.

    Raises:
        PropertyDefinitionError: if the property has no cases, a case holds
            something other than a game outcome, or a base variable is missing
    """
    cases = prop.cases()
    if not cases:
        raise PropertyDefinitionError(f"Property {prop.name} has no cases")

    for case in cases:
        if not isinstance(case, tuple):
            raise PropertyDefinitionError(
                f"Property {prop.name}: case {case!r} must be a tuple of outcomes"
            )
        for outcome in case:
            if outcome not in ALL_OUTCOMES:
                raise PropertyDefinitionError(
                    f"Property {prop.name}: {outcome!r} is not a game outcome"
                )

    names = [v.name for v in prop.variables]
    if len(names) != len(set(names)):
        raise PropertyDefinitionError(f"Property {prop.name} declares a variable twice")

    missing = [v.name for v in BASE_VARIABLES if v.name not in names]
    if missing:
        raise PropertyDefinitionError(
            f"Property {prop.name} does not quantify over {missing}"
        )


@dataclass
class VerificationReport:
    """
    Verdicts of one verification run.

    The report hash binds the engine configuration and every verdict,
    counterexamples included.
    """
    engine: Dict[str, Any]
    results: List[CheckResult]
    generated_at: str
    pkigame_version: str = __version__
    signatures: List[Dict[str, Any]] = field(default_factory=list)

    def passed(self) -> bool:
        return all(r.holds() for r in self.results)

    def failures(self) -> List[CheckResult]:
        return [r for r in self.results if not r.holds()]

    def result_for(self, property_name: str) -> Optional[CheckResult]:
        for result in self.results:
            if result.property_name == property_name:
                return result
        return None

    def body(self) -> Dict[str, Any]:
        """Report content without hash and signatures."""
        return {
            "pkigame_version": self.pkigame_version,
            "generated_at": self.generated_at,
            "engine": self.engine,
            "passed": self.passed(),
            "results": [r.to_dict() for r in self.results],
        }

    def get_hash(self) -> str:
        return report_hash(self.body())

    def to_dict(self) -> Dict[str, Any]:
        d = self.body()
        d["report_hash"] = self.get_hash()
        if self.signatures:
            d["signatures"] = list(self.signatures)
        return d

    def sign(self, signing_service, key_id: Optional[str] = None) -> Dict[str, Any]:
        """Sign the report body and attach the signature."""
        from .canonicalization import canonicalize

        signature = signing_service.sign(canonicalize(self.body()), key_id)
        self.signatures.append(signature)
        return signature


class PropertyVerifier:
    """
    Checks incentive properties with a discharging engine.

    Usage:
        verifier = PropertyVerifier(engine=Z3Engine())
        report = verifier.verify()
        if not report.passed():
            for failure in report.failures():
                print(failure.counterexample)
    """

    def __init__(
        self,
        engine: Optional[PropertyEngine] = None,
        properties: Optional[Iterable[Property]] = None,
        audit: Optional[VerificationAuditLogger] = None
    ):
        self.engine = engine or create_engine()
        self.properties = list(properties) if properties is not None else default_properties()
        self.audit = audit or audit_log

        for prop in self.properties:
            validate_property(prop)

    def check(self, prop: Property) -> CheckResult:
        """Check a single property and log the verdict."""
        validate_property(prop)
        result = self.engine.check(prop)

        self.audit.property_checked(
            prop.name, result.verdict.value, self.engine.name, samples=result.samples
        )
        if result.verdict == Verdict.FALSIFIED and result.counterexample:
            self.audit.counterexample_found(prop.name, result.counterexample.to_dict())
        elif result.verdict == Verdict.UNKNOWN:
            self.audit.engine_inconclusive(prop.name, self.engine.name, result.reason)

        return result

    def verify(self, run_id: Optional[str] = None) -> VerificationReport:
        """Check every configured property."""
        set_run_id(run_id)
        self.audit.verification_started(self.engine.name, [p.name for p in self.properties])

        results = [self.check(prop) for prop in self.properties]

        report = VerificationReport(
            engine=self.engine.describe(),
            results=results,
            generated_at=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        )
        self.audit.verification_complete(report.passed(), report.get_hash())
        return report


def verify_properties(
    properties: Optional[Iterable[Property]] = None,
    engine: Optional[PropertyEngine] = None
) -> VerificationReport:
    """
    Convenience function to verify a set of properties.

    Defaults to the full catalog and the configured engine.
    """
    verifier = PropertyVerifier(engine=engine, properties=properties)
    return verifier.verify()
