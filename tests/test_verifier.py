"""
pkigame Verifier Test Suite

Covers property validation against the outcome space, report assembly,
report hashing and Ed25519 report signatures.
"""

import io
import json
import logging
import unittest
from unittest import mock

from pkigame import (
    OneShotOutcome,
    Property,
    PropertyDefinitionError,
    PropertyVerifier,
    SamplingEngine,
    Variable,
    VariableKind,
    Verdict,
    create_property,
    validate_property,
    verify_properties,
)
from pkigame.hashing import report_hash, verify_hash
from pkigame.logging_config import (
    StructuredFormatter,
    VerificationAuditLogger,
    get_run_id,
    set_run_id,
)
from pkigame.signing import SigningService, verify_report_signature


class _StubProperty(Property):
    name = "stub"

    def __init__(self, cases=((),), variables=None):
        self._cases = cases
        if variables is not None:
            self.variables = variables

    def cases(self):
        return self._cases

    def postcondition(self, case, env, arithmetic):
        return True


class AlwaysFalseProperty(Property):
    """Postcondition no binding meets."""

    name = "always_false"

    def cases(self):
        return ((),)

    def postcondition(self, case, env, arithmetic):
        return env["price"] < 0


class TestValidateProperty(unittest.TestCase):

    def test_catalog_is_valid(self):
        for name in ("reporting_incentive", "no_collusion_profits", "split_monotonicity"):
            validate_property(create_property(name))

    def test_no_cases(self):
        with self.assertRaises(PropertyDefinitionError):
            validate_property(_StubProperty(cases=()))

    def test_case_must_be_tuple(self):
        outcome = OneShotOutcome.from_label("REGISTER/COMPLIANT/REPORT")
        with self.assertRaises(PropertyDefinitionError):
            validate_property(_StubProperty(cases=([outcome],)))

    def test_foreign_outcome(self):
        with self.assertRaises(PropertyDefinitionError) as ctx:
            validate_property(_StubProperty(cases=(("REGISTER/COMPLIANT/REPORT",),)))
        self.assertIn("not a game outcome", str(ctx.exception))

    def test_duplicate_variable(self):
        prop = _StubProperty()
        prop.variables = prop.variables + (Variable("price", VariableKind.AMOUNT),)
        with self.assertRaises(PropertyDefinitionError):
            validate_property(prop)

    def test_missing_base_variable(self):
        variables = (Variable("price", VariableKind.AMOUNT), Variable("rem_life", VariableKind.FRACTION))
        with self.assertRaises(PropertyDefinitionError) as ctx:
            validate_property(_StubProperty(variables=variables))
        self.assertIn("reporting_fee", str(ctx.exception))

    def test_definition_error_is_value_error(self):
        self.assertTrue(issubclass(PropertyDefinitionError, ValueError))

    def test_verifier_rejects_invalid_property(self):
        with self.assertRaises(PropertyDefinitionError):
            PropertyVerifier(engine=SamplingEngine(samples=10), properties=[_StubProperty(cases=())])


class TestVerificationReport(unittest.TestCase):

    def setUp(self):
        self.engine = SamplingEngine(samples=400, seed=11)

    def test_catalog_report_passes(self):
        report = verify_properties(engine=self.engine)

        self.assertTrue(report.passed())
        self.assertEqual(report.failures(), [])
        self.assertEqual(len(report.results), 6)
        self.assertEqual(report.engine["name"], "sampling")
        self.assertEqual(report.result_for("split_bounds").verdict, Verdict.NOT_FALSIFIED)
        self.assertIsNone(report.result_for("no_such_property"))

    def test_report_hash(self):
        report = verify_properties([create_property("reporting_incentive")], engine=self.engine)
        data = report.to_dict()

        self.assertTrue(data["report_hash"].startswith("sha256:"))
        self.assertEqual(data["report_hash"], report.get_hash())

        # Survives a JSON round trip
        restored = json.loads(json.dumps(data))
        self.assertEqual(report_hash(restored), data["report_hash"])

    def test_report_hash_binds_verdicts(self):
        data = verify_properties([create_property("reporting_incentive")], engine=self.engine).to_dict()
        data["results"][0]["verdict"] = "PROVED"
        self.assertNotEqual(report_hash(data), data["report_hash"])

    def test_falsified_report(self):
        report = verify_properties([AlwaysFalseProperty()], engine=self.engine)

        self.assertFalse(report.passed())
        failures = report.failures()
        self.assertEqual(len(failures), 1)
        self.assertEqual(failures[0].verdict, Verdict.FALSIFIED)

        data = report.to_dict()
        self.assertFalse(data["passed"])
        self.assertIn("counterexample", data["results"][0])

    def test_verify_hash(self):
        self.assertTrue(verify_hash(
            "sha256:2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824",
            "hello",
        ))
        self.assertFalse(verify_hash("md5:abc", "hello"))


class TestReportSigning(unittest.TestCase):

    def setUp(self):
        self.service = SigningService()
        self.key_pair = self.service.generate_key_pair("kid:test-001")
        self.report = verify_properties(
            [create_property("unregistered_report_unrewarded")],
            engine=SamplingEngine(samples=50, seed=3),
        )

    def test_sign_and_verify(self):
        signature = self.report.sign(self.service)
        self.assertEqual(signature["key_id"], "kid:test-001")
        self.assertEqual(signature["algorithm"], "Ed25519")

        data = json.loads(json.dumps(self.report.to_dict()))
        self.assertTrue(verify_report_signature(data, self.key_pair.public_entry()))

    def test_signature_does_not_change_hash(self):
        before = self.report.get_hash()
        self.report.sign(self.service)
        self.assertEqual(self.report.to_dict()["report_hash"], before)

    def test_tampered_report_rejected(self):
        self.report.sign(self.service)
        data = self.report.to_dict()
        data["passed"] = False
        self.assertFalse(verify_report_signature(data, self.key_pair.public_entry()))

    def test_wrong_key_rejected(self):
        self.report.sign(self.service)
        other = SigningService().generate_key_pair("kid:test-001")
        self.assertFalse(verify_report_signature(self.report.to_dict(), other.public_entry()))

    def test_unsigned_report_rejected(self):
        self.assertFalse(verify_report_signature(self.report.to_dict(), self.key_pair.public_entry()))

    def test_malformed_signature_rejected(self):
        self.report.sign(self.service)
        data = self.report.to_dict()
        del data["signatures"][0]["sig"]
        self.assertFalse(verify_report_signature(data, self.key_pair.public_entry()))

        public_entry = self.key_pair.public_entry()
        del public_entry["public_key"]
        self.assertFalse(verify_report_signature(self.report.to_dict(), public_entry))

    def test_unknown_key(self):
        with self.assertRaises(ValueError):
            self.service.sign(b"data", "kid:missing")


class TestAuditTrail(unittest.TestCase):

    def test_events_for_passing_run(self):
        audit = mock.Mock()
        verifier = PropertyVerifier(
            engine=SamplingEngine(samples=50, seed=5),
            properties=[create_property("reporting_incentive")],
            audit=audit,
        )
        report = verifier.verify(run_id="run-1")

        audit.verification_started.assert_called_once_with("sampling", ["reporting_incentive"])
        audit.property_checked.assert_called_once()
        audit.counterexample_found.assert_not_called()
        audit.engine_inconclusive.assert_not_called()
        audit.verification_complete.assert_called_once_with(True, report.get_hash())

    def test_counterexample_logged(self):
        audit = mock.Mock()
        verifier = PropertyVerifier(
            engine=SamplingEngine(samples=50, seed=5),
            properties=[AlwaysFalseProperty()],
            audit=audit,
        )
        verifier.verify()

        audit.counterexample_found.assert_called_once()
        name, counterexample = audit.counterexample_found.call_args[0]
        self.assertEqual(name, "always_false")
        self.assertEqual(counterexample["property"], "always_false")
        audit.verification_complete.assert_called_once()
        self.assertFalse(audit.verification_complete.call_args[0][0])


class TestStructuredLogging(unittest.TestCase):

    def setUp(self):
        self.stream = io.StringIO()
        handler = logging.StreamHandler(self.stream)
        handler.setFormatter(StructuredFormatter())

        self.logger = logging.getLogger("pkigame.audit.test")
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False
        self.logger.addHandler(handler)
        self.addCleanup(self.logger.removeHandler, handler)

    def test_audit_event_is_json(self):
        set_run_id("run-42")
        VerificationAuditLogger("pkigame.audit.test").property_checked(
            "split_bounds", "PROVED", "z3"
        )

        entry = json.loads(self.stream.getvalue().strip())
        self.assertEqual(entry["event_type"], "PROPERTY_CHECKED")
        self.assertEqual(entry["property"], "split_bounds")
        self.assertEqual(entry["verdict"], "PROVED")
        self.assertEqual(entry["run_id"], "run-42")
        self.assertEqual(entry["level"], "INFO")

    def test_generated_run_id(self):
        run_id = set_run_id()
        self.assertTrue(run_id)
        self.assertEqual(get_run_id(), run_id)


if __name__ == "__main__":
    unittest.main()
