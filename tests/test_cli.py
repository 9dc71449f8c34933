"""Tests for the pkigame command line interface."""

import json

import pytest

from pkigame.cli import main


PARAMS = {
    "price": 7,
    "aff_dom_payout": 10,
    "term_payout": 3,
    "det_payout": 4,
    "rem_life": "1/2",
    "min_term_payout": 2,
    "reporting_fee": 2,
}


@pytest.fixture
def params_file(tmp_path):
    path = tmp_path / "params.json"
    path.write_text(json.dumps(PARAMS))
    return str(path)


def test_outcomes(capsys):
    assert main(["outcomes"]) == 0
    lines = capsys.readouterr().out.split()
    assert len(lines) == 8
    assert lines[0] == "REGISTER/COMPLIANT/REPORT"
    assert lines[-1] == "NO_REGISTER/NON_COMPLIANT/NO_REPORT"


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "usage: pkigame" in capsys.readouterr().out


def test_payoffs_from_flags(capsys):
    code = main([
        "payoffs",
        "--price", "5", "--aff-dom-payout", "10", "--term-payout", "3",
        "--det-payout", "4", "--reporting-fee", "2",
    ])
    assert code == 0

    data = json.loads(capsys.readouterr().out)
    assert data["parameters_hash"].startswith("sha256:")
    assert len(data["payoffs"]) == 8
    assert data["payoffs"]["REGISTER/NON_COMPLIANT/REPORT"]["detector"] == 2
    assert data["payoffs"]["REGISTER/COMPLIANT/REPORT"]["detector"] == -2


def test_payoffs_single_outcome(params_file, capsys):
    code = main(["payoffs", "-p", params_file, "-O", "REGISTER/NON_COMPLIANT/REPORT"])
    assert code == 0

    data = json.loads(capsys.readouterr().out)
    assert data["parameters"]["rem_life"] == "1/2"
    assert data["payoffs"] == {
        "REGISTER/NON_COMPLIANT/REPORT": {"ca": -9, "domain": 5, "detector": 2},
    }


def test_flags_override_file(params_file, capsys):
    assert main(["payoffs", "-p", params_file, "--price", "8"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["parameters"]["price"] == 8


def test_feasibility(params_file, capsys):
    assert main(["feasibility", "-p", params_file]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report == {"reporting_fee": True, "min_term_payout": True, "price": True}


def test_infeasible_exit_code(params_file, capsys):
    assert main(["feasibility", "-p", params_file, "--reporting-fee", "4"]) == 1
    report = json.loads(capsys.readouterr().out)
    assert report["reporting_fee"] is False


def test_invalid_parameters(capsys):
    code = main([
        "payoffs",
        "--price", "-1", "--aff-dom-payout", "10", "--term-payout", "3", "--det-payout", "4",
    ])
    assert code == 2
    assert "error:" in capsys.readouterr().err


def test_missing_parameters(capsys):
    assert main(["payoffs", "--price", "5"]) == 2
    assert "error:" in capsys.readouterr().err


def test_unknown_outcome(params_file, capsys):
    assert main(["payoffs", "-p", params_file, "-O", "REGISTER/MAYBE/REPORT"]) == 2


def test_verify_sampling(capsys):
    code = main([
        "verify", "--engine", "sampling", "--samples", "300", "--seed", "7",
        "-P", "reporting_incentive", "-P", "no_collusion_profits",
    ])
    assert code == 0

    captured = capsys.readouterr()
    report = json.loads(captured.out)
    assert report["passed"] is True
    assert [r["property"] for r in report["results"]] == ["reporting_incentive", "no_collusion_profits"]
    assert all(r["verdict"] == "NOT_FALSIFIED" for r in report["results"])
    assert "✓ reporting_incentive" in captured.err


def test_verify_unknown_property(capsys):
    assert main(["verify", "--engine", "sampling", "-P", "no_such_property"]) == 2


def test_keygen_sign_and_verify_report(tmp_path, capsys):
    key_file = str(tmp_path / "key.json")
    report_file = str(tmp_path / "report.json")
    public_file = str(tmp_path / "public.json")

    assert main(["keygen", "-o", key_file, "-i", "kid:cli-test"]) == 0
    public_entry = json.loads(capsys.readouterr().out)
    assert public_entry["key_id"] == "kid:cli-test"
    assert "signing_key" not in public_entry
    (tmp_path / "public.json").write_text(json.dumps(public_entry))

    code = main([
        "verify", "--engine", "sampling", "--samples", "100", "--seed", "1",
        "-P", "split_bounds", "-o", report_file, "-k", key_file,
    ])
    assert code == 0
    capsys.readouterr()

    report = json.loads((tmp_path / "report.json").read_text())
    assert report["signatures"][0]["key_id"] == "kid:cli-test"

    assert main(["verify-report", "-r", report_file, "-k", public_file]) == 0
    assert "VALID" in capsys.readouterr().out

    report["results"][0]["verdict"] = "PROVED"
    (tmp_path / "report.json").write_text(json.dumps(report))
    assert main(["verify-report", "-r", report_file, "-k", public_file]) == 1
    assert "hash mismatch" in capsys.readouterr().out


def test_demo(capsys):
    assert main(["demo"]) == 0
    out = capsys.readouterr().out
    assert "REGISTER/NON_COMPLIANT/REPORT: detector 2" in out
    assert "REGISTER/COMPLIANT/REPORT: detector -2" in out
    assert "Demonstration complete." in out


def test_config(capsys):
    assert main(["config"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["settings"]["engine"] in ("z3", "sampling")
    assert all(data["valid"].values())


def test_invalid_config(monkeypatch, capsys):
    from pkigame import config

    monkeypatch.setattr(config, "ENGINE", "coq")
    assert main(["config"]) == 1
    assert json.loads(capsys.readouterr().out)["valid"]["engine"] is False


def test_infinite_rem_life_in_params_file(tmp_path, capsys):
    path = tmp_path / "params.json"
    path.write_text(json.dumps({**PARAMS, "rem_life": float("inf")}))
    assert "Infinity" in path.read_text()

    assert main(["payoffs", "-p", str(path)]) == 2
    assert "rem_life" in capsys.readouterr().err


def test_float_rem_life_matches_flag(tmp_path, capsys):
    params = {**PARAMS, "term_payout": 103, "min_term_payout": 3, "price": 200, "rem_life": 0.29}
    path = tmp_path / "params.json"
    path.write_text(json.dumps(params))

    assert main(["payoffs", "-p", str(path), "-O", "REGISTER/NON_COMPLIANT/REPORT"]) == 0
    from_file = json.loads(capsys.readouterr().out)

    assert main([
        "payoffs", "-p", str(path), "--rem-life", "0.29", "-O", "REGISTER/NON_COMPLIANT/REPORT",
    ]) == 0
    from_flag = json.loads(capsys.readouterr().out)

    assert from_file["payoffs"] == from_flag["payoffs"]
    assert from_file["payoffs"]["REGISTER/NON_COMPLIANT/REPORT"]["domain"] == 10 + 32 - 200


def test_unknown_log_level(capsys):
    assert main(["--log-level", "LOUD", "outcomes"]) == 2
    assert "Unknown log level" in capsys.readouterr().err


def test_malformed_signature_entry(tmp_path, capsys):
    key_file = str(tmp_path / "key.json")
    report_file = str(tmp_path / "report.json")
    public_file = tmp_path / "public.json"

    assert main(["keygen", "-o", key_file, "-i", "kid:cli-test"]) == 0
    public_file.write_text(capsys.readouterr().out)

    assert main([
        "verify", "--engine", "sampling", "--samples", "50", "--seed", "1",
        "-P", "split_bounds", "-o", report_file, "-k", key_file,
    ]) == 0
    capsys.readouterr()

    report = json.loads((tmp_path / "report.json").read_text())
    del report["signatures"][0]["sig"]
    (tmp_path / "report.json").write_text(json.dumps(report))

    assert main(["verify-report", "-r", report_file, "-k", str(public_file)]) == 1
    assert "signature does not verify" in capsys.readouterr().out
