import json

from millcalc.cli import build_parser, main

CALC_ARGS = [
    "--material", "aluminum_6061",
    "--machine", "printnc_standard",
    "--spindle", "vfd_2_2kw",
    "--tool", "endmill_6mm_3f",
]


def test_calculate_text_output(capsys, monkeypatch):
    monkeypatch.delenv("MILLCALC_LIBRARY_FILE", raising=False)
    monkeypatch.delenv("MILLCALC_POLICY_FILE", raising=False)

    assert main(CALC_ARGS + ["--cut-type", "slot"]) == 0
    out = capsys.readouterr().out
    assert "Spindle speed:" in out
    assert "Feed:" in out


def test_calculate_json_output(capsys, monkeypatch):
    monkeypatch.delenv("MILLCALC_LIBRARY_FILE", raising=False)
    monkeypatch.delenv("MILLCALC_POLICY_FILE", raising=False)

    assert main(CALC_ARGS + ["--doc", "2", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["toolType"] == "endmill_flat"
    assert data["user_doc_override"] is True
    assert 6000 <= data["rpm"] <= 24000


def test_unknown_entity_exit_code(capsys, monkeypatch):
    monkeypatch.delenv("MILLCALC_LIBRARY_FILE", raising=False)
    monkeypatch.delenv("MILLCALC_POLICY_FILE", raising=False)

    args = ["--material", "unobtainium"] + CALC_ARGS[2:]
    assert main(args) == 2
    assert "material_id" in capsys.readouterr().err


def test_missing_options(capsys):
    assert main(["--material", "aluminum_6061"]) == 2
    assert "--machine" in capsys.readouterr().err


def test_optimize_subcommand(capsys, monkeypatch):
    monkeypatch.delenv("MILLCALC_POLICY_FILE", raising=False)

    assert main(["optimize", "--target", "0.3", "--force", "150", "--rpm", "16000",
                 "--flutes", "3", "--top", "3", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert len(data["suggestions"]) == 3
    assert data["total_evaluations"] == 300


OPTIMIZE_ARGS = ["optimize", "--target", "0.02", "--force", "100", "--rpm", "10000"]


def test_options_before_subcommand_are_kept():
    args = build_parser().parse_args(["--policy", "p.yaml", "--json", "-v", "--flutes", "4"] + OPTIMIZE_ARGS)

    assert args.policy == "p.yaml"
    assert args.json is True
    assert args.verbose == 1
    assert args.flutes == 4


def test_options_after_subcommand():
    args = build_parser().parse_args(OPTIMIZE_ARGS + ["--policy", "p.yaml", "--json"])
    assert args.policy == "p.yaml"
    assert args.json is True

    defaults = build_parser().parse_args(OPTIMIZE_ARGS)
    assert defaults.policy is None
    assert defaults.json is False
    assert defaults.verbose == 0
    assert defaults.flutes is None


def test_policy_before_subcommand_is_applied(tmp_path, capsys, monkeypatch):
    monkeypatch.delenv("MILLCALC_POLICY_FILE", raising=False)
    policy = tmp_path / "policy.yaml"
    policy.write_text("holder_compliance_mm_per_n: 0.0\n", encoding="utf-8")

    assert main(["--json"] + OPTIMIZE_ARGS) == 0
    default_run = json.loads(capsys.readouterr().out)

    assert main(["--policy", str(policy), "--json"] + OPTIMIZE_ARGS) == 0
    stiff_holder = json.loads(capsys.readouterr().out)

    assert stiff_holder["suggestions"] != default_run["suggestions"]
    assert stiff_holder["suggestions"][0]["relative_error_percent"] < default_run["suggestions"][0]["relative_error_percent"]
