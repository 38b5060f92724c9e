# tests/test_validate_rules.py
import json
import shutil

from dutycheck.load_rules import RULES_DIR
from dutycheck.validate_rules import main


def test_shipped_rules_are_valid(capsys):
    assert main([str(RULES_DIR)]) == 0
    out = capsys.readouterr().out
    assert "tc.json: OK (TC, fdp_table)" in out
    assert "4 OK, 0 INVALID" in out


def test_reports_parse_and_schema_errors(tmp_path, capsys):
    shutil.copy(RULES_DIR / "easa.json", tmp_path / "easa.json")
    (tmp_path / "broken.json").write_text('{\n  "id": "TC",\n  "title": \n}\n', encoding="utf-8")
    (tmp_path / "unknown.json").write_text(json.dumps({"id": "DGCA", "title": "x"}), encoding="utf-8")

    assert main([str(tmp_path)]) == 2

    out = capsys.readouterr().out
    assert "easa.json: OK" in out
    assert "broken.json: JSON parse error" in out
    assert "unknown.json: schema error" in out
    assert "1 OK, 2 INVALID" in out


def test_missing_folder(tmp_path):
    assert main([str(tmp_path / "absent")]) == 1


def test_empty_folder(tmp_path):
    assert main([str(tmp_path)]) == 0
