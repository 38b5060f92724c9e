# tests/test_rule_tables.py
import json
import shutil

import pytest

from dutycheck import regulations
from dutycheck.load_rules import RULES, RULES_DIR, read_rules_folder
from dutycheck.models import AvgSectorTime, Regulator, RestType


def test_all_regulators_loaded():
    assert set(RULES) == set(Regulator)


@pytest.mark.parametrize("regulator", list(Regulator))
def test_fdp_always_between_9_and_14(regulator):
    for hour in range(24):
        for sectors in range(1, 25):
            for avg in AvgSectorTime:
                value = regulations.max_fdp_hours(regulator, hour, sectors, avg)
                assert 9 <= value <= 14, (regulator, hour, sectors, avg, value)
                assert regulations.max_fdp_hours(regulator, hour, sectors, avg) == value


@pytest.mark.parametrize(
    "hour,sectors,avg,expected",
    [
        (6, 1, "<30", 12),
        (3, 1, "<30", 9),
        (4, 1, "<30", 10),
        (10, 1, "<30", 13),
        (14, 1, "<30", 12.5),
        (23, 1, "<30", 10),
        (10, 12, "<30", 12),
        (10, 18, "<30", 11),
        (10, 8, "30-50", 12),
        (10, 5, ">=50", 12),
        (10, 7, ">=50", 11),
    ],
)
def test_tc_table(hour, sectors, avg, expected):
    assert regulations.max_fdp_hours(Regulator.TC, hour, sectors, avg) == expected


def test_flat_regulators():
    assert regulations.max_fdp_hours("FAA", 3, 10, ">=50") == 14
    assert regulations.max_fdp_hours("EASA", 3, 10, ">=50") == 13
    assert regulations.max_fdp_hours("Australia", 3, 10, ">=50") == 14


def test_min_rest():
    assert regulations.min_rest_hours("TC") == 12
    assert regulations.min_rest_hours("FAA") == 10
    assert regulations.min_rest_hours("EASA") == 12
    assert regulations.min_rest_hours("Australia") == 10
    assert regulations.min_rest_hours("TC", RestType.TEN_PLUS_TRAVEL) == 10


def test_night_period_bounds():
    assert regulations.night_period("TC") == (2, 6)
    assert regulations.night_period("FAA") == (1, 6)
    assert regulations.night_period("EASA") == (0, 6)
    assert regulations.night_period("Australia") == (0, 5)


def test_labels():
    assert regulations.regulator_label("TC") == "CAR 705"
    assert regulations.regulator_label("FAA") == "FAA"


def test_tc_bands():
    assert regulations.is_night_duty("TC", 14, 23)
    assert regulations.is_night_duty("TC", 1, 5)
    assert not regulations.is_night_duty("TC", 8, 17)
    assert not regulations.is_night_duty("TC", 14, 1)
    assert regulations.is_early_start("TC", 6)
    assert not regulations.is_early_start("TC", 7)
    assert regulations.is_late_finish("TC", 1)
    assert not regulations.is_late_finish("TC", 23)


def test_other_bands():
    assert regulations.is_early_start("EASA", 5)
    assert not regulations.is_early_start("EASA", 6)
    assert regulations.is_late_finish("FAA", 23)
    assert regulations.is_night_duty("FAA", 0, 3)
    assert not regulations.is_night_duty("FAA", 0, 1)


def test_loader_reports_invalid_files(tmp_path):
    shutil.copy(RULES_DIR / "tc.json", tmp_path / "tc.json")
    (tmp_path / "broken.json").write_text("{ not json", encoding="utf-8")
    bad = json.loads((RULES_DIR / "faa.json").read_text(encoding="utf-8"))
    del bad["logic"]["max_fdp_hours"]
    (tmp_path / "faa.json").write_text(json.dumps(bad), encoding="utf-8")

    valid, invalid = read_rules_folder(tmp_path)

    assert list(valid) == [Regulator.TC]
    files = {r.get("file") for r in invalid}
    assert {"broken.json", "faa.json"} <= files
    assert any("no rules for" in r["error"] for r in invalid)
    # the published tables are untouched
    assert set(RULES) == set(Regulator)


def test_loader_missing_folder(tmp_path):
    valid, invalid = read_rules_folder(tmp_path / "nope")
    assert valid == {}
    assert invalid[0]["stage"] == "load"


def test_loader_duplicate_ids(tmp_path):
    shutil.copy(RULES_DIR / "tc.json", tmp_path / "a.json")
    shutil.copy(RULES_DIR / "tc.json", tmp_path / "b.json")
    valid, invalid = read_rules_folder(tmp_path)
    assert list(valid) == [Regulator.TC]
    assert any("duplicate" in r["error"] for r in invalid)
