# dutycheck/validate_rules.py
# Run:
#   python -m dutycheck.validate_rules [rules_dir]
# Validates every .json in the rules folder against the rule schema and prints
# errors with file/line/col.

from pathlib import Path
import json
import sys

from pydantic import ValidationError

from .load_rules import RULES_DIR, RuleSpec


def validate_json_file(p: Path) -> bool:
    try:
        txt = p.read_text(encoding="utf-8")
    except OSError as e:
        print(f"{p.name}: ERROR reading file: {e}")
        return False
    try:
        raw = json.loads(txt)
    except json.JSONDecodeError as e:
        print(f"{p.name}: JSON parse error: {e.msg} (line {e.lineno}, col {e.colno})")
        # show a small snippet around the error location
        lines = txt.splitlines()
        ln = e.lineno - 1
        start = max(0, ln - 2)
        end = min(len(lines), ln + 2)
        print("---- context ----")
        for i in range(start, end):
            marker = ">>" if i == ln else "  "
            print(f"{marker} {i + 1:4d}: {lines[i]}")
        print("-----------------")
        return False
    try:
        rule = RuleSpec.model_validate(raw)
    except ValidationError as e:
        print(f"{p.name}: schema error ({e.error_count()}):")
        for err in e.errors():
            loc = ".".join(str(part) for part in err["loc"])
            print(f"   {loc}: {err['msg']}")
        return False
    print(f"{p.name}: OK ({rule.id.value}, {rule.logic.type})")
    return True


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    rules_dir = Path(argv[0]) if argv else RULES_DIR
    if not rules_dir.exists():
        print("Rules folder not found:", rules_dir.resolve())
        return 1
    files = sorted(rules_dir.glob("*.json"))
    if not files:
        print("No .json files found in:", rules_dir.resolve())
        return 0
    ok_count = 0
    bad_count = 0
    for f in files:
        if validate_json_file(f):
            ok_count += 1
        else:
            bad_count += 1
    print(f"\nSummary: {ok_count} OK, {bad_count} INVALID ({len(files)} files checked)")
    return 2 if bad_count else 0


if __name__ == "__main__":
    sys.exit(main())
