"""Run lint, format, type, and test checks; print one JSON report.

Usage:
    python scripts/quality_gate.py              # everything
    python scripts/quality_gate.py --skip-tests # static checks only
    python scripts/quality_gate.py --fix        # let ruff fix what it can first
"""

from __future__ import annotations

import argparse
import json
import re
import subprocess
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent

MYPY_TARGETS = ["trello_cli/"]


def _run(args: list[str]) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, "-m", *args],
        capture_output=True,
        text=True,
        cwd=str(ROOT),
        timeout=300,
    )


def _check(args: list[str], count_re: str | None = None, field: str = "errors") -> dict:
    """Run one tool; count matching output lines when it fails."""
    t0 = time.monotonic()
    r = _run(args)
    text = r.stdout + r.stderr
    result: dict = {
        "status": "pass" if r.returncode == 0 else "fail",
        "duration_s": round(time.monotonic() - t0, 1),
    }
    if r.returncode != 0:
        if count_re:
            result[field] = sum(1 for line in text.splitlines() if re.search(count_re, line))
        result["output"] = text.strip()[-2000:]
    return result


def check_pytest() -> dict:
    result = _check(["pytest", "tests/", "-q", "--no-header", "--tb=short"])
    r = _run(["pytest", "tests/", "-q", "--no-header", "--collect-only"])
    m = re.search(r"(\d+) tests? collected", r.stdout)
    result["collected"] = int(m.group(1)) if m else None
    return result


def main() -> None:
    parser = argparse.ArgumentParser(description="Run all quality checks")
    parser.add_argument("--skip-tests", action="store_true", help="Skip pytest")
    parser.add_argument("--fix", action="store_true", help="Auto-fix ruff issues first")
    args = parser.parse_args()

    t0 = time.monotonic()
    if args.fix:
        _run(["ruff", "check", "--fix", "."])

    checks = {
        "ruff_lint": _check(["ruff", "check", "."], r"^\S+:\d+:\d+:"),
        "ruff_format": _check(
            ["ruff", "format", "--check", "."], r"^Would reformat", "files_to_reformat"
        ),
        "mypy": _check(["mypy", *MYPY_TARGETS], r": error:"),
    }
    if args.skip_tests:
        checks["pytest"] = {"status": "skip", "reason": "--skip-tests"}
    else:
        print("Running pytest...", file=sys.stderr)
        checks["pytest"] = check_pytest()

    ok = all(c["status"] in ("pass", "skip") for c in checks.values())
    report = {
        "overall": "pass" if ok else "fail",
        "checks": checks,
        "total_duration_s": round(time.monotonic() - t0, 1),
    }
    print(json.dumps(report, indent=2))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
