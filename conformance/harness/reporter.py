"""
Reports for scenario runs.

Each vector keeps the error name of every step and the final Judge snapshot,
so a failing report shows where a scenario went off course without rerunning
it.
"""

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from comparator import ComparisonResult, Divergence


@dataclass
class VectorResult:
    """Outcome of one scenario vector."""
    vector_name: str
    suite_name: str = ""
    # Error name per step, None where the step succeeded.
    step_errors: List[Optional[str]] = field(default_factory=list)
    final: Optional[Dict[str, Any]] = None
    comparison: Optional[ComparisonResult] = None
    error: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.error is None and self.comparison is not None and self.comparison.success


@dataclass
class SuiteResult:
    """All vectors of one YAML file."""
    suite_name: str
    results: List[VectorResult]

    @property
    def failed(self) -> List[VectorResult]:
        return [r for r in self.results if not r.passed]


@dataclass
class ConformanceReport:
    timestamp: str
    execution_time_ms: float
    suites: List[SuiteResult]

    @property
    def total_tests(self) -> int:
        return sum(len(s.results) for s in self.suites)

    @property
    def total_failed(self) -> int:
        return sum(len(s.failed) for s in self.suites)

    @property
    def divergences(self) -> List[Divergence]:
        return [
            d
            for s in self.suites
            for r in s.results
            if r.comparison
            for d in r.comparison.divergences
        ]


def _step_label(error: Optional[str]) -> str:
    return error or "OK"


class ReportGenerator:
    """Writes scenario reports to ``result_dir``."""

    def __init__(self, result_dir: str):
        self.result_dir = result_dir

    def generate_report(
        self, suites: List[SuiteResult], execution_time_ms: float
    ) -> ConformanceReport:
        return ConformanceReport(
            timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            execution_time_ms=execution_time_ms,
            suites=suites,
        )

    def _path(self, filename: str) -> str:
        os.makedirs(self.result_dir, exist_ok=True)
        return os.path.join(self.result_dir, filename)

    def write_json_report(
        self, report: ConformanceReport, filename: str = "conformance-report.json"
    ) -> str:
        """Write the full report, one entry per vector, and return its path."""
        path = self._path(filename)
        data = {
            "timestamp": report.timestamp,
            "execution_time_ms": report.execution_time_ms,
            "total_tests": report.total_tests,
            "total_failed": report.total_failed,
            "suites": {
                s.suite_name: [
                    {
                        "vector": r.vector_name,
                        "passed": r.passed,
                        "steps": [_step_label(e) for e in r.step_errors],
                        "final": r.final,
                        "error": r.error,
                        "divergences": [
                            {
                                "field": d.field,
                                "expected": d.expected,
                                "actual": d.actual,
                            }
                            for d in (r.comparison.divergences if r.comparison else [])
                        ],
                    }
                    for r in s.results
                ]
                for s in report.suites
            },
        }
        with open(path, "w") as f:
            json.dump(data, f, indent=2, default=str)
        return path

    def format_summary(self, report: ConformanceReport) -> str:
        passed = report.total_tests - report.total_failed
        lines = [
            "=" * 60,
            "Judge Scenario Conformance Report",
            "=" * 60,
            f"Timestamp: {report.timestamp}",
            f"Vectors:   {passed}/{report.total_tests} passed "
            f"in {report.execution_time_ms:.2f}ms",
            "",
        ]

        for suite in report.suites:
            status = "FAIL" if suite.failed else "PASS"
            lines.append(f"[{status}] {suite.suite_name}")
            for r in suite.failed:
                lines.append(f"  - {r.vector_name}")
                if r.error:
                    lines.append(f"      error: {r.error}")
                    continue
                lines.append(f"      steps: {' -> '.join(_step_label(e) for e in r.step_errors)}")
                for d in r.comparison.divergences:
                    lines.append(f"      {d.field}: expected {d.expected}, got {d.actual}")

        lines.append("")
        lines.append(f"Overall: {'FAILED' if report.total_failed else 'PASSED'}")
        return "\n".join(lines)

    def write_summary(
        self, report: ConformanceReport, filename: str = "conformance-summary.txt"
    ) -> str:
        path = self._path(filename)
        with open(path, "w") as f:
            f.write(self.format_summary(report))
        return path
