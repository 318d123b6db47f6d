"""
Outcome comparison logic for scenario conformance testing.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class Divergence:
    """A difference between the expected and the observed outcome."""
    field: str
    expected: Any
    actual: Any
    vector_name: str


@dataclass
class ComparisonResult:
    """Result of comparing one scenario's outcome against its expectations."""
    success: bool
    divergences: List[Divergence]

    @property
    def has_divergences(self) -> bool:
        return len(self.divergences) > 0


class ResultComparator:
    """Compares observed scenario outcomes with the vector's expectations."""

    def compare_step(
        self,
        index: int,
        expected_error: Optional[str],
        actual_error: Optional[str],
        vector_name: str,
    ) -> List[Divergence]:
        """Compare one step's error code (``None`` means success)."""
        if expected_error == actual_error:
            return []
        return [Divergence(
            field=f"steps[{index}].error",
            expected=expected_error or "OK",
            actual=actual_error or "OK",
            vector_name=vector_name,
        )]

    def compare_final(
        self,
        expected: Dict[str, Any],
        actual: Dict[str, Any],
        vector_name: str,
    ) -> List[Divergence]:
        """
        Compare the final snapshot against the vector's ``expected`` block.

        Only keys present in ``expected`` are checked.

        Args:
            expected: Expected balances / judge fields / event kinds
            actual: Snapshot of the same keys taken from the final state
            vector_name: Name of the test vector

        Returns:
            List of divergences found
        """
        divergences = []

        for name, balance in (expected.get("balances") or {}).items():
            got = actual.get("balances", {}).get(name)
            if got != balance:
                divergences.append(Divergence(
                    field=f"balances.{name}",
                    expected=balance,
                    actual=got,
                    vector_name=vector_name,
                ))

        for key, value in (expected.get("judge") or {}).items():
            got = actual.get("judge", {}).get(key)
            if got != value:
                divergences.append(Divergence(
                    field=f"judge.{key}",
                    expected=value,
                    actual=got,
                    vector_name=vector_name,
                ))

        if "events" in expected and expected["events"] != actual.get("events"):
            divergences.append(Divergence(
                field="events",
                expected=expected["events"],
                actual=actual.get("events"),
                vector_name=vector_name,
            ))

        return divergences

    def combine(self, divergences: List[Divergence]) -> ComparisonResult:
        return ComparisonResult(
            success=len(divergences) == 0,
            divergences=divergences,
        )
