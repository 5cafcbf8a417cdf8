"""Diagnostic sink for lua_commenter

Parsing and inference never abort on imperfect input. Constructs they
give up on are recorded here instead, so recovery stays silent to the
output but observable to the caller.
"""

from typing import Dict, List, Optional
from dataclasses import dataclass
from enum import Enum

from lua_commenter.core.tokens import Span


class DiagnosticKind(Enum):
    """Where a diagnostic came from"""
    CODE = "code"
    ANNOTATION = "annotation"
    ANALYSIS = "analysis"


@dataclass
class Diagnostic:
    """Record of one dropped or degraded construct"""
    span: Optional[Span]
    reason: str
    kind: DiagnosticKind = DiagnosticKind.CODE

    def format(self) -> str:
        """Format diagnostic for display

        Returns:
            ``line:column: [kind] reason``
        """
        where = f"{self.span.line}:{self.span.column}" if self.span else "?:?"
        return f"{where}: [{self.kind.value}] {self.reason}"


class DiagnosticLogger:
    """Collects diagnostics and provides summaries"""

    def __init__(self) -> None:
        self.records: List[Diagnostic] = []

    def report(self, span: Optional[Span], reason: str,
               kind: DiagnosticKind = DiagnosticKind.CODE) -> Diagnostic:
        """Record a diagnostic

        Args:
            span: Position of the construct (None if unknown)
            reason: What was dropped and why
            kind: Originating stage

        Returns:
            The created record
        """
        record = Diagnostic(span=span, reason=reason, kind=kind)
        self.records.append(record)
        return record

    def extend(self, records: List[Diagnostic]) -> None:
        self.records.extend(records)

    def get_summary(self) -> Dict:
        """Get summary statistics

        Returns:
            Dictionary with totals per kind
        """
        by_kind: Dict[DiagnosticKind, int] = {}
        for record in self.records:
            by_kind[record.kind] = by_kind.get(record.kind, 0) + 1
        return {
            "total_diagnostics": len(self.records),
            "diagnostics_by_kind": by_kind,
        }

    def print_summary(self, limit: int = 10) -> str:
        """Generate formatted summary string

        Args:
            limit: Maximum number of detail lines

        Returns:
            Formatted summary
        """
        summary = self.get_summary()
        lines = ["=== Diagnostic Summary ===",
                 f"Total diagnostics: {summary['total_diagnostics']}"]

        if summary['diagnostics_by_kind']:
            lines.append("Diagnostics by kind:")
            for kind, count in summary['diagnostics_by_kind'].items():
                lines.append(f"  {kind.value}: {count}")

        if self.records:
            lines.append(f"Details (top {limit}):")
            for record in self.records[:limit]:
                lines.append(f"  {record.format()}")

        return "\n".join(lines)

    def clear(self) -> None:
        self.records.clear()
