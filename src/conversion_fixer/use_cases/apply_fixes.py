"""Use Case: Apply explicit-conversion fixes to source files."""

import logging
from collections import defaultdict
from dataclasses import replace
from typing import Optional

from conversion_fixer.domain.cancellation import CancellationToken
from conversion_fixer.domain.entities import (
    DiagnosticOccurrence,
    Document,
    FileFixResult,
    FixOutcome,
    FixStatus,
)
from conversion_fixer.domain.exceptions import SemanticLookupError
from conversion_fixer.domain.protocols import (
    DiagnosticSourceProtocol,
    FileSystemProtocol,
    TelemetryPort,
)
from conversion_fixer.use_cases.register_code_fixes import RegisterCodeFixesUseCase

logger = logging.getLogger(__name__)


class ApplyFixesUseCase:
    """Gather diagnostics for a path and apply every registered fix."""

    def __init__(
        self,
        diagnostic_source: DiagnosticSourceProtocol,
        filesystem: FileSystemProtocol,
        register_use_case: RegisterCodeFixesUseCase,
        telemetry: TelemetryPort,
    ) -> None:
        self.diagnostic_source = diagnostic_source
        self.filesystem = filesystem
        self.register_use_case = register_use_case
        self.telemetry = telemetry

    def execute(
        self,
        target_path: str,
        dry_run: bool = False,
        token: Optional[CancellationToken] = None,
    ) -> list[FileFixResult]:
        """Fix all files under ``target_path``; returns one result per file with diagnostics."""
        token = token or CancellationToken.none()
        self.telemetry.step(f"🔍 Gathering conversion diagnostics in {target_path}")
        diagnostics = self.diagnostic_source.gather_diagnostics(target_path)
        if not diagnostics:
            self.telemetry.step("✅ No incompatible conversions found.")
            return []

        by_path: dict[str, list[DiagnosticOccurrence]] = defaultdict(list)
        for diagnostic in diagnostics:
            by_path[diagnostic.path].append(diagnostic)

        results: list[FileFixResult] = []
        for path in sorted(by_path):
            document = self.filesystem.read_document(path)
            result = self.fix_document(document, by_path[path], token)
            results.append(result)
            if result.changed and not dry_run:
                self.filesystem.write_document(result.fixed)
            self._report(result)

        applied = sum(r.applied_count for r in results)
        changed = sum(1 for r in results if r.changed)
        verb = "would change" if dry_run else "changed"
        self.telemetry.step(f"🛠️ {applied} conversion(s) generated; {changed} file(s) {verb}.")
        return results

    def execute_at(
        self,
        path: str,
        line: int,
        column: int,
        dry_run: bool = False,
        token: Optional[CancellationToken] = None,
    ) -> FileFixResult:
        """Fix the single conversion at a 1-based line/column of one file."""
        token = token or CancellationToken.none()
        document = self.filesystem.read_document(path)
        diagnostic = DiagnosticOccurrence(
            id=self.register_use_case.FIXABLE_DIAGNOSTIC_IDS[0],
            path=path,
            span_start=document.offset_of(line, column),
            line=line,
            column=column,
        )
        result = self.fix_document(document, [diagnostic], token)
        if result.changed and not dry_run:
            self.filesystem.write_document(result.fixed)
        self._report(result)
        return result

    def fix_document(
        self,
        document: Document,
        diagnostics: list[DiagnosticOccurrence],
        token: CancellationToken,
    ) -> FileFixResult:
        """
        Apply fixes to one document, one diagnostic at a time.

        Diagnostics are processed from the end of the document backwards.
        After each rewrite the offsets still pending are carried over to the
        new text. A diagnostic inside the statement just rewritten is skipped.
        """
        current = document
        outcomes: list[FixOutcome] = []
        pending = [(d, d.span_start) for d in sorted(diagnostics, key=lambda d: d.span_start)]
        while pending:
            token.throw_if_cancellation_requested()
            diagnostic, offset = pending.pop()
            located = replace(diagnostic, span_start=offset)

            fixes = self.register_use_case.execute(current, located, token)
            if not fixes:
                outcomes.append(
                    FixOutcome(diagnostic, FixStatus.NO_FIX, "no convertible statement")
                )
                continue

            fix = fixes[0]
            try:
                changed = fix.create_changed_document(token)
            except SemanticLookupError as e:
                logger.info("Skipping %s: %s", diagnostic.location, e)
                outcomes.append(FixOutcome(diagnostic, FixStatus.SKIPPED, str(e)))
                continue

            if changed is None:
                outcomes.append(
                    FixOutcome(diagnostic, FixStatus.SKIPPED, "no conversion available")
                )
                continue

            outcomes.append(FixOutcome(diagnostic, FixStatus.APPLIED))
            carried: list[tuple[DiagnosticOccurrence, int]] = []
            for other, other_offset in pending:
                if fix.covers(other_offset):
                    outcomes.append(
                        FixOutcome(other, FixStatus.SKIPPED, "statement already rewritten")
                    )
                else:
                    carried.append((other, current.map_offset(other_offset, changed)))
            pending = carried
            current = changed

        outcomes.sort(key=lambda o: o.diagnostic.span_start)
        return FileFixResult(original=document, fixed=current, outcomes=outcomes)

    def _report(self, result: FileFixResult) -> None:
        for outcome in result.outcomes:
            if outcome.status == FixStatus.APPLIED:
                self.telemetry.step(f"  {outcome.diagnostic.location}: {outcome.diagnostic.message or 'fixed'}")
            else:
                self.telemetry.error(f"  {outcome.diagnostic.location}: {outcome.status.value} ({outcome.reason})")
