"""Use Case: Report incompatible conversions and whether a fix can be registered."""

from collections import defaultdict

from conversion_fixer.domain.cancellation import CancellationToken
from conversion_fixer.domain.entities import DiagnosticOccurrence, FixOutcome, FixStatus
from conversion_fixer.domain.protocols import (
    DiagnosticSourceProtocol,
    FileSystemProtocol,
    TelemetryPort,
)
from conversion_fixer.use_cases.register_code_fixes import RegisterCodeFixesUseCase


class CheckConversionsUseCase:
    """List diagnostics without changing any file."""

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

    def execute(self, target_path: str) -> list[FixOutcome]:
        """
        One outcome per diagnostic: AVAILABLE when a fix can be registered,
        NO_FIX when no convertible statement encloses the position.
        """
        self.telemetry.step(f"🔍 Checking {target_path} for incompatible conversions")
        diagnostics = self.diagnostic_source.gather_diagnostics(target_path)

        by_path: dict[str, list[DiagnosticOccurrence]] = defaultdict(list)
        for diagnostic in diagnostics:
            by_path[diagnostic.path].append(diagnostic)

        token = CancellationToken.none()
        outcomes: list[FixOutcome] = []
        for path in sorted(by_path):
            document = self.filesystem.read_document(path)
            for diagnostic in sorted(by_path[path], key=lambda d: d.span_start):
                fixes = self.register_use_case.execute(document, diagnostic, token)
                if fixes:
                    outcome = FixOutcome(diagnostic, FixStatus.AVAILABLE, fixes[0].title)
                else:
                    outcome = FixOutcome(diagnostic, FixStatus.NO_FIX, "no convertible statement")
                outcomes.append(outcome)
                marker = "🔧" if fixes else "  "
                self.telemetry.step(f"{marker} {diagnostic.location}: {diagnostic.message}")

        fixable = sum(1 for o in outcomes if o.status == FixStatus.AVAILABLE)
        self.telemetry.step(f"{len(outcomes)} incompatible conversion(s), {fixable} fixable.")
        return outcomes
