"""CLI entry points for conversion-fixer - Thin Controller using Typer."""

import difflib
import logging
from dataclasses import dataclass
from pathlib import Path

import typer

from conversion_fixer.domain.config import ConfigurationLoader
from conversion_fixer.domain.entities import FileFixResult, FixStatus
from conversion_fixer.domain.exceptions import DiagnosticSourceError, OperationCancelledError
from conversion_fixer.domain.protocols import TelemetryPort
from conversion_fixer.use_cases.apply_fixes import ApplyFixesUseCase
from conversion_fixer.use_cases.check_conversions import CheckConversionsUseCase


@dataclass(frozen=True)
class CLIDependencies:
    """Explicit dependencies for the CLI. All dependencies injected at composition root."""

    config_loader: ConfigurationLoader
    telemetry: TelemetryPort
    check_use_case: CheckConversionsUseCase
    apply_fixes_use_case: ApplyFixesUseCase


class CLIAppFactory:
    """Creates the Typer app."""

    @staticmethod
    def unified_diff(result: FileFixResult) -> str:
        """Unified diff between the original and fixed document (public API)."""
        return "".join(
            difflib.unified_diff(
                result.original.source.splitlines(keepends=True),
                result.fixed.source.splitlines(keepends=True),
                fromfile=f"a/{result.original.path}",
                tofile=f"b/{result.fixed.path}",
            )
        )

    @staticmethod
    def create_app(deps: CLIDependencies) -> typer.Typer:
        """Create the Typer app with explicitly injected dependencies."""
        app = typer.Typer(
            name="conversion-fixer",
            help="Generate explicit conversions for incompatible assignments, returns and yields reported by mypy.",
            add_completion=False,
        )

        @app.callback()
        def main(
            verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
        ) -> None:
            level = logging.DEBUG if verbose else deps.config_loader.log_level
            logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

        def _show(results: list[FileFixResult], dry_run: bool) -> None:
            if not dry_run:
                return
            for result in results:
                if result.changed:
                    typer.echo(CLIAppFactory.unified_diff(result), nl=False)

        @app.command()
        def check(
            path: Path = typer.Argument(Path("."), help="File or directory to check"),  # noqa: B008
        ) -> None:
            """List incompatible conversions and whether each can be fixed."""
            try:
                outcomes = deps.check_use_case.execute(str(path))
            except DiagnosticSourceError as e:
                deps.telemetry.error(f"❌ {e}")
                raise typer.Exit(code=2) from e
            if outcomes:
                raise typer.Exit(code=1)

        @app.command()
        def fix(
            path: Path = typer.Argument(Path("."), help="File or directory to fix"),  # noqa: B008
            dry_run: bool = typer.Option(False, "--dry-run", help="Print a diff instead of writing files"),
        ) -> None:
            """Rewrite every fixable incompatible conversion under PATH."""
            try:
                results = deps.apply_fixes_use_case.execute(str(path), dry_run=dry_run)
            except DiagnosticSourceError as e:
                deps.telemetry.error(f"❌ {e}")
                raise typer.Exit(code=2) from e
            except OperationCancelledError as e:
                deps.telemetry.error(f"⚠️ {e}")
                raise typer.Exit(code=130) from e
            _show(results, dry_run)

        @app.command("fix-at")
        def fix_at(
            file: Path = typer.Argument(..., help="Source file"),  # noqa: B008
            line: int = typer.Argument(..., help="1-based line of the flagged expression"),
            column: int = typer.Argument(..., help="1-based column of the flagged expression"),
            dry_run: bool = typer.Option(False, "--dry-run", help="Print a diff instead of writing the file"),
        ) -> None:
            """Fix the single conversion flagged at FILE:LINE:COLUMN."""
            result = deps.apply_fixes_use_case.execute_at(str(file), line, column, dry_run=dry_run)
            _show([result], dry_run)
            if not any(o.status == FixStatus.APPLIED for o in result.outcomes):
                raise typer.Exit(code=1)

        return app
