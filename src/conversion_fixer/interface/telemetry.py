"""Terminal progress output for the CLI."""

import logging

import typer

from conversion_fixer.domain.protocols import TelemetryPort


class TyperTelemetry(TelemetryPort):
    """TelemetryPort writing through typer and mirroring messages to the log."""

    def __init__(self, quiet: bool = False) -> None:
        self.quiet = quiet
        self.logger = logging.getLogger("conversion_fixer.telemetry")

    def step(self, message: str) -> None:
        self.logger.info(message)
        if not self.quiet:
            typer.echo(message)

    def error(self, message: str) -> None:
        self.logger.error(message)
        typer.secho(message, fg=typer.colors.RED, err=True)
