"""Package entry point - composition root. Wire dependencies and run the CLI app."""

from conversion_fixer.infrastructure.di.container import ConversionFixerContainer
from conversion_fixer.interface.cli import CLIAppFactory, CLIDependencies


def main() -> None:
    """Entry point: wire dependencies at composition root, create app, run."""
    container = ConversionFixerContainer()

    deps = CLIDependencies(
        config_loader=container.get_config_loader(),
        telemetry=container.get_telemetry_port(),
        check_use_case=container.get_check_use_case(),
        apply_fixes_use_case=container.get_apply_fixes_use_case(),
    )

    app = CLIAppFactory.create_app(deps)
    app()


if __name__ == "__main__":
    main()
