from typing import TYPE_CHECKING, Any, cast

from conversion_fixer.domain.config import ConfigurationLoader
from conversion_fixer.infrastructure.adapters.mypy_adapter import MypyAdapter
from conversion_fixer.infrastructure.config_file_loader import ConfigFileLoader
from conversion_fixer.infrastructure.gateways.astroid_gateway import AstroidSemanticModelFactory
from conversion_fixer.infrastructure.gateways.cst_syntax_tree import CstSyntaxTreeFactory
from conversion_fixer.infrastructure.gateways.emitters import StatementEmitterFactory
from conversion_fixer.infrastructure.gateways.filesystem_gateway import FileSystemGateway
from conversion_fixer.infrastructure.gateways.libcst_rewriter_gateway import LibCSTRewriterGateway
from conversion_fixer.infrastructure.services.constructor_mapping_engine import (
    ConstructorMappingEngine,
)
from conversion_fixer.interface.telemetry import TyperTelemetry
from conversion_fixer.use_cases.apply_fixes import ApplyFixesUseCase
from conversion_fixer.use_cases.check_conversions import CheckConversionsUseCase
from conversion_fixer.use_cases.generate_explicit_conversion import (
    GenerateExplicitConversionUseCase,
)
from conversion_fixer.use_cases.register_code_fixes import RegisterCodeFixesUseCase

if TYPE_CHECKING:
    from conversion_fixer.domain.protocols import (
        DiagnosticSourceProtocol,
        FileSystemProtocol,
        TelemetryPort,
    )


class ConversionFixerContainer:
    """Dependency Injection Container for the conversion fixer."""

    def __init__(self) -> None:
        self._singletons: dict[str, Any] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        """Register default implementations for protocols."""
        config_loader = ConfigurationLoader(ConfigFileLoader.load_config_from_fs())
        self.register_singleton("ConfigurationLoader", config_loader)

        telemetry = TyperTelemetry()
        self.register_singleton("TelemetryPort", telemetry)
        filesystem = FileSystemGateway()
        self.register_singleton("FileSystemGateway", filesystem)
        self.register_singleton("MypyAdapter", MypyAdapter(config_loader, filesystem))

        # Pipeline
        self.register_singleton("MappingEngine", ConstructorMappingEngine())
        self.register_singleton(
            "GenerateExplicitConversionUseCase",
            GenerateExplicitConversionUseCase(
                semantic_model_factory=AstroidSemanticModelFactory(),
                mapping_engine=self.get("MappingEngine"),
                rewriter=LibCSTRewriterGateway(),
                emitters=StatementEmitterFactory(),
            ),
        )
        self.register_singleton(
            "RegisterCodeFixesUseCase",
            RegisterCodeFixesUseCase(
                tree_factory=CstSyntaxTreeFactory(),
                generate_use_case=self.get("GenerateExplicitConversionUseCase"),
            ),
        )

    def register_singleton(self, key: str, instance: Any) -> None:
        """Register a singleton instance."""
        self._singletons[key] = instance

    def get(self, key: str) -> Any:
        """Retrieve a dependency by key. Prefer explicit get_* methods for type safety."""
        if key in self._singletons:
            return self._singletons[key]
        raise ValueError(f"Dependency '{key}' not registered.")

    def get_config_loader(self) -> ConfigurationLoader:
        """Return the validated configuration."""
        return cast(ConfigurationLoader, self.get("ConfigurationLoader"))

    def get_telemetry_port(self) -> "TelemetryPort":
        """Return the telemetry/UI port."""
        return cast("TelemetryPort", self.get("TelemetryPort"))

    def get_filesystem_gateway(self) -> "FileSystemProtocol":
        """Return the filesystem gateway."""
        return cast("FileSystemProtocol", self.get("FileSystemGateway"))

    def get_diagnostic_source(self) -> "DiagnosticSourceProtocol":
        """Return the mypy diagnostic adapter."""
        return cast("DiagnosticSourceProtocol", self.get("MypyAdapter"))

    def get_register_code_fixes_use_case(self) -> RegisterCodeFixesUseCase:
        """Return the single-diagnostic fix registration entry point."""
        return cast(RegisterCodeFixesUseCase, self.get("RegisterCodeFixesUseCase"))

    def get_check_use_case(self) -> CheckConversionsUseCase:
        """Return a check use case wired to the mypy adapter."""
        return CheckConversionsUseCase(
            diagnostic_source=self.get_diagnostic_source(),
            filesystem=self.get_filesystem_gateway(),
            register_use_case=self.get_register_code_fixes_use_case(),
            telemetry=self.get_telemetry_port(),
        )

    def get_apply_fixes_use_case(self) -> ApplyFixesUseCase:
        """Return a fix use case wired to the mypy adapter."""
        return ApplyFixesUseCase(
            diagnostic_source=self.get_diagnostic_source(),
            filesystem=self.get_filesystem_gateway(),
            register_use_case=self.get_register_code_fixes_use_case(),
            telemetry=self.get_telemetry_port(),
        )
