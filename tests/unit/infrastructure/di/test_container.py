from unittest.mock import patch

import pytest

from conversion_fixer.domain.config import ConfigurationLoader
from conversion_fixer.infrastructure.adapters.mypy_adapter import MypyAdapter
from conversion_fixer.infrastructure.config_file_loader import ConfigFileLoader
from conversion_fixer.infrastructure.di.container import ConversionFixerContainer
from conversion_fixer.interface.telemetry import TyperTelemetry
from conversion_fixer.use_cases.apply_fixes import ApplyFixesUseCase
from conversion_fixer.use_cases.register_code_fixes import RegisterCodeFixesUseCase


@pytest.fixture
def container() -> ConversionFixerContainer:
    with patch.object(ConfigFileLoader, "load_config_from_fs", return_value={}):
        return ConversionFixerContainer()


class TestConversionFixerContainer:
    def test_defaults_are_registered(self, container: ConversionFixerContainer) -> None:
        assert isinstance(container.get_config_loader(), ConfigurationLoader)
        assert isinstance(container.get_telemetry_port(), TyperTelemetry)
        assert isinstance(container.get_diagnostic_source(), MypyAdapter)
        assert isinstance(container.get_register_code_fixes_use_case(), RegisterCodeFixesUseCase)

    def test_use_cases_share_singletons(self, container: ConversionFixerContainer) -> None:
        use_case = container.get_apply_fixes_use_case()
        assert isinstance(use_case, ApplyFixesUseCase)
        assert use_case.register_use_case is container.get_register_code_fixes_use_case()
        assert use_case.telemetry is container.get_telemetry_port()

    def test_register_and_get_singleton(self, container: ConversionFixerContainer) -> None:
        mock_dep = {"foo": "bar"}
        container.register_singleton("MockDep", mock_dep)
        assert container.get("MockDep") is mock_dep

    def test_get_missing_dependency_raises_error(self, container: ConversionFixerContainer) -> None:
        with pytest.raises(ValueError, match=r"Dependency 'Missing' not registered\."):
            container.get("Missing")
