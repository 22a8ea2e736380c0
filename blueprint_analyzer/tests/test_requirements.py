import pytest
import sys
import importlib


class TestRequirements:
    """Test that all required dependencies are available."""

    def test_python_version(self):
        """Test Python version is supported."""
        assert sys.version_info >= (3, 8), f"Python 3.8+ required, got {sys.version_info}"

    def test_core_dependencies(self):
        """Test that core dependencies can be imported."""
        required_modules = [
            'pydantic',
            'pydantic_settings',
            'loguru',
            'networkx'
        ]

        missing_modules = []
        for module_name in required_modules:
            try:
                importlib.import_module(module_name)
                print(f"✓ {module_name} available")
            except ImportError:
                missing_modules.append(module_name)
                print(f"✗ {module_name} missing")

        if missing_modules:
            pytest.fail(f"Missing required modules: {missing_modules}")

    def test_settings_from_environment(self, monkeypatch):
        """Test that settings pick up prefixed environment variables."""
        from blueprint_analyzer.config import Settings

        monkeypatch.setenv("BLUEPRINT_ANALYZER_MAX_WORKERS", "3")
        monkeypatch.setenv("BLUEPRINT_ANALYZER_DEPRECATED_NODE_TYPES", "OldCall, Legacy ,")
        loaded = Settings()

        assert loaded.max_workers == 3
        assert loaded.deprecated_node_types_list == ["OldCall", "Legacy"]

    def test_invalid_fan_in_policy(self):
        from pydantic import ValidationError
        from blueprint_analyzer.config import Settings

        with pytest.raises(ValidationError):
            Settings(exec_fan_in_policy="sometimes")
