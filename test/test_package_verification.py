#!/usr/bin/env python3
"""Tests for clangcomplete/package_verification.py"""

from typing import Any
from unittest.mock import patch

import pytest

from clangcomplete.constants import EXIT_RUNTIME_ERROR
from clangcomplete.package_verification import PACKAGE_REQUIREMENTS, check_all_packages, check_package_version, require_package


@pytest.mark.unit
class TestCheckPackageVersion:
    """Test check_package_version function."""

    def test_check_installed_meets_version(self) -> None:
        """Test checking an installed package that meets version requirement."""
        is_installed, meets_version, installed_ver = check_package_version("packaging", "1.0", raise_on_error=False)
        assert is_installed is True
        assert meets_version is True
        assert installed_ver

    def test_check_installed_below_version(self) -> None:
        """Test checking an installed package below required version."""
        is_installed, meets_version, _ = check_package_version("packaging", "999.0.0", raise_on_error=False)
        assert is_installed is True
        assert meets_version is False

    def test_check_not_installed(self) -> None:
        """Test checking a package that is not installed."""
        assert check_package_version("nonexistent_package_xyz123", "1.0.0", raise_on_error=False) == (False, False, None)

    def test_raise_on_missing_package(self) -> None:
        """Test that ImportError is raised when package is missing."""
        with pytest.raises(ImportError, match="is not installed"):
            check_package_version("nonexistent_package_xyz123", "1.0.0")

    def test_raise_on_old_version(self) -> None:
        """Test that ImportError is raised when version is too old."""
        with pytest.raises(ImportError, match="is too old"):
            check_package_version("colorama", "999.0.0")

    def test_unknown_package_without_version(self) -> None:
        """Test that ValueError is raised when no requirement is registered."""
        with pytest.raises(ValueError, match="No version requirement specified"):
            check_package_version("unknown_pkg_xyz", min_version=None, raise_on_error=False)

    def test_registry_covers_runtime_dependencies(self) -> None:
        """Test that the registry lists the runtime dependencies."""
        assert set(PACKAGE_REQUIREMENTS) == {"colorama", "packaging"}


@pytest.mark.unit
class TestRequirePackage:
    """Test require_package and check_all_packages."""

    def test_require_unknown_package_exits(self) -> None:
        """Test that an unknown package exits with the runtime error code."""
        with pytest.raises(SystemExit) as exc_info:
            require_package("unknown_pkg_xyz", "testing")
        assert exc_info.value.code == EXIT_RUNTIME_ERROR

    def test_require_too_old_package_exits(self, capsys: Any) -> None:
        """Test that a too-old package exits with the runtime error code."""
        with patch.dict(PACKAGE_REQUIREMENTS, {"packaging": "999.0"}):
            with pytest.raises(SystemExit) as exc_info:
                require_package("packaging", "testing")
        assert exc_info.value.code == EXIT_RUNTIME_ERROR
        assert "packaging is required for testing" in capsys.readouterr().err

    def test_check_all_packages(self, capsys: Any) -> None:
        """Test that installed requirements are all reported as OK."""
        assert check_all_packages() is True
        assert "colorama" in capsys.readouterr().err

    def test_check_all_packages_reports_outdated(self, capsys: Any) -> None:
        """Test that an unmet minimum makes the overall check fail."""
        with patch.dict(PACKAGE_REQUIREMENTS, {"packaging": "999.0"}):
            assert check_all_packages() is False
        assert "need >=999.0" in capsys.readouterr().err
