"""
Unit tests for the test suite's own collection settings.
"""

from pathlib import Path


class TestCollection:
    """Test suite for pytest collection settings."""

    def test_build_directory_collected(self, request):
        assert "build" not in request.config.getini("norecursedirs")

    def test_testpaths(self, request):
        assert request.config.getini("testpaths") == ["tests"]

    def test_build_suite_present(self):
        build_tests = Path(__file__).parent / "build"
        assert sorted(p.name for p in build_tests.glob("test_*.py"))
