"""Pytest configuration and shared fixtures for the rgsweep test suite.

This module provides shared fixtures, test configuration, and utilities
that are used across the entire test suite.
"""

import logging
from pathlib import Path

import pytest
from utils import FakeRunner, RecordingMessages, RecordingPreview, ScriptedPrompt, make_tree

# Configure Hypothesis for property-based testing
try:
    from hypothesis import Phase, Verbosity, settings

    # Register custom Hypothesis profiles
    settings.register_profile("ci", max_examples=100, verbosity=Verbosity.verbose)
    settings.register_profile("dev", max_examples=20)
    settings.register_profile(
        "debug", max_examples=10, verbosity=Verbosity.verbose, phases=[Phase.explicit, Phase.reuse, Phase.generate]
    )

    # Load profile from environment or use default
    import os

    profile = os.getenv("HYPOTHESIS_PROFILE", "dev")
    settings.load_profile(profile)
except ImportError:
    # Hypothesis not installed, skip configuration
    pass


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests - fast, isolated component tests")
    config.addinivalue_line("markers", "integration: Integration tests - run the real search and edit tools")
    config.addinivalue_line("markers", "slow: Slow tests that may take several seconds")
    config.addinivalue_line("markers", "cli: Tests related to command-line interface")


@pytest.fixture
def messages() -> RecordingMessages:
    """Message sink recording every notice."""
    return RecordingMessages()


@pytest.fixture
def preview_sink() -> RecordingPreview:
    """Preview sink recording what it was asked to show."""
    return RecordingPreview()


@pytest.fixture
def prompt() -> ScriptedPrompt:
    """Prompt answering from a script, cancelling by default."""
    return ScriptedPrompt()


@pytest.fixture
def fake_runner() -> FakeRunner:
    """Process runner that never spawns anything."""
    return FakeRunner()


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """Directory with a few text files mentioning ``foo``.

    Returns
    -------
    Path
        Root of the tree.

    """
    make_tree(
        tmp_path,
        {
            "a.txt": "foo one\nnothing here\nfoo two foo\n",
            "b.md": "a line\nFoo capital\n",
            "c.py": "print('no match')\n",
            "sub/d.txt": "deep foo\n",
        },
    )
    return tmp_path


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Undo the root logger changes made by CLI runs."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path_factory, monkeypatch):
    """Point HOME at an empty directory so no user config or history leaks in."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.delenv("RGSWEEP_CONFIG", raising=False)
    return home
