import os

import pytest


def pytest_configure(config):
    # register custom markers
    config.addinivalue_line(
        "markers",
        "host_test: mark ubigen tests that run on the host machine only "
        "(don't require any flash device).",
    )


def need_to_install_package_err():
    pytest.exit(
        "To run the tests, install ubigen in development mode: "
        "pip install -e .[test]"
    )


@pytest.fixture(scope="session", autouse=True)
def set_terminal_width():
    """Make sure terminal width is set to 120 columns for consistent test output."""
    os.environ["COLUMNS"] = "120"


@pytest.fixture
def no_config_file(monkeypatch, tmp_path):
    """Keep configuration files of the developer's machine out of the tests."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    monkeypatch.delenv("UBIGEN_CFGFILE", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
