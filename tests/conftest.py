"""Global test fixtures."""

import logfire
import pytest

# No exporting or console output from spans during tests
logfire.configure(send_to_logfire=False, console=False)


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch, tmp_path):
    """Keep developer config files and env overrides out of tests."""
    monkeypatch.delenv("DOCFEED_CONFIG_FILE", raising=False)
    monkeypatch.delenv("DOCFEED_LOG_FILE", raising=False)
    monkeypatch.chdir(tmp_path)
