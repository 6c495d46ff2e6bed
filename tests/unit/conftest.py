import pytest


@pytest.fixture(autouse=True)
def use_80_columns(monkeypatch):
    """Render rich output 80 columns wide and without colors.

    The expected output in the reporter tests assumes this terminal.
    """
    monkeypatch.setenv("COLUMNS", "80")
    monkeypatch.delenv("FORCE_COLOR", raising=False)
