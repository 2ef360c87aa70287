import pytest

from snapprep.utils.config import get_settings


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Run each test from an empty directory so no .env or scenario file leaks in."""
    monkeypatch.chdir(tmp_path)
    for key in ("PREPARATION_MODE", "CSS_PREFIXES", "LOG_TO_FILE"):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
