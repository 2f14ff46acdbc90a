# Ensure project root is on sys.path for tests
import sys, pathlib
import pytest

root = pathlib.Path(__file__).resolve().parent
if str(root) not in sys.path:
    sys.path.insert(0, str(root))


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path, monkeypatch):
    """Keep settings and saves out of the real home directory."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("DOJO_SAVE_DIR", str(tmp_path / "saves"))
    monkeypatch.delenv("DOJO_LOG_LEVEL", raising=False)
    monkeypatch.delenv("DOJO_RNG_SEED", raising=False)
