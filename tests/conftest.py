import pytest

from collab_grid import build_edit


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep CLI config reads and writes away from the real home directory."""
    import collab_grid.cli.main as cli_main
    path = tmp_path / "config.json"
    monkeypatch.setattr(cli_main, "CONFIG_FILE", path)
    return path


@pytest.fixture
def edit():
    return build_edit("doc1", "insert", 5, "hello", "u1", timestamp=1700000000123.5)
