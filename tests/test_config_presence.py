from pathlib import Path


def test_required_configs_exist():
    repo = Path(__file__).resolve().parents[1]
    assert (repo / "pyproject.toml").exists()
    assert (repo / "api" / "templates" / "index.html").exists()
