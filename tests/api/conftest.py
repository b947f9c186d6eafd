import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def client(tmp_path, monkeypatch):
    config_file = tmp_path / "config.toml"
    config_file.write_text(
        f"""
log_file = "{(tmp_path / "formwright.log").as_posix()}"

[prefill.lookup_tables]
colors = ["red", "green"]

[settings]
# SQLite file for app settings
backend = "db"
db_path = "{(tmp_path / "formwright.db").as_posix()}"

[web]
enabled = true
host = "0.0.0.0"
port = 5000
""",
        encoding="utf-8",
    )

    monkeypatch.setenv("CONFIG_FILE", str(config_file))

    from formwright.api import create_app

    app = create_app()
    with TestClient(app) as client:
        yield client
