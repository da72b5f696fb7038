import tasks
from app.config import ConfigResolver


def test_api_port_follows_resolved_server_port(monkeypatch, tmp_path):
    base = tmp_path / "proj" / "app"
    base.mkdir(parents=True)
    (base.parent / "config.json").write_text('{"SERVER_PORT": 5055}', encoding="utf-8")

    monkeypatch.setattr(tasks, "ConfigResolver", lambda: ConfigResolver(base_dir=base, env={}, env_file=None))
    assert tasks._api_port() == 5055

    monkeypatch.setattr(
        tasks, "ConfigResolver", lambda: ConfigResolver(base_dir=base, env={"PORT": "6123"}, env_file=None)
    )
    assert tasks._api_port() == 6123
