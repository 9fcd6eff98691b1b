import json

import pytest

from bikelease.cli.main import app


@pytest.fixture
def storage_env(monkeypatch, tmp_path):
    monkeypatch.setenv("BIKELEASE_STORAGE__URL", f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
    monkeypatch.setenv("BIKELEASE_NOTIFICATION__BYPASS", "true")
    monkeypatch.chdir(tmp_path)


class TestOrdersCommand:
    def test_submit_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            app(["orders", "submit", str(tmp_path / "missing.json")])

        assert exc_info.value.code == 1

    def test_submit_invalid_order(self, storage_env, tmp_path, order_payload, capsys):
        path = tmp_path / "order.json"
        path.write_text(json.dumps({**order_payload, "price": 0}))

        with pytest.raises(SystemExit) as exc_info:
            app(["orders", "submit", str(path)])

        assert exc_info.value.code == 1
        out = capsys.readouterr().out
        assert "price: Price must be positive" in out

    def test_show_unknown_order(self, storage_env):
        with pytest.raises(SystemExit) as exc_info:
            app(["orders", "show", "c1", "nope"])

        assert exc_info.value.code == 1
