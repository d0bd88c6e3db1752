"""CLI 命令测试 -- init-db / seed"""

import sys

import pytest
from doma.core import __main__ as cli
from doma.core.models import SpaceStatus
from doma.core.store import create_store_group


@pytest.fixture
def db_env(monkeypatch, tmp_path):
    db_path = tmp_path / "cli" / "doma.db"
    monkeypatch.setenv("DOMA_DB_PATH", str(db_path))
    return db_path


class TestCli:
    async def test_init_db_creates_file(self, db_env):
        await cli.init_database()
        assert db_env.exists()

    async def test_seed_is_idempotent(self, db_env, capsys):
        first = await cli.seed_demo_data()
        second = await cli.seed_demo_data()

        assert first == len(cli.DEMO_ROOMS) + len(cli.DEMO_PUBLIC_SPACES) + len(cli.DEMO_USERS)
        assert second == 0
        assert "新增 0 条记录" in capsys.readouterr().out

        store_group = await create_store_group(str(db_env))
        try:
            spaces = await store_group.space_store.list_spaces(SpaceStatus.READY)
            assert {"101", "205", "Lobby"} <= {s.name for s in spaces}
        finally:
            await store_group.close()

    def test_unknown_command_exits(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["doma-core", "rebuild"])
        with pytest.raises(SystemExit) as exc_info:
            cli.main()
        assert exc_info.value.code == 1
        assert "未知命令" in capsys.readouterr().out

    def test_no_command_prints_usage(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["doma-core"])
        with pytest.raises(SystemExit):
            cli.main()
        assert "init-db" in capsys.readouterr().out
