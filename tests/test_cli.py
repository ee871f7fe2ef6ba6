"""Tests for tether.cli — ``tether routes`` and import resolution."""

import sys
import types

import pytest
from pydantic import BaseModel

from tether.app import App
from tether.cli import main
from tether.cli._resolve import resolve_table
from tether.routing import RouteTable, mutation, query, route


class NewPost(BaseModel):
    title: str


def _routes() -> dict:
    return {
        "hello": route("hello/:name", {"GET": query()}),
        "posts": route("posts", {"POST": mutation(body=NewPost)}),
    }


@pytest.fixture
def _fake_module(monkeypatch: pytest.MonkeyPatch) -> None:
    """Register a fake module exposing an App, a table and a plain mapping."""
    mod = types.ModuleType("_fake_tether_app")
    app = App(_routes())
    app.handler("hello")(lambda ctx: "hi")
    mod.app = app  # type: ignore[attr-defined]
    mod.table = RouteTable.build(_routes())  # type: ignore[attr-defined]
    mod.routes = _routes()  # type: ignore[attr-defined]
    mod.make_routes = _routes  # type: ignore[attr-defined]
    mod.not_routes = "just a string"  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "_fake_tether_app", mod)


class TestCLIHelp:
    def test_help_exits_zero(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--help"])
        assert exc_info.value.code == 0

    def test_no_command_prints_help(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0

    def test_routes_missing_target(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["routes"])
        assert exc_info.value.code == 2


@pytest.mark.usefixtures("_fake_module")
class TestResolveTable:
    def test_app(self) -> None:
        table, app = resolve_table("_fake_tether_app")
        assert isinstance(app, App)
        assert [entry.name for entry in table] == ["hello", "posts"]

    def test_table(self) -> None:
        table, app = resolve_table("_fake_tether_app:table")
        assert app is None
        assert len(table) == 2

    def test_mapping_with_base_path(self) -> None:
        table, _ = resolve_table("_fake_tether_app:routes", base_path="/api")
        assert table.get("hello").pattern.source == "/api/hello/:name"

    def test_factory(self) -> None:
        table, _ = resolve_table("_fake_tether_app:make_routes")
        assert len(table) == 2

    def test_wrong_type(self) -> None:
        with pytest.raises(TypeError, match="not an App"):
            resolve_table("_fake_tether_app:not_routes")


@pytest.mark.usefixtures("_fake_module")
class TestRoutesCommand:
    def test_lists_app_routes(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["routes", "_fake_tether_app:app"])
        out = capsys.readouterr().out
        lines = out.splitlines()
        assert lines[0].split() == ["NAME", "METHOD", "PATTERN", "PARTS", "HANDLER"]
        assert "hello/:name" in out
        assert "<lambda>" in out
        posts = next(line for line in lines if line.startswith("posts"))
        assert posts.split() == ["posts", "POST", "posts", "body", "-"]

    def test_lists_mapping_routes(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["routes", "_fake_tether_app:routes", "--base-path", "/api"])
        out = capsys.readouterr().out
        assert out.splitlines()[0].split() == ["NAME", "METHOD", "PATTERN", "PARTS"]
        assert "/api/posts" in out

    def test_bad_target_exits_one(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["routes", "_fake_tether_app:missing"])
        assert exc_info.value.code == 1
        assert "Error" in capsys.readouterr().err
