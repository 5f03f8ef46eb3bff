from __future__ import annotations

import pytest

from shipcrate.output.console import MockConsole, RichConsole, Style


class TestMockConsole:
    def test_records_styles(self) -> None:
        console = MockConsole()

        console.success("pushed")
        console.error("rejected")
        console.warning("slow")
        console.header("[pushing] pushing commit and tag")

        assert console.has_success()
        assert console.has_error()
        assert console.has_warning()
        assert console.headers() == ["[pushing] pushing commit and tag"]

    def test_table_rows_are_searchable(self) -> None:
        console = MockConsole()

        console.table("Released", [("tag_name", "v1.2.3"), ("published", "true")])

        assert console.find("tag_name: v1.2.3")
        assert "published: true" in console.text

    def test_clear(self) -> None:
        console = MockConsole()
        console.print("x", Style.DIM)

        console.clear()

        assert console.messages == []


class TestRichConsole:
    def test_brackets_are_not_markup(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()

        console.print("[[package]] name = \"x\"")
        console.error("tag [v1.2.3] exists")

        out = capsys.readouterr().out
        assert "[[package]]" in out
        assert "[v1.2.3]" in out

    def test_table(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()

        console.table("Release aborted", [("new_version", "1.2.4")])

        out = capsys.readouterr().out
        assert "new_version" in out
        assert "1.2.4" in out
