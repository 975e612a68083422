"""
Tests for hover lookups in src/lspnav/navigation.py.
"""

import pytest

from src.lsp.models import LspHoverResult, LspPosition, LspRange, MarkedString, MarkupContent
from src.lspnav.exceptions import DocumentReadError, SessionError, TargetNotFoundInFileError
from src.lspnav.navigation import HoverOutput, format_hover_contents, get_hover
from src.lspnav.session import Session
from src.utils.files import file_uri
from src.utils.positions import LocationDescriptor

FOO_TS = "\n".join(
    [
        "// header",
        "import { x } from './x';",
        "",
        "const y = x;",
        "export function bar(): number {",
        "  return 1;",
        "}",
        "",
        "export const baz = bar();",
        "// footer",
    ]
)


class TestFormatHoverContents:
    def test_every_shape_normalizes_to_the_same_text(self):
        text = "function bar(): number"
        assert format_hover_contents(text) == text
        assert format_hover_contents([text]) == text
        assert format_hover_contents([MarkedString(value=text, language="typescript")]) == text
        assert format_hover_contents(MarkupContent(value=text, kind="markdown")) == text

    def test_fragments_are_joined_with_newlines(self):
        contents = ["plain", MarkedString(value="typed", language="ts")]
        assert format_hover_contents(contents) == "plain\ntyped"


class TestGetHover:
    @pytest.mark.asyncio
    async def test_no_hover_information(self, session, fake_server, write_file):
        write_file("foo.ts", FOO_TS)

        output = await get_hover(session, LocationDescriptor(root=session.workspace, file_path="foo.ts", target="bar"))

        assert output.hover is None
        assert output.message == 'No hover information available for "bar" at foo.ts:5:17'
        assert output.render() == output.message

    @pytest.mark.asyncio
    async def test_syncs_document_before_single_hover(self, session, fake_server, write_file):
        path = write_file("foo.ts", FOO_TS)

        await get_hover(session, LocationDescriptor(root=session.workspace, file_path="foo.ts", target="bar", line=9))

        assert fake_server.calls == ["open_document", "hover"]
        assert fake_server.opened == [(file_uri(path), FOO_TS)]
        assert fake_server.hovers == [(file_uri(path), LspPosition(line=8, character=19))]

    @pytest.mark.asyncio
    async def test_repeated_queries_see_latest_disk_contents(self, session, fake_server, write_file):
        write_file("foo.ts", FOO_TS)
        descriptor = LocationDescriptor(root=session.workspace, file_path="foo.ts", target="bar")
        await get_hover(session, descriptor)

        write_file("foo.ts", "export function bar() {}\n")
        await get_hover(session, descriptor)

        assert [text for _, text in fake_server.opened] == [FOO_TS, "export function bar() {}\n"]
        assert fake_server.hovers[1][1] == LspPosition(line=0, character=16)

    @pytest.mark.asyncio
    async def test_hover_with_range_is_one_based(self, session, fake_server, write_file):
        write_file("foo.ts", FOO_TS)
        fake_server.result = LspHoverResult(
            contents=MarkupContent(value="function bar(): number", kind="markdown"),
            range=LspRange(start=LspPosition(4, 16), end=LspPosition(4, 19)),
        )

        output = await get_hover(session, LocationDescriptor(root=session.workspace, file_path="foo.ts", target="bar"))

        assert output.message == 'Hover information for "bar" at foo.ts:5:17'
        assert output.hover.contents == "function bar(): number"
        assert output.hover.range == LspRange(start=LspPosition(5, 17), end=LspPosition(5, 20))
        assert output.render() == 'Hover information for "bar" at foo.ts:5:17\n\nfunction bar(): number'

    @pytest.mark.asyncio
    async def test_missing_range_covers_whole_file(self, session, fake_server, write_file):
        write_file("foo.ts", FOO_TS)
        fake_server.result = LspHoverResult(contents="function bar(): number")

        output = await get_hover(session, LocationDescriptor(root=session.workspace, file_path="foo.ts", target="bar"))

        assert output.hover.range == LspRange(start=LspPosition(1, 1), end=LspPosition(10, len("// footer")))

    @pytest.mark.asyncio
    async def test_missing_file(self, session, fake_server):
        with pytest.raises(DocumentReadError):
            await get_hover(session, LocationDescriptor(root=session.workspace, file_path="nope.ts", target="bar"))
        assert fake_server.calls == []

    @pytest.mark.asyncio
    async def test_resolution_failure_skips_server(self, session, fake_server, write_file):
        write_file("foo.ts", FOO_TS)
        with pytest.raises(TargetNotFoundInFileError):
            await get_hover(session, LocationDescriptor(root=session.workspace, file_path="foo.ts", target="qux"))
        assert fake_server.calls == []

    @pytest.mark.asyncio
    async def test_no_active_session(self, workspace, write_file):
        write_file("foo.ts", FOO_TS)
        session = Session.builder().workspace(workspace).settle_delay(0).initialize()

        with pytest.raises(SessionError, match="No active language server session"):
            await get_hover(session, LocationDescriptor(root=workspace, file_path="foo.ts", target="bar"))

    def test_hover_output_is_command_output(self):
        output = HoverOutput(name="hover", message="m")
        assert output.hover is None
        assert output.render() == "m"
