"""
Tests for the move_file command.
"""

import os

import pytest

from src.lspnav.commands.move_file import MoveFileCommand
from src.lspnav.refactor.move import MoveFileOutput


class TestMoveFileCommand:
    def setup_method(self):
        self.command = MoveFileCommand()

    def test_validate(self, session):
        self.command.validate(session, "src/a.ts src/sub/a.ts --overwrite")
        with pytest.raises(ValueError):
            self.command.validate(session, "src/a.ts")

    @pytest.mark.asyncio
    async def test_move(self, session, workspace, write_file):
        write_file("src/a.ts", "export const x = 1;\n")
        write_file("src/b.ts", "import { x } from './a';\n")

        result = await self.command.execute(session, "src/a.ts src/sub/a.ts")

        assert result.success
        assert isinstance(result.command_output, MoveFileOutput)
        assert result.content.startswith("Moved src/a.ts to src/sub/a.ts. Updated imports in 2 file(s).")
        assert "    + import { x } from './sub/a';" in result.content.split("\n")
        assert os.path.isfile(os.path.join(workspace, "src", "sub", "a.ts"))

    @pytest.mark.asyncio
    async def test_destination_exists(self, session, workspace, write_file):
        write_file("src/a.ts", "export const x = 1;\n")
        write_file("src/sub/a.ts", "export const y = 2;\n")

        result = await self.command.execute(session, "src/a.ts src/sub/a.ts")

        assert not result.success
        assert "already exists" in result.content
        assert os.path.isfile(os.path.join(workspace, "src", "a.ts"))

    @pytest.mark.asyncio
    async def test_overwrite(self, session, workspace, write_file):
        write_file("src/a.ts", "export const x = 1;\n")
        write_file("src/sub/a.ts", "export const y = 2;\n")

        result = await self.command.execute(session, "src/a.ts src/sub/a.ts --overwrite")

        assert result.success
        with open(os.path.join(workspace, "src", "sub", "a.ts"), encoding="utf-8") as f:
            assert f.read() == "export const x = 1;\n"

    @pytest.mark.asyncio
    async def test_missing_source(self, session, workspace):
        result = await self.command.execute(session, "src/missing.ts src/other.ts")

        assert not result.success
        assert result.content == f"File not found: {os.path.join(workspace, 'src', 'missing.ts')}"
