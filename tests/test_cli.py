"""
Tests for the command line interface.
"""

import json

import pytest

from cli import build_parser, main


class TestCLI:
    """Tests for CLI commands that do not start a server."""

    def test_tools_prints_manifest(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["tools"])
        assert exc.value.code == 0

        tool_list = json.loads(capsys.readouterr().out)
        assert tool_list[0]["function"]["name"] == "complaint_register"

    def test_tools_prompts(self, capsys):
        with pytest.raises(SystemExit):
            main(["tools", "--prompts"])
        assert json.loads(capsys.readouterr().out) == {"prompts": []}

    def test_check_passes(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["check"])
        assert exc.value.code == 0
        assert "All checks passed!" in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 1

    def test_serve_options(self):
        args = build_parser().parse_args(["serve", "--port", "8080", "--production"])
        assert args.port == 8080
        assert args.production is True
