"""Tests for scaffolder.py - Argument parsing and command dispatch."""

from unittest.mock import Mock, patch

import pytest

from scaffolder.config import ConfigError
from scaffolder.core.errors import ScaffoldError
from scaffolder.scaffolder import build_parser, main


class TestBuildParser:

    def test_registers_all_commands(self):
        parser = build_parser()
        for argv in (["create", "demo"], ["add", "zod"], ["remove", "zod"], ["validate"], ["list"], ["info"]):
            assert parser.parse_args(argv).command == argv[0]

    def test_global_flags(self):
        args = build_parser().parse_args(["-vv", "--no-color", "list"])
        assert args.verbose == 2
        assert args.no_color is True

    def test_help_lists_command_groups(self):
        help_text = build_parser().format_help()
        assert "project commands:" in help_text
        assert "discovery commands:" in help_text


class TestMain:

    @pytest.fixture(autouse=True)
    def quiet(self):
        with patch("scaffolder.scaffolder.message") as mock_msg:
            yield mock_msg

    @pytest.fixture
    def loaded(self):
        with patch("scaffolder.scaffolder.load_plugins") as mock_load:
            yield mock_load

    def test_no_command_prints_help(self, loaded, capsys):
        main([])
        assert "usage: scaffolder" in capsys.readouterr().out
        loaded.assert_not_called()

    @pytest.mark.parametrize("argv,class_name", [
        (["create", "demo"], "CreateCommands"),
        (["add", "zod"], "PluginCommands"),
        (["remove", "zod"], "PluginCommands"),
        (["validate"], "ProjectCommands"),
        (["list"], "InfoCommands"),
        (["info", "env"], "InfoCommands"),
    ])
    def test_dispatch(self, loaded, argv, class_name):
        with patch(f"scaffolder.scaffolder.{class_name}") as mock_class:
            main(argv)

        mock_class.assert_called_once_with(loaded.return_value)
        mock_class.return_value.process_cli_command.assert_called_once()
        assert mock_class.return_value.process_cli_command.call_args[0][0].command == argv[0]

    def test_sets_verbosity(self, loaded):
        output = Mock()
        with patch("scaffolder.scaffolder.get_output", return_value=output), \
             patch("scaffolder.scaffolder.InfoCommands"):
            main(["-vvv", "--no-color", "info"])

        assert output.verbosity == 3
        assert output.use_color is False

    @pytest.mark.parametrize("error", [ScaffoldError("boom"), ConfigError("bad config")])
    def test_known_errors_exit(self, loaded, quiet, error):
        with patch("scaffolder.scaffolder.ProjectCommands") as mock_class:
            mock_class.return_value.process_cli_command.side_effect = error
            with pytest.raises(SystemExit) as exc_info:
                main(["validate"])

        assert exc_info.value.code == 1
        texts = [c[0][0] for c in quiet.call_args_list]
        assert str(error) in texts

    def test_keyboard_interrupt(self, loaded, quiet):
        with patch("scaffolder.scaffolder.InfoCommands") as mock_class:
            mock_class.return_value.process_cli_command.side_effect = KeyboardInterrupt
            with pytest.raises(SystemExit):
                main(["list"])

        texts = [c[0][0] for c in quiet.call_args_list]
        assert "\nInterrupted" in texts
