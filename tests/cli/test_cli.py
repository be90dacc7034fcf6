"""Tests for the CLI group."""
from node_isp import __version__
from node_isp.cli.main import cli


class TestCLI:
    """Test cases for the top-level command group."""

    def test_help_lists_commands(self, cli_runner):
        result = cli_runner.invoke(cli, ['--help'])

        assert result.exit_code == 0
        for command in ('server', 'status', 'exec', 'logs'):
            assert command in result.output

    def test_version(self, cli_runner):
        result = cli_runner.invoke(cli, ['--version'])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_missing_config(self, cli_runner, tmp_path):
        """Test that a missing configuration file is reported."""
        result = cli_runner.invoke(cli, ['--config', str(tmp_path / 'nope.yaml'), 'logs', 'app'])

        assert result.exit_code == 1
        assert "Configuration file not found" in result.output

    def test_config_from_environment(self, cli_runner, config_file):
        """Test that NODEISP_CONFIG selects the configuration file."""
        result = cli_runner.invoke(cli, ['logs', 'app'], env={'NODEISP_CONFIG': str(config_file)})

        assert "No output captured for service 'app'" in result.output
