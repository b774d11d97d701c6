"""Tests for CLI commands."""
from typer.testing import CliRunner

from tunevault.cli.main import app
from tunevault.services.fingerprint import calculate_fingerprint

runner = CliRunner()


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "import" in result.stdout
        assert "watch" in result.stdout

    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "TuneVault v" in result.stdout


class TestFingerprintCommand:

    def test_prints_fingerprint(self, tmp_path):
        path = tmp_path / "song.mp3"
        path.write_bytes(b"x" * 100)

        result = runner.invoke(app, ["fingerprint", str(path)])

        assert result.exit_code == 0
        assert calculate_fingerprint(path) in result.stdout

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["fingerprint", str(tmp_path / "missing.mp3")])
        assert result.exit_code == 1


class TestImportCommand:

    def test_unknown_mode(self):
        result = runner.invoke(app, ["import", "--mode", "partial"])
        assert result.exit_code == 1
        assert "Unknown mode" in result.stdout

    def test_full_import_can_be_cancelled(self):
        result = runner.invoke(app, ["import", "--mode", "full"], input="n\n")
        assert result.exit_code == 0
        assert "Cancelled" in result.stdout


class TestWatchCommand:

    def test_log_level_and_scan_are_passed_through(self, monkeypatch):
        import tunevault.logging_config
        import tunevault.watcher

        levels, runs = [], []

        async def fake_run_watcher(settings, scan_first=False):
            runs.append(scan_first)

        monkeypatch.setattr(tunevault.logging_config, "setup_logging", lambda level=None: levels.append(level))
        monkeypatch.setattr(tunevault.watcher, "run_watcher", fake_run_watcher)

        result = runner.invoke(app, ["watch", "--scan", "--log-level", "debug"])

        assert result.exit_code == 0
        assert levels == ["debug"]
        assert runs == [True]
