"""Tests for winswitch.cli."""

from __future__ import annotations

from pathlib import Path

from click.testing import CliRunner

from winswitch.cli import main
from winswitch.layout import BackupLayout


def _only_set(destination: Path) -> Path:
    sets = BackupLayout(destination).list_sets()
    assert len(sets) == 1
    return sets[0].path


class TestCLI:
    def test_main_help(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "WinSwitch" in result.output

    def test_backup_command(self, source_tree: Path, destination: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(
            main, ["backup", str(destination), str(source_tree), "--notes", "cli run"]
        )
        assert result.exit_code == 0, result.output
        assert "Backup complete. 2 files saved." in result.output
        assert (_only_set(destination) / "manifest.json").is_file()

    def test_backup_without_sources(self, destination: Path, tmp_path: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["backup", str(destination), str(tmp_path / "missing")])
        assert result.exit_code != 0
        assert "No existing source folders" in result.output

    def test_list_command(self, source_tree: Path, destination: Path) -> None:
        runner = CliRunner()
        runner.invoke(main, ["backup", str(destination), str(source_tree)])

        result = runner.invoke(main, ["list", str(destination)])

        assert result.exit_code == 0
        assert _only_set(destination).name in result.output

    def test_list_empty_destination(self, destination: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["list", str(destination)])
        assert result.exit_code == 0
        assert "No backup sets" in result.output

    def test_verify_command(self, source_tree: Path, destination: Path) -> None:
        runner = CliRunner()
        runner.invoke(main, ["backup", str(destination), str(source_tree)])

        result = runner.invoke(main, ["verify", str(_only_set(destination))])

        assert result.exit_code == 0
        assert "2 files, 0 issues" in result.output

    def test_verify_detects_tampering(self, source_tree: Path, destination: Path) -> None:
        runner = CliRunner()
        runner.invoke(main, ["backup", str(destination), str(source_tree)])
        set_path = _only_set(destination)
        for stored in (set_path / "data").rglob("a.txt"):
            stored.write_bytes(b"tampered!!")

        result = runner.invoke(main, ["verify", str(set_path)])

        assert result.exit_code != 0
        assert "digest_mismatch" in result.output

    def test_restore_command(
        self, source_tree: Path, destination: Path, tmp_path: Path
    ) -> None:
        runner = CliRunner()
        runner.invoke(main, ["backup", str(destination), str(source_tree)])
        target = tmp_path / "restored"

        result = runner.invoke(main, ["restore", str(_only_set(destination)), str(target)])

        assert result.exit_code == 0, result.output
        assert "Restore complete." in result.output
        assert sorted(p.name for p in target.rglob("*.txt")) == ["a.txt", "b.txt"]

    def test_restore_without_manifest(self, destination: Path, tmp_path: Path) -> None:
        runner = CliRunner()
        empty_set = tmp_path / "empty"
        empty_set.mkdir()

        result = runner.invoke(main, ["restore", str(empty_set), str(tmp_path / "out")])

        assert result.exit_code != 0
        assert "Manifest not found." in result.output
