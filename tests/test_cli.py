"""
Tests for the coursefs command line interface.

The remote store is the mocked ``course_routes`` tree; ``from_config`` is
patched so every command builds its snapshot over the mock transport.
"""

import pytest
from typer.testing import CliRunner

from coursefs.cli import app, format_size
from coursefs.fetcher import RemoteFetcher
from coursefs.vfs import CourseVFS

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    for var in ("COURSEFS_USERNAME", "COURSEFS_PASSWORD", "COURSEFS_COURSE_ID", "COURSEFS_BASE_URL"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def seen_configs(course_routes, make_client, monkeypatch):
    """Patch CourseVFS.from_config; returns the configs it was called with."""
    configs = []

    def from_config(config, cancel_event=None):
        configs.append(config)
        return CourseVFS(RemoteFetcher(make_client()), "c1", root=config.build.root)

    monkeypatch.setattr(CourseVFS, "from_config", from_config)
    return configs


class TestLs:

    def test_ls_root(self, seen_configs):
        result = runner.invoke(app, ["ls"])

        assert result.exit_code == 0
        assert "docs/" in result.stdout
        assert "notes.txt" in result.stdout
        assert "secret.pdf" not in result.stdout

    def test_ls_subdirectory(self, seen_configs):
        result = runner.invoke(app, ["ls", "docs"])

        assert result.exit_code == 0
        assert "a.pdf" in result.stdout

    def test_ls_missing_directory(self, seen_configs):
        result = runner.invoke(app, ["ls", "nope"])
        assert result.exit_code == 2

    def test_ls_file(self, seen_configs):
        result = runner.invoke(app, ["ls", "notes.txt"])
        assert result.exit_code == 2

    def test_global_options_reach_config(self, seen_configs):
        result = runner.invoke(app, ["--course-id", "c9", "--workers", "3", "--root", "docs", "ls"])

        assert result.exit_code == 0
        [config] = seen_configs
        assert config.remote.course_id == "c9"
        assert config.build.max_workers == 3
        assert config.build.root == "docs"
        assert "a.pdf" in result.stdout


class TestReadCommands:

    def test_tree(self, seen_configs):
        result = runner.invoke(app, ["tree"])

        assert result.exit_code == 0
        assert "docs/" in result.stdout
        assert "a.pdf" in result.stdout
        assert "2 folders, 2 files" in result.stdout

    def test_cat(self, seen_configs):
        result = runner.invoke(app, ["cat", "docs/a.pdf"])

        assert result.exit_code == 0
        assert b"0123456789" in result.stdout_bytes

    def test_cat_directory(self, seen_configs):
        result = runner.invoke(app, ["cat", "docs"])
        assert result.exit_code == 2

    def test_cat_remote_failure(self, seen_configs, course_routes):
        course_routes["file-refs/r-a/content"] = 503
        result = runner.invoke(app, ["cat", "docs/a.pdf"])
        assert result.exit_code == 1

    def test_get_into_directory(self, seen_configs, tmp_path):
        result = runner.invoke(app, ["get", "docs/a.pdf", str(tmp_path)])

        assert result.exit_code == 0
        assert (tmp_path / "a.pdf").read_bytes() == b"0123456789"

    def test_info(self, seen_configs):
        result = runner.invoke(app, ["info"])

        assert result.exit_code == 0
        assert "c1" in result.stdout
        assert "1s" in result.stdout


class TestWriteCommands:

    @pytest.mark.parametrize("command", ["mkdir", "rm"])
    def test_write_commands_are_refused(self, seen_configs, course_routes, command):
        result = runner.invoke(app, [command, "docs"])

        assert result.exit_code == 3
        assert course_routes.requests == []


class TestConfigCommand:

    def test_missing_course_id(self):
        result = runner.invoke(app, ["ls"])
        assert result.exit_code == 1

    def test_set_and_show(self):
        result = runner.invoke(app, ["config", "--set-course-id", "c42", "--set-password", "hunter2"])
        assert result.exit_code == 0

        result = runner.invoke(app, ["config", "--show"])

        assert result.exit_code == 0
        assert "c42" in result.stdout
        assert "hunter2" not in result.stdout
        assert "********" in result.stdout

    def test_set_on_corrupt_file_exits_with_config_error(self, tmp_path):
        path = tmp_path / "config" / "coursefs" / "config.json"
        path.parent.mkdir(parents=True)
        path.write_text("{not json")

        result = runner.invoke(app, ["config", "--set-course-id", "c42"])

        assert result.exit_code == 1
        assert not isinstance(result.exception, ValueError)


class TestFormatSize:

    @pytest.mark.parametrize("size,expected", [
        (-1, "-"),
        (0, "0 B"),
        (512, "512 B"),
        (2048, "2.0 KB"),
        (5 * 1024 * 1024, "5.0 MB"),
    ])
    def test_format_size(self, size, expected):
        assert format_size(size) == expected
