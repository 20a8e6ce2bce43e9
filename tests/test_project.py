"""Tests for the project session, settings and the local collaborators.

These run against a real temporary directory.
"""

import os

import pytest

from gdpm_core import (
    CURRENT,
    DependencyManager,
    DescriptorError,
    InstallError,
    MalformedProjectError,
    NotFoundError,
    ParseError,
    PathSource,
    Project,
    ProjectInfo,
    ProjectNotFoundError,
    Settings,
)
from gdpm_core.errors import FileSystemError, RemoteError
from gdpm_core.fs import LocalFileSystem
from gdpm_core.git import GitRemote
from gdpm_core.reader import parse
from gdpm_core.values import VString


PROJECT = """\
; Engine configuration file.
config_version=5

[application]

config/name="Demo"
config/version="1.2.0"
run/main_scene="res://main.tscn"
"""


@pytest.fixture
def project_dir(tmp_path):
    root = tmp_path / "game"
    root.mkdir()
    (root / "project.godot").write_text(PROJECT, encoding="utf-8")
    return root


@pytest.fixture
def other_plugin(tmp_path):
    other = tmp_path / "other"
    (other / "scripts").mkdir(parents=True)
    (other / "plugin.cfg").write_text('[plugin]\nname="Other"\n', encoding="utf-8")
    (other / "scripts" / "main.gd").write_text("extends Node\n", encoding="utf-8")
    return other


def _tree(path):
    result = {}
    for dirpath, _, filenames in os.walk(path):
        for filename in filenames:
            full = os.path.join(dirpath, filename)
            with open(full, encoding="utf-8") as fh:
                result[os.path.relpath(full, path)] = fh.read()
    return result


# ---------------------------------------------------------------------------
# Project session
# ---------------------------------------------------------------------------

class TestProject:
    def test_open(self, project_dir):
        project = Project.open(project_dir)
        assert project.path == project_dir / "project.godot"
        assert project.document.get_property("application", "config/name") == VString("Demo")

    def test_open_missing(self, tmp_path):
        with pytest.raises(ProjectNotFoundError):
            Project.open(tmp_path)

    def test_parse_error_leaves_file_untouched(self, project_dir):
        broken = PROJECT + "oops ; trailing\n"
        (project_dir / "project.godot").write_text(broken, encoding="utf-8")
        with pytest.raises(ParseError):
            Project.open(project_dir)
        assert (project_dir / "project.godot").read_text(encoding="utf-8") == broken

    def test_save_round_trips(self, project_dir):
        project = Project.open(project_dir)
        project.document.set_property("application", "config/version", VString("1.3.0"))
        project.save()
        again = Project.open(project_dir)
        assert again.document == project.document
        assert again.document.global_section.entries[0] == parse(PROJECT).global_section.entries[0]

    def test_save_leaves_no_temporary_files(self, project_dir):
        Project.open(project_dir).save()
        assert sorted(os.listdir(project_dir)) == ["project.godot"]

    def test_custom_layout(self, tmp_path):
        (tmp_path / "engine.cfg").write_text(PROJECT, encoding="utf-8")
        settings = Settings(project_file="engine.cfg", addons_dir="plugins")
        project = Project.open(tmp_path, settings=settings)
        assert project.addon_path("gut") == tmp_path / "plugins" / "gut"


class TestProjectInfo:
    def test_info(self, project_dir):
        info = Project.open(project_dir).info()
        assert info == ProjectInfo("Demo", "1.2.0", "res://main.tscn", None)
        assert info.versioned_name == "Demo (v1.2.0)"

    def test_versioned_name_without_version(self):
        assert ProjectInfo("Demo").versioned_name == "Demo"

    def test_missing_name(self):
        with pytest.raises(MalformedProjectError):
            ProjectInfo.from_document(parse("[application]\nconfig/version=\"1\"\n"))

    def test_set_and_unset_engine(self, project_dir):
        project = Project.open(project_dir)
        project.set_engine("4.2")
        assert Project.open(project_dir).info().engine_version == "4.2"

        project.unset_engine()
        reloaded = Project.open(project_dir)
        assert reloaded.info().engine_version is None
        assert reloaded.document.get_section("engine") is not None

    def test_unset_engine_without_association(self, project_dir):
        with pytest.raises(NotFoundError):
            Project.open(project_dir).unset_engine()


# ---------------------------------------------------------------------------
# Dependency workflows on disk
# ---------------------------------------------------------------------------

class TestWorkflows:
    def test_add_with_install(self, project_dir, other_plugin):
        manager = DependencyManager(Project.open(project_dir))
        manager.add("p2", "2.0.0", PathSource("../other"), install=True)

        assert _tree(project_dir / "addons" / "p2") == _tree(other_plugin)
        text = (project_dir / "project.godot").read_text(encoding="utf-8")
        assert 'p2={"version": "2.0.0", "source": Path("../other")}' in text

    def test_remove_after_add(self, project_dir, other_plugin):
        manager = DependencyManager(Project.open(project_dir))
        manager.add("p2", "2.0.0", PathSource("../other"), install=True)
        manager.remove("p2")

        assert not (project_dir / "addons" / "p2").exists()
        assert DependencyManager(Project.open(project_dir)).list() == []
        with pytest.raises(NotFoundError):
            manager.remove("p2")

    def test_desync_removes_stray(self, project_dir):
        manager = DependencyManager(Project.open(project_dir))
        manager.add("plugin1", "1.0.0", CURRENT)
        (project_dir / "addons" / "plugin1").mkdir(parents=True)
        (project_dir / "addons" / "plugin1" / "plugin.cfg").write_text("p1", encoding="utf-8")
        (project_dir / "addons" / "stray").mkdir()

        report = manager.desync()

        assert report.removed == ["stray"]
        assert not (project_dir / "addons" / "stray").exists()
        assert (project_dir / "addons" / "plugin1" / "plugin.cfg").read_text(encoding="utf-8") == "p1"

    def test_sync_ignores_hidden_folders(self, project_dir):
        (project_dir / "addons" / ".cache").mkdir(parents=True)
        (project_dir / "addons" / "mine").mkdir()
        report = DependencyManager(Project.open(project_dir)).sync()
        assert report.registered == ["mine"]
        assert (project_dir / "addons" / ".cache").is_dir()

    def test_dot_dot_entry_never_touches_project(self, project_dir, other_plugin):
        text = PROJECT + '\n[dependencies]\n\n..={"version": "1", "source": Path("../other")}\n'
        (project_dir / "project.godot").write_text(text, encoding="utf-8")
        (project_dir / "main.gd").write_text("extends Node\n", encoding="utf-8")

        report = DependencyManager(Project.open(project_dir)).sync()

        assert list(report.failed) == [".."]
        assert (project_dir / "main.gd").exists()
        assert (project_dir / "project.godot").read_text(encoding="utf-8") == text

    def test_add_cannot_write_outside_addons(self, tmp_path, project_dir, other_plugin):
        manager = DependencyManager(Project.open(project_dir))
        with pytest.raises(DescriptorError):
            manager.add("../../victim", "1", PathSource("../other"), install=True)
        assert not (tmp_path / "victim").exists()
        assert not (project_dir / "addons").exists()

    def test_failed_reinstall_keeps_installed_folder(self, project_dir, other_plugin):
        manager = DependencyManager(Project.open(project_dir))
        manager.add("tools", "1", PathSource("../other"), install=True)
        with pytest.raises(InstallError):
            manager.add("tools", "2", PathSource("../missing"), install=True)

        assert (project_dir / "addons" / "tools" / "plugin.cfg").exists()
        assert sorted(os.listdir(project_dir / "addons")) == ["tools"]
        assert DependencyManager(Project.open(project_dir)).get("tools").version == "1"

    def test_git_failure_is_reported(self, project_dir):
        project = Project.open(project_dir, settings=Settings(git_executable="gdpm-no-such-git"))
        manager = DependencyManager(project)
        manager.document.set_property(
            "dependencies", "gut",
            parse('x={"version": "1", "source": Git("https://example.invalid/gut")}')
            .get_property("", "x"),
        )
        report = manager.sync()
        assert list(report.failed) == ["gut"]
        assert isinstance(report.failed["gut"].cause, RemoteError)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

def test_settings_defaults():
    settings = Settings()
    assert settings.project_file == "project.godot"
    assert settings.addons_dir == "addons"
    assert settings.default_version == "0.0.0"

def test_settings_from_env():
    settings = Settings.from_env({
        "GDPM_ADDONS_DIR": "plugins",
        "GDPM_DEFAULT_VERSION": "0.1.0",
        "GDPM_GIT": "/usr/local/bin/git",
    })
    assert settings.addons_dir == "plugins"
    assert settings.default_version == "0.1.0"
    assert settings.git_executable == "/usr/local/bin/git"
    assert settings.project_file == "project.godot"

def test_settings_are_frozen():
    with pytest.raises(AttributeError):
        Settings().addons_dir = "x"


# ---------------------------------------------------------------------------
# Local collaborators
# ---------------------------------------------------------------------------

class TestLocalFileSystem:
    def test_copy_tree_merges(self, tmp_path, other_plugin):
        fs = LocalFileSystem()
        dst = tmp_path / "dst"
        fs.copy_tree(other_plugin, dst)
        assert _tree(dst) == _tree(other_plugin)

    def test_copy_tree_missing_source(self, tmp_path):
        with pytest.raises(FileSystemError):
            LocalFileSystem().copy_tree(tmp_path / "nope", tmp_path / "dst")

    def test_remove_tree(self, tmp_path, other_plugin):
        LocalFileSystem().remove_tree(other_plugin)
        assert not other_plugin.exists()
        with pytest.raises(FileSystemError):
            LocalFileSystem().remove_tree(other_plugin)

    def test_list_dir_missing(self, tmp_path):
        with pytest.raises(FileSystemError):
            LocalFileSystem().list_dir(tmp_path / "nope")

    def test_text_keeps_line_endings(self, tmp_path):
        fs = LocalFileSystem()
        fs.write_text(tmp_path / "f.godot", "a=1\r\nb=2\n")
        assert fs.read_text(tmp_path / "f.godot") == "a=1\r\nb=2\n"

    def test_write_into_missing_directory(self, tmp_path):
        with pytest.raises(FileSystemError):
            LocalFileSystem().write_text(tmp_path / "nope" / "f", "x")


def test_git_remote_missing_executable(tmp_path):
    with pytest.raises(RemoteError, match="not found"):
        GitRemote("gdpm-no-such-git").clone("https://example.invalid/x", tmp_path / "x")


# ---------------------------------------------------------------------------
# File modes
# ---------------------------------------------------------------------------

posix_only = pytest.mark.skipif(os.name != "posix", reason="POSIX permission bits")


@posix_only
def test_save_keeps_file_mode(project_dir):
    path = project_dir / "project.godot"
    path.chmod(0o644)
    Project.open(project_dir).save()
    assert path.stat().st_mode & 0o777 == 0o644

@posix_only
def test_save_keeps_group_writable_mode(project_dir):
    path = project_dir / "project.godot"
    path.chmod(0o664)
    Project.open(project_dir).set_engine("4.2")
    assert path.stat().st_mode & 0o777 == 0o664

@posix_only
def test_new_file_follows_umask(tmp_path):
    old = os.umask(0o027)
    try:
        LocalFileSystem().write_text(tmp_path / "new.godot", "a=1\n")
    finally:
        os.umask(old)
    assert (tmp_path / "new.godot").stat().st_mode & 0o777 == 0o640
