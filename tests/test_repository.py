"""
Tests for the Repository service.
"""

import os
import stat
from pathlib import Path

import pytest

from capstan.domain import ExistenceState, Hypervisor, ImageEntry, ImageRecord
from capstan.exit_codes import (
    DirectoryCreateError,
    ImageNotFoundError,
    InvalidImageNameError,
    UnsupportedFormatError,
)
from capstan.infra.metadata_codec import read_image_record
from capstan.services import Repository
from capstan.services import repository as repository_module


def import_args(**overrides):
    args = {
        "version": "v1",
        "created": "2015-03-01 10:00",
        "description": "test image",
        "build": "b1",
    }
    args.update(overrides)
    return args


class TestConstruction:
    """Tests for Repository construction."""

    def test_root_is_not_created(self, tmp_path):
        root = tmp_path / "not-yet"
        repo = Repository(root, progress=lambda message: None)

        assert repo.root == root
        assert not root.exists()

    def test_accepts_str_root(self, tmp_path):
        repo = Repository(str(tmp_path), progress=lambda message: None)
        assert repo.root == tmp_path


class TestImagePath:
    """Tests for image_path."""

    def test_namespaced_name(self, repo):
        assert repo.image_path("qemu", "ns/app") == repo.root / "ns" / "app" / "app.qemu"

    def test_plain_name(self, repo):
        assert repo.image_path("vbox", "app") == repo.root / "app" / "app.vbox"

    def test_accepts_enum(self, repo):
        assert repo.image_path(Hypervisor.VMWARE, "app") == repo.root / "app" / "app.vmware"

    def test_is_deterministic_and_pure(self, repo):
        first = repo.image_path("qemu", "ns/app")
        second = repo.image_path("qemu", "ns/app")

        assert first == second
        assert not repo.root.exists()


class TestImportImage:
    """Tests for import_image."""

    @pytest.mark.parametrize("hypervisor", ["qemu", "vbox", "vmware"])
    def test_import_each_format(self, repo, image_files, hypervisor):
        destination = repo.import_image("ns/app", image_files[hypervisor], **import_args())

        assert destination == repo.root / "ns" / "app" / f"app.{hypervisor}"
        assert repo.image_exists(hypervisor, "ns/app")
        assert destination.read_bytes() == image_files[hypervisor].read_bytes()

    def test_only_mapped_hypervisor_exists(self, repo, image_files):
        repo.import_image("app", image_files["qemu"], **import_args())

        assert repo.image_exists("qemu", "app")
        assert not repo.image_exists("vbox", "app")
        assert not repo.image_exists("vmware", "app")

    def test_metadata_round_trip(self, repo, image_files):
        repo.import_image("ns/app", image_files["vbox"], **import_args(
            version="v0.24", created="2015-03-01 10:00", description="OSv", build="42"))

        record = read_image_record(repo.root / "ns" / "app" / "index.yaml")
        assert record == ImageRecord(
            format_version="1",
            version="v0.24",
            created="2015-03-01 10:00",
            description="OSv",
            build="42",
        )
        assert repo.image_info("ns/app") == record

    def test_metadata_file_mode(self, repo, image_files):
        repo.import_image("app", image_files["qemu"], **import_args())

        mode = stat.S_IMODE(os.stat(repo.root / "app" / "index.yaml").st_mode)
        assert mode == 0o644

    def test_reimport_overwrites(self, repo, image_files, tmp_path):
        repo.import_image("app", image_files["qemu"], **import_args(version="v1"))

        newer = tmp_path / "newer.img"
        newer.write_bytes(image_files["qemu"].read_bytes() + b"more")
        repo.import_image("app", newer, **import_args(version="v2"))

        assert repo.image_path("qemu", "app").read_bytes().endswith(b"more")
        assert repo.image_info("app").version == "v2"

    def test_emits_notice(self, repo, image_files, notices):
        repo.import_image("ns/app", image_files["qemu"], **import_args())
        assert notices == ["Importing ns/app..."]

    def test_unsupported_format(self, repo, tmp_path, notices):
        source = tmp_path / "notes.qcow2"
        source.write_text("not a disk image\n")

        with pytest.raises(UnsupportedFormatError) as exc_info:
            repo.import_image("app", source, **import_args())

        assert str(source) in str(exc_info.value)
        assert not (repo.root / "app").exists()
        assert notices == []

    def test_missing_source(self, repo, tmp_path, notices):
        source = tmp_path / "missing.img"

        with pytest.raises(ImageNotFoundError) as exc_info:
            repo.import_image("app", source, **import_args())

        assert str(exc_info.value) == f"{source}: no such file"
        assert not repo.root.exists()
        assert notices == []

    def test_unreadable_source_is_unsupported(self, repo, tmp_path):
        with pytest.raises(UnsupportedFormatError) as exc_info:
            repo.import_image("app", tmp_path, **import_args())

        assert isinstance(exc_info.value.__cause__, OSError)

    def test_created_directories_are_0775(self, repo, image_files):
        previous = os.umask(0)
        try:
            repo.import_image("ns/app", image_files["qemu"], **import_args())
        finally:
            os.umask(previous)

        for path in (repo.root, repo.root / "ns", repo.root / "ns" / "app"):
            assert stat.S_IMODE(os.stat(path).st_mode) == 0o775, path

    def test_existing_directories_keep_their_mode(self, repo, image_files):
        (repo.root / "ns").mkdir(parents=True)
        os.chmod(repo.root / "ns", 0o700)

        repo.import_image("ns/app", image_files["qemu"], **import_args())

        assert stat.S_IMODE(os.stat(repo.root / "ns").st_mode) == 0o700

    @pytest.mark.parametrize("name", ["", ".", "..", "../elsewhere", "ns/../..", "/tmp/app"])
    def test_rejects_names_outside_repository(self, repo, image_files, name, notices):
        with pytest.raises(InvalidImageNameError):
            repo.import_image(name, image_files["qemu"], **import_args())

        assert notices == []
        assert not repo.root.exists()

    def test_directory_create_failure(self, repo, image_files):
        repo.root.mkdir()
        (repo.root / "blocker").write_text("a file where a directory should be")

        with pytest.raises(DirectoryCreateError) as exc_info:
            repo.import_image("blocker/app", image_files["qemu"], **import_args())

        assert "mkdir failed" in str(exc_info.value)
        assert str(repo.root / "blocker" / "app") in str(exc_info.value)

    def test_metadata_failure_leaves_payload(self, repo, image_files, monkeypatch):
        def failing_write(path, record):
            raise OSError("disk full")

        monkeypatch.setattr(repository_module, "write_image_record", failing_write)

        with pytest.raises(OSError, match="disk full"):
            repo.import_image("app", image_files["qemu"], **import_args())

        assert repo.image_exists("qemu", "app")
        assert repo.image_info("app") is None


class TestImageStatus:
    """Tests for image_status and image_exists."""

    def test_absent(self, repo):
        status = repo.image_status("qemu", "app")

        assert status.state is ExistenceState.ABSENT
        assert status.path == repo.image_path("qemu", "app")
        assert repo.image_exists("qemu", "app") is False

    def test_exists(self, repo, image_files):
        repo.import_image("app", image_files["vmware"], **import_args())

        assert repo.image_status("vmware", "app").state is ExistenceState.EXISTS

    def test_parent_is_a_file_is_absent(self, repo):
        repo.root.mkdir()
        (repo.root / "app").write_text("x")

        assert repo.image_status("qemu", "app").state is ExistenceState.ABSENT

    def test_inaccessible(self, repo, monkeypatch):
        target = repo.image_path("qemu", "app")
        real_stat = os.stat

        def fake_stat(path, *args, **kwargs):
            if Path(path) == target:
                raise PermissionError(13, "Permission denied")
            return real_stat(path, *args, **kwargs)

        monkeypatch.setattr(repository_module.os, "stat", fake_stat)
        status = repo.image_status("qemu", "app")

        assert status.state is ExistenceState.INACCESSIBLE
        assert status.error == "Permission denied"
        assert repo.image_exists("qemu", "app") is False


class TestRemoveImage:
    """Tests for remove_image."""

    @pytest.mark.parametrize("name", ["", ".", "..", "ns/..", "../repository"])
    def test_rejects_root_and_parents(self, repo, image_files, name):
        repo.import_image("ns/app", image_files["qemu"], **import_args())

        with pytest.raises(InvalidImageNameError):
            repo.remove_image(name)

        assert repo.image_exists("qemu", "ns/app")

    def test_missing_image(self, repo, notices):
        with pytest.raises(ImageNotFoundError) as exc_info:
            repo.remove_image("ns/app")

        assert str(exc_info.value) == "ns/app: no such image"
        assert notices == []

    def test_removes_whole_subtree(self, repo, image_files, notices):
        for hypervisor, source in image_files.items():
            repo.import_image("ns/app", source, **import_args())

        repo.remove_image("ns/app")

        assert not (repo.root / "ns" / "app").exists()
        assert (repo.root / "ns").exists()
        for hypervisor in ("qemu", "vbox", "vmware"):
            assert not repo.image_exists(hypervisor, "ns/app")
        assert notices[-1] == "Removing ns/app..."

    def test_removes_namespace(self, repo, image_files):
        repo.import_image("ns/app", image_files["qemu"], **import_args())
        repo.import_image("ns/other", image_files["qemu"], **import_args())

        repo.remove_image("ns")

        assert not (repo.root / "ns").exists()

    def test_removes_plain_file(self, repo):
        repo.root.mkdir()
        (repo.root / "stray").write_text("x")

        repo.remove_image("stray")

        assert not (repo.root / "stray").exists()


class TestListImages:
    """Tests for list_images."""

    def test_missing_root_warns(self, repo):
        listing = repo.list_images()

        assert listing.entries == []
        assert len(listing.warnings) == 1
        assert str(repo.root) in listing.warnings[0]

    def test_empty_root(self, repo):
        repo.root.mkdir()
        listing = repo.list_images()

        assert listing.entries == []
        assert listing.complete

    def test_namespaced_image_with_metadata(self, repo, image_files):
        repo.import_image("ns/app", image_files["qemu"], **import_args(description="hello"))

        listing = repo.list_images()

        assert len(listing.entries) == 1
        entry = listing.entries[0]
        assert entry.full_name == "ns/app"
        assert entry.record.description == "hello"

    def test_image_without_metadata_falls_back(self, repo):
        (repo.root / "ns" / "app").mkdir(parents=True)

        listing = repo.list_images()

        assert listing.entries == [ImageEntry(name="app", namespace="ns")]

    def test_root_level_image(self, repo, image_files):
        repo.import_image("app", image_files["qemu"], **import_args())

        listing = repo.list_images()

        assert listing.entries == [ImageEntry(name="app")]

    def test_files_are_not_listed_next_to_images(self, repo):
        (repo.root / "ns" / "app").mkdir(parents=True)
        (repo.root / "ns" / "README").write_text("x")

        names = [entry.full_name for entry in repo.list_images().entries]

        assert names == ["ns/app"]

    def test_files_at_root_are_ignored(self, repo):
        repo.root.mkdir()
        (repo.root / "stray.txt").write_text("x")

        listing = repo.list_images()

        assert listing.entries == []
        assert listing.complete

    def test_empty_namespace_is_not_listed(self, repo):
        (repo.root / "ns").mkdir(parents=True)
        assert repo.list_images().entries == []

    def test_sorted_by_name(self, repo):
        for name in ["b/two", "a/one", "b/one"]:
            (repo.root / name).mkdir(parents=True)

        names = [entry.full_name for entry in repo.list_images().entries]

        assert names == ["a/one", "b/one", "b/two"]

    def test_unreadable_namespace_warns(self, repo, monkeypatch):
        (repo.root / "good" / "app").mkdir(parents=True)
        (repo.root / "bad" / "app").mkdir(parents=True)
        real_entries = repository_module._sorted_entries

        def fake_entries(path):
            if Path(path).name == "bad":
                raise PermissionError(13, "Permission denied")
            return real_entries(path)

        monkeypatch.setattr(repository_module, "_sorted_entries", fake_entries)
        listing = repo.list_images()

        assert [entry.full_name for entry in listing.entries] == ["good/app"]
        assert listing.warnings == ["bad: Permission denied"]

    def test_custom_presenter(self, tmp_path):
        calls = []

        def presenter(root, namespace, name):
            calls.append((root, namespace, name))
            return None

        repo = Repository(tmp_path, progress=lambda message: None, presenter=presenter)
        (tmp_path / "ns" / "app").mkdir(parents=True)

        repo.list_images()

        assert calls == [(tmp_path, "ns", "app")]


class TestDefaultImage:
    """Tests for default_image."""

    def test_with_capstanfile(self, repo, tmp_path):
        project = tmp_path / "my-app"
        project.mkdir()
        (project / "Capstanfile").write_text("base: cloudius/osv-base\n")

        assert repo.default_image(project) == "my-app"

    def test_without_capstanfile(self, repo, tmp_path):
        assert repo.default_image(tmp_path) == ""

    def test_uses_process_cwd(self, repo, tmp_path, monkeypatch):
        project = tmp_path / "from-cwd"
        project.mkdir()
        (project / "Capstanfile").write_text("")
        monkeypatch.chdir(project)

        assert repo.default_image() == "from-cwd"

    def test_process_cwd_without_capstanfile(self, repo, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert repo.default_image() == ""
