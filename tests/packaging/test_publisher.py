"""Unit tests for the directory publisher and stale-artifact cleanup."""

import re
from pathlib import Path

import pytest

from elpa_deploy.packaging.publisher import DirectoryPublisher, remove_stale
from elpa_deploy.stamping.version import artifact_pattern
from elpa_deploy.types import Artifact


@pytest.fixture
def archive_dir(tmp_path):
    directory = tmp_path / "archive"
    directory.mkdir()
    for name in [
        "foo-20231201.1000.el",
        "foo-20231115.930.el",
        "foo-20231201.1000.tar",
        "foobar-20231201.1000.el",
        "archive-contents",
    ]:
        (directory / name).write_text(name, encoding="utf-8")
    return directory


@pytest.fixture
def artifact(tmp_path):
    source = tmp_path / "foo.el"
    source.write_text(";; Version: 20240101.0930\n", encoding="utf-8")
    return Artifact(path=source, package="foo", version="20240101.0930", extension="el")


class TestDirectoryPublisher:
    def test_publish_copies_under_versioned_name(self, archive_dir, artifact):
        published = DirectoryPublisher(archive_dir).publish(artifact)

        assert published == archive_dir / "foo-20240101.0930.el"
        assert published.read_text(encoding="utf-8") == ";; Version: 20240101.0930\n"
        assert artifact.path.exists()

    def test_publish_creates_target_directory(self, tmp_path, artifact):
        target = tmp_path / "new" / "archive"
        published = DirectoryPublisher(target).publish(artifact)
        assert published.parent == target
        assert published.exists()

    def test_list_existing_matches_whole_names(self, archive_dir):
        found = DirectoryPublisher(archive_dir).list_existing(artifact_pattern("foo", "el"))
        assert [p.name for p in found] == ["foo-20231115.930.el", "foo-20231201.1000.el"]

    def test_list_existing_skips_directories(self, archive_dir):
        (archive_dir / "foo-20230101.0101.el").mkdir()
        found = DirectoryPublisher(archive_dir).list_existing(artifact_pattern("foo", "el"))
        assert archive_dir / "foo-20230101.0101.el" not in found

    def test_list_existing_on_missing_directory(self, tmp_path):
        publisher = DirectoryPublisher(tmp_path / "nowhere")
        assert publisher.list_existing(re.compile(".*")) == []

    def test_remove_unlinks(self, archive_dir):
        path = archive_dir / "foo-20231201.1000.el"
        DirectoryPublisher(archive_dir).remove(path)
        assert not path.exists()


class TestRemoveStale:
    def test_removes_every_matching_version(self, archive_dir):
        removed = remove_stale(DirectoryPublisher(archive_dir), "foo", "el")

        assert sorted(p.name for p in removed) == ["foo-20231115.930.el", "foo-20231201.1000.el"]
        remaining = sorted(p.name for p in archive_dir.iterdir())
        assert remaining == ["archive-contents", "foo-20231201.1000.tar", "foobar-20231201.1000.el"]

    def test_extension_selects_artifact_kind(self, archive_dir):
        removed = remove_stale(DirectoryPublisher(archive_dir), "foo", "tar")
        assert [p.name for p in removed] == ["foo-20231201.1000.tar"]
        assert (archive_dir / "foo-20231201.1000.el").exists()

    def test_nothing_to_remove(self, archive_dir):
        assert remove_stale(DirectoryPublisher(archive_dir), "baz", "el") == []

    def test_works_with_any_publisher(self):
        class RecordingPublisher:
            def __init__(self):
                self.removed = []

            def publish(self, artifact):
                raise AssertionError("not expected")

            def list_existing(self, pattern):
                names = ["foo-20231201.1000.el", "foo-notaversion.el"]
                return [Path(n) for n in names if pattern.fullmatch(n)]

            def remove(self, path):
                self.removed.append(path)

        publisher = RecordingPublisher()
        remove_stale(publisher, "foo", "el")
        assert publisher.removed == [Path("foo-20231201.1000.el")]
