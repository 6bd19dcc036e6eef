import io
import itertools
import re

import pytest

from portal_backend.app import storage
from portal_backend.app.core.config import StorageConfig
from portal_backend.app.errors import (
    FileTooLarge,
    InvalidRequest,
    StorageError,
    UnsupportedFileType,
)
from portal_backend.app.uploads import IncomingFile, UploadPlanner, file_extension

NAME_RE = re.compile(r"^\d{13}_[0-9a-z]{6}_[A-Za-z0-9_-]*\.[a-z0-9]+$")


def make_file(name="notes.pdf", payload=b"x" * 1024, size=None):
    return IncomingFile(
        name=name,
        size=len(payload) if size is None else size,
        stream=io.BytesIO(payload),
    )


def tree(root):
    return sorted(p.relative_to(root).as_posix() for p in root.rglob("*"))


def test_upload_scenario_creates_taxonomy_dirs(config, public_root, uploads_root):
    planner = UploadPlanner(config)
    result = planner.upload(make_file(), "Grade 10", "Math!", "English")

    assert (uploads_root / "Grade_10" / "Math" / "English").is_dir()
    assert result.file_url.startswith("/uploads/Grade_10/Math/English/")
    assert result.file_url == "/" + result.relative_path
    assert result.file_size == 1024
    assert NAME_RE.match(result.file_name), result.file_name
    assert result.file_name.endswith("_notes.pdf")

    written = public_root / result.relative_path
    assert written.read_bytes() == b"x" * 1024


def test_generated_name_layout():
    planner = UploadPlanner(
        StorageConfig(public_root="/srv/public"),
        clock=lambda: 1700000000123,
        token=lambda: "a1b2c3",
    )
    assert planner.generate_file_name("My Lecture Notes.PDF") == (
        "1700000000123_a1b2c3_My_Lecture_Notes.pdf"
    )
    assert planner.generate_file_name("C:\\Users\\t\\slides v2.pptx") == (
        "1700000000123_a1b2c3_slides_v2.pptx"
    )
    assert planner.generate_file_name("???.png") == "1700000000123_a1b2c3_.png"


def test_same_millisecond_uploads_do_not_collide(config, public_root):
    tokens = itertools.cycle(["aaaaaa", "bbbbbb"])
    planner = UploadPlanner(config, clock=lambda: 1700000000000, token=lambda: next(tokens))

    first = planner.upload(make_file(payload=b"one"), "Grade 1", "Art", "English")
    second = planner.upload(make_file(payload=b"two"), "Grade 1", "Art", "English")

    assert first.file_name != second.file_name
    assert (public_root / first.relative_path).read_bytes() == b"one"
    assert (public_root / second.relative_path).read_bytes() == b"two"


def test_random_token_differs_within_same_millisecond(config):
    planner = UploadPlanner(config, clock=lambda: 1700000000000)
    names = {planner.generate_file_name("notes.pdf") for _ in range(50)}
    assert len(names) == 50


@pytest.mark.parametrize(
    "file, grade, subject, medium",
    [
        (None, "Grade 1", "Math", "English"),
        (make_file(name=""), "Grade 1", "Math", "English"),
        (make_file(), "", "Math", "English"),
        (make_file(), "Grade 1", None, "English"),
        (make_file(), "Grade 1", "Math", ""),
    ],
)
def test_missing_fields_rejected(config, uploads_root, file, grade, subject, medium):
    with pytest.raises(InvalidRequest):
        UploadPlanner(config).upload(file, grade, subject, medium)
    assert tree(uploads_root) == []


def test_oversized_file_rejected_without_side_effects(config, uploads_root):
    planner = UploadPlanner(config)
    big = make_file(payload=b"", size=60 * 1024 * 1024)

    for _ in range(2):
        with pytest.raises(FileTooLarge) as exc_info:
            planner.upload(big, "Grade 10", "Math", "English")
        assert exc_info.value.status_code == 400
        assert "50MB" in exc_info.value.message

    assert tree(uploads_root) == []


def test_size_limit_is_inclusive(config):
    exact = make_file(payload=b"", size=config.max_file_size)
    UploadPlanner(config).validate(exact, "g", "s", "m")


def test_size_checked_before_extension(config):
    with pytest.raises(FileTooLarge):
        UploadPlanner(config).validate(
            make_file(name="virus.exe", size=config.max_file_size + 1), "g", "s", "m"
        )


@pytest.mark.parametrize("name", ["run.exe", "archive.tar.gz", "README", ".pdf", "notes."])
def test_unsupported_extension_rejected(config, uploads_root, name):
    with pytest.raises(UnsupportedFileType) as exc_info:
        UploadPlanner(config).upload(make_file(name=name), "Grade 1", "Math", "English")
    assert ".pdf" in exc_info.value.message
    assert tree(uploads_root) == []


@pytest.mark.parametrize("name", ["A.PDF", "clip.MoV", "photo.jpeg", "deck.pptx"])
def test_extension_is_case_insensitive(config, name):
    result = UploadPlanner(config).upload(make_file(name=name), "g", "s", "m")
    assert result.file_name.endswith(file_extension(name))
    assert file_extension(name) == "." + name.rsplit(".", 1)[1].lower()


def test_empty_tag_falls_back_to_placeholder(config, uploads_root):
    result = UploadPlanner(config).upload(make_file(), "Grade 1", "???", "English")
    assert (uploads_root / "Grade_1" / "_" / "English").is_dir()
    assert result.relative_path.startswith("uploads/Grade_1/_/English/")


def test_existing_directory_is_reused(config, uploads_root):
    (uploads_root / "Grade_1" / "Math" / "English").mkdir(parents=True)
    (uploads_root / "Grade_1" / "Math" / "English" / "old.pdf").write_bytes(b"old")

    UploadPlanner(config).upload(make_file(), "Grade 1", "Math", "English")

    files = list((uploads_root / "Grade_1" / "Math" / "English").iterdir())
    assert len(files) == 2


def test_write_failure_reports_storage_error_and_leaves_dirs(config, uploads_root, monkeypatch):
    def broken_write(path, source):
        raise storage.FilesystemError(
            storage.FsErrorKind.OTHER, path, OSError(28, "No space left on device")
        )

    monkeypatch.setattr(storage, "write_stream", broken_write)

    with pytest.raises(StorageError) as exc_info:
        UploadPlanner(config).upload(make_file(), "Grade 1", "Math", "English")

    assert "No space" not in exc_info.value.message
    # the empty taxonomy directories are reclaimed by the next deletion sweep
    assert (uploads_root / "Grade_1" / "Math" / "English").is_dir()
    assert list((uploads_root / "Grade_1" / "Math" / "English").iterdir()) == []


def test_allowed_types_listed_in_configured_order(config):
    with pytest.raises(UnsupportedFileType) as exc_info:
        UploadPlanner(config).validate(make_file(name="run.exe"), "g", "s", "m")
    assert exc_info.value.message == (
        "Invalid file type. Allowed types: "
        ".pdf, .doc, .docx, .ppt, .pptx, .jpg, .jpeg, .png, .gif, .mp4, .avi, .mov"
    )


def test_configured_extensions_normalised_in_order():
    config = StorageConfig(public_root="/srv/public", allowed_extensions=("PNG", ".pdf", "png"))
    assert config.allowed_extensions == (".png", ".pdf")
