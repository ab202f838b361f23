from pathlib import Path

import pytest

from s3crypt.exceptions import ExportError
from s3crypt.services.exporter import DirectoryExporter


def test_export_writes_utf8_text(tmp_path: Path) -> None:
    destination = DirectoryExporter(tmp_path / "out").export("notes.txt", "héllo")

    assert destination == tmp_path / "out" / "notes.txt"
    assert destination.read_text(encoding="utf-8") == "héllo"


def test_export_cannot_escape_directory(tmp_path: Path) -> None:
    destination = DirectoryExporter(tmp_path).export("../../etc/passwd", "x")

    assert destination == tmp_path / "passwd"


@pytest.mark.parametrize("name", ["", ".", ".."])
def test_export_rejects_names_without_file_part(tmp_path: Path, name: str) -> None:
    with pytest.raises(ExportError):
        DirectoryExporter(tmp_path).export(name, "x")


def test_export_wraps_os_errors(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("")

    with pytest.raises(ExportError, match="Could not write"):
        DirectoryExporter(blocker / "sub").export("a.txt", "x")


def test_export_wraps_unencodable_content(tmp_path: Path) -> None:
    with pytest.raises(ExportError, match="Could not write"):
        DirectoryExporter(tmp_path).export("a.txt", "broken \ud800 text")
