"""
File-tree synthesis for flat bucket listings.

The bucket has no directories, only "/"-separated decrypted paths. These
pure functions derive the folders those paths imply and filter folders and
files down to the direct children of the current directory.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from s3crypt.models.objects import FOLDER_SEPARATOR, DecryptedKey


@dataclass(frozen=True, kw_only=True)
class TreeEntry:
    """A folder or file as shown in the current directory."""

    display_name: str
    key: DecryptedKey

    @property
    def is_folder(self) -> bool:
        return self.key.is_folder


@dataclass(frozen=True, kw_only=True)
class DirectoryView:
    """Direct children of one directory."""

    current_directory: str
    folders: tuple[TreeEntry, ...] = ()
    files: tuple[TreeEntry, ...] = ()


def _join_folder(segments: Sequence[str]) -> str:
    # Every segment gets its own trailing separator; no segments means "".
    return "".join(f"{segment}{FOLDER_SEPARATOR}" for segment in segments)


def _encrypted_prefix(key: DecryptedKey, depth: int) -> str:
    encrypted = key.encrypted_key.split(FOLDER_SEPARATOR)
    if len(encrypted) != len(key.path.split(FOLDER_SEPARATOR)):
        return key.encrypted_key
    return _join_folder(encrypted[:depth])


def _folder_key(key: DecryptedKey, segments: Sequence[str]) -> DecryptedKey:
    return DecryptedKey(
        encrypted_key=_encrypted_prefix(key, len(segments)),
        path=_join_folder(segments),
        size=0,
        last_modified=key.last_modified,
    )


def extract_folder(key: DecryptedKey) -> DecryptedKey:
    """
    Promote a file key to the folder that contains it.

    "a/b/file.txt" becomes "a/b/"; a top-level file becomes "" and a key
    whose path already ends in "/" is returned unchanged.
    """
    segments = key.path.split(FOLDER_SEPARATOR)
    if segments[-1] == "":
        return key
    return _folder_key(key, segments[:-1])


def extract_folders(keys: Iterable[DecryptedKey]) -> list[DecryptedKey]:
    """Apply extract_folder to every key, keeping order."""
    return [extract_folder(key) for key in keys]


def folder_set(extracted: Iterable[DecryptedKey]) -> tuple[DecryptedKey, ...]:
    """
    Deduplicate extracted folder keys into the set of known folders.

    Keys with fewer than two segments (top-level files) are dropped. Every
    ancestor of a folder is included as well, so "a/b/" also yields "a/"
    and each level stays reachable by navigation. The first key seen for a
    path wins.
    """
    seen: dict[str, DecryptedKey] = {}
    for key in extracted:
        segments = key.path.split(FOLDER_SEPARATOR)
        if len(segments) < 2:
            continue
        for depth in range(1, len(segments)):
            folder = key if depth == len(segments) - 1 else _folder_key(key, segments[:depth])
            seen.setdefault(folder.path, folder)
    return tuple(seen.values())


def synthesize_folders(keys: Iterable[DecryptedKey]) -> tuple[DecryptedKey, ...]:
    """Folders implied by a flat listing."""
    return folder_set(extract_folders(keys))


def is_child_folder(folder: DecryptedKey, current_directory: str) -> bool:
    """Check if a folder sits directly inside the current directory."""
    path = folder.path
    if not path.startswith(current_directory) or path == current_directory:
        return False
    return len(path[len(current_directory) :].split(FOLDER_SEPARATOR)) == 2


def is_child_file(key: DecryptedKey, current_directory: str) -> bool:
    """Check if a key is a file directly inside the current directory."""
    if not key.path.startswith(current_directory):
        return False
    remainder = key.path[len(current_directory) :]
    return remainder != "" and len(remainder.split(FOLDER_SEPARATOR)) == 1


def folders_in(
    folders: Iterable[DecryptedKey], current_directory: str
) -> list[DecryptedKey]:
    """Direct child folders of the current directory."""
    return [folder for folder in folders if is_child_folder(folder, current_directory)]


def files_in(keys: Iterable[DecryptedKey], current_directory: str) -> list[DecryptedKey]:
    """Direct child files of the current directory."""
    return [key for key in keys if is_child_file(key, current_directory)]


def folder_display_name(folder: DecryptedKey, current_directory: str) -> str:
    """Folder path relative to the current directory, without the trailing "/"."""
    name = folder.path.removeprefix(current_directory)
    return name.removesuffix(FOLDER_SEPARATOR)


def file_display_name(key: DecryptedKey, current_directory: str) -> str:
    """File path relative to the current directory."""
    return key.path.removeprefix(current_directory)


def build_view(
    keys: Iterable[DecryptedKey],
    folders: Iterable[DecryptedKey],
    current_directory: str,
) -> DirectoryView:
    """
    Build the listing of one directory.

    Args:
        keys: Decrypted listing.
        folders: Known folders, as returned by synthesize_folders.
        current_directory: Directory prefix, "" for root.

    Returns:
        Folders then files, in listing order.
    """
    return DirectoryView(
        current_directory=current_directory,
        folders=tuple(
            TreeEntry(display_name=folder_display_name(folder, current_directory), key=folder)
            for folder in folders_in(folders, current_directory)
        ),
        files=tuple(
            TreeEntry(display_name=file_display_name(key, current_directory), key=key)
            for key in files_in(keys, current_directory)
        ),
    )


def format_size(size_bytes: int) -> str:
    """Format byte size in human-readable form."""
    size = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024:
            if unit == "B":
                return f"{int(size)} {unit}"
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"
