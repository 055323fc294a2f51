"""ZIP container <-> staged directory transcoding.

Generic, domain-free packaging layer used both to stage a template for
mutation and to produce the final flight-plan package.

- ``unpack`` writes every archive member under a staging directory and
  records a manifest (original order, directory/file distinction,
  ``ZipInfo`` metadata).
- ``repack`` walks the manifest in original order, so untouched members
  round-trip with identical names, content and metadata; files that
  appeared after unpacking follow, sorted.
- ``read_members`` / ``write_members`` do the same in memory for nested
  containers (KMZ members inside a package).

This layer never assumes any particular member is present; consumers
report missing members.
"""

from __future__ import annotations

import contextlib
import io
import logging
import shutil
import tempfile
import zipfile
import zlib
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from kml_flightplan.core.exceptions import PermanentError

if TYPE_CHECKING:
    from collections.abc import Generator, Iterable

logger = logging.getLogger("kml_flightplan.core.package")

#: Errors the zipfile/zlib stack raises for damaged or unsupported archives.
_ARCHIVE_ERRORS = (
    zipfile.BadZipFile,
    zlib.error,
    EOFError,
    NotImplementedError,
    RuntimeError,
)


class CorruptPackage(PermanentError):
    """Raised when a package cannot be decompressed or has unsafe member names."""

    default_stage = "package"
    default_code = "CORRUPT_PACKAGE"


@dataclass(frozen=True, slots=True)
class StagedMember:
    """One archive member recorded at unpack time.

    Attributes:
        name: Archive member name (POSIX separators, trailing ``/`` for directories).
        info: Original ``ZipInfo`` (timestamps, compression, attributes).
    """

    name: str
    info: zipfile.ZipInfo

    @property
    def is_dir(self) -> bool:
        return self.info.is_dir()

    @property
    def relative_path(self) -> PurePosixPath:
        return PurePosixPath(self.name.rstrip("/"))


@dataclass(slots=True)
class StagedTree:
    """A package unpacked into a directory, plus its member manifest.

    Attributes:
        root: Directory holding the decompressed members.
        members: Manifest of the original archive members, in archive order.
    """

    root: Path
    members: list[StagedMember] = field(default_factory=list)

    def path_of(self, relative: str | PurePosixPath) -> Path:
        """Return the filesystem path of a POSIX-style relative member path."""
        return self.root.joinpath(*PurePosixPath(relative).parts)

    def has_file(self, relative: str | PurePosixPath) -> bool:
        """Whether a regular file exists at *relative*."""
        return self.path_of(relative).is_file()

    def files(self) -> list[PurePosixPath]:
        """Every regular file currently in the tree, sorted, as relative POSIX paths."""
        return sorted(
            PurePosixPath(path.relative_to(self.root).as_posix())
            for path in self.root.rglob("*")
            if path.is_file()
        )


# ---------------------------------------------------------------------------
# In-memory member I/O
# ---------------------------------------------------------------------------


def read_members(package_bytes: bytes) -> list[tuple[zipfile.ZipInfo, bytes]]:
    """Decompress every member of a ZIP container, in archive order.

    Directory members are returned with empty content.

    Raises:
        CorruptPackage: If the container is malformed.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(package_bytes)) as archive:
            return [
                (info, b"" if info.is_dir() else archive.read(info))
                for info in archive.infolist()
            ]
    except _ARCHIVE_ERRORS as exc:
        msg = f"Package could not be decompressed: {exc}"
        raise CorruptPackage(msg) from exc


def write_members(members: Iterable[tuple[zipfile.ZipInfo, bytes]]) -> bytes:
    """Encode members into a ZIP container, preserving order and metadata."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for info, data in members:
            archive.writestr(_clone_info(info), data)
    return buffer.getvalue()


def _clone_info(info: zipfile.ZipInfo) -> zipfile.ZipInfo:
    """Copy the metadata of *info* into a fresh ``ZipInfo`` safe to write."""
    clone = zipfile.ZipInfo(info.filename, date_time=info.date_time)
    clone.compress_type = info.compress_type
    clone.external_attr = info.external_attr
    clone.create_system = info.create_system
    clone.comment = info.comment
    return clone


# ---------------------------------------------------------------------------
# Staged tree I/O
# ---------------------------------------------------------------------------


def _safe_relative_path(name: str) -> PurePosixPath:
    """Validate an archive member name and return it as a relative path.

    Raises:
        CorruptPackage: If the name is empty, absolute or escapes the root.
    """
    relative = PurePosixPath(name.replace("\\", "/").rstrip("/"))
    if (
        not relative.parts
        or relative.is_absolute()
        or ".." in relative.parts
        or ":" in relative.parts[0]
    ):
        msg = f"Package member {name!r} has an unsafe path."
        raise CorruptPackage(msg)
    return relative


def unpack(package_bytes: bytes, dest: Path) -> StagedTree:
    """Decompress *package_bytes* under *dest* and return the staged tree.

    Raises:
        CorruptPackage: If the container is malformed or a member name is unsafe.
    """
    dest.mkdir(parents=True, exist_ok=True)
    tree = StagedTree(root=dest)

    for info, data in read_members(package_bytes):
        target = tree.path_of(_safe_relative_path(info.filename))
        try:
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
            else:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(data)
        except (FileExistsError, IsADirectoryError, NotADirectoryError) as exc:
            msg = f"Package member {info.filename!r} conflicts with another member."
            raise CorruptPackage(msg) from exc
        tree.members.append(StagedMember(name=info.filename, info=info))

    logger.debug("Unpacked package | members=%d | root=%s", len(tree.members), dest)
    return tree


def repack(tree: StagedTree) -> bytes:
    """Encode the staged tree back into a ZIP container.

    Original members come first in archive order (members deleted from
    disk are dropped); files added since unpacking follow, sorted.
    """
    members: list[tuple[zipfile.ZipInfo, bytes]] = []
    known: set[PurePosixPath] = set()

    for member in tree.members:
        relative = member.relative_path
        path = tree.path_of(relative)
        if member.is_dir:
            if path.is_dir():
                members.append((member.info, b""))
        elif path.is_file():
            members.append((member.info, path.read_bytes()))
            known.add(relative)

    for relative in tree.files():
        if relative in known:
            continue
        info = zipfile.ZipInfo.from_file(tree.path_of(relative), arcname=relative.as_posix())
        info.compress_type = zipfile.ZIP_DEFLATED
        members.append((info, tree.path_of(relative).read_bytes()))

    logger.debug("Repacking package | members=%d", len(members))
    return write_members(members)


@contextlib.contextmanager
def staged(
    package_bytes: bytes,
    *,
    parent: Path | None = None,
    prefix: str = "flightplan_",
) -> Generator[StagedTree, None, None]:
    """Unpack into a fresh uniquely-named directory, removed on exit.

    The directory is deleted on every exit path, including exceptions
    raised by the ``with`` body.
    """
    if parent is not None:
        parent.mkdir(parents=True, exist_ok=True)
    workdir = Path(tempfile.mkdtemp(prefix=prefix, dir=parent))
    try:
        yield unpack(package_bytes, workdir / "tree")
    finally:
        shutil.rmtree(workdir, ignore_errors=True)
        logger.debug("Removed staging directory | path=%s", workdir)
