"""On-disk layout and low-level access for a small FAT16 partition image."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Iterator, Optional, Sequence, Union

CLUSTER_SIZE = 1024
CLUSTER_COUNT = 4096
FAT_SIZE = CLUSTER_COUNT * 2
FAT_CLUSTERS = 8
ROOT = 9
FIRST_DATA_CLUSTER = 10
DEFAULT_IMAGE = "fat.part"
ENTRIES_PER_CLUSTER = 32
ENTRY_SIZE = 32
NAME_SIZE = 18
BOOT_FILL = 0xBB

FAT_FREE = 0x0000
FAT_END = 0xFFFF
FAT_BOOT = 0xFFFD
FAT_FAT = 0xFFFE

_ENTRY_STRUCT = struct.Struct("<18sB7sHI")
_FAT_STRUCT = struct.Struct(f"<{CLUSTER_COUNT}H")


class FatError(Exception):
    """Raised when the partition image cannot be read or updated."""


class PathNotFound(FatError, LookupError):
    """Raised when a path does not name an existing entry."""


class Attribute(IntEnum):
    FILE = 0
    DIRECTORY = 1


@dataclass
class DirEntry:
    """One 32-byte directory entry."""

    name: str = ""
    attribute: int = Attribute.FILE
    first_block: int = 0
    size: int = 0
    reserved: bytes = field(default=bytes(7), repr=False)

    def to_bytes(self) -> bytes:
        raw_name = self.name.encode("utf-8")
        if len(raw_name) > NAME_SIZE:
            raise FatError(f"name too long: {self.name!r}")
        return _ENTRY_STRUCT.pack(
            raw_name,
            self.attribute,
            self.reserved[:7].ljust(7, b"\0"),
            self.first_block,
            self.size,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "DirEntry":
        if len(data) != ENTRY_SIZE:
            raise FatError(f"directory entry must be {ENTRY_SIZE} bytes")
        raw_name, attribute, reserved, first_block, size = _ENTRY_STRUCT.unpack(data)
        name = raw_name.split(b"\0", 1)[0].decode("utf-8", errors="replace")
        try:
            attribute = Attribute(attribute)
        except ValueError:
            pass
        return cls(name, attribute, first_block, size, reserved)

    def is_used(self) -> bool:
        return bool(self.name)

    @property
    def is_directory(self) -> bool:
        return self.attribute == Attribute.DIRECTORY


def parse_directory(data: bytes) -> list[DirEntry]:
    """Split a directory cluster into its 32 entries."""
    if len(data) != CLUSTER_SIZE:
        raise FatError(f"directory cluster must be {CLUSTER_SIZE} bytes")
    return [
        DirEntry.from_bytes(data[offset:offset + ENTRY_SIZE])
        for offset in range(0, CLUSTER_SIZE, ENTRY_SIZE)
    ]


def format_directory(entries: Sequence[DirEntry]) -> bytes:
    """Pack entries into one directory cluster, padding with empty entries."""
    if len(entries) > ENTRIES_PER_CLUSTER:
        raise FatError(f"a directory holds at most {ENTRIES_PER_CLUSTER} entries")
    packed = b"".join(entry.to_bytes() for entry in entries)
    return packed.ljust(CLUSTER_SIZE, b"\0")


def free_entry_index(entries: Sequence[DirEntry]) -> Optional[int]:
    """Return the index of the first unused entry, or None if all are taken."""
    return next((i for i, entry in enumerate(entries) if not entry.is_used()), None)


def _components(path: str) -> list[str]:
    return [part for part in path.split("/") if part]


def _matches(entry: DirEntry, name: str) -> bool:
    if not entry.is_used():
        return False
    wanted = name.encode("utf-8")[:NAME_SIZE]
    return entry.name.encode("utf-8")[:NAME_SIZE] == wanted


class FatImage:
    """A FAT16 partition image file and its in-memory allocation table."""

    def __init__(self, path: Union[str, Path] = DEFAULT_IMAGE) -> None:
        self.path = Path(path)
        self.fat: list[int] = [FAT_FREE] * CLUSTER_COUNT

    def _open(self, mode: str = "r+b"):
        try:
            return open(self.path, mode)
        except FileNotFoundError as exc:
            raise FatError(f"image {self.path} not found") from exc
        except OSError as exc:
            raise FatError(f"cannot open {self.path}: {exc}") from exc

    def format(self) -> None:
        """Create a fresh image: boot cluster, FAT, empty root and free data area."""
        zero = bytes(CLUSTER_SIZE)
        with self._open("wb") as fh:
            fh.write(bytes([BOOT_FILL]) * CLUSTER_SIZE)
            for _ in range(1, CLUSTER_COUNT):
                fh.write(zero)
        self.fat = [FAT_FREE] * CLUSTER_COUNT
        self.fat[0] = FAT_BOOT
        for index in range(1, FAT_CLUSTERS + 1):
            self.fat[index] = FAT_FAT
        self.fat[ROOT] = FAT_END
        self.save_fat()

    def load(self) -> None:
        """Read the allocation table from the image."""
        with self._open("rb") as fh:
            fh.seek(CLUSTER_SIZE)
            data = fh.read(FAT_SIZE)
        if len(data) != FAT_SIZE:
            raise FatError("image is too short to hold the FAT")
        self.fat = list(_FAT_STRUCT.unpack(data))

    def save_fat(self) -> None:
        """Write the allocation table back to the image."""
        with self._open() as fh:
            fh.seek(CLUSTER_SIZE)
            fh.write(_FAT_STRUCT.pack(*self.fat))

    def allocate_cluster(self) -> int:
        """Claim the first free data cluster, mark it as a chain end and save."""
        for index in range(FIRST_DATA_CLUSTER, CLUSTER_COUNT):
            if self.fat[index] == FAT_FREE:
                self.fat[index] = FAT_END
                self.save_fat()
                return index
        raise FatError("no free cluster left")

    def chain(self, current: int, following: int) -> None:
        self.fat[current] = following

    def release(self, start: int) -> None:
        """Free every cluster of the chain beginning at start."""
        current = start
        while current not in (FAT_END, FAT_FREE):
            following = self.fat[current]
            self.fat[current] = FAT_FREE
            if following == FAT_END:
                break
            current = following

    def clusters_of(self, start: int) -> Iterator[int]:
        """Yield the clusters of the chain beginning at start, in order."""
        seen: set[int] = set()
        current = start
        while current not in (FAT_END, FAT_FREE):
            if not 0 <= current < CLUSTER_COUNT:
                raise FatError(f"cluster {current} out of range")
            if current in seen:
                raise FatError(f"cluster chain loops at {current}")
            seen.add(current)
            yield current
            current = self.fat[current]

    def read_cluster(self, block: int) -> bytes:
        if not 0 <= block < CLUSTER_COUNT:
            raise FatError(f"cluster {block} out of range")
        with self._open("rb") as fh:
            fh.seek(block * CLUSTER_SIZE)
            data = fh.read(CLUSTER_SIZE)
        if len(data) != CLUSTER_SIZE:
            raise FatError(f"short read of cluster {block}")
        return data

    def write_cluster(self, block: int, data: bytes) -> None:
        if not 0 <= block < CLUSTER_COUNT:
            raise FatError(f"cluster {block} out of range")
        if len(data) > CLUSTER_SIZE:
            raise FatError(f"data exceeds cluster size of {CLUSTER_SIZE}")
        with self._open() as fh:
            fh.seek(block * CLUSTER_SIZE)
            fh.write(bytes(data).ljust(CLUSTER_SIZE, b"\0"))

    def find_parent(self, path: str) -> tuple[int, list[DirEntry]]:
        """Return the cluster and entries of the directory that would hold path."""
        block = ROOT
        entries = parse_directory(self.read_cluster(block))
        for name in _components(path)[:-1]:
            entry = next((e for e in entries if _matches(e, name)), None)
            if entry is None:
                raise PathNotFound(path)
            block = entry.first_block
            entries = parse_directory(self.read_cluster(block))
        return block, entries

    def resolve(self, path: str) -> tuple[int, bytes]:
        """Return the first cluster of path and its contents."""
        block = ROOT
        data = self.read_cluster(block)
        for name in _components(path):
            entry = next((e for e in parse_directory(data) if _matches(e, name)), None)
            if entry is None:
                raise PathNotFound(path)
            block = entry.first_block
            data = self.read_cluster(block)
        return block, data

    def lookup(self, path: str) -> tuple[DirEntry, int, Optional[int]]:
        """Find the entry for an absolute path.

        Returns the entry, the cluster of its parent directory and its index
        there; the root has no index.
        """
        if not path.startswith("/"):
            raise PathNotFound(path)
        names = _components(path)
        if not names:
            if path == "/":
                return DirEntry("/", Attribute.DIRECTORY, ROOT, 0), ROOT, None
            raise PathNotFound(path)
        current = ROOT
        for position, name in enumerate(names):
            entries = parse_directory(self.read_cluster(current))
            found = next(
                ((i, e) for i, e in enumerate(entries) if _matches(e, name)), None
            )
            if found is None:
                raise PathNotFound(path)
            index, entry = found
            if position == len(names) - 1:
                return entry, current, index
            if not entry.is_directory:
                raise PathNotFound(path)
            current = entry.first_block
        raise PathNotFound(path)