"""Interactive command shell over a FAT16 partition image."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterable, Optional, TextIO, Union

from .disk import (
    CLUSTER_SIZE,
    DEFAULT_IMAGE,
    Attribute,
    DirEntry,
    FatError,
    FatImage,
    PathNotFound,
    format_directory,
    free_entry_index,
    parse_directory,
)

PROMPT = "FAT16$ "
MSG_LOADED = "Sistema de arquivos carregado com sucesso."
MSG_NOT_FOUND = "Caminho não encontrado"
MSG_UNKNOWN = "Comando não reconhecido."
MSG_BAD_ARGS = "Argumentos inválidos."


def base_name(path: str) -> str:
    """Return the last component of a slash-separated path."""
    parts = [part for part in path.split("/") if part]
    return parts[-1] if parts else ""


class Shell:
    """Commands that create, list, extend and print entries of an image."""

    def __init__(
        self,
        image_path: Union[str, Path] = DEFAULT_IMAGE,
        out: Optional[TextIO] = None,
    ) -> None:
        self.image = FatImage(image_path)
        self.out = out if out is not None else sys.stdout

    def _print(self, text: str = "", end: str = "\n") -> None:
        print(text, end=end, file=self.out)

    def init(self) -> None:
        """Create a fresh, empty partition image."""
        self.image.format()

    def load(self) -> None:
        """Read the allocation table from an existing image."""
        self.image.load()
        self._print(MSG_LOADED)

    def ls(self, path: str = "/") -> list[str]:
        """Print and return the names held by the directory at path."""
        _, data = self.image.resolve(path)
        names = [
            entry.name
            for entry in parse_directory(data)
            if entry.is_used()
            and entry.attribute in (Attribute.FILE, Attribute.DIRECTORY)
        ]
        for name in names:
            self._print(name)
        return names

    def mkdir(self, path: str) -> None:
        """Create a directory; a missing parent is reported, not raised."""
        if path == "/":
            return
        try:
            parent_block, entries = self.image.find_parent(path)
        except PathNotFound:
            self._print(MSG_NOT_FOUND)
            return
        name = base_name(path)
        if not name:
            raise FatError(f"invalid path: {path!r}")
        index = free_entry_index(entries)
        if index is None:
            raise FatError("directory is full")
        entry = DirEntry(name, Attribute.DIRECTORY, 0, 0)
        entry.to_bytes()  # reject unusable names before claiming a cluster
        self.image.load()
        entry.first_block = self.image.allocate_cluster()
        self.image.write_cluster(entry.first_block, bytes(CLUSTER_SIZE))
        entries[index] = entry
        self.image.write_cluster(parent_block, format_directory(entries))

    def append(self, path: str, content: str) -> None:
        """Add content to the end of the data chain of path."""
        start, _ = self.image.resolve(path)
        self.image.load()
        last = list(self.image.clusters_of(start))[-1]
        payload = content.encode("utf-8")

        data = bytearray(self.image.read_cluster(last))
        used = data.find(0)
        if used == -1:
            used = CLUSTER_SIZE
        available = CLUSTER_SIZE - used
        if available > 0:
            head = payload[:available]
            data[used:used + len(head)] = head
            self.image.write_cluster(last, bytes(data))
            payload = payload[len(head):]

        while payload:
            new = self.image.allocate_cluster()
            self.image.chain(last, new)
            self.image.save_fat()
            self.image.write_cluster(new, payload[:CLUSTER_SIZE])
            payload = payload[CLUSTER_SIZE:]
            last = new

    def read(self, path: str) -> str:
        """Print and return the text stored along the chain of path."""
        start, _ = self.image.resolve(path)
        self.image.load()
        chunks = [
            self.image.read_cluster(block).split(b"\0", 1)[0]
            for block in self.image.clusters_of(start)
        ]
        text = b"".join(chunks).decode("utf-8", errors="replace")
        self._print(text)
        return text

    def execute(self, line: str) -> bool:
        """Run one command line; return False when the shell should stop."""
        parts = line.split(None, 2)
        if not parts:
            self._print(MSG_UNKNOWN)
            return True
        command, args = parts[0], parts[1:]
        try:
            if command == "exit":
                return False
            if command == "init":
                self.init()
            elif command == "load":
                self.load()
            elif command == "ls":
                self.ls(args[0] if args else "/")
            elif command == "mkdir":
                if len(args) != 1:
                    self._print(MSG_BAD_ARGS)
                else:
                    self.mkdir(args[0])
            elif command == "read":
                if len(args) != 1:
                    self._print(MSG_BAD_ARGS)
                else:
                    self.read(args[0])
            elif command == "append":
                if len(args) != 2:
                    self._print(MSG_BAD_ARGS)
                else:
                    self.append(args[0], args[1])
            else:
                self._print(MSG_UNKNOWN)
        except PathNotFound:
            self._print(MSG_NOT_FOUND)
        except FatError as exc:
            self._print(f"Erro: {exc}")
        return True

    def run(self, lines: Iterable[str]) -> None:
        """Prompt for and execute lines until exit or end of input."""
        for line in lines:
            self._print(PROMPT, end="")
            if not self.execute(line.rstrip("\r\n")):
                break


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="fat16fs", description="Shell over a FAT16 partition image."
    )
    parser.add_argument("--image", default=DEFAULT_IMAGE, help="partition image file")
    args = parser.parse_args(argv)
    Shell(args.image).run(sys.stdin)
    return 0


if __name__ == "__main__":
    sys.exit(main())