# fat16fs

A small FAT16-style file system kept in a single image file (by default
`fat.part`), with a line-oriented shell for working with it.

## Layout of the image

The image holds 4096 clusters of 1024 bytes each:

| Cluster | Contents                                   |
|---------|--------------------------------------------|
| 0       | boot block, filled with `0xBB`             |
| 1–8     | the allocation table, 4096 16-bit entries  |
| 9       | the root directory                         |
| 10–4095 | data clusters                              |

A directory cluster holds 32 entries of 32 bytes: an 18-byte name, one
attribute byte (0 for a file, 1 for a directory), 7 reserved bytes, the
first cluster (16 bits) and the size in bytes (32 bits), all little-endian.

In the table, `0x0000` marks a free cluster, `0xFFFF` the end of a chain,
`0xFFFD` the boot block and `0xFFFE` the table's own clusters.

## Installing

```
pip install .
```

Tests run with `pip install .[test]` and then `pytest`.

## The shell

```
fat16fs
fat16fs --image other.part
```

reads commands from standard input, one per line, writing the prompt
`FAT16$ ` as each line is taken. `--image` picks the image file; the
default is `fat.part` in the current directory.

- `init` – create a fresh, empty image
- `load` – read the allocation table from an existing image and print
  `Sistema de arquivos carregado com sucesso.`
- `ls [path]` – list the names in a directory (the root when no path is given)
- `mkdir path` – create a directory; it gets a cluster of its own
- `append path text` – add the text (the rest of the line) to the end of the
  cluster chain of an existing entry, claiming new clusters as needed
- `read path` – print the text stored along the cluster chain of an entry
- `exit` – leave the shell; the end of input does the same

An unknown or empty line prints `Comando não reconhecido.`, a command with
the wrong number of arguments prints `Argumentos inválidos.`, a path that
does not exist prints `Caminho não encontrado`, and any other error on the
image prints `Erro: ` followed by the reason. The shell keeps running after
each of these.

## Using it from Python

```python
import io
from fat16fs.shell import Shell

out = io.StringIO()
shell = Shell("fat.part", out)
shell.init()
shell.mkdir("/docs")
shell.append("/docs", "hello")
print(shell.ls("/"))        # ['docs']
print(shell.read("/docs"))  # 'hello'
```

`ls` and `read` both print to the shell's output stream (standard output
when none is given) and return what they printed. `execute` runs one
command line and returns `False` for `exit`; `run` feeds it lines the way
the command does. `fat16fs.shell.base_name` returns the last component of a
path.

Lower down, `fat16fs.disk.FatImage` works on the image directly: `format`,
`load`, `save_fat`, `allocate_cluster`, `chain`, `release`, `clusters_of`,
`read_cluster`, `write_cluster`, `find_parent`, `resolve` and `lookup`.
`DirEntry`, `parse_directory`, `format_directory` and `free_entry_index`
handle the 32-byte directory entries, and `Attribute` names the two
attribute values. Errors raise `FatError`; a path that does not exist
raises `PathNotFound`, a subclass of both `FatError` and `LookupError`.

## What it does not do

- There is no command to create a plain file: `mkdir` is the only way to
  add an entry, and `append` and `read` act on the cluster chain of an entry
  that already exists.
- Nothing is ever removed: there is no command to delete a file or a
  directory. `FatImage.release` frees a chain in the in-memory table, but
  no shell command uses it.
- The size field of a directory entry is not updated when text is appended.
- Each directory is a single cluster, so it holds at most 32 entries.