# layeredfs

A small virtual file system. It lets a program see several backing stores
(plain directories and zip archives) as one tree of files. Directories are
addressed by absolute, sandboxed paths such as `/images/player.png`.

## Installing

```
pip install layeredfs
```

## Backends

All backends derive from `layeredfs.vfs.VFS` and offer the same operations:
`open`, `create`, `append`, `open_options`, `mkdir`, `rm`, `rmrf`, `exists`,
`metadata`, `read_dir` and `to_path_buf`.

- `PhysicalFS(root, readonly)`: a directory on disk serves as the root. Paths
  must be absolute and may not contain `..`; `sanitize_path` checks this and
  turns such a path into one relative to the root, or returns `None`. The root
  directory is created the first time it is needed. A read-only `PhysicalFS`
  refuses `mkdir`, `rm`, `rmrf` and any open that would write, create, append
  or truncate. `read_dir` yields each entry as the given directory path joined
  with the entry's name.
- `ZipFS(filename)` or `ZipFS.from_read(reader)` (in `layeredfs.zipfs`): a zip
  archive, always read-only. Paths are the archive's member names as stored,
  for example `data/level1.txt`, with no leading `/`. A member's whole
  contents are read into memory when it is opened, and the returned
  `ZipFileWrapper` can be read and seeked but raises `FilesystemError` on
  `write`. Zip archives have no real directories: `read_dir(prefix)` lists
  every member whose name starts with `prefix`, and `metadata` always reports
  a file.
- `OverlayFS()`: joins other file systems, added with `push_back` or
  `push_front` and listed by `roots()`. Each operation is tried on each layer
  in turn and the first one that succeeds wins; `exists` is true if any layer
  has the path, and `read_dir` merges the entries of every layer that can list
  the directory.

`OpenOptions(read=..., write=..., create=..., append=..., truncate=...)`
describes how `open_options` opens a file. `Metadata` has `is_dir`, `is_file`
and `length`.

## Example

```python
from layeredfs.vfs import OverlayFS, PhysicalFS
from layeredfs.zipfs import ZipFS

fs = OverlayFS()
fs.push_back(PhysicalFS("saves", False))        # writable layer first
fs.push_back(PhysicalFS("resources", True))
fs.push_back(ZipFS("resources.zip"))

with fs.create("/settings.toml") as f:
    f.write(b"volume = 0.8\n")

with fs.open("/settings.toml") as f:
    print(f.read())

for entry in fs.read_dir("/"):
    print(entry, fs.metadata(entry).is_file)
```

## Errors

All failures raise a subclass of `layeredfs.errors.GameError`:

- `FilesystemError` for invalid paths, operating-system errors, attempts to
  change a read-only layer, and operations that no layer of an overlay could
  carry out.
- `ResourceNotFoundError` when `OverlayFS` cannot open a file. Its `path`
  attribute names the path and `tried` lists, for each layer, its location
  (or `<invalid path>` when the layer has none) together with the error that
  layer raised.

## Limits

Zip archives can only be read; nothing can be added to or removed from them.
The package has no command-line tool; it is used as a library.

## Tests

```
pip install -e .[test]
pytest
```