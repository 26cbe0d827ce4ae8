# ttrunksdb

A small key-value database built on a log-structured merge tree.

Each write goes first to a write-ahead log and then into an in-memory table
held in a red-black tree. When that table reaches its threshold, it is flushed
to an SSTable file on disk. Each SSTable has a Bloom filter and a sparse index.
The Bloom filter lets a read skip the tables that cannot hold a key. Clients
reach the database over TCP with newline-delimited JSON requests.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Configuration

`ttrunksdb.storage.LSMTStorage` needs the environment variable
`TTRUNKSDB_DATA_DIR` to be set. Without it, the constructor raises
`RuntimeError`, even when an `output_dir` is passed. Files go to `output_dir`
if it is given, and to the directory in `TTRUNKSDB_DATA_DIR` if it is not.

The server, the shell and the data generator each read a `.env` file from the
current directory when they start. If that file is missing they print
`Error loading .env file` and exit with status 1. A minimal `.env` file:

```
TTRUNKSDB_DATA_DIR=./data
```

Inside the data directory the engine writes:

- `wal/wal.log`: the write-ahead log, one `key:value` line per write. Any
  earlier log at this path is truncated when the engine is opened.
- `sstables/level_0/NNNN.bin`: flushed SSTables, numbered from `0001`.

Values may be at most 1 KiB (1024 bytes). A larger value raises `ValueError`.

## Commands

### `ttrunksdb-server`

Starts the database server on port 8080, on all interfaces.

```
ttrunksdb-server [--debug] [--log-level debug|info|warn|error]
```

Log lines go to standard output as `time=... level=... msg=... key=value`. An
unknown level name falls back to `info`, and `--debug` forces `debug`.

### `ttrunksdb-cli`

An interactive shell for a running server (default `localhost:8080`):

```
ttrunksdb-cli [--server HOST:PORT]
```

| Command               | Short          | Meaning                            |
|-----------------------|----------------|------------------------------------|
| `read <key>`          | `r`            | Read the value stored for a key    |
| `write <key> <value>` | `w`            | Store a value (may contain spaces) |
| `list`                | `l`            | List all key-value pairs           |
| `help`                | `h`            | Show the command summary           |
| `quit`                | `q`, `exit`    | Leave the shell                    |

The screen keeps the last 20 output lines. Ctrl+C or end of input also leaves
the shell.

### `ttrunksdb-datagen`

Writes random records to a running server. Each key is a random word. Each
value is a random sentence of 0 to 14 words.

```
ttrunksdb-datagen [-n COUNT] [-size BYTES] [-server HOST:PORT]
```

- `-n` sets the number of records (default 1000).
- `-server` sets the server address (default `localhost:8080`).
- `-size` is accepted (default 64) but does not affect the generated sentences.

The command prints progress every 1000 records and reports the write rate at
the end. It checks for the `.env` file before reading its options, so even
`--help` needs that file to be present.

### `ttrunksdb-debug`

Decodes binary SSTables and writes a readable `.txt` dump next to each `.bin`
file.

```
ttrunksdb-debug [DIRECTORY]
```

It searches `DIRECTORY` recursively for `.bin` files and shows the progress of
the conversion. `DIRECTORY` defaults to `./data/sstables/level_0`. The exit
status is 1 if the directory is missing or any file fails to convert.

## Using the library

Using the storage engine directly:

```python
import os
from ttrunksdb.storage import LSMTStorage, KeyNotFoundError

os.environ.setdefault("TTRUNKSDB_DATA_DIR", "./data")

with LSMTStorage(output_dir="./data", memtable_threshold=1000,
                 sstable_bloom_filter_size=10000) as db:
    db.write("apple", b"red")
    db.write("banana", b"yellow")

    print(db.read("apple"))          # b'red'

    for key, value in db.items():
        print(key, value)

    try:
        db.read("cherry")
    except KeyNotFoundError as exc:
        print(exc)                   # sstable not found: cherry
```

A read looks in the in-memory table first. If the key is not there, the read
goes to the newest level-0 SSTable whose Bloom filter may contain the key.
`items()` yields the in-memory entries in key order first. It then yields the
entries of each SSTable, skipping keys that the in-memory table already holds.
`compact(key)` returns the newest value of `key` found in any SSTable, or
`None`.

A client for a running server:

```python
from ttrunksdb.client import DBClient, ClientError

with DBClient("localhost:8080") as client:
    client.write("apple", b"red")
    print(client.read("apple"))  # b'red'
    print(client.list())         # "apple=red"
```

Server-side failures, such as an unknown key, raise `ClientError` with the
server's message. The client connects on first use if it is not already
connected. It reconnects once if sending a request fails.

The building blocks can also be used on their own:

- `ttrunksdb.bloom.BloomFilter`: three FNV-1a based hashes, with a `'0'/'1'`
  string form.
- `ttrunksdb.rbtree.RBTree`: a red-black tree with in-order iteration.
- `ttrunksdb.sparse_index.SparseIndex`: a key-to-offset map, with a
  `key:offset,...` string form.
- `ttrunksdb.memtable.RBMemTable`, including `from_kv_pairs("a:1,b:2")`.
- `ttrunksdb.wal.WAL`.
- `ttrunksdb.sstable.SSTableManager` and `SSTable`.
- The SSTable encodings in `ttrunksdb.serializer`: `BinarySSTableSerializer`,
  `BinarySSTableDeserializer` and the text `StandardSSTableSerializer`.
  Malformed binary data raises `SerializationError`.
- `ttrunksdb.protocol.Request` and `Response`.
- `ttrunksdb.server.Server`, whose `process_request` and `handle_line` can be
  called without a socket.
- `ttrunksdb.logger.get_logger` and `init_logger`.

## Wire protocol

Every request and every response is one JSON object on its own line:

```
{"operation":"SET","key":"apple","value":"red"}
{"success":true}
{"operation":"GET","key":"apple"}
{"success":true,"data":"red"}
{"operation":"LIST","key":""}
{"success":true,"data":"apple=red"}
```

Operation names are not case-sensitive. The server skips blank lines. A
failure comes back as `{"success":false,"error":"..."}`:

- a line that is not a JSON object gets the error `Invalid JSON`;
- an unknown operation gets `Unsupported operation: <name>`;
- `GET` or `SET` without a key gets `Key required for ... operation`.

## Limitations

- Data is not recovered after a restart. Existing SSTable files are not loaded
  when the engine opens, and the write-ahead log is truncated rather than
  replayed.
- Deletion is not supported, and every record is written with its tombstone
  flag cleared.
- SSTables are never merged or moved beyond level 0. `compact` only looks up a
  value.
- A read only checks the newest SSTable that may hold the key. A Bloom-filter
  false positive can therefore make a key stored in an older table unreadable.
  `items()` may also list the same key once for each table that holds it.