from __future__ import annotations

import json
import threading
from typing import TYPE_CHECKING, Any

from moodb import Client, NotFound

if TYPE_CHECKING:
    from pathlib import Path

WRITERS = 4
PER_WRITER = 50


def test_concurrent_writers_through_shared_handles(db_dir: Path) -> None:
    c: Client[Any] = Client.open("shared", dir=db_dir)
    errors: list[BaseException] = []

    def write(n: int) -> None:
        t = c.get_table()
        try:
            for i in range(PER_WRITER):
                t.insert(f"w{n}-{i}", i)
                if i % 5 == 0:
                    t.update(f"w{n}-{i}", -i)
        except BaseException as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=write, args=(n,)) for n in range(WRITERS)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()

    t = c.get_table()
    assert errors == []
    assert len(t) == WRITERS * PER_WRITER
    assert len(set(t.keys())) == WRITERS * PER_WRITER
    on_disk = json.loads(t.path.read_bytes())
    assert on_disk == [r.to_dict() for r in t.get_all()]
    c.close()

    with Client.open("shared", dir=db_dir) as reopened:
        assert reopened.get_table().get("w2-10") == -10


def test_readers_never_see_partial_bulk_insert(db_dir: Path) -> None:
    c: Client[Any] = Client.open("bulk", dir=db_dir)
    t = c.get_table()
    batch = 25
    rounds = 20
    stop = threading.Event()
    sizes: list[int] = []

    def read() -> None:
        while not stop.is_set():
            try:
                sizes.append(len(t.get_all()))
            except NotFound:
                sizes.append(0)

    reader = threading.Thread(target=read)
    reader.start()
    for r in range(rounds):
        t.insert_many([(f"r{r}-{i}", i) for i in range(batch)])
    stop.set()
    reader.join()
    c.close()

    assert all(size % batch == 0 for size in sizes)
