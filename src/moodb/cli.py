"""moodb CLI: inspect and edit table files from the shell.

Commands:
    moodb init                  create moodb.toml + the table directory
    moodb tables                list tables in the directory
    moodb show TABLE            dump a table's records
    moodb get TABLE KEY         print one value as JSON
    moodb put TABLE KEY VALUE   insert (or --update) a value; VALUE is JSON or a plain string
    moodb delete TABLE KEY...   delete one or more keys
    moodb reset TABLE           remove all records, keep the file
    moodb drop TABLE            remove the table file
"""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import Any

import click

from moodb.client import Client
from moodb.codec import JsonCodec
from moodb.config import Configuration, init_config, load_config
from moodb.errors import MooError, NotFound
from moodb.table import table_path

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_cfg(db_dir: str | None) -> Configuration:
    try:
        cfg = load_config()
    except Exception as exc:
        raise click.ClickException(str(exc)) from exc
    if db_dir:
        cfg = replace(cfg, db_dir=db_dir)
    return cfg


def _open(cfg: Configuration, name: str, *, must_exist: bool = True) -> Client[Any]:
    try:
        path = table_path(cfg.db_dir, name, JsonCodec.extension)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    if must_exist and not path.exists():
        msg = f"No such table: {name} ({path})"
        raise click.ClickException(msg)
    try:
        return Client.open(name, config=cfg)
    except MooError as exc:
        raise click.ClickException(exc.message) from exc


def _parse_value(raw: str) -> Any:
    """JSON if it parses, otherwise the raw string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="moodb")
@click.option("--db-dir", default=None, help="Table directory (overrides moodb.toml)")
@click.pass_context
def cli(ctx: click.Context, db_dir: str | None) -> None:
    """moodb: embedded key-value tables backed by JSON files."""
    ctx.obj = db_dir


# ---------------------------------------------------------------------------
# moodb init
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--dir", "root", default=".", show_default=True, help="Project root")
@click.pass_obj
def init(db_dir: str | None, root: str) -> None:
    """Create moodb.toml and the table directory."""
    root_path = Path(root).resolve()
    try:
        config_path = init_config(root_path, db_dir=db_dir or "db/moo")
        click.echo(f"Created {config_path}")
    except FileExistsError:
        click.echo("moodb.toml already exists, skipping init")

    cfg = load_config(root_path)
    Path(cfg.db_dir).mkdir(parents=True, exist_ok=True)
    click.echo(f"Table dir : {cfg.db_dir}")


# ---------------------------------------------------------------------------
# moodb tables / show / get
# ---------------------------------------------------------------------------


@cli.command()
@click.pass_obj
def tables(db_dir: str | None) -> None:
    """List tables in the table directory."""
    cfg = _load_cfg(db_dir)
    directory = Path(cfg.db_dir)
    names = sorted(p.stem for p in directory.glob(f"*.{JsonCodec.extension}")) if directory.is_dir() else []
    if not names:
        click.echo(f"No tables in {directory}")
        return
    for name in names:
        click.echo(name)


@cli.command()
@click.argument("table")
@click.pass_obj
def show(db_dir: str | None, table: str) -> None:
    """Dump a table's records in storage order."""
    from rich.console import Console
    from rich.markup import escape
    from rich.table import Table

    cfg = _load_cfg(db_dir)
    with _open(cfg, table) as client:
        try:
            records = client.get_table().get_all()
        except NotFound:
            click.echo(f"{table}: no records")
            return

    out = Table(title=f"{table} ({len(records)} records)", show_header=True, header_style="bold")
    out.add_column("Key", style="dim", no_wrap=True)
    out.add_column("Value")
    for r in records:
        out.add_row(escape(r.key), escape(_dumps(r.value)))
    Console().print(out)


@cli.command()
@click.argument("table")
@click.argument("key")
@click.pass_obj
def get(db_dir: str | None, table: str, key: str) -> None:
    """Print the value stored under KEY as JSON."""
    cfg = _load_cfg(db_dir)
    with _open(cfg, table) as client:
        try:
            value = client.get_table().get(key)
        except MooError as exc:
            raise click.ClickException(exc.message) from exc
    click.echo(_dumps(value))


# ---------------------------------------------------------------------------
# moodb put / delete
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("table")
@click.argument("key")
@click.argument("value")
@click.option("--update", "is_update", is_flag=True, help="Replace an existing value instead of inserting")
@click.pass_obj
def put(db_dir: str | None, table: str, key: str, value: str, is_update: bool) -> None:
    """Insert VALUE under KEY (creates the table if needed)."""
    cfg = _load_cfg(db_dir)
    parsed = _parse_value(value)
    with _open(cfg, table, must_exist=is_update) as client:
        t = client.get_table()
        try:
            if is_update:
                t.update(key, parsed)
            else:
                t.insert(key, parsed)
        except MooError as exc:
            raise click.ClickException(exc.message) from exc
    click.echo(f"{'Updated' if is_update else 'Inserted'} {key}")


@cli.command()
@click.argument("table")
@click.argument("keys", nargs=-1, required=True)
@click.pass_obj
def delete(db_dir: str | None, table: str, keys: tuple[str, ...]) -> None:
    """Delete one or more KEYS."""
    cfg = _load_cfg(db_dir)
    with _open(cfg, table) as client:
        t = client.get_table()
        try:
            if len(keys) == 1:
                t.delete(keys[0])
            else:
                t.delete_many(keys)
        except MooError as exc:
            raise click.ClickException(exc.message) from exc
        remaining = len(t)
    click.echo(f"Deleted {', '.join(keys)} ({remaining} records left)")


# ---------------------------------------------------------------------------
# moodb reset / drop
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("table")
@click.pass_obj
def reset(db_dir: str | None, table: str) -> None:
    """Remove all records; the table file stays (0 bytes)."""
    cfg = _load_cfg(db_dir)
    with _open(cfg, table) as client:
        try:
            client.reset_table()
        except MooError as exc:
            raise click.ClickException(exc.message) from exc
    click.echo(f"Reset {table}")


@cli.command()
@click.argument("table")
@click.confirmation_option(prompt="Delete the table file?")
@click.pass_obj
def drop(db_dir: str | None, table: str) -> None:
    """Delete the table file."""
    cfg = _load_cfg(db_dir)
    with _open(cfg, table) as client:
        try:
            client.delete_table()
        except MooError as exc:
            raise click.ClickException(exc.message) from exc
    click.echo(f"Dropped {table}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    cli(standalone_mode=True)


if __name__ == "__main__":
    main()
