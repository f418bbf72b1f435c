from __future__ import annotations

import argparse
import os
import shlex
import subprocess
import sys
from typing import Any

import typer
from dotenv import find_dotenv, load_dotenv
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .. import __version__
from ..cli_shared import (
    Environment,
    GlobalOpts,
    OpError,
    UsageError,
    _eprint,
    _validate_list_name,
)
from ..list_store import ItemList
from ..roll import RichRollSink, animate_roll


_OUT = Console(highlight=False)
_ERROR_CONSOLE = Console(stderr=True, highlight=False)


def _rich_error(msg: str) -> None:
    _ERROR_CONSOLE.print(f"[bold red]error:[/bold red] {escape(msg)}")


def _bootstrap_env() -> None:
    # Discover .env from the working directory without overriding
    # already-exported process environment values.
    load_dotenv(find_dotenv(usecwd=True))


def _render_usage_error_with_help(*, message: str, ctx: typer.Context) -> None:
    _rich_error(message)
    help_text = str(ctx.get_help() or "").strip()
    if help_text:
        _eprint("")
        _eprint(help_text)


def _namespace(**kwargs: Any) -> argparse.Namespace:
    return argparse.Namespace(**kwargs)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"marbles {__version__}")
        raise typer.Exit(code=0)


def _global_opts(*, list_name: str | None, quiet: bool, env: Environment | None = None) -> GlobalOpts:
    env = env or Environment.from_process()
    name = _validate_list_name(list_name if list_name is not None else env.default_list_name())
    return GlobalOpts(list_name=name, quiet=quiet, env=env)


def _load_list(g: GlobalOpts) -> ItemList:
    data_dir = g.env.data_dir()
    fresh = not data_dir.exists()
    lst = ItemList.load(g.list_name, env=g.env)
    if fresh and not g.quiet:
        _eprint(f"created data directory: {data_dir}")
    return lst


def _animation_enabled(args: argparse.Namespace) -> bool:
    return not args.no_animation and _OUT.is_terminal


def cmd_add(args: argparse.Namespace, g: GlobalOpts) -> int:
    lst = _load_list(g)
    _OUT.print(
        f"Added [underline]{escape(args.name)}[/underline] to "
        f"[bold green]{escape(g.list_name)}[/bold green]"
    )
    lst.add(args.name)
    lst.save()
    return 0


def cmd_remove(args: argparse.Namespace, g: GlobalOpts) -> int:
    lst = _load_list(g)
    _OUT.print(
        f"Removing [underline]{escape(args.name)}[/underline] from "
        f"[bold green]{escape(g.list_name)}[/bold green]"
    )
    if not lst.remove(args.name):
        _OUT.print(f"[bold red]error:[/bold red] [underline]{escape(args.name)}[/underline] was not in list")
    lst.save()
    return 0


def _list_table(items: list[str]) -> Table:
    table = Table(box=box.SQUARE, show_lines=True)
    table.add_column("#")
    table.add_column("Title")
    for i, item in enumerate(items, start=1):
        table.add_row(str(i), escape(item))
    return table


def cmd_list(args: argparse.Namespace, g: GlobalOpts) -> int:
    del args
    lst = _load_list(g)
    _OUT.print(_list_table(lst.sorted_items()))
    lst.save()
    return 0


def cmd_roll(args: argparse.Namespace, g: GlobalOpts) -> int:
    lst = _load_list(g)
    _OUT.print(f"Rolling a marble for [bold]1[/bold] of [bold]{len(lst)}[/bold] choices")

    before = lst.sorted_items()
    choice = lst.take_random()
    if choice is None:
        _OUT.print(
            "[bold red]error:[/bold red] No marbles. You can add some with\n"
            "    [bold]marbles add <NAME>[/bold]"
        )
        return 0

    if _animation_enabled(args):
        animate_roll(before, choice, sink=RichRollSink(_OUT))

    _OUT.print(f"  rolled: [bold green reverse]{escape(choice)}[/bold green reverse]")
    lst.save()
    return 0


def _editor_argv(editor: str, path: str) -> list[str]:
    parts = shlex.split(editor, posix=os.name != "nt")
    if not parts:
        raise ValueError("empty editor command")
    return parts + [path]


def cmd_edit(args: argparse.Namespace, g: GlobalOpts) -> int:
    del args
    lst = _load_list(g)
    try:
        lst.path.touch(exist_ok=True)
    except OSError as e:
        raise OpError(f"failed to create list file {lst.path}: {e}") from e

    editor = g.env.editor()
    try:
        child = subprocess.Popen(_editor_argv(editor, str(lst.path)))
    except (OSError, ValueError) as e:
        _OUT.print("[bold red]error:[/bold red] Could not open EDITOR")
        if not g.quiet:
            _eprint(f"editor command {editor!r} failed: {e}")
        return 0

    # Edits go straight to disk; the in-memory list is not saved back.
    child.wait()
    return 0


app = typer.Typer(
    name="marbles",
    help="Keep lists of things and roll a random marble from them.",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def app_callback(
    ctx: typer.Context,
    list_name: str | None = typer.Option(
        None,
        "--list",
        "-l",
        help="Operate on a list with the given name (default: env MARBLES_LIST or default_list)",
    ),
    quiet: bool = typer.Option(False, "--quiet", help="Reduce stderr logging"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    del version
    try:
        g = _global_opts(list_name=list_name, quiet=quiet)
    except UsageError as e:
        _render_usage_error_with_help(message=str(e), ctx=ctx)
        raise typer.Exit(code=2)
    ctx.obj = {"g": g}


def _invoke(ctx: typer.Context, func: Any, **kwargs: Any) -> None:
    # app_callback always runs first and stores the options.
    g: GlobalOpts = ctx.obj["g"]
    args = _namespace(**kwargs)
    try:
        code = int(func(args, g))
    except OpError as e:
        _rich_error(str(e))
        raise typer.Exit(code=1)

    if code:
        raise typer.Exit(code=code)


def _invoke_from_locals(
    ctx: typer.Context,
    func: Any,
    local_vars: dict[str, Any],
    *,
    drop: tuple[str, ...] = ("ctx",),
) -> None:
    _invoke(ctx, func, **{k: v for k, v in local_vars.items() if k not in drop})


@app.command("add", help="Adds an item to the list.")
def add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Item to add"),
) -> None:
    _invoke_from_locals(ctx, cmd_add, locals())


@app.command("remove", help="Removes an item from the list.")
def remove(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Item to remove"),
) -> None:
    _invoke_from_locals(ctx, cmd_remove, locals())


@app.command("list", help="Shows items in the list.")
def list_items(ctx: typer.Context) -> None:
    _invoke_from_locals(ctx, cmd_list, locals())


@app.command("roll", help="Rolls a random marble from the list, removing it.")
def roll(
    ctx: typer.Context,
    no_animation: bool = typer.Option(
        False,
        "--no-animation",
        help="Skip the shuffle animation and print the result right away",
    ),
) -> None:
    _invoke_from_locals(ctx, cmd_roll, locals())


@app.command("edit", help="Edits the list file with $EDITOR.")
def edit(ctx: typer.Context) -> None:
    _invoke_from_locals(ctx, cmd_edit, locals())


def _run_cli(*, root_app: typer.Typer, prog_name: str, argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    _bootstrap_env()
    # Standalone mode lets Typer render its own usage errors (exit 2) with
    # whichever click it is built on; every path ends in SystemExit.
    try:
        root_app(args=argv, prog_name=prog_name)
    except SystemExit as e:
        if e.code is None:
            return 0
        if isinstance(e.code, int):
            return e.code
        _rich_error(str(e.code))
        return 1
    return 0
