from __future__ import annotations

import importlib
import sys
import threading
import traceback
import types
import typing as t
from pathlib import Path

import pydantic as p

import gradeflow
import gradeflow.lib.cli as click
from gradeflow.core import BootConfiguration, GradeflowContainer
from gradeflow.model import DeploymentEnvironment

DefaultConfigRoot: t.Final[Path] = Path(gradeflow.__file__).resolve().parents[1] / "config"
Commands: t.Final[tuple[str, ...]] = ("catalog", "period", "schema", "user", "web")


class LazyCommands(click.Group):
    """Imports ``gradeflow.cli.<name>`` only when that command is invoked.

    Imported command modules are remembered so that the container can wire
    them once it has booted.
    """

    def __init__(self, *args: t.Any, **kwargs: t.Any):
        super().__init__(*args, **kwargs)
        self.loaded: list[types.ModuleType] = []

    def list_commands(self, ctx: click.Context) -> list[str]:
        return list(Commands)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        if cmd_name not in Commands:
            return None
        module = importlib.import_module(f"gradeflow.cli.{cmd_name}")
        self.loaded.append(module)
        return getattr(module, cmd_name)


@click.group(cls=LazyCommands)
@click.option("-E", "--env", default=DeploymentEnvironment.Local, type=click.EnumType(DeploymentEnvironment))
@click.option("-c", "--config-root", default=DefaultConfigRoot, type=click.DirectoryURLType())
@click.option("-o", "--override", multiple=True, help="override one setting, e.g. -o web.gradeflow.backend.port=9000")
@click.option("-D", "--debug", is_flag=True, default=False, help="log warnings and print tracebacks")
@click.pass_context
def main(
    ctx: click.Context,
    env: DeploymentEnvironment,
    config_root: p.FileUrl,
    override: tuple[str, ...],
    debug: bool,
):
    group = t.cast(LazyCommands, ctx.command)
    GradeflowContainer.boot(
        ctx.obj,
        debug=debug,
        env=env,
        config_root=config_root,
        override=override,
        wiring=tuple(group.loaded),
    )


def execute_command(*argv: str) -> t.NoReturn:
    threading.current_thread().name = "gradeflow-0"
    prog, *args = argv or sys.argv
    ct = GradeflowContainer()
    code = 0

    try:
        with main.make_context(Path(prog).name, args=list(args), obj=ct) as ctx:
            main.invoke(ctx)
    except (EOFError, KeyboardInterrupt, click.Abort):
        click.echo("Aborted!", err=True)
        code = 1
    except click.exceptions.Exit as e:
        code = e.exit_code
    except click.ClickException as e:
        e.show()
        code = e.exit_code
    except Exception as e:
        click.secho("ERROR ", fg="red", nl=False, err=True)
        click.echo(str(e), err=True)
        booted = isinstance(ct._boot_config(), BootConfiguration)
        if ct.debug() if booted else ("-D" in args or "--debug" in args):
            traceback.print_exc()
        code = 2
    finally:
        ct.shutdown_resources()
    sys.exit(code)


def run() -> None:
    """Console script entry point."""
    execute_command(*sys.argv)


if __name__ == "__main__":
    run()
