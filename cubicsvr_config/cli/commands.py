"""
CLI 命令模块 - cubicsvr-config 的所有命令行命令定义。

本模块使用 Typer 框架定义运维人员编辑 Cubicsvr 配置的命令：
- init：创建默认配置和资源目录
- show：打印配置（相对路径视图或绝对路径视图）
- paths：查看资源目录解析结果
- models：模型管理（列表、添加、删除）

文件约定：
- <资源根目录>/config.toml：相对路径视图，编辑和分享用
- <资源根目录>/cubicsvr.toml：绝对路径视图，服务进程读取

每次修改都会经过 save()：写出绝对路径视图，再把返回的相对路径视图写回 config.toml。

技术栈：
- Typer：CLI 框架（基于 Click，支持类型注解自动生成帮助文档）
- Rich：终端美化输出（表格、颜色）
"""

from dataclasses import dataclass

import typer
from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cubicsvr_config import __logo__, __version__
from cubicsvr_config.config.loader import (
    get_config_path,
    get_live_config_path,
    load_file,
    render,
    save,
    to_text,
)
from cubicsvr_config.config.schema import CubicsvrConfig, PathConfiguration
from cubicsvr_config.utils.helpers import ResourceRoots, resolve_roots, write_text_atomic

app = typer.Typer(
    name="cubicsvr-config",
    help=f"{__logo__} cubicsvr-config - Cubicsvr server configuration editor",
    no_args_is_help=True,
)

console = Console()


@dataclass
class _State:
    """根命令解析出的全局状态，通过 ctx.obj 传给子命令。"""
    path_configuration: PathConfiguration
    roots: ResourceRoots


def version_callback(value: bool):
    """版本号回调：打印版本号并退出。"""
    if value:
        console.print(f"{__logo__} cubicsvr-config v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
    logs: bool = typer.Option(False, "--logs/--no-logs", help="Show runtime logs"),
    resource_dir: str = typer.Option("Cubicsvr", "--resource-dir", help="Resource root under the documents directory"),
    license_dir: str = typer.Option("license", "--license-dir", help="License subdirectory"),
    models_dir: str = typer.Option("models", "--models-dir", help="Models subdirectory"),
):
    """cubicsvr-config CLI 根命令回调。解析路径配置并准备资源目录。"""
    if logs:
        logger.enable("cubicsvr_config")
    else:
        logger.disable("cubicsvr_config")

    try:
        path_configuration = PathConfiguration(
            resource_root=resource_dir,
            license_subdir=license_dir,
            models_subdir=models_dir,
        )
    except ValidationError as e:
        console.print(f"[red]Invalid path configuration: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    roots = resolve_roots(path_configuration)
    if roots is None:
        console.print("[red]Error: documents directory is unavailable.[/red]")
        console.print("Set CUBICSVR_DOCUMENTS_DIR to choose one explicitly")
        raise typer.Exit(1)

    ctx.obj = _State(path_configuration=path_configuration, roots=roots)


def _load(state: _State) -> CubicsvrConfig:
    """读取 config.toml 并注入当前路径配置。失败时退出。"""
    config_path = get_config_path(state.roots)
    if not config_path.exists():
        console.print("[yellow]No config found. Run [cyan]cubicsvr-config init[/cyan] first.[/yellow]")
        raise typer.Exit(1)

    config = load_file(config_path, state.path_configuration)
    if config is None:
        console.print(f"[red]Error: failed to parse {config_path}[/red]")
        raise typer.Exit(1)
    return config


def _persist(config: CubicsvrConfig, state: _State) -> None:
    """保存绝对路径视图，并把相对路径视图写回 config.toml。失败时退出。"""
    live_path = get_live_config_path(state.roots)
    relative_text = save(config, live_path)
    if relative_text is None:
        console.print(f"[red]Error: failed to save {live_path}[/red]")
        raise typer.Exit(1)

    config_path = get_config_path(state.roots)
    try:
        write_text_atomic(config_path, relative_text)
    except OSError as e:
        console.print(f"[red]Error: failed to write {config_path}: {escape(str(e))}[/red]")
        raise typer.Exit(1)


# ============================================================================
# Setup / Inspect
# ============================================================================


@app.command()
def init(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing config"),
):
    """
    创建默认配置。

    执行流程：
    1. 创建资源根目录、许可证目录和模型目录
    2. 写出 config.toml（相对路径）和 cubicsvr.toml（绝对路径）
    """
    state: _State = ctx.obj
    config_path = get_config_path(state.roots)

    if config_path.exists() and not force:
        console.print("[yellow]Config already exists[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Exit()

    config = CubicsvrConfig.create(state.path_configuration)
    _persist(config, state)

    console.print("[green]✓[/green] Created config.toml and cubicsvr.toml")
    console.print(f"\n{__logo__} cubicsvr config is ready!")
    console.print("\nNext steps:")
    console.print("  1. Put the license key into the license directory")
    console.print("  2. Add a model: [cyan]cubicsvr-config models add ID NAME PATH[/cyan]")


@app.command()
def show(
    ctx: typer.Context,
    absolute: bool = typer.Option(False, "--absolute", "-a", help="Show the resolved (live) view"),
    raw: bool = typer.Option(False, "--raw", help="Skip the section layout correction"),
):
    """打印当前配置的 TOML 文本。"""
    state: _State = ctx.obj
    config = _load(state)
    if absolute:
        config = config.with_absolute_paths(state.roots)

    text = to_text(config) if raw else render(config)
    if text is None:
        raise typer.Exit(1)
    typer.echo(text)


@app.command()
def paths(ctx: typer.Context):
    """显示资源目录的解析结果以及它们是否存在。"""
    state: _State = ctx.obj

    table = Table(title="Resource Directories")
    table.add_column("Directory", style="cyan")
    table.add_column("Exists", style="green")
    table.add_column("Path", style="yellow")

    for label, path in (
        ("Resource root", state.roots.resource_root),
        ("License", state.roots.license_dir),
        ("Models", state.roots.models_dir),
    ):
        table.add_row(label, "✓" if path.is_dir() else "✗", str(path))

    console.print(table)


# ============================================================================
# Model Commands
# ============================================================================


models_app = typer.Typer(help="Manage recognition models")
app.add_typer(models_app, name="models")


@models_app.command("list")
def models_list(ctx: typer.Context):
    """按优先级顺序列出所有模型。"""
    config = _load(ctx.obj)

    if not config.models:
        console.print("No models configured.")
        return

    table = Table(title="Models")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Model Config")
    table.add_column("Formatter Config")

    for model in config.models:
        table.add_row(
            model.id,
            model.name,
            model.model_config_path,
            model.formatter_config_path or "[dim]-[/dim]",
        )

    console.print(table)


@models_app.command("add")
def models_add(
    ctx: typer.Context,
    model_id: str = typer.Argument(..., help="Model ID"),
    name: str = typer.Argument(..., help="Display name"),
    path: str = typer.Argument(..., help="Model config path, relative to the models directory"),
    formatter: str = typer.Option(None, "--formatter", help="Formatter config path, relative to the models directory"),
):
    """在模型列表末尾添加一个模型。"""
    state: _State = ctx.obj
    config = _load(state)

    if config.get_model(model_id) is not None:
        console.print(f"[yellow]Warning: model '{model_id}' already exists, adding another entry[/yellow]")

    model = config.add_model(model_id, name, path)
    if formatter:
        model.formatter_config_path = formatter
    _persist(config, state)

    console.print(f"[green]✓[/green] Added model '{model_id}'")


@models_app.command("remove")
def models_remove(
    ctx: typer.Context,
    model_id: str = typer.Argument(..., help="Model ID"),
):
    """删除所有 ID 匹配的模型。"""
    state: _State = ctx.obj
    config = _load(state)

    before = len(config.models)
    config.remove_model(model_id)
    removed = before - len(config.models)

    if removed == 0:
        console.print(f"[yellow]No model with ID '{model_id}'[/yellow]")
        return

    _persist(config, state)
    console.print(f"[green]✓[/green] Removed {removed} model(s) with ID '{model_id}'")
