"""
cubicsvr_config 模块入口点 - 支持通过 `python -m cubicsvr_config` 方式启动

启动链路：
    python -m cubicsvr_config → __main__.py → cli/commands.py 中的 Typer app
"""

from cubicsvr_config.cli.commands import app

if __name__ == "__main__":
    app()
