#!/usr/bin/env python3
"""
DataWallet 存储命令行入口

使用方法:
    python main.py providers                      # 查看已配置的存储提供商
    python main.py upload ./data.json             # 上传到默认提供商
    python main.py upload ./data.json -p pinata   # 上传到指定提供商
    python main.py download <url> -o ./out.json   # 下载
    python main.py list --pattern .json           # 列出文件
    python main.py delete <url>                   # 删除
    python main.py serve                          # 启动存储服务端代理
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
import uvicorn
from loguru import logger

from config.settings import DEFAULT_HOST, DEFAULT_PORT
from core.storage import ListOptions, StorageError, build_storage_manager
from utils.logger import setup_logger

app = typer.Typer(help="DataWallet 多提供商存储工具")


@app.callback()
def init(verbose: bool = typer.Option(False, "--verbose", "-v", help="输出调试日志")):
    """初始化日志"""
    setup_logger(level="DEBUG" if verbose else "INFO")


def _run(coro):
    """执行存储操作，StorageError 转换为非零退出码"""
    try:
        return asyncio.run(coro)
    except StorageError as e:
        typer.secho(f"❌ [{e.provider}] {e.code}: {e.message}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


@app.command()
def providers():
    """列出已配置的存储提供商"""
    manager = build_storage_manager()
    default = manager.get_default_provider()
    names = manager.list_providers()
    if not names:
        typer.echo("未配置任何存储提供商")
        raise typer.Exit(code=1)

    for name, config in manager.get_provider_configs().items():
        marker = "*" if name == default else " "
        features = ",".join(op for op, enabled in config.features.model_dump().items() if enabled)
        typer.echo(f"{marker} {name:<14} {config.name:<20} [{features}]")


@app.command()
def upload(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="要上传的文件"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="上传后的文件名，默认使用本地文件名"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="存储提供商名称"),
):
    """上传文件"""
    manager = build_storage_manager()
    data = path.read_bytes()
    result = _run(manager.upload(data, name or path.name, provider))
    logger.info(f"上传完成: {result.url} ({result.size} bytes)")
    typer.echo(result.url)


@app.command()
def download(
    locator: str = typer.Argument(..., help="上传时返回的 URL 或标识符"),
    output: Path = typer.Option(..., "--output", "-o", help="保存路径"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="存储提供商名称"),
):
    """下载文件"""
    manager = build_storage_manager()
    data = _run(manager.download(locator, provider))
    output.write_bytes(data)
    typer.echo(f"{output} ({len(data)} bytes)")


@app.command("list")
def list_files(
    pattern: Optional[str] = typer.Option(None, "--pattern", help="文件名过滤"),
    limit: Optional[int] = typer.Option(None, "--limit", min=1, help="最多返回数量"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="存储提供商名称"),
):
    """列出文件"""
    manager = build_storage_manager()
    files = _run(manager.list(ListOptions(name_pattern=pattern, limit=limit), provider))
    for f in files:
        typer.echo(f"{f.name}\t{f.size}\t{f.created_at.isoformat()}\t{f.url}")


@app.command()
def delete(
    locator: str = typer.Argument(..., help="要删除的 URL 或标识符"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="存储提供商名称"),
):
    """删除文件"""
    manager = build_storage_manager()
    deleted = _run(manager.delete(locator, provider))
    typer.echo("deleted" if deleted else "not deleted")


@app.command()
def serve(
    host: str = typer.Option(DEFAULT_HOST, help="API服务器主机"),
    port: int = typer.Option(DEFAULT_PORT, help="API服务器端口")
):
    """启动存储服务端代理"""
    from api.server import create_app

    logger.info(f"🌐 启动存储API服务器: http://{host}:{port}")
    uvicorn.run(create_app(), host=host, port=port, log_level="info")


if __name__ == "__main__":
    app()
