"""namedbin 命令行工具."""

import json
import pprint
import sys
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.syntax import Syntax
from rich.text import Text
from rich.tree import Tree

from .framing import FramedRecord
from .stream import RecordReader

# 流式读取配置
FILE_SIZE_THRESHOLD = 10 * 1024 * 1024  # 10MB
CHUNK_SIZE = 8 * 1024 * 1024  # 8MB


def _read_binary_file(file_path: Path, verbose: bool) -> bytes:
    """读取二进制文件,大文件使用分块以控制内存."""
    file_size = file_path.stat().st_size

    if file_size > FILE_SIZE_THRESHOLD:
        if verbose:
            click.echo(f"[DEBUG] 文件大小 {file_size} 字节,使用分块读取", err=True)

        chunks = []
        with open(file_path, "rb") as f:
            while chunk := f.read(CHUNK_SIZE):
                chunks.append(chunk)
        return b"".join(chunks)
    return file_path.read_bytes()


def _read_hex_file(file_path: Path) -> bytes:
    """读取并解析十六进制文本文件.

    Raises:
        ValueError: 如果文件内容不是有效的十六进制字符串.
    """
    hex_data = file_path.read_text(encoding="utf-8")
    cleaned = "".join(hex_data.split())
    if not all(c in "0123456789abcdefABCDEF" for c in cleaned):
        raise ValueError("不是有效的十六进制字符串")
    return bytes.fromhex(cleaned)


def _split_records(data: bytes) -> list[FramedRecord]:
    """将完整的数据切分为帧记录.

    Raises:
        click.ClickException: 数据末尾存在不完整的记录.
    """
    reader = RecordReader(max_buffer_size=max(len(data), 1))
    reader.feed(data)
    records = list(reader)
    if reader.pending:
        raise click.ClickException(f"数据不完整: 末尾剩余 {reader.pending} 字节")
    return records


def _record_to_dict(record: FramedRecord) -> dict[str, Any]:
    return {
        "name": record.name,
        "total_length": record.total_length,
        "payload_length": record.payload_length,
        "payload": record.payload.hex(),
    }


def _build_tree(records: list[FramedRecord]) -> Tree:
    """构建 Rich 树, 每条记录一个分支."""
    root = Tree("NamedBinary Stream", style="bold white")
    for i, record in enumerate(records):
        label = Text()
        label.append(f"[{i}] ", style="dim")
        label.append(record.name or "<unnamed>", style="bold blue")
        label.append(f" ({record.payload_length} bytes)", style="cyan")
        branch = root.add(label)
        branch.add(Text(record.payload.hex(" ").upper(), style="green"))
    return root


def _print_records(
    records: list[FramedRecord], output_format: str, output_file: str | None
) -> None:
    """按指定格式输出记录."""
    if output_format == "tree":
        tree = _build_tree(records)
        if output_file:
            with open(output_file, "w", encoding="utf-8") as f:
                Console(file=f).print(tree)
            click.echo(f"结果已保存到: {output_file}", err=True)
        else:
            Console().print(tree)
        return

    result = [_record_to_dict(r) for r in records]
    if output_format == "json":
        output_text = json.dumps(result, indent=2, ensure_ascii=False)
    else:
        output_text = pprint.pformat(result, width=100)

    if output_file:
        Path(output_file).write_text(output_text, encoding="utf-8")
        click.echo(f"结果已保存到: {output_file}", err=True)
        return

    console = Console()
    if output_format == "json":
        console.print(Syntax(output_text, "json", theme="monokai", word_wrap=True))
    else:
        console.print(result)


@click.command(help="带名称二进制流查看工具")
@click.argument("encoded", required=False)
@click.option(
    "-f",
    "--file",
    "file_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="从文件读取数据 (十六进制文本或二进制)",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["pretty", "json", "tree"]),
    default="pretty",
    show_default=True,
    help="输出格式",
)
@click.option(
    "-o",
    "--output",
    "output_file",
    type=click.Path(dir_okay=False, writable=True),
    help="将输出保存到文件 (如不指定则输出到控制台)",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="显示详细的解析过程信息",
)
def cli(
    encoded: str | None,
    file_path: Path | None,
    output_format: str,
    output_file: str | None,
    verbose: bool,
) -> None:
    """带名称二进制流查看工具.

    Examples:
      # 直接解析十六进制数据
      namedbin "0d00000000000000..."

      # 从文件读取数据并以 JSON 输出
      namedbin -f stream.bin --format json
    """
    if encoded and file_path:
        raise click.UsageError("不能同时指定 ENCODED 数据和 --file 参数")
    if not encoded and not file_path:
        raise click.UsageError("必须指定 ENCODED 数据或 --file 参数")

    if file_path:
        try:
            data = _read_hex_file(file_path)
            if verbose:
                click.echo("[DEBUG] 从文件读取十六进制数据 (文本模式)", err=True)
        except (UnicodeDecodeError, ValueError):
            data = _read_binary_file(file_path, verbose)
            if verbose:
                click.echo("[DEBUG] 从文件读取二进制数据 (二进制模式)", err=True)
    else:
        assert encoded is not None
        try:
            data = bytes.fromhex(encoded)
        except ValueError as e:
            raise click.BadParameter(f"无效的十六进制格式 - {e}") from e

    if verbose:
        click.echo(f"[DEBUG] 数据大小: {len(data)} 字节", err=True)

    try:
        records = _split_records(data)
    except click.ClickException:
        raise
    except Exception as e:
        if verbose:
            import traceback

            traceback.print_exc(file=sys.stderr)
        raise click.ClickException(f"解析失败: {e}") from e

    if verbose:
        click.echo(f"[DEBUG] 记录数: {len(records)}", err=True)

    _print_records(records, output_format, output_file)


def main() -> None:
    """入口函数."""
    cli()


if __name__ == "__main__":
    main()
