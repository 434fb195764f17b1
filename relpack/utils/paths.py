"""
路径工具

提供路径处理相关的工具函数。
"""

import tempfile
from pathlib import Path
from typing import Optional, Union

# 在文件名中不安全的字符（路径分隔符 + Windows 非法字符）
UNSAFE_FILENAME_CHARS = '<>:"/\\|?*'


def get_temp_dir(prefix: str = "relpack_", parent: Optional[Union[str, Path]] = None) -> Path:
    """创建一个全新的、唯一命名的临时目录

    Args:
        prefix: 目录前缀
        parent: 父目录，None 表示系统临时目录

    Returns:
        Path: 临时目录路径
    """
    return Path(tempfile.mkdtemp(prefix=prefix, dir=str(parent) if parent is not None else None))


def format_size(size_bytes: int) -> str:
    """格式化文件大小

    Args:
        size_bytes: 字节数

    Returns:
        str: 格式化的大小字符串
    """
    if size_bytes == 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB"]
    unit_index = 0
    size = float(size_bytes)

    while size >= 1024.0 and unit_index < len(units) - 1:
        size /= 1024.0
        unit_index += 1

    if unit_index == 0:
        return f"{int(size)} {units[unit_index]}"
    return f"{size:.1f} {units[unit_index]}"


def is_safe_filename(filename: str) -> bool:
    """检查字符串能否安全地作为单个文件名组成部分

    拒绝：空串、仅空白、"." / ".."、路径分隔符及其它非法字符、
    任何空白或控制字符、超长名称。

    Args:
        filename: 文件名

    Returns:
        bool: 是否安全
    """
    if not filename or not filename.strip():
        return False

    if filename in (".", ".."):
        return False

    if any(char in UNSAFE_FILENAME_CHARS for char in filename):
        return False

    # 空白与控制字符
    if any(char.isspace() or ord(char) < 32 or ord(char) == 127 for char in filename):
        return False

    if len(filename) > 255:
        return False

    return True
