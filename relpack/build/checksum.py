"""
哈希工具

计算归档文件的完整性哈希，用于运行结果报告和 inspect 命令。
"""

import hashlib
from pathlib import Path


def hash_file(file_path: Path, chunk_size: int = 64 * 1024) -> str:
    """分块计算文件的 SHA-256

    Raises:
        OSError: 文件读取失败
    """
    hasher = hashlib.sha256()
    with open(file_path, 'rb') as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            hasher.update(chunk)
    return hasher.hexdigest()


def calculate_archive_hash(archive_path: Path) -> str:
    """计算归档文件的 SHA-256"""
    return hash_file(archive_path)
