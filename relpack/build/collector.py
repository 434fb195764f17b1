"""
文件收集器

扫描暂存目录，生成按相对路径排序的条目列表，作为归档的输入。
排序保证同样的目录树总是产生同样顺序的归档条目。
"""

import stat
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterator, List


@dataclass
class FileInfo:
    """文件信息"""
    path: Path  # 绝对路径
    relative_path: PurePosixPath  # 相对于暂存根目录的路径
    size: int  # 文件大小（字节），目录为 0
    mtime: float  # 修改时间（时间戳）
    mode: int = 0o644  # 权限位
    is_directory: bool = False

    @property
    def is_executable(self) -> bool:
        return bool(self.mode & stat.S_IXUSR)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        return {
            'path': self.relative_path.as_posix(),
            'size': self.size,
            'mtime': self.mtime,
            'mode': oct(self.mode),
            'is_directory': self.is_directory,
        }


class FileCollector:
    """文件收集器

    暂存目录中的符号链接已被实体化，这里遇到链接或特殊文件直接报错，
    不静默跳过。
    """

    def __init__(self):
        self.collected_files: List[FileInfo] = []
        self.total_size: int = 0

    def collect_tree(self, root: Path) -> List[FileInfo]:
        """收集目录树下的全部文件和目录（不含根目录本身）

        Args:
            root: 暂存根目录

        Returns:
            List[FileInfo]: 按相对路径排序的条目列表

        Raises:
            FileNotFoundError: 根目录不存在
            ValueError: 遇到符号链接或特殊文件
            OSError: 无法访问条目
        """
        root = Path(root)
        if not root.is_dir():
            raise FileNotFoundError(f"暂存目录不存在: {root}")

        self.collected_files = []
        self.total_size = 0

        for item in self._walk_directory(root):
            file_info = self._create_file_info(item, root)
            self.collected_files.append(file_info)
            if not file_info.is_directory:
                self.total_size += file_info.size

        # 父目录总是排在子项之前
        self.collected_files.sort(key=lambda f: f.relative_path.parts)
        return self.collected_files

    def get_statistics(self) -> Dict[str, Any]:
        """获取收集统计信息"""
        file_count = sum(1 for f in self.collected_files if not f.is_directory)
        dir_count = sum(1 for f in self.collected_files if f.is_directory)

        return {
            'total_files': file_count,
            'total_directories': dir_count,
            'total_items': len(self.collected_files),
            'total_size': self.total_size,
        }

    def _walk_directory(self, directory: Path) -> Iterator[Path]:
        """递归遍历目录，不跟随链接"""
        for item in sorted(directory.iterdir()):
            yield item
            if item.is_dir() and not item.is_symlink():
                yield from self._walk_directory(item)

    def _create_file_info(self, file_path: Path, root: Path) -> FileInfo:
        st = file_path.lstat()

        if stat.S_ISLNK(st.st_mode):
            raise ValueError(f"暂存目录中不应包含符号链接: {file_path}")
        if not (stat.S_ISREG(st.st_mode) or stat.S_ISDIR(st.st_mode)):
            raise ValueError(f"不支持的文件类型: {file_path}")

        is_directory = stat.S_ISDIR(st.st_mode)
        return FileInfo(
            path=file_path.resolve(),
            relative_path=PurePosixPath(file_path.relative_to(root).as_posix()),
            size=0 if is_directory else st.st_size,
            mtime=st.st_mtime,
            mode=stat.S_IMODE(st.st_mode),
            is_directory=is_directory,
        )


def collect_tree(root: Path) -> List[FileInfo]:
    """便捷函数：收集目录树"""
    return FileCollector().collect_tree(root)
