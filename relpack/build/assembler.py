"""
产物组装器

把编译好的二进制和静态资源目录复制进一个全新的暂存目录：

    <staging>/<product_name>   二进制（保留可执行权限）
    <staging>/ui/...           资源目录的完整递归副本（符号链接被实体化）

暂存目录是作用域资源：PackagingRoot 作为上下文管理器使用，
离开作用域时无论成功失败都会被删除。
"""

import os
import shutil
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from ..utils.logging import debug, get_stage_logger, info, success, LogStage
from ..utils.paths import format_size, get_temp_dir, is_safe_filename
from .errors import SourceNotFound, StagingFailure

ASSET_SUBDIR = "ui"
STAGING_PREFIX = "relpack_stage_"

cleanup_logger = get_stage_logger(LogStage.CLEANUP)


def _make_tree_writable(top: Path) -> None:
    """为目录树中的每个目录加上属主读写执行权限"""
    for dirpath, dirnames, _ in os.walk(top):
        for name in dirnames:
            child = os.path.join(dirpath, name)
            os.chmod(child, stat.S_IMODE(os.lstat(child).st_mode) | stat.S_IRWXU)


@dataclass
class PackagingRoot:
    """一次打包运行独占的暂存目录"""
    path: Path
    product_name: str
    _released: bool = field(default=False, repr=False)

    @property
    def binary_path(self) -> Path:
        return self.path / self.product_name

    @property
    def asset_dir(self) -> Path:
        return self.path / ASSET_SUBDIR

    @property
    def released(self) -> bool:
        return self._released

    def cleanup(self) -> None:
        """删除暂存目录（可重复调用）

        资源目录可能以只读权限复制进来，删除前先放开目录权限。
        删除失败时记录警告并保持未释放状态，之后可以再次调用。
        """
        if self._released:
            return
        try:
            _make_tree_writable(self.path)
            shutil.rmtree(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            cleanup_logger.warning(f"无法删除暂存目录 {self.path}: {e}")
            return
        self._released = True
        cleanup_logger.debug(f"已删除暂存目录: {self.path}")

    def __enter__(self) -> 'PackagingRoot':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()


class ArtifactAssembler:
    """产物组装器"""

    def __init__(self, staging_parent: Optional[Union[str, Path]] = None):
        """初始化组装器

        Args:
            staging_parent: 暂存目录的父目录，None 表示系统临时目录
        """
        self.staging_parent = Path(staging_parent) if staging_parent is not None else None

    def assemble(self, binary_path: Path, asset_dir: Path, product_name: str) -> PackagingRoot:
        """组装暂存目录

        Args:
            binary_path: 编译好的可执行文件
            asset_dir: 静态资源目录
            product_name: 二进制在归档中的名称

        Returns:
            PackagingRoot: 已填充的暂存目录

        Raises:
            SourceNotFound: 二进制或资源目录不存在
            StagingFailure: 暂存目录无法创建或填充（此时不会留下残留目录）
        """
        binary_path = Path(binary_path)
        asset_dir = Path(asset_dir)

        if not binary_path.is_file():
            raise SourceNotFound(f"二进制文件不存在: {binary_path}")
        if not asset_dir.is_dir():
            raise SourceNotFound(f"资源目录不存在: {asset_dir}")
        if not is_safe_filename(product_name):
            raise StagingFailure(f"产品名不能用作文件名: {product_name!r}")

        try:
            if self.staging_parent is not None:
                self.staging_parent.mkdir(parents=True, exist_ok=True)
            staging = get_temp_dir(prefix=STAGING_PREFIX, parent=self.staging_parent)
        except OSError as e:
            raise StagingFailure(f"无法创建暂存目录: {e}") from e

        root = PackagingRoot(path=staging, product_name=product_name)
        info(f"暂存目录: {staging}", stage=LogStage.STAGE)

        try:
            shutil.copy2(binary_path, root.binary_path)
            debug(f"二进制: {binary_path} -> {root.binary_path}", stage=LogStage.STAGE)

            # symlinks=False：链接被跟随并复制为普通文件/目录
            shutil.copytree(asset_dir, root.asset_dir, symlinks=False)
            debug(f"资源目录: {asset_dir} -> {root.asset_dir}", stage=LogStage.STAGE)
        except (OSError, shutil.Error) as e:
            root.cleanup()
            raise StagingFailure(f"填充暂存目录失败: {e}") from e
        except BaseException:
            root.cleanup()
            raise

        success(
            f"暂存完成 - 二进制 {format_size(root.binary_path.stat().st_size)}",
            stage=LogStage.STAGE,
        )
        return root


def assemble(
    binary_path: Path,
    asset_dir: Path,
    product_name: str,
    staging_parent: Optional[Path] = None,
) -> PackagingRoot:
    """便捷函数：组装暂存目录"""
    return ArtifactAssembler(staging_parent).assemble(binary_path, asset_dir, product_name)
