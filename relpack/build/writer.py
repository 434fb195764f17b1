"""
归档写入器

把暂存目录序列化为单个压缩归档：先写入输出目录中的临时文件，
fsync 后再原子地移动到最终文件名，因此最终文件名下永远不会出现
写了一半的文件。暂存目录在本次调用结束时总会被删除。
"""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..utils.logging import debug, info, success, LogStage
from ..utils.paths import format_size
from .assembler import PackagingRoot
from .checksum import calculate_archive_hash
from .collector import FileCollector
from .compressor import CompressionError, Compressor, ProgressCallback, TarGzCompressor
from .errors import ArchiveNameCollision, DestinationUnwritable, StagingFailure

TEMP_SUFFIX = ".part"


@dataclass(frozen=True)
class WriteResult:
    """一次归档写入的结果"""
    archive_path: Path
    archive_size: int
    sha256: str
    file_count: int
    total_size: int


class ArchiveWriter:
    """归档写入器"""

    def __init__(self, compressor: Optional[Compressor] = None, overwrite: bool = False):
        """初始化写入器

        Args:
            compressor: 压缩器，默认 tar.gz
            overwrite: 目标已存在时是否原子替换；False 时报 ArchiveNameCollision
        """
        self.compressor = compressor or TarGzCompressor()
        self.overwrite = overwrite

    def write(
        self,
        root: PackagingRoot,
        dest_dir: Path,
        archive_name: str,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Path:
        """写入归档并返回最终路径"""
        return self.write_with_result(root, dest_dir, archive_name, progress_callback).archive_path

    def write_with_result(
        self,
        root: PackagingRoot,
        dest_dir: Path,
        archive_name: str,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> WriteResult:
        """写入归档并返回详细结果

        Raises:
            DestinationUnwritable: 输出目录不可用或写入失败
            ArchiveNameCollision: 目标已存在且不允许覆盖
            StagingFailure: 暂存目录内容无法读取
        """
        try:
            return self._write(root, Path(dest_dir), archive_name, progress_callback)
        finally:
            root.cleanup()

    def _write(
        self,
        root: PackagingRoot,
        dest_dir: Path,
        archive_name: str,
        progress_callback: Optional[ProgressCallback],
    ) -> WriteResult:
        final_path = dest_dir / archive_name
        self._prepare_destination(dest_dir)

        collector = FileCollector()
        try:
            files = collector.collect_tree(root.path)
        except (OSError, ValueError) as e:
            raise StagingFailure(f"读取暂存目录失败: {e}") from e
        stats = collector.get_statistics()

        info(
            f"写入归档: {archive_name} ({stats['total_files']} 个文件, {format_size(stats['total_size'])})",
            stage=LogStage.ARCHIVE,
        )

        try:
            fd, temp_name = tempfile.mkstemp(prefix=f".{archive_name}.", suffix=TEMP_SUFFIX, dir=dest_dir)
        except OSError as e:
            raise DestinationUnwritable(f"无法在输出目录创建临时文件 {dest_dir}: {e}") from e

        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, 'wb') as f:
                self.compressor.compress_files(files, f, progress_callback)
                f.flush()
                os.fsync(f.fileno())

            # mkstemp 创建的文件权限是 0600，发布前改为常规权限
            os.chmod(temp_path, 0o644)
            debug(f"临时文件写入完成: {temp_path}", stage=LogStage.WRITE)

            self._publish(temp_path, final_path)
        except CompressionError as e:
            raise DestinationUnwritable(f"写入归档失败 {final_path}: {e}") from e
        except OSError as e:
            raise DestinationUnwritable(f"写入归档失败 {final_path}: {e}") from e
        finally:
            if temp_path.exists():
                temp_path.unlink()

        try:
            archive_size = final_path.stat().st_size
            sha256 = calculate_archive_hash(final_path)
        except OSError as e:
            raise DestinationUnwritable(f"无法读取已发布的归档 {final_path}: {e}") from e

        success(f"归档已生成: {final_path} ({format_size(archive_size)})", stage=LogStage.WRITE)
        debug(f"sha256={sha256}", stage=LogStage.WRITE)

        return WriteResult(
            archive_path=final_path,
            archive_size=archive_size,
            sha256=sha256,
            file_count=stats['total_files'],
            total_size=stats['total_size'],
        )

    def _prepare_destination(self, dest_dir: Path) -> None:
        if dest_dir.exists() and not dest_dir.is_dir():
            raise DestinationUnwritable(f"输出路径不是目录: {dest_dir}")

        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DestinationUnwritable(f"无法创建输出目录 {dest_dir}: {e}") from e

        if not os.access(dest_dir, os.W_OK | os.X_OK):
            raise DestinationUnwritable(f"输出目录不可写: {dest_dir}")

    def _publish(self, temp_path: Path, final_path: Path) -> None:
        """把临时文件原子地发布为最终文件

        覆盖模式用 os.replace；否则用 os.link，目标存在时由文件系统
        原子地拒绝，不存在检查与创建之间的竞争。
        """
        if self.overwrite:
            os.replace(temp_path, final_path)
            return

        try:
            os.link(temp_path, final_path)
        except FileExistsError as e:
            raise ArchiveNameCollision(f"归档已存在: {final_path}（使用覆盖选项以替换）") from e
