"""
归档写入步骤模块

压缩暂存目录并原子地写入输出目录，结束时删除暂存目录。
"""

from pathlib import Path
from typing import Optional

from ...config.schema import PackagingConfig
from ...utils.logging import info, LogStage
from ..assembler import PackagingRoot
from ..compressor import CompressorFactory
from ..writer import ArchiveWriter, WriteResult
from .build_step import BuildStep, ProgressCallback


class ArchiveWritingStep(BuildStep):
    """归档写入步骤"""

    def __init__(self):
        super().__init__("write", "写入归档文件")

    def get_progress_range(self) -> tuple[int, int]:
        return (40, 100)

    def execute(
        self,
        config: PackagingConfig,
        root: PackagingRoot,
        archive_name: str,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> WriteResult:
        output = config.output
        compressor = CompressorFactory.create_compressor(
            output.archive_format,
            output.compression_level,
            output.source_date_epoch,
        )
        writer = ArchiveWriter(compressor, overwrite=output.overwrite)

        info(
            f"格式: {output.archive_format.value}, 级别: {compressor.level}, "
            f"mtime: {output.source_date_epoch}, 覆盖: {'是' if output.overwrite else '否'}",
            stage=LogStage.ARCHIVE,
        )

        def compress_progress(current: int, total: int, current_file: Optional[str] = None) -> None:
            if total > 0:
                message = f"压缩: {Path(current_file).name}" if current_file else "压缩完成"
                self.report_progress(progress_callback, current / total, message)

        result = writer.write_with_result(root, Path(output.dist_dir), archive_name, compress_progress)

        self.report_progress(progress_callback, 1.0, f"完成: {result.archive_path.name}")
        return result
