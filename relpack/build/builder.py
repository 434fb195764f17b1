"""
打包器主类

对外的统一入口：执行构建管道，并把结果或失败转换为 PackageResult。
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..config.schema import PackagingConfig
from .build_pipeline import BuildPipeline
from .errors import PackagingError
from .steps.build_step import ProgressCallback


@dataclass
class PackageResult:
    """打包结果"""
    success: bool
    output_path: Optional[Path] = None
    archive_name: Optional[str] = None
    version: Optional[str] = None
    sha256: Optional[str] = None
    output_size: Optional[int] = None
    file_count: Optional[int] = None
    total_size: Optional[int] = None
    build_time: Optional[float] = None
    error: Optional[str] = None
    failed_stage: Optional[str] = None


class Packager:
    """发布打包器"""

    def __init__(self, pipeline: Optional[BuildPipeline] = None):
        self.pipeline = pipeline or BuildPipeline()

    def package(
        self,
        config: PackagingConfig,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> PackageResult:
        """执行一次打包

        打包错误不会抛出，而是体现在返回结果的 error / failed_stage 中。
        """
        try:
            run = self.pipeline.execute(config, progress_callback)
        except PackagingError as e:
            return PackageResult(
                success=False,
                error=str(e),
                failed_stage=e.stage,
            )

        return PackageResult(
            success=True,
            output_path=run.archive_path,
            archive_name=run.archive_name,
            version=run.version,
            sha256=run.sha256,
            output_size=run.archive_size,
            file_count=run.file_count,
            total_size=run.total_size,
            build_time=run.build_time,
        )

    def get_pipeline(self) -> BuildPipeline:
        """获取构建管道"""
        return self.pipeline

    def validate_build_pipeline(self) -> List[str]:
        """验证构建管道的完整性"""
        return self.pipeline.validate_pipeline()
