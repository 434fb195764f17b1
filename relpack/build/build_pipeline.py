"""
构建管道模块

按固定顺序执行：解析版本 -> 生成归档名 -> 组装暂存目录 -> 写入归档。
每一步的返回值显式传给下一步；暂存目录在 with 作用域内使用，
任何退出路径都会删除它。
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..config.schema import PackagingConfig
from ..utils.logging import debug, error, info, success, LogStage
from ..utils.paths import format_size
from .errors import PackagingError
from .steps.archive_naming_step import ArchiveNamingStep
from .steps.archive_writing_step import ArchiveWritingStep
from .steps.build_step import BuildStep, ProgressCallback
from .steps.staging_step import StagingStep
from .steps.version_resolution_step import VersionResolutionStep


@dataclass(frozen=True)
class PackagingRun:
    """一次成功打包运行的产出"""
    version: str
    archive_name: str
    archive_path: Path
    archive_size: int
    sha256: str
    file_count: int
    total_size: int
    start_time: float
    end_time: float

    @property
    def build_time(self) -> float:
        return self.end_time - self.start_time


class BuildPipeline:
    """构建管道，负责协调构建步骤的执行"""

    def __init__(self):
        self.version_step = VersionResolutionStep()
        self.naming_step = ArchiveNamingStep()
        self.staging_step = StagingStep()
        self.writing_step = ArchiveWritingStep()

    def get_steps(self) -> List[BuildStep]:
        """获取所有构建步骤（按执行顺序）"""
        return [self.version_step, self.naming_step, self.staging_step, self.writing_step]

    def execute(
        self,
        config: PackagingConfig,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> PackagingRun:
        """执行构建管道

        Args:
            config: 不可变的打包配置
            progress_callback: 进度回调函数

        Returns:
            PackagingRun: 运行产出

        Raises:
            PackagingError: 任一阶段失败（首个错误直接终止运行）
        """
        start_time = time.time()

        info("开始打包", stage=LogStage.INIT)
        debug(
            f"配置: format={config.output.archive_format.value} level={config.output.compression_level} "
            f"dist={config.output.dist_dir} overwrite={config.output.overwrite}",
            stage=LogStage.INIT,
        )

        try:
            version = self.version_step.execute(config, progress_callback)
            archive_name = self.naming_step.execute(config, version, progress_callback)

            with self.staging_step.execute(config, progress_callback) as root:
                result = self.writing_step.execute(config, root, archive_name, progress_callback)

        except PackagingError as e:
            error(f"打包失败: {e}", stage=e.stage)
            raise

        end_time = time.time()
        run = PackagingRun(
            version=version,
            archive_name=archive_name,
            archive_path=result.archive_path,
            archive_size=result.archive_size,
            sha256=result.sha256,
            file_count=result.file_count,
            total_size=result.total_size,
            start_time=start_time,
            end_time=end_time,
        )

        success(f"打包成功: {run.archive_path}", stage=LogStage.DONE)
        info(f"耗时: {run.build_time:.1f}秒")
        info(f"原始大小: {format_size(run.total_size)}")
        info(f"归档大小: {format_size(run.archive_size)}")
        info(f"SHA-256: {run.sha256}")

        return run

    def validate_pipeline(self) -> List[str]:
        """验证构建管道的完整性

        Returns:
            List[str]: 验证错误列表，空列表表示验证通过
        """
        errors = []
        steps = self.get_steps()

        if not steps:
            errors.append("构建管道中没有步骤")
            return errors

        # 检查步骤的进度范围是否连续
        prev_end = 0
        for step in steps:
            start, end = step.get_progress_range()
            if start != prev_end:
                errors.append(f"步骤 '{step.name}' 的进度范围不连续: 期望起始 {prev_end}%, 实际 {start}%")
            if start >= end:
                errors.append(f"步骤 '{step.name}' 的进度范围无效: {start}% - {end}%")
            prev_end = end

        if prev_end != 100:
            errors.append(f"构建管道的总进度范围不是100%: {prev_end}%")

        return errors
