"""
暂存步骤模块

把二进制和资源目录组装进暂存目录。返回的 PackagingRoot 由调用方
负责释放（管道在 with 语句中使用它）。
"""

from typing import Optional

from ...config.schema import PackagingConfig
from ...utils.logging import info, LogStage
from ..assembler import ArtifactAssembler, PackagingRoot
from .build_step import BuildStep, ProgressCallback


class StagingStep(BuildStep):
    """暂存步骤"""

    def __init__(self):
        super().__init__("stage", "组装暂存目录")

    def get_progress_range(self) -> tuple[int, int]:
        return (10, 40)

    def execute(self, config: PackagingConfig, progress_callback: Optional[ProgressCallback] = None) -> PackagingRoot:
        sources = config.sources
        info(f"二进制: {sources.binary_path}", stage=LogStage.STAGE)
        info(f"资源目录: {sources.asset_dir}", stage=LogStage.STAGE)

        self.report_progress(progress_callback, 0.0, "复制二进制与资源...")

        assembler = ArtifactAssembler(config.output.staging_dir)
        root = assembler.assemble(sources.binary_path, sources.asset_dir, config.metadata.product_name)

        self.report_progress(progress_callback, 1.0, f"暂存完成: {root.path.name}")
        return root
