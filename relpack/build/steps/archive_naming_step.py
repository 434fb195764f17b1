"""
归档命名步骤模块
"""

from typing import Optional

from ...config.schema import PackagingConfig
from ...utils.logging import success, LogStage
from ..naming import ArchiveNamer
from .build_step import BuildStep, ProgressCallback


class ArchiveNamingStep(BuildStep):
    """归档命名步骤"""

    def __init__(self):
        super().__init__("name", "生成归档文件名")

    def get_progress_range(self) -> tuple[int, int]:
        return (5, 10)

    def execute(
        self,
        config: PackagingConfig,
        version: str,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> str:
        namer = ArchiveNamer(config.output.archive_format)
        archive_name = namer.name(version, config.metadata)

        self.report_progress(progress_callback, 1.0, archive_name)
        success(f"ARCHIVE_NAME={archive_name}", stage=LogStage.NAME)
        return archive_name
