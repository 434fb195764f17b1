"""
版本解析步骤模块
"""

from typing import Optional

from ...config.schema import PackagingConfig
from ...utils.logging import info, success, LogStage
from ..version import VersionResolver
from .build_step import BuildStep, ProgressCallback


class VersionResolutionStep(BuildStep):
    """版本解析步骤"""

    def __init__(self):
        super().__init__("version", "解析版本号")
        self.resolver = VersionResolver()

    def get_progress_range(self) -> tuple[int, int]:
        return (0, 5)

    def execute(self, config: PackagingConfig, progress_callback: Optional[ProgressCallback] = None) -> str:
        identity = config.identity
        if identity.release_tag:
            info(f"使用发布标签: {identity.release_tag}", stage=LogStage.VERSION)
        else:
            info(
                f"无发布标签，使用分支与提交: {identity.branch_name} @ {identity.commit_hash}",
                stage=LogStage.VERSION,
            )

        version = self.resolver.resolve(identity)

        self.report_progress(progress_callback, 1.0, version)
        success(f"VERSION={version}", stage=LogStage.VERSION)
        return version
