"""
构建步骤基类模块

每个步骤接收显式输入、返回带类型的值，由管道把返回值传给下一步，
步骤之间没有共享的可变状态。
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from ...config.schema import PackagingConfig

# 进度回调类型: (阶段描述, 当前进度, 总进度, 消息)
ProgressCallback = Callable[[str, int, int, str], None]


class BuildStep(ABC):
    """构建步骤抽象基类"""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description

    @abstractmethod
    def execute(self, config: PackagingConfig, *inputs: Any, **kwargs: Any) -> Any:
        """执行构建步骤并返回产出值"""
        pass

    @abstractmethod
    def get_progress_range(self) -> tuple[int, int]:
        """获取此步骤的进度范围 (start_percent, end_percent)"""
        pass

    def report_progress(
        self,
        progress_callback: Optional[ProgressCallback],
        fraction: float,
        message: str = "",
    ) -> None:
        """按步骤内的完成比例 (0.0-1.0) 报告整体进度"""
        if not progress_callback:
            return
        start, end = self.get_progress_range()
        fraction = min(1.0, max(0.0, fraction))
        progress_callback(self.description, start + int(fraction * (end - start)), 100, message)
