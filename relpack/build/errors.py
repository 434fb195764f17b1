"""
打包错误定义

所有错误对当前运行都是终止性的，核心内部不做重试。每个错误携带
失败阶段，便于 CLI 给出“哪个阶段、哪个输入”出错的提示。
"""

from ..utils.logging import LogStage


class PackagingError(Exception):
    """打包错误基类"""

    stage: str = LogStage.INIT

    def __str__(self) -> str:
        message = super().__str__()
        return f"[{self.stage}] {message}" if message else f"[{self.stage}]"


class InvalidIdentity(PackagingError):
    """既没有发布标签，也没有完整的 分支+提交"""
    stage = LogStage.VERSION


class UnsafeVersionString(PackagingError):
    """推导出的版本号不能安全地用于文件名"""
    stage = LogStage.VERSION


class InvalidMetadata(PackagingError):
    """产品名 / 目标平台 / 任务名 缺失或不安全"""
    stage = LogStage.NAME


class SourceNotFound(PackagingError):
    """二进制文件或资源目录不存在"""
    stage = LogStage.STAGE


class StagingFailure(PackagingError):
    """暂存目录无法创建或填充"""
    stage = LogStage.STAGE


class DestinationUnwritable(PackagingError):
    """输出目录无法创建、不可写，或归档写入失败"""
    stage = LogStage.WRITE


class ArchiveNameCollision(PackagingError):
    """目标归档已存在且未允许覆盖"""
    stage = LogStage.WRITE
