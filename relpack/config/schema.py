"""
配置 Schema 定义

使用 Pydantic 定义不可变的打包配置模型。配置在进程启动时构造一次，
之后作为普通参数传入各个阶段，核心逻辑不直接读取环境变量。
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ArchiveFormat(str, Enum):
    """归档格式枚举"""
    TAR_GZ = "tar.gz"
    TAR_ZST = "tar.zst"

    @property
    def suffix(self) -> str:
        """归档文件名后缀"""
        return f".{self.value}"

    @property
    def max_level(self) -> int:
        return 9 if self is ArchiveFormat.TAR_GZ else 22


class BuildIdentity(BaseModel):
    """构建身份：发布标签 / 分支 / 提交

    合法性（标签或 分支+提交 至少有一个）由 VersionResolver 检查，
    这里只负责承载数据。
    """
    release_tag: Optional[str] = Field(None, description="发布标签（优先）")
    branch_name: Optional[str] = Field(None, description="分支名")
    commit_hash: Optional[str] = Field(None, description="提交哈希")

    model_config = {"frozen": True, "extra": "forbid"}


class BuildMetadata(BaseModel):
    """构建元数据：产品名 / 目标平台 / 构建任务"""
    product_name: str = Field("", description="产品（二进制）名称")
    target_platform: str = Field("", description="目标平台标识")
    job_name: str = Field("", description="构建任务名称")

    model_config = {"frozen": True, "extra": "forbid"}


class SourcesModel(BaseModel):
    """打包输入"""
    binary_path: Path = Field(..., description="编译好的可执行文件路径")
    asset_dir: Path = Field(Path("ui/build"), description="静态资源目录")

    model_config = {"frozen": True, "extra": "forbid"}


class OutputModel(BaseModel):
    """打包输出配置"""
    dist_dir: Path = Field(Path("/tmp/dist"), description="归档输出目录")
    archive_format: ArchiveFormat = Field(ArchiveFormat.TAR_GZ, description="归档格式")
    compression_level: int = Field(9, description="压缩级别", ge=1, le=22)
    overwrite: bool = Field(False, description="目标文件已存在时是否覆盖")
    source_date_epoch: int = Field(0, description="归档条目统一使用的修改时间", ge=0)
    staging_dir: Optional[Path] = Field(None, description="暂存目录的父目录，默认系统临时目录")

    model_config = {"frozen": True, "extra": "forbid"}

    @model_validator(mode='after')
    def validate_compression_level(self) -> 'OutputModel':
        """验证压缩级别对格式的适用性"""
        if self.compression_level > self.archive_format.max_level:
            raise ValueError(
                f"{self.archive_format.value} 压缩级别必须在 1-{self.archive_format.max_level} 之间"
            )
        return self


class ConfigModel(BaseModel):
    """配置元信息模型"""
    version: int = Field(1, description="配置 schema 版本", ge=1)

    model_config = {"frozen": True}

    @field_validator('version')
    @classmethod
    def validate_config_version(cls, v: int) -> int:
        SUPPORTED_VERSIONS = [1]
        if v not in SUPPORTED_VERSIONS:
            raise ValueError(f"不支持的配置版本 {v}，支持的版本: {SUPPORTED_VERSIONS}")
        return v


class PackagingConfig(BaseModel):
    """打包主配置模型"""

    config: ConfigModel = Field(default_factory=ConfigModel, description="配置元信息")

    identity: BuildIdentity = Field(default_factory=BuildIdentity, description="构建身份")
    metadata: BuildMetadata = Field(default_factory=BuildMetadata, description="构建元数据")
    sources: SourcesModel = Field(..., description="打包输入")
    output: OutputModel = Field(default_factory=OutputModel, description="输出配置")

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式（Path 和枚举转为字符串）"""
        data = self.model_dump(exclude_none=True)

        def convert_values(obj):
            if isinstance(obj, dict):
                return {k: convert_values(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [convert_values(item) for item in obj]
            elif isinstance(obj, Enum):
                return obj.value
            elif isinstance(obj, Path):
                return str(obj)
            return obj

        return convert_values(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PackagingConfig':
        """从字典创建配置实例"""
        return cls.model_validate(data)
