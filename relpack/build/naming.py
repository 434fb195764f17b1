"""
归档命名

由版本号和构建元数据生成唯一的归档文件名：
"{product}-{version}-{platform}-{job}.tar.gz"
"""

from ..config.schema import ArchiveFormat, BuildMetadata
from ..utils.paths import is_safe_filename
from .errors import InvalidMetadata


class ArchiveNamer:
    """归档命名器（纯字符串格式化，无副作用）"""

    def __init__(self, archive_format: ArchiveFormat = ArchiveFormat.TAR_GZ):
        self.archive_format = archive_format

    def name(self, version: str, meta: BuildMetadata) -> str:
        """生成归档文件名

        Raises:
            InvalidMetadata: 元数据字段为空或包含不安全字符
        """
        fields = {
            'product_name': meta.product_name,
            'target_platform': meta.target_platform,
            'job_name': meta.job_name,
        }

        missing = [key for key, value in fields.items() if not value]
        if missing:
            raise InvalidMetadata(f"构建元数据缺失: {', '.join(missing)}")

        for key, value in fields.items():
            if not is_safe_filename(value):
                raise InvalidMetadata(f"{key} 不能安全地用于归档文件名: {value!r}")

        return (
            f"{meta.product_name}-{version}-{meta.target_platform}-{meta.job_name}"
            f"{self.archive_format.suffix}"
        )


def archive_name(version: str, meta: BuildMetadata, archive_format: ArchiveFormat = ArchiveFormat.TAR_GZ) -> str:
    """便捷函数：生成归档文件名"""
    return ArchiveNamer(archive_format).name(version, meta)
