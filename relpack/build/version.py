"""
版本解析器

把 CI 提供的身份信息（发布标签 / 分支 / 提交哈希）解析为唯一的版本字符串：
有标签时直接使用标签，否则使用 "<分支>-<提交前7位>"。
"""

from typing import Optional

from ..config.schema import BuildIdentity
from ..utils.paths import is_safe_filename
from .errors import InvalidIdentity, UnsafeVersionString

SHORT_COMMIT_LENGTH = 7


class VersionResolver:
    """版本解析器（纯函数，无状态）"""

    def __init__(self, short_commit_length: int = SHORT_COMMIT_LENGTH):
        self.short_commit_length = short_commit_length

    def resolve(self, identity: BuildIdentity) -> str:
        """解析版本号

        Args:
            identity: 构建身份

        Returns:
            str: 版本号

        Raises:
            InvalidIdentity: 缺少标签且缺少 分支+提交，或提交哈希过短
            UnsafeVersionString: 版本号包含不能用于文件名的字符
        """
        if identity.release_tag:
            return self._ensure_safe(identity.release_tag, "release_tag")

        branch = identity.branch_name
        commit = identity.commit_hash

        if not branch or not commit:
            raise InvalidIdentity(
                "缺少发布标签，且 branch_name / commit_hash 不完整: "
                f"branch_name={branch!r} commit_hash={commit!r}"
            )

        if len(commit) < self.short_commit_length:
            raise InvalidIdentity(
                f"commit_hash 长度不足 {self.short_commit_length} 位: {commit!r}"
            )

        # 分支名本身不安全时直接拒绝，不做替换
        self._ensure_safe(branch, "branch_name")
        version = f"{branch}-{commit[:self.short_commit_length]}"
        return self._ensure_safe(version, "commit_hash")

    @staticmethod
    def _ensure_safe(value: str, source: str) -> str:
        if not is_safe_filename(value):
            raise UnsafeVersionString(f"{source} 不能安全地用于归档文件名: {value!r}")
        return value


def resolve_version(identity: BuildIdentity, short_commit_length: Optional[int] = None) -> str:
    """便捷函数：解析版本号"""
    resolver = VersionResolver(short_commit_length or SHORT_COMMIT_LENGTH)
    return resolver.resolve(identity)
