"""构建服务模块

提供版本解析、归档命名、暂存组装和归档写入的核心功能。
"""

from .builder import Packager, PackageResult
from .build_pipeline import BuildPipeline, PackagingRun
from .errors import (
    PackagingError,
    InvalidIdentity,
    UnsafeVersionString,
    InvalidMetadata,
    SourceNotFound,
    StagingFailure,
    DestinationUnwritable,
    ArchiveNameCollision,
)
from .version import VersionResolver, resolve_version
from .naming import ArchiveNamer, archive_name
from .assembler import ArtifactAssembler, PackagingRoot, assemble
from .collector import FileCollector, FileInfo, collect_tree
from .compressor import (
    Compressor,
    CompressorFactory,
    CompressionError,
    DecompressionError,
    TarGzCompressor,
    TarZstdCompressor,
)
from .writer import ArchiveWriter, WriteResult
from .checksum import calculate_archive_hash, hash_file

__all__ = [
    # 主入口
    "Packager",
    "PackageResult",
    "BuildPipeline",
    "PackagingRun",

    # 错误
    "PackagingError",
    "InvalidIdentity",
    "UnsafeVersionString",
    "InvalidMetadata",
    "SourceNotFound",
    "StagingFailure",
    "DestinationUnwritable",
    "ArchiveNameCollision",

    # 版本与命名
    "VersionResolver",
    "resolve_version",
    "ArchiveNamer",
    "archive_name",

    # 暂存
    "ArtifactAssembler",
    "PackagingRoot",
    "assemble",

    # 收集与压缩
    "FileCollector",
    "FileInfo",
    "collect_tree",
    "Compressor",
    "CompressorFactory",
    "CompressionError",
    "DecompressionError",
    "TarGzCompressor",
    "TarZstdCompressor",

    # 写入
    "ArchiveWriter",
    "WriteResult",
    "hash_file",
    "calculate_archive_hash",
]
