"""构建步骤"""

from .build_step import BuildStep, ProgressCallback
from .version_resolution_step import VersionResolutionStep
from .archive_naming_step import ArchiveNamingStep
from .staging_step import StagingStep
from .archive_writing_step import ArchiveWritingStep

__all__ = [
    "BuildStep",
    "ProgressCallback",
    "VersionResolutionStep",
    "ArchiveNamingStep",
    "StagingStep",
    "ArchiveWritingStep",
]
