"""
Relpack - 版本化发布打包工具

Deterministic, versioned release archives for compiled binaries and their UI assets.
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .config.schema import PackagingConfig
from .build.builder import Packager

__all__ = ["PackagingConfig", "Packager", "__version__"]
