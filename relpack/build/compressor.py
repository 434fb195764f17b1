"""
压缩器抽象接口和实现

把收集到的条目写成确定性的 tar 流，再用 gzip 或 zstd 压缩。
同样的输入总是得到字节级一致的输出：条目有序、属主清零、
mtime 统一为 source_date_epoch、gzip 头不含文件名和时间。
"""

import gzip
import tarfile
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Protocol

import zstandard as zstd

from ..config.schema import ArchiveFormat
from .collector import FileInfo

TAR_FORMAT = tarfile.GNU_FORMAT


class CompressionError(Exception):
    """压缩相关错误"""
    pass


class DecompressionError(Exception):
    """解压相关错误"""
    pass


class ProgressCallback(Protocol):
    """进度回调协议"""

    def __call__(self, current: int, total: int, current_file: Optional[str] = None) -> None:
        """进度回调

        Args:
            current: 已处理的字节数
            total: 总字节数
            current_file: 当前处理的文件（可选）
        """
        ...


class Compressor(ABC):
    """压缩器抽象基类"""

    def __init__(self, level: int, source_date_epoch: int = 0):
        self.level = level
        self.source_date_epoch = source_date_epoch

    @abstractmethod
    def get_format(self) -> ArchiveFormat:
        """获取归档格式"""
        pass

    @abstractmethod
    def _compressed_writer(self, output_stream: BinaryIO) -> Iterator[BinaryIO]:
        """返回包装 output_stream 的压缩写入流（上下文管理器）"""
        pass

    @abstractmethod
    def _decompressed_reader(self, input_stream: BinaryIO) -> Iterator[BinaryIO]:
        """返回包装 input_stream 的解压读取流（上下文管理器）"""
        pass

    def compress_files(
        self,
        files: List[FileInfo],
        output_stream: BinaryIO,
        progress_callback: Optional[ProgressCallback] = None
    ) -> int:
        """把条目压缩写入输出流

        Args:
            files: 已排序的条目列表
            output_stream: 输出流（不会被关闭）
            progress_callback: 进度回调

        Returns:
            int: 写入的压缩字节数

        Raises:
            CompressionError: 读取条目或写入输出失败
        """
        start = output_stream.tell()
        total_bytes = sum(f.size for f in files if not f.is_directory)
        processed_bytes = 0

        try:
            with self._compressed_writer(output_stream) as writer:
                with tarfile.open(fileobj=writer, mode='w|', format=TAR_FORMAT) as tar:
                    for file_info in files:
                        if progress_callback:
                            progress_callback(processed_bytes, total_bytes, file_info.relative_path.as_posix())

                        tarinfo = self._make_tarinfo(file_info)
                        if file_info.is_directory:
                            tar.addfile(tarinfo)
                            continue

                        try:
                            with open(file_info.path, 'rb') as f:
                                tar.addfile(tarinfo, f)
                        except OSError as e:
                            raise CompressionError(f"读取文件失败 {file_info.path}: {e}") from e

                        processed_bytes += file_info.size

            if progress_callback:
                progress_callback(processed_bytes, total_bytes, None)

        except CompressionError:
            raise
        except (OSError, tarfile.TarError, zstd.ZstdError) as e:
            raise CompressionError(f"{self.get_format().value} 压缩失败: {e}") from e

        return output_stream.tell() - start

    def list_members(self, input_stream: BinaryIO) -> List[tarfile.TarInfo]:
        """列出归档中的条目

        Raises:
            DecompressionError: 归档损坏或格式不符
        """
        try:
            with self._decompressed_reader(input_stream) as reader:
                with tarfile.open(fileobj=reader, mode='r|') as tar:
                    return [member for member in tar]
        except (OSError, EOFError, tarfile.TarError, zstd.ZstdError) as e:
            raise DecompressionError(f"{self.get_format().value} 读取失败: {e}") from e

    def decompress_to_directory(
        self,
        input_stream: BinaryIO,
        output_dir: Path,
        progress_callback: Optional[ProgressCallback] = None
    ) -> int:
        """从流解压到目录

        使用 tarfile 的 data 过滤器，拒绝绝对路径、目录穿越和链接逃逸。

        Returns:
            int: 解压的文件总字节数

        Raises:
            DecompressionError: 解压失败
        """
        output_dir = Path(output_dir)
        decompressed_bytes = 0

        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            with self._decompressed_reader(input_stream) as reader:
                with tarfile.open(fileobj=reader, mode='r|') as tar:
                    for member in tar:
                        if progress_callback:
                            progress_callback(decompressed_bytes, decompressed_bytes + member.size, member.name)
                        tar.extract(member, output_dir, filter='data')
                        if member.isfile():
                            decompressed_bytes += member.size
        except (OSError, EOFError, tarfile.TarError, zstd.ZstdError) as e:
            raise DecompressionError(f"{self.get_format().value} 解压失败: {e}") from e

        return decompressed_bytes

    def _make_tarinfo(self, file_info: FileInfo) -> tarfile.TarInfo:
        """构造规范化的 tar 头"""
        tarinfo = tarfile.TarInfo(file_info.relative_path.as_posix())
        tarinfo.mode = file_info.mode
        tarinfo.mtime = self.source_date_epoch
        tarinfo.uid = tarinfo.gid = 0
        tarinfo.uname = tarinfo.gname = ""

        if file_info.is_directory:
            tarinfo.type = tarfile.DIRTYPE
            tarinfo.size = 0
        else:
            tarinfo.type = tarfile.REGTYPE
            tarinfo.size = file_info.size

        return tarinfo


class TarGzCompressor(Compressor):
    """tar + gzip 压缩器（默认格式）"""

    def __init__(self, level: int = 9, source_date_epoch: int = 0):
        super().__init__(min(9, max(1, level)), source_date_epoch)

    def get_format(self) -> ArchiveFormat:
        return ArchiveFormat.TAR_GZ

    @contextmanager
    def _compressed_writer(self, output_stream: BinaryIO) -> Iterator[BinaryIO]:
        # filename="" 与固定 mtime 保证 gzip 头可复现
        with gzip.GzipFile(
            filename="",
            mode='wb',
            fileobj=output_stream,
            compresslevel=self.level,
            mtime=self.source_date_epoch,
        ) as gz:
            yield gz

    @contextmanager
    def _decompressed_reader(self, input_stream: BinaryIO) -> Iterator[BinaryIO]:
        with gzip.GzipFile(mode='rb', fileobj=input_stream) as gz:
            yield gz


class TarZstdCompressor(Compressor):
    """tar + zstd 压缩器"""

    def __init__(self, level: int = 10, source_date_epoch: int = 0):
        super().__init__(min(22, max(1, level)), source_date_epoch)
        self._cctx = zstd.ZstdCompressor(level=self.level)
        self._dctx = zstd.ZstdDecompressor()

    def get_format(self) -> ArchiveFormat:
        return ArchiveFormat.TAR_ZST

    @contextmanager
    def _compressed_writer(self, output_stream: BinaryIO) -> Iterator[BinaryIO]:
        with self._cctx.stream_writer(output_stream, closefd=False) as writer:
            yield writer

    @contextmanager
    def _decompressed_reader(self, input_stream: BinaryIO) -> Iterator[BinaryIO]:
        with self._dctx.stream_reader(input_stream, closefd=False) as reader:
            yield reader


class CompressorFactory:
    """压缩器工厂"""

    @staticmethod
    def create_compressor(
        archive_format: ArchiveFormat,
        level: int = 9,
        source_date_epoch: int = 0,
    ) -> Compressor:
        """创建压缩器

        Raises:
            CompressionError: 不支持的格式
        """
        if archive_format == ArchiveFormat.TAR_GZ:
            return TarGzCompressor(level, source_date_epoch)
        elif archive_format == ArchiveFormat.TAR_ZST:
            return TarZstdCompressor(level, source_date_epoch)
        raise CompressionError(f"不支持的归档格式: {archive_format}")

    @staticmethod
    def for_path(archive_path: Path) -> Compressor:
        """根据文件名后缀选择压缩器（用于读取已有归档）

        Raises:
            CompressionError: 无法识别的后缀
        """
        name = Path(archive_path).name
        for archive_format in ArchiveFormat:
            if name.endswith(archive_format.suffix):
                return CompressorFactory.create_compressor(archive_format)
        raise CompressionError(f"无法识别的归档格式: {name}")

    @staticmethod
    def get_available_formats() -> List[ArchiveFormat]:
        """获取可用的归档格式列表"""
        return list(ArchiveFormat)
