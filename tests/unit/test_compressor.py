"""
压缩器单元测试

测试 tar.gz / tar.zst 压缩、解压、确定性输出和错误处理。
"""

import gzip
import io
import os
import tarfile
from pathlib import Path, PurePosixPath

import pytest

from relpack.build.collector import FileCollector, FileInfo
from relpack.build.compressor import (
    CompressionError,
    CompressorFactory,
    DecompressionError,
    TarGzCompressor,
    TarZstdCompressor,
)
from relpack.config.schema import ArchiveFormat


@pytest.fixture
def staged_tree(tmp_path):
    """模拟暂存目录"""
    root = tmp_path / "stage"
    (root / "ui" / "static").mkdir(parents=True)
    (root / "svc").write_bytes(b"\x7fELF binary")
    (root / "svc").chmod(0o755)
    (root / "ui" / "index.html").write_text("<html/>")
    (root / "ui" / "static" / "app.js").write_text("console.log(1)")
    return root


def compress(compressor, root):
    files = FileCollector().collect_tree(root)
    output = io.BytesIO()
    compressor.compress_files(files, output)
    output.seek(0)
    return output


@pytest.mark.parametrize("compressor_cls", [TarGzCompressor, TarZstdCompressor])
class TestCompressors:
    """两种格式共用的行为"""

    def test_compress_returns_size(self, compressor_cls, staged_tree):
        files = FileCollector().collect_tree(staged_tree)
        output = io.BytesIO()

        compressed_size = compressor_cls().compress_files(files, output)

        assert compressed_size > 0
        assert compressed_size == len(output.getvalue())

    def test_members_normalized(self, compressor_cls, staged_tree):
        """条目有序、属主清零、mtime 统一"""
        compressor = compressor_cls(source_date_epoch=1700000000)
        members = compressor.list_members(compress(compressor, staged_tree))

        assert [m.name for m in members] == ["svc", "ui", "ui/index.html", "ui/static", "ui/static/app.js"]
        for member in members:
            assert member.uid == 0 and member.gid == 0
            assert member.uname == "" and member.gname == ""
            assert member.mtime == 1700000000

        binary = members[0]
        assert binary.isfile()
        assert binary.mode & 0o111

    def test_roundtrip(self, compressor_cls, staged_tree, tmp_path, read_tree):
        """解压后内容与权限位一致"""
        compressor = compressor_cls()
        extract_dir = tmp_path / "extracted"

        extracted = compressor.decompress_to_directory(compress(compressor, staged_tree), extract_dir)

        assert read_tree(extract_dir) == read_tree(staged_tree)
        assert extracted == sum(len(v) for v in read_tree(staged_tree).values() if v is not None)
        assert os.stat(extract_dir / "svc").st_mode & 0o100

    def test_output_is_deterministic(self, compressor_cls, staged_tree):
        """源文件 mtime 变化不影响输出字节"""
        compressor = compressor_cls(source_date_epoch=0)
        first = compress(compressor, staged_tree).getvalue()

        os.utime(staged_tree / "ui" / "index.html", (1, 1))
        second = compress(compressor, staged_tree).getvalue()

        assert first == second

    def test_read_error(self, compressor_cls, tmp_path):
        """条目文件不存在"""
        files = [
            FileInfo(path=tmp_path / "missing", relative_path=PurePosixPath("missing"), size=0, mtime=0.0)
        ]
        with pytest.raises(CompressionError) as exc_info:
            compressor_cls().compress_files(files, io.BytesIO())
        assert "读取文件失败" in str(exc_info.value)

    def test_decompress_invalid_data(self, compressor_cls, tmp_path):
        with pytest.raises(DecompressionError):
            compressor_cls().decompress_to_directory(io.BytesIO(b"not an archive"), tmp_path / "out")

    def test_list_invalid_data(self, compressor_cls):
        with pytest.raises(DecompressionError):
            compressor_cls().list_members(io.BytesIO(b"not an archive"))

    def test_progress_callback(self, compressor_cls, staged_tree):
        calls = []

        def progress_callback(current, total, current_file=None):
            calls.append((current, total, current_file))

        files = FileCollector().collect_tree(staged_tree)
        compressor_cls().compress_files(files, io.BytesIO(), progress_callback)

        assert calls
        assert all(current <= total for current, total, _ in calls)
        assert calls[-1][0] == calls[-1][1]
        assert calls[-1][2] is None


class TestTarGzCompressor:
    """TarGzCompressor 测试"""

    def test_level_bounds(self):
        """超出范围的级别会被限制"""
        assert TarGzCompressor(level=0).level == 1
        assert TarGzCompressor(level=15).level == 9

    def test_get_format(self):
        assert TarGzCompressor().get_format() == ArchiveFormat.TAR_GZ

    def test_gzip_header_has_no_name(self, staged_tree):
        """gzip 头的 mtime 为 source_date_epoch，且不含文件名"""
        data = compress(TarGzCompressor(source_date_epoch=1234), staged_tree).getvalue()
        flags = data[3]
        mtime = int.from_bytes(data[4:8], "little")

        assert flags & 0x08 == 0
        assert mtime == 1234

    def test_rejects_path_traversal(self, tmp_path):
        """解压时拒绝逃出目标目录的条目"""
        raw = io.BytesIO()
        with gzip.GzipFile(fileobj=raw, mode="wb") as gz:
            with tarfile.open(fileobj=gz, mode="w|") as tar:
                info = tarfile.TarInfo("../evil.txt")
                payload = b"evil"
                info.size = len(payload)
                tar.addfile(info, io.BytesIO(payload))
        raw.seek(0)

        with pytest.raises(DecompressionError):
            TarGzCompressor().decompress_to_directory(raw, tmp_path / "out")
        assert not (tmp_path / "evil.txt").exists()


class TestTarZstdCompressor:
    """TarZstdCompressor 测试"""

    def test_init(self):
        compressor = TarZstdCompressor(level=10)
        assert compressor.level == 10
        assert compressor._cctx is not None
        assert compressor._dctx is not None

    def test_level_bounds(self):
        assert TarZstdCompressor(level=0).level == 1
        assert TarZstdCompressor(level=30).level == 22

    def test_get_format(self):
        assert TarZstdCompressor().get_format() == ArchiveFormat.TAR_ZST


class TestCompressorFactory:
    """CompressorFactory 测试"""

    def test_create(self):
        gz = CompressorFactory.create_compressor(ArchiveFormat.TAR_GZ, level=6, source_date_epoch=5)
        assert isinstance(gz, TarGzCompressor)
        assert gz.level == 6
        assert gz.source_date_epoch == 5

        zst = CompressorFactory.create_compressor(ArchiveFormat.TAR_ZST, level=19)
        assert isinstance(zst, TarZstdCompressor)
        assert zst.level == 19

    def test_for_path(self):
        """根据后缀选择压缩器"""
        assert isinstance(CompressorFactory.for_path(Path("svc-v1-linux-job.tar.gz")), TarGzCompressor)
        assert isinstance(CompressorFactory.for_path(Path("/tmp/dist/a.tar.zst")), TarZstdCompressor)

    def test_for_path_unknown(self):
        with pytest.raises(CompressionError):
            CompressorFactory.for_path(Path("svc.zip"))

    def test_available_formats(self):
        assert CompressorFactory.get_available_formats() == [ArchiveFormat.TAR_GZ, ArchiveFormat.TAR_ZST]
