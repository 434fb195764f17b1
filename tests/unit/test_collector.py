"""
文件收集器单元测试

测试目录树扫描、排序、权限位记录和链接拒绝。
"""

import os
from pathlib import Path, PurePosixPath

import pytest

from relpack.build.collector import FileCollector, FileInfo, collect_tree


class TestFileInfo:
    """FileInfo 测试"""

    def test_file_info_to_dict(self):
        """测试 FileInfo 转字典"""
        file_info = FileInfo(
            path=Path("/stage/ui/index.html"),
            relative_path=PurePosixPath("ui/index.html"),
            size=1024,
            mtime=1234567890.0,
            mode=0o644,
        )

        data = file_info.to_dict()
        assert data["path"] == "ui/index.html"
        assert data["size"] == 1024
        assert data["mode"] == "0o644"
        assert data["is_directory"] is False

    def test_is_executable(self):
        binary = FileInfo(path=Path("/stage/svc"), relative_path=PurePosixPath("svc"), size=1, mtime=0.0, mode=0o755)
        asset = FileInfo(path=Path("/stage/a"), relative_path=PurePosixPath("a"), size=1, mtime=0.0, mode=0o644)
        assert binary.is_executable
        assert not asset.is_executable


class TestFileCollector:
    """FileCollector 测试"""

    @pytest.fixture
    def tree(self, tmp_path):
        root = tmp_path / "root"
        (root / "ui" / "static").mkdir(parents=True)
        (root / "svc").write_bytes(b"binary")
        (root / "svc").chmod(0o755)
        (root / "ui" / "index.html").write_text("<html/>")
        (root / "ui" / "static" / "app.js").write_text("js")
        (root / "ui" / "z.txt").write_text("z")
        return root

    def test_collect_sorted(self, tree):
        """条目按相对路径排序，父目录在子项之前"""
        files = FileCollector().collect_tree(tree)
        paths = [f.relative_path.as_posix() for f in files]

        assert paths == [
            "svc",
            "ui",
            "ui/index.html",
            "ui/static",
            "ui/static/app.js",
            "ui/z.txt",
        ]

    def test_collect_records_modes_and_sizes(self, tree):
        files = {f.relative_path.as_posix(): f for f in FileCollector().collect_tree(tree)}

        assert files["svc"].is_executable
        assert files["svc"].size == len(b"binary")
        assert files["ui"].is_directory
        assert files["ui"].size == 0

    def test_statistics(self, tree):
        """测试收集统计信息"""
        collector = FileCollector()
        collector.collect_tree(tree)
        stats = collector.get_statistics()

        assert stats["total_files"] == 4
        assert stats["total_directories"] == 2
        assert stats["total_items"] == 6
        assert stats["total_size"] == len(b"binary") + len("<html/>") + len("js") + len("z")

    def test_collect_twice_resets_state(self, tree):
        collector = FileCollector()
        collector.collect_tree(tree)
        collector.collect_tree(tree)
        assert collector.get_statistics()["total_items"] == 6

    def test_missing_root(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            FileCollector().collect_tree(tmp_path / "missing")

    def test_symlink_rejected(self, tree):
        """暂存目录中的链接应该已被实体化，遇到时报错"""
        os.symlink(tree / "svc", tree / "ui" / "link")
        with pytest.raises(ValueError):
            FileCollector().collect_tree(tree)

    def test_empty_root(self, tmp_path):
        assert collect_tree(tmp_path) == []
