"""
构建管道单元测试

测试步骤顺序、值传递、失败阶段、暂存清理和并发运行。
"""

import threading
from unittest.mock import MagicMock, patch

import pytest

from relpack.build.build_pipeline import BuildPipeline
from relpack.build.builder import Packager
from relpack.build.compressor import TarGzCompressor
from relpack.build.errors import ArchiveNameCollision, InvalidIdentity, InvalidMetadata, SourceNotFound
from relpack.build.steps import (
    ArchiveNamingStep,
    ArchiveWritingStep,
    BuildStep,
    StagingStep,
    VersionResolutionStep,
)
from relpack.utils.logging import LogStage


class MockBuildStep(BuildStep):
    """模拟构建步骤"""

    def __init__(self, name="mock", description="Mock step", progress_range=(0, 10)):
        super().__init__(name, description)
        self._progress_range = progress_range

    def get_progress_range(self):
        return self._progress_range

    def execute(self, config, *inputs, **kwargs):
        return inputs


class TestBuildStep:
    """BuildStep 基类测试"""

    def test_report_progress_maps_into_range(self):
        """步骤内比例映射到整体进度区间"""
        step = MockBuildStep(progress_range=(40, 100))
        callback = MagicMock()

        step.report_progress(callback, 0.5, "half")

        callback.assert_called_once_with("Mock step", 70, 100, "half")

    def test_report_progress_clamps(self):
        step = MockBuildStep(progress_range=(0, 10))
        callback = MagicMock()

        step.report_progress(callback, 3.0)

        callback.assert_called_once_with("Mock step", 10, 100, "")

    def test_report_progress_without_callback(self):
        MockBuildStep().report_progress(None, 0.5)


class TestBuildPipeline:
    """BuildPipeline 测试"""

    def test_step_order(self):
        steps = BuildPipeline().get_steps()
        assert [type(s) for s in steps] == [
            VersionResolutionStep,
            ArchiveNamingStep,
            StagingStep,
            ArchiveWritingStep,
        ]

    def test_validate_pipeline(self):
        """默认管道的进度区间连续且覆盖 0-100"""
        assert BuildPipeline().validate_pipeline() == []

    def test_validate_pipeline_gap(self):
        pipeline = BuildPipeline()
        pipeline.naming_step = MockBuildStep(name="gap", progress_range=(6, 10))

        errors = pipeline.validate_pipeline()

        assert len(errors) == 1
        assert "gap" in errors[0]

    def test_execute_with_tag(self, make_config, tmp_path):
        run = BuildPipeline().execute(make_config())

        assert run.version == "v1.2.0"
        assert run.archive_name == "svc-v1.2.0-linux-arm64-aarch64.tar.gz"
        assert run.archive_path == tmp_path / "dist" / run.archive_name
        assert run.archive_path.is_file()
        assert run.file_count == 4
        assert run.build_time >= 0

    def test_execute_with_branch_and_commit(self, make_config):
        config = make_config(identity={"release_tag": None, "branch_name": "main", "commit_hash": "abcdef1234567"})
        run = BuildPipeline().execute(config)

        assert run.version == "main-abcdef1"
        assert run.archive_name == "svc-main-abcdef1-linux-arm64-aarch64.tar.gz"

    def test_archive_layout(self, make_config):
        """归档根目录包含二进制和 ui/"""
        run = BuildPipeline().execute(make_config())

        with open(run.archive_path, "rb") as f:
            names = [m.name for m in TarGzCompressor().list_members(f)]

        assert names[0] == "svc"
        assert "ui/index.html" in names
        assert "ui/static/css/site.css" in names

    def test_progress_reaches_100(self, make_config):
        calls = []
        BuildPipeline().execute(make_config(), lambda stage, current, total, message: calls.append(current))

        assert calls == sorted(calls)
        assert calls[-1] == 100

    def test_no_staging_left_after_success(self, make_config, tmp_path):
        BuildPipeline().execute(make_config())
        assert list((tmp_path / "staging").iterdir()) == []

    def test_invalid_identity_stops_before_staging(self, make_config, tmp_path):
        """版本解析失败时不创建暂存目录，也不写出任何文件"""
        config = make_config(identity={"release_tag": None})

        with pytest.raises(InvalidIdentity):
            BuildPipeline().execute(config)

        assert not (tmp_path / "staging").exists()
        assert not (tmp_path / "dist").exists()

    def test_invalid_metadata(self, make_config):
        with pytest.raises(InvalidMetadata):
            BuildPipeline().execute(make_config(metadata={"job_name": ""}))

    def test_missing_binary(self, make_config, tmp_path):
        with pytest.raises(SourceNotFound):
            BuildPipeline().execute(make_config(sources={"binary_path": str(tmp_path / "missing")}))

    def test_no_staging_left_after_write_failure(self, make_config, tmp_path):
        """写入阶段失败后暂存目录同样被删除"""
        config = make_config()
        BuildPipeline().execute(config)

        with pytest.raises(ArchiveNameCollision):
            BuildPipeline().execute(config)

        assert list((tmp_path / "staging").iterdir()) == []
        assert [p.name for p in (tmp_path / "dist").iterdir()] == ["svc-v1.2.0-linux-arm64-aarch64.tar.gz"]

    def test_overwrite_rerun(self, make_config):
        """允许覆盖时重复运行得到相同的归档"""
        config = make_config(output={"overwrite": True})
        first = BuildPipeline().execute(config)
        first_bytes = first.archive_path.read_bytes()

        second = BuildPipeline().execute(config)

        assert second.archive_path == first.archive_path
        assert second.sha256 == first.sha256
        assert second.archive_path.read_bytes() == first_bytes

    def test_concurrent_runs_for_distinct_targets(self, make_config, tmp_path):
        """不同目标平台的并发运行共享输出目录互不干扰"""
        platforms = ["linux-arm64", "linux-amd64", "darwin-arm64", "windows-amd64"]
        results = {}
        failures = []

        def run(platform):
            try:
                results[platform] = BuildPipeline().execute(make_config(metadata={"target_platform": platform}))
            except Exception as e:
                failures.append(e)

        threads = [threading.Thread(target=run, args=(p,)) for p in platforms]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert failures == []
        names = sorted(p.name for p in (tmp_path / "dist").iterdir())
        assert names == sorted(f"svc-v1.2.0-{p}-aarch64.tar.gz" for p in platforms)
        assert list((tmp_path / "staging").iterdir()) == []

        # 内容相同，仅名称不同
        assert len({r.sha256 for r in results.values()}) == 1


class TestPackager:
    """Packager 测试"""

    def test_success(self, make_config):
        result = Packager().package(make_config())

        assert result.success
        assert result.version == "v1.2.0"
        assert result.output_path.is_file()
        assert result.output_size == result.output_path.stat().st_size
        assert result.error is None
        assert result.failed_stage is None

    def test_failure_reports_stage(self, make_config):
        """失败不抛出，返回失败阶段和错误信息"""
        result = Packager().package(make_config(identity={"release_tag": None}))

        assert not result.success
        assert result.failed_stage == LogStage.VERSION
        assert result.error.startswith("[VERSION]")
        assert result.output_path is None

    def test_unreadable_archive_reports_write_stage(self, make_config):
        with patch("relpack.build.writer.calculate_archive_hash", side_effect=OSError("io error")):
            result = Packager().package(make_config())

        assert not result.success
        assert result.failed_stage == LogStage.WRITE

    def test_validate_build_pipeline(self):
        assert Packager().validate_build_pipeline() == []

    def test_custom_pipeline(self):
        pipeline = BuildPipeline()
        assert Packager(pipeline).get_pipeline() is pipeline
