"""测试公共夹具"""

from pathlib import Path

import pytest

from relpack.config.schema import PackagingConfig

BINARY_CONTENT = b"\x7fELF fake release binary\n"
ASSET_FILES = {
    "index.html": b"<html><body>svc</body></html>\n",
    "static/app.js": b"console.log('svc');\n",
    "static/css/site.css": b"body { margin: 0; }\n",
}


@pytest.fixture
def release_sources(tmp_path) -> dict:
    """创建编译产物与资源目录"""
    binary = tmp_path / "target" / "release" / "svc"
    binary.parent.mkdir(parents=True)
    binary.write_bytes(BINARY_CONTENT)
    binary.chmod(0o755)

    assets = tmp_path / "ui" / "build"
    for rel, content in ASSET_FILES.items():
        path = assets / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        path.chmod(0o644)

    return {"binary": binary, "assets": assets}


@pytest.fixture
def make_config(tmp_path, release_sources):
    """按覆盖项构建打包配置"""

    def factory(**sections) -> PackagingConfig:
        data = {
            "identity": {"release_tag": "v1.2.0"},
            "metadata": {
                "product_name": "svc",
                "target_platform": "linux-arm64",
                "job_name": "aarch64",
            },
            "sources": {
                "binary_path": str(release_sources["binary"]),
                "asset_dir": str(release_sources["assets"]),
            },
            "output": {
                "dist_dir": str(tmp_path / "dist"),
                "staging_dir": str(tmp_path / "staging"),
            },
        }
        for section, values in sections.items():
            data.setdefault(section, {}).update(values)
        return PackagingConfig.model_validate(data)

    return factory


def _read_tree(root: Path) -> dict:
    tree = {}
    for path in sorted(root.rglob("*")):
        rel = path.relative_to(root).as_posix()
        tree[rel] = None if path.is_dir() else path.read_bytes()
    return tree


@pytest.fixture
def read_tree():
    """读取目录树为 {相对路径: 内容}，目录的值为 None"""
    return _read_tree
