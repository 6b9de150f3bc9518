"""项目目录定位测试"""

from __future__ import annotations

from pathlib import Path

import pytest

from vendorsync.core.exceptions import VendorNotFoundError
from vendorsync.core.paths import find_project_root, find_vendor_dir


class TestFindProjectRoot:
    def test_walks_up_to_manifest(self, project: Path) -> None:
        deep = project / "a" / "b"
        deep.mkdir(parents=True)
        assert find_project_root(deep) == project.resolve()
        assert find_vendor_dir(deep) == project.resolve() / "vendor"

    def test_custom_manifest_name(self, tmp_path: Path) -> None:
        (tmp_path / "deps.yml").write_text("imports: []\n")
        assert find_project_root(tmp_path, manifest_name="deps.yml") == tmp_path.resolve()

    def test_not_found(self, tmp_path: Path) -> None:
        with pytest.raises(VendorNotFoundError):
            find_project_root(tmp_path, manifest_name="definitely-not-here-7f3a.yml")
