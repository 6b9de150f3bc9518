"""依赖聚合 - 扁平导入路径列表 -> 每个仓库一条 Dependency

解析器返回的包列表中，同一仓库往往以多个子包出现多次。聚合按首次
出现顺序为每个仓库根生成一条记录，并把各子包后缀合并进 subpackages。

子包合并策略:
  - 默认不去重：同一子包出现多次就追加多次，["sub1", "sub2", "sub1"]
  - dedupe_subpackages=True：仅保留首次出现，["sub1", "sub2"]
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from vendorsync.core.exceptions import NormalizationError
from vendorsync.core.models import Dependency
from vendorsync.core.naming import normalize_name

logger = logging.getLogger(__name__)


def deps_from_packages(
    pkgs: Iterable[str],
    *,
    dedupe_subpackages: bool = False,
    extra_hosts: Mapping[str, int] | None = None,
) -> list[Dependency]:
    """把导入路径序列折叠为按仓库根唯一的依赖列表（保持首次出现顺序）

    无法规范化的路径记录告警后跳过，不影响其余路径。
    新建记录的 reference 为空（未解析）。
    """
    seen: dict[str, Dependency] = {}
    # 顺序有意义
    deps: list[Dependency] = []

    for p in pkgs:
        try:
            root, sub = normalize_name(p, extra_hosts)
        except NormalizationError as e:
            logger.warning("跳过无法识别的导入路径: %s", e)
            continue

        dep = seen.get(root)
        if dep is None:
            dep = Dependency(name=root, subpackages=[sub] if sub else [])
            seen[root] = dep
            deps.append(dep)
        elif sub:
            if dedupe_subpackages and sub in dep.subpackages:
                continue
            dep.subpackages.append(sub)
    return deps
