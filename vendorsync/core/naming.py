"""导入路径规范化

把完整导入路径拆成 (仓库根, 子包后缀)。仓库根是能唯一标识一个上游
项目的最短前缀，按托管站点约定取段数:

  github.com/org/proj/sub     -> ("github.com/org/proj", "sub")
  gopkg.in/yaml.v2            -> ("gopkg.in/yaml.v2", "")
  gopkg.in/user/pkg.v1/sub    -> ("gopkg.in/user/pkg.v1", "sub")
  example.com/repo.git/sub    -> ("example.com/repo.git", "sub")
  example.com/a/sub1          -> ("example.com/a", "sub1")

纯函数，不做任何网络探测。
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from vendorsync.core.exceptions import NormalizationError

# 站点 -> 仓库根所占段数（含站点本身）
KNOWN_HOSTS: dict[str, int] = {
    "github.com": 3,
    "bitbucket.org": 3,
    "gitlab.com": 3,
    "golang.org": 3,            # golang.org/x/<name>
    "launchpad.net": 2,
    "go.googlesource.com": 2,
    "google.golang.org": 2,
    "hub.jazz.net": 4,          # hub.jazz.net/git/<user>/<project>
}

DEFAULT_SEGMENTS = 2

_VCS_SUFFIX_RE = re.compile(r"\.(git|hg|bzr|svn)$")
_GOPKG_VERSION_RE = re.compile(r"\.v\d+$")
_WHITESPACE_RE = re.compile(r"\s")


def _split(path: str) -> list[str]:
    if not path or _WHITESPACE_RE.search(path):
        raise NormalizationError(f"导入路径为空或含空白字符: {path!r}")

    p = path.replace("\\", "/")
    if p.startswith("/"):
        raise NormalizationError(f"导入路径不能是绝对路径: {path!r}")
    while p.startswith("vendor/"):
        p = p[len("vendor/"):]
    p = p.rstrip("/")

    segments = p.split("/")
    if any(s in ("", ".", "..") for s in segments):
        raise NormalizationError(f"导入路径含非法段: {path!r}")
    if "." not in segments[0]:
        raise NormalizationError(f"导入路径首段不是域名: {path!r}")
    return segments


def _root_segments(segments: list[str], extra_hosts: Mapping[str, int] | None) -> int:
    for i, seg in enumerate(segments):
        if _VCS_SUFFIX_RE.search(seg):
            return i + 1

    host = segments[0]
    if extra_hosts and host in extra_hosts:
        return extra_hosts[host]
    if host == "gopkg.in":
        # gopkg.in/pkg.v1 或 gopkg.in/user/pkg.v1
        if len(segments) > 1 and _GOPKG_VERSION_RE.search(segments[1]):
            return 2
        return 3
    return KNOWN_HOSTS.get(host, DEFAULT_SEGMENTS)


def normalize_name(path: str, extra_hosts: Mapping[str, int] | None = None) -> tuple[str, str]:
    """返回 (仓库根, 子包后缀)，后缀可能为空

    异常:
        NormalizationError: 路径格式错误或段数不足
    """
    segments = _split(path)
    count = _root_segments(segments, extra_hosts)
    if len(segments) < count:
        raise NormalizationError(
            f"导入路径段数不足: {path!r} ({segments[0]} 需要 {count} 段)"
        )
    return "/".join(segments[:count]), "/".join(segments[count:])


def repo_root(path: str, extra_hosts: Mapping[str, int] | None = None) -> str:
    return normalize_name(path, extra_hosts)[0]
