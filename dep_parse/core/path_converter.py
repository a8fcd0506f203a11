"""Conversion of Go import paths to version-control repository URLs."""

import re
from typing import Optional

KNOWN_HOSTS = ("github.com", "bitbucket.org", "gitlab.com")

_HOSTED_REPO = re.compile(
    r"^(?P<host>github\.com|bitbucket\.org|gitlab\.com)"
    r"/(?P<owner>[\w.-]+)/(?P<repo>[\w.-]+)"
)
# gopkg.in/pkg.v3 -> github.com/go-pkg/pkg, gopkg.in/user/pkg.v3 -> github.com/user/pkg
_GOPKG_IN = re.compile(
    r"^gopkg\.in/(?:(?P<user>[\w-]+)/)?(?P<pkg>[\w.-]+?)\.v\d+(?:[/.-].*)?$"
)
# Any host where the path spells out the repository root, e.g. example.com/repo.git
_EXPLICIT_VCS = re.compile(
    r"^(?P<root>[\w-]+(?:\.[\w-]+)+(?::\d+)?/[\w./-]*?[\w-])\.git(?:/.*)?$"
)


def git_url_for_path(path: str) -> Optional[str]:
    """Return the git URL for an import path, if it follows a known convention.

    Args:
        path: Import-style path, e.g. ``github.com/pkg/errors/subpkg``

    Returns:
        Repository URL such as ``https://github.com/pkg/errors``, or None
    """
    if not path:
        return None

    import_path = re.sub(r"^(?:https?://|git\+ssh://|ssh://)", "", path.strip()).rstrip("/")
    import_path = re.sub(r"^golang\.org/x/", "github.com/golang/", import_path)

    match = _HOSTED_REPO.match(import_path)
    if match:
        repo = re.sub(r"\.git$", "", match.group("repo"))
        return f"https://{match.group('host')}/{match.group('owner')}/{repo}"

    match = _GOPKG_IN.match(import_path)
    if match:
        pkg = match.group("pkg")
        user = match.group("user") or f"go-{pkg}"
        return f"https://github.com/{user}/{pkg}"

    match = _EXPLICIT_VCS.match(import_path)
    if match:
        return f"https://{match.group('root')}"

    return None
