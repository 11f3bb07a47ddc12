"""Parsing of npm package arguments (``name@spec``) and hosted git specs."""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import quote, urlparse

logger = logging.getLogger("deptree.parsers.npm.package_arg")

DEFAULT_SPEC = "latest"

_SHORTCUT_HOSTS = {
    "github": "github",
    "gitlab": "gitlab",
    "bitbucket": "bitbucket",
}

_DOMAIN_HOSTS = {
    "github.com": "github",
    "gitlab.com": "gitlab",
    "bitbucket.org": "bitbucket",
}

_RAW_URL_TEMPLATES = {
    "github": "https://raw.githubusercontent.com/{user}/{project}/{ref}/package.json",
    "gitlab": "https://gitlab.com/{user}/{project}/-/raw/{ref}/package.json",
    "bitbucket": "https://bitbucket.org/{user}/{project}/raw/{ref}/package.json",
}

# user/repo or user/repo#ref; npm treats this as a GitHub shortcut.
# Local paths (./x, ../x, /x, ~/x) never match.
_GITHUB_SHORTHAND = re.compile(r"^(?P<user>[A-Za-z0-9][\w.-]*)/(?P<project>[\w.-]+)(?:#(?P<ref>.+))?$")


@dataclass(frozen=True)
class HostedRef:
    """A package spec pointing at a repository on a known source host.

    Attributes:
        host: ``github``, ``gitlab``, ``bitbucket``, or the raw domain when
            the host is not recognized.
        user: Repository owner.
        project: Repository name without ``.git``.
        committish: Branch, tag or commit, None for the default branch.
    """

    host: str
    user: str
    project: str
    committish: Optional[str] = None

    @property
    def recognized(self) -> bool:
        return self.host in _RAW_URL_TEMPLATES

    def raw_manifest_url(self, default_ref: str = "HEAD") -> str:
        """URL of ``package.json`` on the host's raw-content endpoint."""
        if not self.recognized:
            raise ValueError(f"unsupported git host: {self.host}")
        return _RAW_URL_TEMPLATES[self.host].format(
            user=self.user,
            project=self.project,
            ref=self.committish or default_ref,
        )


def split_package_arg(arg: str) -> Tuple[str, str]:
    """Split ``name@spec`` into ``(name, spec)``.

    Scoped names keep their leading ``@``. A missing spec becomes ``latest``.

    Examples:
        ``lodash`` -> ``("lodash", "latest")``
        ``@babel/core@^7`` -> ``("@babel/core", "^7")``
    """
    arg = (arg or "").strip()
    if arg.startswith("@"):
        at = arg.find("@", 1)
    else:
        at = arg.find("@")
    if at <= 0:
        return arg, DEFAULT_SPEC
    name, spec = arg[:at], arg[at + 1:].strip()
    return name, spec or DEFAULT_SPEC


def escape_name(name: str) -> str:
    """Escape a package name for a registry URL (``@scope/x`` -> ``@scope%2Fx``)."""
    return quote(name, safe="@")


def is_git_spec(spec: str) -> bool:
    """Return True when ``spec`` denotes a source-control reference."""
    spec = (spec or "").strip()
    if spec.startswith(("git", "gitlab:", "bitbucket:")):
        return True
    return bool(_GITHUB_SHORTHAND.match(spec))


def parse_hosted_ref(spec: str) -> Optional[HostedRef]:
    """Parse a source-control spec into a :class:`HostedRef`.

    Supports ``github:user/repo#ref`` style shortcuts, ``user/repo`` shorthand,
    and ``git+https://``, ``git://``, ``git+ssh://git@`` URLs.

    Returns:
        Optional[HostedRef]: Parsed reference, None if ``spec`` is not a git
        spec or does not name an owner and repository.
    """
    spec = (spec or "").strip()
    if not is_git_spec(spec):
        return None

    body, _, committish = spec.partition("#")
    committish = committish or None

    prefix, sep, rest = body.partition(":")
    if sep and prefix in _SHORTCUT_HOSTS and not rest.startswith("//"):
        return _from_path(_SHORTCUT_HOSTS[prefix], rest, committish)

    match = _GITHUB_SHORTHAND.match(spec)
    if match and "://" not in spec:
        return HostedRef(
            host="github",
            user=match.group("user"),
            project=_strip_git_suffix(match.group("project")),
            committish=match.group("ref"),
        )

    url = body
    if url.startswith("git+"):
        url = url[len("git+"):]
    # scp-like form: git@github.com:user/repo.git
    if "://" not in url and "@" in url and ":" in url:
        user_host, _, path = url.partition(":")
        url = f"ssh://{user_host}/{path}"

    parsed = urlparse(url)
    domain = (parsed.hostname or "").lower()
    if domain.startswith("www."):
        domain = domain[len("www."):]
    if not domain:
        return None
    host = _DOMAIN_HOSTS.get(domain, domain)
    return _from_path(host, parsed.path, committish)


def _from_path(host: str, path: str, committish: Optional[str]) -> Optional[HostedRef]:
    parts = [p for p in path.strip("/").split("/") if p]
    if len(parts) < 2:
        logger.debug("Git spec path %r does not name owner/repo", path)
        return None
    return HostedRef(
        host=host,
        user=parts[0],
        project=_strip_git_suffix(parts[1]),
        committish=committish,
    )


def _strip_git_suffix(project: str) -> str:
    return project[:-4] if project.endswith(".git") else project


def make_mark(name: str, version: str) -> str:
    """Canonical ``name@version`` identifier."""
    return f"{name}@{version}"


__all__ = [
    "DEFAULT_SPEC",
    "HostedRef",
    "escape_name",
    "is_git_spec",
    "make_mark",
    "parse_hosted_ref",
    "split_package_arg",
]
