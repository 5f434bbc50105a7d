"""
publishing.py

Responsibility: Collect publishing configuration (POM/SCM info and target
package repositories) and enforce its ordering rules.

Rules:
- `pom`/`git` set up VCS info once. Any later call is a no-op.
- Repositories can only be added after VCS info is set up; doing otherwise
  raises PublishingError.
- Credentials are resolved by convention, never passed in directly:
  `publishing.<name>.user` / `publishing.<name>.token` in the project
  properties, then `PUBLISHING_<NAME>_USER` / `PUBLISHING_<NAME>_TOKEN` in the
  environment.

Nothing in this module talks to a repository over the network.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Mapping

from buildkit.project import PublishingSpec

log = logging.getLogger(__name__)

SONATYPE_ROOT = "https://s01.oss.sonatype.org"


class PublishingError(RuntimeError):
    pass


@dataclass(frozen=True)
class ScmInfo:
    url: str
    connection: str | None = None
    developer_connection: str | None = None


@dataclass(frozen=True)
class Repository:
    name: str
    url: str
    user: str | None = None
    token: str | None = None

    @property
    def has_credentials(self) -> bool:
        return bool(self.user and self.token)


def _env_name(repository: str, suffix: str) -> str:
    slug = re.sub(r"[^A-Za-z0-9]+", "_", repository).strip("_").upper()
    return f"PUBLISHING_{slug}_{suffix}"


def is_in_development(version: str) -> bool:
    """
    True for snapshot and dev versions, which are not released.
    """
    return version.endswith("-SNAPSHOT") or "dev" in version


class Publishing:
    def __init__(self, properties: Mapping[str, str] | None = None, environ: Mapping[str, str] | None = None) -> None:
        self._properties = dict(properties or {})
        self._environ = os.environ if environ is None else environ
        self._vcs_initialized = False
        self.scm: ScmInfo | None = None
        self.repositories: dict[str, Repository] = {}

    @property
    def vcs_initialized(self) -> bool:
        return self._vcs_initialized

    def pom(
        self,
        vcs_url: str,
        connection_url: str | None = None,
        developer_connection_url: str | None = None,
        connection_prefix: str = "scm:git:",
    ) -> None:
        """
        Configure the source repository for the publication.

        The developer connection defaults to `connection_url`. Only the first
        call has an effect; later calls are ignored.
        """
        if self._vcs_initialized:
            log.debug("VCS already set up (%s); ignoring pom(%s)", self.scm.url if self.scm else None, vcs_url)
            return

        developer = developer_connection_url if developer_connection_url is not None else connection_url
        self.scm = ScmInfo(
            url=vcs_url,
            connection=f"{connection_prefix}{connection_url}" if connection_url else None,
            developer_connection=f"{connection_prefix}{developer}" if developer else None,
        )
        self._vcs_initialized = True
        log.info("Publishing VCS set to %s", vcs_url)

    def git(self, vcs_url: str, connection_url: str | None = None, developer_connection_url: str | None = None) -> None:
        self.pom(vcs_url, connection_url, developer_connection_url)

    def _require_vcs(self) -> None:
        if not self._vcs_initialized:
            raise PublishingError("The project vcs is not set up use 'pom' method to do so")

    def credentials(self, name: str) -> tuple[str | None, str | None]:
        user = self._properties.get(f"publishing.{name}.user") or self._environ.get(_env_name(name, "USER"))
        token = self._properties.get(f"publishing.{name}.token") or self._environ.get(_env_name(name, "TOKEN"))
        return user, token

    def repository(self, name: str, url: str) -> Repository:
        """
        Add a repository to publish to. Uses the "publishing.<name>.user" and
        "publishing.<name>.token" properties for credentials.
        """
        self._require_vcs()
        user, token = self.credentials(name)
        repo = Repository(name=name, url=url, user=user, token=token)
        if not repo.has_credentials:
            log.warning("No credentials for publishing repository %r (publishing.%s.user/token)", name, name)
        self.repositories[name] = repo
        log.info("Added publishing repository %s -> %s", name, url)
        return repo

    def github(self, project: str, org: str, add_repository: bool | None = None) -> Repository | None:
        """
        Use GitHub as VCS (unless already set up) and optionally add GitHub
        Packages as a repository.

        `add_repository` defaults to the "publishing.github" property being "true".
        """
        if not self._vcs_initialized:
            self.git(f"https://github.com/{org}/{project}", f"https://github.com/{org}/{project}.git")
        if add_repository is None:
            add_repository = str(self._properties.get("publishing.github", "")).lower() == "true"
        if not add_repository:
            log.debug("GitHub Packages not added for %s/%s (publishing.github is not true)", org, project)
            return None
        return self.repository("github", f"https://maven.pkg.github.com/{org}/{project}/")

    def sonatype(self, root: str = SONATYPE_ROOT) -> Repository:
        return self.repository("sonatype", f"{root.rstrip('/')}/service/local/staging/deploy/maven2/")

    def urls(self) -> list[str]:
        return [r.url for r in self.repositories.values()]


def configure_publishing(
    section: PublishingSpec | None,
    properties: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> Publishing:
    """
    Apply a parsed `publishing` section in a fixed order: VCS, GitHub, named
    repositories, Sonatype.
    """
    publishing = Publishing(properties, environ)
    if section is None:
        return publishing

    if section.vcs:
        publishing.pom(section.vcs, section.connection, section.developer_connection)
    if section.github:
        publishing.github(section.github["project"], section.github["org"])
    for name, url in section.repositories.items():
        publishing.repository(name, url)
    if section.sonatype:
        root = section.sonatype if isinstance(section.sonatype, str) else SONATYPE_ROOT
        publishing.sonatype(root)
    return publishing
