"""Dependency synchronization engine.

Reconciliation is split in two steps: ``plan_sync``/``plan_desync`` are pure
functions from (declared dependencies, addon folders on disk) to a list of
actions, and ``DependencyManager`` applies those actions through the
filesystem and remote collaborators.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from .dependency import (
    CURRENT,
    Dependency,
    DependencySource,
    DescriptorView,
    GitSource,
    PathSource,
    delete_dependency,
    get_dependency,
    is_valid_addon_name,
    read_dependencies,
    write_dependency,
)
from .document import Document
from .errors import (
    CannotDesyncError,
    DescriptorError,
    FileSystemError,
    GdpmError,
    InstallError,
    NotFoundError,
    RemoteError,
)
from .git import GitRemote, Remote
from .project import Project

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Plans and reports
# ---------------------------------------------------------------------------

@dataclass
class SyncPlan:
    install: list[Dependency] = field(default_factory=list)
    register: list[str] = field(default_factory=list)
    # current dependencies whose folder is absent; nothing can restore them
    missing: list[str] = field(default_factory=list)


@dataclass
class SyncReport:
    installed: list[str] = field(default_factory=list)
    registered: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    failed: dict[str, GdpmError] = field(default_factory=dict)
    # current dependencies declared without an addon folder
    missing: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.missing


def _lookup(view: DescriptorView, name: str) -> Dependency | None:
    """Filtered lookup: a malformed entry raises its DescriptorError."""
    dep = view.get(name)
    if dep is None:
        for err in view.errors:
            if err.entry == name:
                raise err
    return dep


def plan_sync(
    view: DescriptorView, installed: Iterable[str], name: str | None = None
) -> SyncPlan:
    """Install what is declared but absent; register undeclared folders.

    Registration only happens without a *name* filter, in sorted order.
    """
    on_disk = set(installed)
    if name is not None:
        dep = _lookup(view, name)
        if dep is None:
            raise NotFoundError(name)
        candidates = [dep]
    else:
        candidates = view.dependencies

    plan = SyncPlan()
    for dep in candidates:
        if dep.name in on_disk:
            continue
        if dep.is_current:
            plan.missing.append(dep.name)
        else:
            plan.install.append(dep)

    if name is None:
        declared = set(view.names)
        plan.register = sorted(d for d in on_disk if d not in declared)
    return plan


def plan_desync(
    view: DescriptorView, installed: Iterable[str], name: str | None = None
) -> list[str]:
    """Folders to delete.

    Without a filter: every folder no declared entry refers to. With a
    filter: only ``name``, refused for current dependencies.
    """
    on_disk = set(installed)
    if name is None:
        declared = set(view.names)
        return sorted(d for d in on_disk if d not in declared)

    dep = _lookup(view, name)
    if dep is not None and dep.is_current:
        raise CannotDesyncError(name)
    if not is_valid_addon_name(name):
        raise DescriptorError(name, "invalid addon folder name")
    return [name] if name in on_disk else []


# ---------------------------------------------------------------------------
# DependencyManager
# ---------------------------------------------------------------------------

class DependencyManager:
    """Applies dependency operations to one project.

    Every operation that changes declarations saves the whole project file
    before returning.
    """

    def __init__(self, project: Project, remote: Remote | None = None) -> None:
        self.project = project
        self.fs = project.fs
        self.remote: Remote = remote or GitRemote(project.settings.git_executable)
        self.section = project.settings.dependencies_section

    @property
    def document(self) -> Document:
        return self.project.document

    # -- Queries ----------------------------------------------------------

    def view(self) -> DescriptorView:
        return read_dependencies(self.document, self.section)

    def list(self) -> list[Dependency]:
        """Declared dependencies in declaration order; malformed ones are skipped."""
        view = self.view()
        for err in view.errors:
            logger.warning("Skipping %s", err)
        return view.dependencies

    def get(self, name: str) -> Dependency:
        return get_dependency(self.document, name, self.section)

    def is_installed(self, name: str) -> bool:
        return self.fs.exists(self.project.addon_path(name))

    def installed_addons(self) -> list[str]:
        """Sorted names of the folders under the addons directory."""
        addons = self.project.addons_path
        if not self.fs.is_dir(addons):
            return []
        return sorted(
            entry for entry in self.fs.list_dir(addons)
            if not entry.startswith(".") and self.fs.is_dir(addons / entry)
        )

    # -- Declarations -----------------------------------------------------

    def add(
        self,
        name: str,
        version: str,
        source: DependencySource = CURRENT,
        install: bool = False,
    ) -> Dependency:
        """Declare (or redeclare) a dependency, optionally installing it.

        The project file is saved only after a successful install; on
        InstallError the document and the file are left as they were.
        """
        dep = Dependency(name=name, version=version, source=source)
        previous = copy.deepcopy(self.document)
        write_dependency(self.document, dep, self.section)

        if install and not dep.is_current:
            try:
                self.install(dep)
            except InstallError:
                self.project.document = previous
                raise

        self.project.save()
        logger.info("Dependency %s added.", dep.describe())
        return dep

    def remove(self, name: str) -> None:
        if self.document.get_property(self.section, name) is None:
            raise NotFoundError(name)

        # an invalid name never had a folder; only the entry goes
        if is_valid_addon_name(name):
            target = self.project.addon_path(name)
            if self.fs.exists(target):
                self.fs.remove_tree(target)
                logger.info("Addon folder '%s' removed.", name)

        delete_dependency(self.document, name, self.section)
        self.project.save()
        logger.info("Dependency '%s' removed.", name)

    def fork(self, name: str) -> Dependency:
        """Detach a dependency from its origin and keep it in the project.

        Forking a dependency that is already current changes nothing.
        """
        dep = self.get(name)
        if dep.is_current:
            logger.info("Dependency '%s' is already part of the project.", name)
            return dep

        if not self.is_installed(name):
            self.install(dep)

        forked = Dependency(name=dep.name, version=dep.version, source=CURRENT)
        write_dependency(self.document, forked, self.section)
        self.project.save()
        logger.info("Dependency '%s' forked into the project.", name)
        return forked

    # -- Installation -----------------------------------------------------

    def install(self, dep: Dependency) -> None:
        """Materialize *dep* into ``addons/<name>``, replacing what is there.

        The content is fetched into a hidden staging folder next to the
        target and only swapped in once complete, so a failed install
        leaves the previous folder untouched.
        """
        if dep.is_current:
            return

        target = self.project.addon_path(dep.name)
        staging = self.project.addons_path / f".{dep.name}.gdpm-tmp"
        try:
            if self.fs.exists(staging):
                self.fs.remove_tree(staging)
            if isinstance(dep.source, PathSource):
                self.fs.copy_tree(self._resolve(dep.source.path), staging)
            elif isinstance(dep.source, GitSource):
                self.remote.clone(dep.source.url, staging)
            if self.fs.exists(target):
                self.fs.remove_tree(target)
            self.fs.rename(staging, target)
        except (FileSystemError, RemoteError) as exc:
            self._discard(staging)
            raise InstallError(dep.name, exc) from exc
        logger.info("Dependency %s installed.", dep.describe())

    def _discard(self, path: Path) -> None:
        if not self.fs.exists(path):
            return
        try:
            self.fs.remove_tree(path)
        except FileSystemError as exc:
            logger.warning("Cannot clean up '%s': %s", path, exc)

    def _resolve(self, path: str) -> Path:
        source = Path(path)
        return source if source.is_absolute() else self.project.root / source

    # -- Reconciliation ---------------------------------------------------

    def sync(self, name: str | None = None) -> SyncReport:
        """Install missing dependencies and register unmanaged addon folders.

        Best effort: each failure is recorded in the report and the
        remaining dependencies are still processed.
        """
        view = self.view()
        plan = plan_sync(view, self.installed_addons(), name)
        report = SyncReport()
        if name is None:
            for err in view.errors:
                report.failed[err.entry] = err

        for addon in plan.register:
            dep = Dependency(addon, self.project.settings.default_version, CURRENT)
            try:
                write_dependency(self.document, dep, self.section)
            except DescriptorError as exc:
                logger.warning("Cannot register addon folder '%s': %s", addon, exc.message)
                report.failed[addon] = exc
                continue
            report.registered.append(addon)
            logger.info("Addon '%s' registered as dependency.", addon)
        if report.registered:
            self.project.save()

        for dep in plan.install:
            try:
                self.install(dep)
            except InstallError as exc:
                logger.error("%s", exc)
                report.failed[dep.name] = exc
            else:
                report.installed.append(dep.name)

        for missing in plan.missing:
            logger.warning("Addon folder of current dependency '%s' is missing.", missing)
            report.missing.append(missing)

        return report

    def desync(self, name: str | None = None) -> SyncReport:
        """Delete addon folders that the declarations do not keep.

        See ``plan_desync`` for the selection rules.
        """
        report = SyncReport()
        for addon in plan_desync(self.view(), self.installed_addons(), name):
            try:
                self.fs.remove_tree(self.project.addon_path(addon))
            except FileSystemError as exc:
                logger.error("%s", exc)
                report.failed[addon] = exc
            else:
                report.removed.append(addon)
                logger.info("Addon folder '%s' removed.", addon)
        return report
