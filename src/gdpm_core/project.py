"""Project session: owns the Document of one project file."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .config import Settings
from .dependency import is_valid_addon_name
from .document import Document
from .errors import DescriptorError, MalformedProjectError, NotFoundError, ProjectNotFoundError
from .fs import FileSystem, LocalFileSystem
from .reader import parse
from .values import VString, as_str
from .writer import serialize

logger = logging.getLogger(__name__)

APPLICATION_SECTION = "application"
ENGINE_SECTION = "engine"


@dataclass
class ProjectInfo:
    name: str
    version: str | None = None
    main_scene: str | None = None
    engine_version: str | None = None

    @property
    def versioned_name(self) -> str:
        return f"{self.name} (v{self.version})" if self.version else self.name

    @classmethod
    def from_document(cls, doc: Document) -> ProjectInfo:
        name = as_str(doc.get_property(APPLICATION_SECTION, "config/name"))
        if name is None:
            raise MalformedProjectError("missing 'config/name' in [application]")
        return cls(
            name=name,
            version=as_str(doc.get_property(APPLICATION_SECTION, "config/version")),
            main_scene=as_str(doc.get_property(APPLICATION_SECTION, "run/main_scene")),
            engine_version=as_str(doc.get_property(ENGINE_SECTION, "version")),
        )


class Project:
    """A project directory and its parsed settings file.

    Usage::

        project = Project.open("path/to/game")
        project.document.set_property("application", "config/version", VString("1.2"))
        project.save()

    The file is only ever rewritten as a whole, by ``save()``.
    """

    def __init__(
        self,
        root: Path | str,
        document: Document | None = None,
        settings: Settings | None = None,
        fs: FileSystem | None = None,
    ) -> None:
        self.root = Path(root)
        self.document = document if document is not None else Document()
        self.settings = settings or Settings()
        self.fs: FileSystem = fs or LocalFileSystem()

    @classmethod
    def open(
        cls,
        root: Path | str,
        settings: Settings | None = None,
        fs: FileSystem | None = None,
    ) -> Project:
        """Load the project file under *root*; ParseError leaves it untouched."""
        project = cls(root, settings=settings, fs=fs)
        project.reload()
        return project

    # -- Paths ------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self.root / self.settings.project_file

    @property
    def addons_path(self) -> Path:
        return self.root / self.settings.addons_dir

    def addon_path(self, name: str) -> Path:
        """``addons/<name>``; raises DescriptorError unless *name* is one folder."""
        path = self.addons_path / name
        if not is_valid_addon_name(name) or (
            os.path.dirname(os.path.normpath(path)) != os.path.normpath(self.addons_path)
        ):
            raise DescriptorError(name, "invalid addon folder name")
        return path

    # -- Persistence --------------------------------------------------------

    def reload(self) -> None:
        if not self.fs.exists(self.path):
            raise ProjectNotFoundError(str(self.path))
        self.document = parse(self.fs.read_text(self.path))

    def save(self) -> None:
        text = serialize(self.document)
        self.fs.write_text(self.path, text)
        logger.info("Saved '%s'.", self.path)

    # -- Metadata -----------------------------------------------------------

    def info(self) -> ProjectInfo:
        return ProjectInfo.from_document(self.document)

    def set_engine(self, version: str) -> None:
        self.document.set_property(ENGINE_SECTION, "version", VString(version))
        self.save()

    def unset_engine(self) -> None:
        if self.document.remove_property(ENGINE_SECTION, "version") is None:
            raise NotFoundError("version", what="engine association")
        self.save()
