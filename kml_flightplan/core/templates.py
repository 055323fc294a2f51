"""Read-only template package stores.

A template store maps a template id (e.g. ``templates/200ft/Test3correct.kmz``)
to the raw bytes of a template package.  The compiler receives a store
as injected configuration; swapping the store's contents changes mission
semantics without code changes.

Stores never hand out anything mutable: callers get a fresh ``bytes``
object and always stage a working copy before rewriting.
"""

from __future__ import annotations

import abc
import logging
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from kml_flightplan.core.exceptions import PermanentError

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger("kml_flightplan.core.templates")


class TemplateNotFoundError(PermanentError):
    """Raised when a template id is not present in the store."""

    default_stage = "templates"
    default_code = "TEMPLATE_NOT_FOUND"


class TemplateStore(abc.ABC):
    """Abstract read-only key-value store of template packages."""

    @abc.abstractmethod
    def load(self, template_id: str) -> bytes:
        """Return the package bytes for *template_id*.

        Raises:
            TemplateNotFoundError: If the store has no such template.
        """

    def contains(self, template_id: str) -> bool:
        """Whether *template_id* can be loaded."""
        try:
            self.load(template_id)
        except TemplateNotFoundError:
            return False
        return True


class DirectoryTemplateStore(TemplateStore):
    """Template store backed by a directory tree.

    Template ids are POSIX-style paths relative to *root*; ids that are
    absolute or climb out of *root* are treated as missing.
    """

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        """Return the store root directory."""
        return self._root

    def load(self, template_id: str) -> bytes:
        relative = PurePosixPath(template_id)
        if relative.is_absolute() or ".." in relative.parts:
            msg = f"Template id {template_id!r} is not a relative template path."
            raise TemplateNotFoundError(msg)

        path = self._root.joinpath(*relative.parts)
        try:
            data = path.read_bytes()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as exc:
            msg = f"Mission template {template_id!r} is not installed."
            raise TemplateNotFoundError(msg) from exc

        logger.debug("Loaded template | template=%s | size=%d", template_id, len(data))
        return data


class MappingTemplateStore(TemplateStore):
    """Template store backed by an in-memory mapping of id to bytes."""

    def __init__(self, templates: Mapping[str, bytes]) -> None:
        self._templates = dict(templates)

    def load(self, template_id: str) -> bytes:
        try:
            return bytes(self._templates[template_id])
        except KeyError:
            msg = f"Mission template {template_id!r} is not installed."
            raise TemplateNotFoundError(msg) from None
