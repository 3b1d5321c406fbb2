"""Host build-system interface and the two bundled implementations."""

from __future__ import annotations

import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from variantforge.errors import ConfigError
from variantforge.logging import get_logger

logger = get_logger("host")


class BuildHost(ABC):
    """What the loader needs from the build tool running it.

    Attributes:
        resource_path: Path of the image being processed.
        resource_query: Raw local query string (``"?preset=thumb"``), or
            ``""`` when the resource was requested without one.
        root_context: Directory output ``[path]`` names are relative to.
    """

    def __init__(
        self,
        resource_path: str | Path,
        resource_query: str = "",
        root_context: str | Path | None = None,
    ) -> None:
        self.resource_path = str(resource_path)
        self.resource_query = resource_query
        self.root_context = str(
            root_context if root_context is not None else Path.cwd()
        )
        self.is_cacheable = False

    def cacheable(self, flag: bool = True) -> None:
        """Declare that the output depends only on the declared inputs."""
        self.is_cacheable = flag

    @abstractmethod
    def emit_file(self, name: str, content: bytes) -> None:
        """Publish *content* under *name* in the build output.

        Emitting the same name twice overwrites the earlier content.
        """


class MemoryHost(BuildHost):
    """Collects emitted files in memory, keyed by name."""

    def __init__(
        self,
        resource_path: str | Path,
        resource_query: str = "",
        root_context: str | Path | None = None,
    ) -> None:
        super().__init__(resource_path, resource_query, root_context)
        self.files: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def emit_file(self, name: str, content: bytes) -> None:
        with self._lock:
            self.files[name] = content


class DirectoryHost(BuildHost):
    """Writes emitted files below an output directory."""

    def __init__(
        self,
        resource_path: str | Path,
        output_dir: str | Path,
        resource_query: str = "",
        root_context: str | Path | None = None,
    ) -> None:
        super().__init__(resource_path, resource_query, root_context)
        self.output_dir = Path(output_dir)
        self.emitted: list[Path] = []
        self._lock = threading.Lock()

    def _target(self, name: str) -> Path:
        root = self.output_dir.resolve()
        target = (root / name).resolve()
        if os.path.commonpath([root, target]) != str(root):
            raise ConfigError(f"Refusing to emit outside the output directory: {name}")
        return target

    def emit_file(self, name: str, content: bytes) -> None:
        target = self._target(name)
        # Same-name emissions from concurrent variants must not interleave.
        with self._lock:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
            if target not in self.emitted:
                self.emitted.append(target)
        logger.debug("Emitted %s (%d bytes)", target, len(content))
