"""Intermediate store for results whose column layout is only known after the batch."""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path
from typing import Iterator

from ..config.settings import settings
from ..extraction.results import ContainerResult
from ..mapping.models import ContainerMapping
from .writer import output_file_name

logger = logging.getLogger(__name__)


class IntermediateStore:
    """Keeps one JSON-lines file per container, one line per document."""

    def __init__(self, keep: bool | None = None) -> None:
        self.keep = settings.keep_intermediate if keep is None else keep
        self._tempdir: tempfile.TemporaryDirectory | None = None
        self.directory: Path | None = None
        self._counts: dict[str, int] = {}

    def open(self) -> None:
        if self.keep:
            self.directory = Path(tempfile.mkdtemp(prefix="xck-"))
            logger.info("Keeping intermediate results in %s", self.directory)
        else:
            self._tempdir = tempfile.TemporaryDirectory(prefix="xck-")
            self.directory = Path(self._tempdir.name)

    def _path(self, container: ContainerMapping) -> Path:
        if self.directory is None:
            self.open()
        return self.directory / (output_file_name(container.name) + ".jsonl")

    def append(self, result: ContainerResult) -> None:
        with open(self._path(result.mapping), "a", encoding="utf-8") as f:
            f.write(json.dumps(result.to_dict()))
            f.write("\n")
        name = result.mapping.name
        self._counts[name] = self._counts.get(name, 0) + 1

    def read(self, container: ContainerMapping) -> Iterator[ContainerResult]:
        path = self._path(container)
        if not path.exists():
            return
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    yield ContainerResult.from_dict(container, json.loads(line))

    def count(self, container: ContainerMapping) -> int:
        return self._counts.get(container.name, 0)

    def cleanup(self) -> None:
        if self._tempdir is not None:
            self._tempdir.cleanup()
            self._tempdir = None
            self.directory = None
