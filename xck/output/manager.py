"""Routes extraction results to CSV files, directly or after the whole batch."""

from __future__ import annotations

import logging
from pathlib import Path

from ..exceptions import OutputError
from ..extraction.results import ContainerResult
from ..mapping.models import ContainerMapping, MappingConfiguration
from .field_names import FieldNameGenerator
from .intermediate import IntermediateStore
from .records import iter_records
from .writer import CsvWriter, output_file_name

logger = logging.getLogger(__name__)


class OutputManager:
    """Owns the CSV writers of one conversion run.

    Containers with fixed output cardinality get their header immediately and
    their rows as each document is written. All other containers are kept in
    an intermediate store; their header and rows are written on :meth:`close`,
    once every document has raised the highest found value counts.

    Args:
        configuration: Built mapping configuration
        output_dir: Directory receiving one CSV file per top-level container
        append: Append rows to existing CSV files instead of replacing them
    """

    def __init__(
        self,
        configuration: MappingConfiguration,
        output_dir: Path,
        append: bool = False,
        store: IntermediateStore | None = None,
    ) -> None:
        self.configuration = configuration
        self.output_dir = Path(output_dir)
        self.append = append
        self.store = store or IntermediateStore()
        self.writers: dict[str, CsvWriter] = {}
        self.deferred: list[ContainerMapping] = []
        self.rows_written: dict[str, int] = {}

    def __enter__(self) -> OutputManager:
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self.store.cleanup()

    def path_for(self, container: ContainerMapping) -> Path:
        return self.output_dir / output_file_name(container.name)

    def open(self) -> None:
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputError(f"Unable to create output directory {self.output_dir}: {e}")
        for container in self.configuration:
            if container.has_fixed_output_cardinality():
                writer = CsvWriter(self.path_for(container), FieldNameGenerator(container).field_names(), self.append)
                writer.open()
                self.writers[container.name] = writer
            else:
                logger.info("%s: column count depends on the data, deferring output until the batch is complete", container.name)
                self.deferred.append(container)

    def write(self, results: dict[str, ContainerResult]) -> None:
        """Write or store the results of one document."""
        for name, result in results.items():
            writer = self.writers.get(name)
            if writer is not None:
                writer.write_rows(iter_records(result))
            else:
                self.store.append(result)

    def close(self) -> dict[str, int]:
        """Write every deferred container and return the rows written per container."""
        try:
            for container in self.deferred:
                writer = CsvWriter(self.path_for(container), FieldNameGenerator(container).field_names(), self.append)
                writer.open()
                for result in self.store.read(container):
                    writer.write_rows(iter_records(result))
                self.writers[container.name] = writer
        finally:
            self.store.cleanup()
        self.rows_written = {c.name: self.writers[c.name].rows_written for c in self.configuration}
        return self.rows_written
