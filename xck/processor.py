"""Batch conversion of XML files into CSV files."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from lxml import etree
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from .exceptions import ExtractionError
from .extraction.extractor import DocumentExtractor
from .mapping.models import MappingConfiguration
from .output.manager import OutputManager

logger = logging.getLogger(__name__)


@dataclass
class ConversionStats:
    """Outcome of a conversion run."""

    processed: int = 0
    skipped: int = 0
    failed: int = 0
    rows: dict[str, int] = field(default_factory=dict)
    errors: list[tuple[str, str]] = field(default_factory=list)


class ConversionProcessor:
    """Converts a batch of XML documents with one mapping configuration.

    Args:
        configuration: Built mapping configuration
        output_dir: Directory receiving the CSV files
        append: Append to existing CSV files
        fail_fast: Stop at the first document that cannot be converted
        console: Console used for progress display
    """

    def __init__(
        self,
        configuration: MappingConfiguration,
        output_dir: Path,
        append: bool = False,
        fail_fast: bool = False,
        console: Console | None = None,
    ) -> None:
        self.configuration = configuration
        self.output_dir = Path(output_dir)
        self.append = append
        self.fail_fast = fail_fast
        self.console = console or Console(stderr=True)

    @staticmethod
    def expand_inputs(inputs: Iterable[Path]) -> list[Path]:
        """Expand directories into their ``*.xml`` files, sorted by name."""
        files: list[Path] = []
        for entry in inputs:
            entry = Path(entry)
            if entry.is_dir():
                found = sorted(p for p in entry.glob("*.xml") if p.is_file())
                logger.info("%s: %d XML file(s)", entry, len(found))
                files.extend(found)
            else:
                files.append(entry)
        return files

    def process(self, inputs: Iterable[Path]) -> ConversionStats:
        """Convert every input file and write the CSV outputs.

        Raises:
            ExtractionError: For the first failing document when ``fail_fast`` is set
            OutputError: If an output file cannot be written
        """
        files = self.expand_inputs(inputs)
        stats = ConversionStats()

        with OutputManager(self.configuration, self.output_dir, append=self.append) as output:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                console=self.console,
                transient=True
            ) as progress:
                task = progress.add_task(f"[blue]Converting {len(files)} file(s)...[/blue]", total=len(files))
                for path in files:
                    try:
                        if self.process_document(path, output):
                            stats.processed += 1
                        else:
                            stats.skipped += 1
                    except ExtractionError as e:
                        if self.fail_fast:
                            raise
                        logger.error("Skipping %s: %s", path, e)
                        stats.failed += 1
                        stats.errors.append((str(path), str(e)))
                    progress.advance(task)
        stats.rows = dict(output.rows_written)
        return stats

    def process_document(self, path: Path, output: OutputManager) -> bool:
        """Extract one file and hand its results to ``output``.

        Returns:
            False if a filter excluded the file
        """
        if not self.configuration.include_file(path):
            logger.info("%s excluded by file filters", path)
            return False
        try:
            document = etree.parse(str(path))
        except (etree.XMLSyntaxError, OSError) as e:
            raise ExtractionError(f"Unable to parse XML: {e}", str(path))
        if not self.configuration.include_document(document):
            logger.info("%s excluded by document filters", path)
            return False
        results = DocumentExtractor(self.configuration, str(path)).extract(document)
        output.write(results)
        logger.debug("%s converted", path)
        return True
