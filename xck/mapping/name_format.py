"""Column name templates.

Templates use positional ``printf`` style placeholders, for example
``%1$s_%4$d``. The positional arguments handed to a template are:

1. the base name of the mapping
2. the 1-based iteration of the mapping
3. the name of the nearest ancestor container
4. the 1-based iteration of the nearest ancestor container

followed by name/iteration pairs for every further ancestor, nearest first.
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

from ..exceptions import ConfigurationError

_PLACEHOLDER = re.compile(r"%(?:(\d+)\$)?(0)?(\d+)?([sd%])")


@dataclass(frozen=True)
class _Placeholder:
    position: int
    conversion: str
    zero_pad: bool
    width: int | None

    def render(self, value: Any) -> str:
        if self.conversion == "d":
            try:
                number = int(value)
            except (TypeError, ValueError):
                raise ConfigurationError(
                    f"Name format argument {self.position} is not a number: {value!r}"
                )
            spec = f"{'0' if self.zero_pad else ''}{self.width or ''}d"
            return format(number, spec)
        text = str(value)
        return text.rjust(self.width) if self.width else text


class NameFormat:
    """A compiled column name template."""

    PREDEFINED: dict[str, str] = {
        "NoCounts": "%1$s",
        "WithCount": "%1$s_%2$d",
        "WithParentCount": "%1$s_%4$d",
        "WithCountAndParentCount": "%1$s_%4$d_%2$d",
    }

    def __init__(self, template: str, label: str | None = None) -> None:
        self.template = template
        self.label = label or "Custom"
        self._parts = self._compile(template)

    @classmethod
    def resolve(cls, value: str) -> NameFormat:
        """Return a predefined format by name, or compile a custom template.

        Raises:
            ConfigurationError: If ``value`` is neither a predefined name nor a template
        """
        if value in cls.PREDEFINED:
            return cls(cls.PREDEFINED[value], label=value)
        if "%" in value:
            return cls(value)
        known = ", ".join(cls.PREDEFINED)
        raise ConfigurationError(
            f"Unknown name format '{value}'; use one of {known} or a custom template"
        )

    @staticmethod
    def _compile(template: str) -> list[str | _Placeholder]:
        parts: list[str | _Placeholder] = []
        ordinary = 0
        pos = 0
        for match in _PLACEHOLDER.finditer(template):
            literal = template[pos:match.start()]
            if "%" in literal:
                raise ConfigurationError(f"Invalid placeholder in name format '{template}'")
            if literal:
                parts.append(literal)
            explicit, zero, width, conversion = match.groups()
            if conversion == "%":
                parts.append("%")
            else:
                if explicit:
                    position = int(explicit)
                else:
                    ordinary += 1
                    position = ordinary
                if position < 1:
                    raise ConfigurationError(f"Name format positions start at 1: '{template}'")
                parts.append(_Placeholder(position, conversion, bool(zero), int(width) if width else None))
            pos = match.end()
        tail = template[pos:]
        if "%" in tail:
            raise ConfigurationError(f"Invalid placeholder in name format '{template}'")
        if tail:
            parts.append(tail)
        return parts

    def format(self, name: str, iteration: int, ancestors: AncestorContext | None = None) -> str:
        """Render the column name for ``name`` at 0-based ``iteration``.

        Raises:
            ConfigurationError: If the template refers to an ancestor that does not exist
        """
        args = (ancestors or AncestorContext()).format_args(name, iteration)
        rendered = []
        for part in self._parts:
            if isinstance(part, str):
                rendered.append(part)
                continue
            try:
                rendered.append(part.render(args[part.position - 1]))
            except IndexError:
                raise ConfigurationError(
                    f"Name format '{self.template}' refers to argument {part.position} "
                    f"but only {len(args)} are available for '{name}'"
                )
        return "".join(rendered)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, NameFormat) and other.template == self.template

    def __hash__(self) -> int:
        return hash(self.template)

    def __repr__(self) -> str:
        return f"NameFormat({self.label}: {self.template!r})"


class AncestorContext:
    """Stack of (container name, 0-based iteration) frames, innermost last."""

    def __init__(self) -> None:
        self._frames: list[tuple[str, int]] = []

    def push(self, name: str, iteration: int) -> None:
        self._frames.append((name, iteration))

    def pop(self) -> tuple[str, int]:
        return self._frames.pop()

    @contextmanager
    def frame(self, name: str, iteration: int) -> Iterator[None]:
        self.push(name, iteration)
        try:
            yield
        finally:
            self.pop()

    def __len__(self) -> int:
        return len(self._frames)

    def format_args(self, name: str, iteration: int) -> list[Any]:
        args: list[Any] = [name, iteration + 1]
        for ancestor, ancestor_iteration in reversed(self._frames):
            args.extend((ancestor, ancestor_iteration + 1))
        return args
