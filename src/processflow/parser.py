"""
Parser module for process graph input.

Turns caller-supplied process records (mappings, JSON text or Process
instances) into validated Process objects.
"""

import dataclasses
import json
from typing import Any, Iterable, List, Mapping, Set, Union

from .models import GROUP_PREFIX, Process, ProcessStatus

ProcessRecord = Union[Process, Mapping[str, Any]]


class ParseError(Exception):
    """Raised when process input is malformed."""

    pass


class Parser:
    """Parses process records into Process objects."""

    def parse(self, records: Iterable[ProcessRecord]) -> List[Process]:
        """
        Parse and validate a sequence of process records.

        Args:
            records: Process instances or mappings with the keys ``name``,
                ``kind``, ``status``, ``upstream_processes`` and
                ``last_run_error_message``.

        Returns:
            List of Process objects in input order.

        Raises:
            ParseError: If a record is malformed or a name is duplicated.
        """
        if records is None:
            raise ParseError("No process records given")

        processes: List[Process] = []
        seen: Set[str] = set()

        for index, record in enumerate(records):
            if isinstance(record, Process):
                record = dataclasses.asdict(record)
            process = self._parse_record(index, record)

            if process.name in seen:
                raise ParseError(
                    f"Record {index}: Duplicate process name '{process.name}'"
                )
            seen.add(process.name)
            processes.append(process)

        return processes

    def parse_json(self, text: str) -> List[Process]:
        """
        Parse JSON input.

        Accepts either a list of records or an object with a ``processes``
        key holding that list.

        Raises:
            ParseError: If the text is not valid JSON or has the wrong shape.
        """
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Invalid JSON input: {exc}") from exc

        if isinstance(payload, dict):
            if "processes" not in payload:
                raise ParseError("JSON object has no 'processes' key")
            payload = payload["processes"]

        if not isinstance(payload, list):
            raise ParseError("Expected a list of process records")

        return self.parse(payload)

    def _parse_record(self, index: int, record: Any) -> Process:
        """Convert one mapping into a Process."""
        if not isinstance(record, Mapping):
            raise ParseError(
                f"Record {index}: Expected a mapping, got {type(record).__name__}"
            )

        name = record.get("name")
        if not isinstance(name, str):
            raise ParseError(f"Record {index}: Missing or non-string 'name'")
        self._validate_name(index, name)

        raw_status = record.get("status", ProcessStatus.NOTSTARTED.value)
        try:
            status = ProcessStatus(raw_status)
        except ValueError:
            raise ParseError(
                f"Record {index}: Unknown status '{raw_status}' for '{name}'"
            ) from None

        upstream = record.get("upstream_processes") or []
        if isinstance(upstream, str) or not isinstance(upstream, (list, tuple)):
            raise ParseError(
                f"Record {index}: 'upstream_processes' of '{name}' must be a list"
            )
        for upstream_name in upstream:
            if not isinstance(upstream_name, str) or not upstream_name:
                raise ParseError(
                    f"Record {index}: Invalid upstream reference {upstream_name!r}"
                )

        kind = record.get("kind") or ""
        error_message = record.get("last_run_error_message")

        return Process(
            name=name,
            kind=str(kind),
            status=status,
            upstream_processes=tuple(upstream),
            last_run_error_message=error_message,
        )

    def _validate_name(self, index: int, name: str) -> None:
        """Reject names that cannot be split into group segments."""
        if not name:
            raise ParseError(f"Record {index}: Empty process name")
        if name.startswith(GROUP_PREFIX):
            raise ParseError(
                f"Record {index}: Process name '{name}' uses the reserved "
                f"prefix '{GROUP_PREFIX}'"
            )
        if any(not segment for segment in name.split(".")):
            raise ParseError(
                f"Record {index}: Empty segment in process name '{name}'"
            )


def parse_processes(records: Iterable[ProcessRecord]) -> List[Process]:
    """
    Convenience function to parse process records.

    Args:
        records: Process instances or mappings

    Returns:
        List of validated Process objects
    """
    parser = Parser()
    return parser.parse(records)
