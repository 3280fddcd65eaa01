"""
MockTap Resources

Loads text and JSON resources (typically request/response bodies kept beside
the tests) by name.
"""

import json
from pathlib import Path
from typing import Any, Iterable, List, Optional

from ..compare.parsers import parse_json
from ..errors import ConfigurationError, ParseError


class ResourceLoader:
    """
    Finds resources by name in a list of directories.

    A resource name matches any file whose relative path ends with it
    (case-insensitive), so 'person.json' and 'data/person.json' both find
    'tests/resources/data/person.json'. A name must match exactly one file.

    Example:
        loader = ResourceLoader(["tests/resources"])
        body = loader.load_json("person.json")
    """

    def __init__(self, search_dirs: Optional[Iterable[str]] = None):
        """
        Initialize resource loader.

        Args:
            search_dirs: Directories to search (defaults to the current directory)
        """
        self.search_dirs: List[Path] = [Path(d) for d in (search_dirs or ['.'])]

    def find(self, name: str) -> Path:
        """
        Find the single file matching a resource name.

        Raises:
            FileNotFoundError: If no file matches
            ConfigurationError: If more than one file matches
        """
        suffix = name.replace('\\', '/').lower()
        matches = []
        for directory in self.search_dirs:
            if not directory.is_dir():
                continue
            for path in sorted(directory.rglob('*')):
                if path.is_file() and path.relative_to(directory).as_posix().lower().endswith(suffix):
                    matches.append(path)

        if not matches:
            dirs = ', '.join(str(d) for d in self.search_dirs)
            raise FileNotFoundError(f"No resource ending with '{name}' was found in: {dirs}")
        if len(matches) > 1:
            found = ', '.join(str(p) for p in matches)
            raise ConfigurationError(f"More than one resource ending with '{name}' was found: {found}")
        return matches[0]

    def load_text(self, name: str) -> str:
        """Load a resource as text."""
        return self.find(name).read_text(encoding='utf-8')

    def load_json(self, name: str) -> str:
        """
        Load a JSON resource as text, validating that it parses.

        Raises:
            ParseError: If the resource is not valid JSON
        """
        text = self.load_text(name)
        try:
            parse_json(text, name)
        except ParseError as e:
            raise ParseError(f"JSON resource '{name}' does not contain valid JSON: {e}", name) from e
        return text

    def load_value(self, name: str) -> Any:
        """Load a JSON resource as a Python value."""
        return json.loads(self.load_json(name))
