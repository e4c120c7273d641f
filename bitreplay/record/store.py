"""
Result storage.

Execution results are stored as separate JSON files in the results/ directory.
Naming: {result_id}.json
"""

import os
import re
from pathlib import Path
from typing import Dict, List, Tuple

from pydantic import ValidationError

from ..core.errors import ResultStoreError
from .models import ExecutionResult

_ID_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class ResultStore:
    """
    Manage result files on disk.

    Storage format:
    - results/ directory
    - Each file: {result_id}.json
    - Contents: ExecutionResult JSON with camelCase keys
    """

    def __init__(self, directory: str = "results"):
        """
        Initialize result store.

        Args:
            directory: Directory to store results
        """
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, result_id: str) -> Path:
        if not _ID_RE.match(result_id) or result_id.startswith("."):
            raise ResultStoreError(f"Invalid result id: {result_id!r}")
        return self.directory / f"{result_id}.json"

    def save(self, result: ExecutionResult) -> str:
        """
        Save result to disk, replacing any file with the same id.

        Returns:
            Path to saved result file
        """
        filepath = self._path(result.id)
        tmp = filepath.with_suffix(".json.tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(result.to_json())
        os.replace(tmp, filepath)
        return str(filepath)

    def load(self, result_id: str) -> ExecutionResult:
        """
        Load result by id.

        Raises:
            ResultStoreError: If the file is missing or not a valid result
        """
        return self.load_file(str(self._path(result_id)))

    @staticmethod
    def load_file(filepath: str) -> ExecutionResult:
        """Load a result from an arbitrary path."""
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                json_str = f.read()
        except OSError as e:
            raise ResultStoreError(f"Cannot read result {filepath}: {e}") from e
        try:
            return ExecutionResult.from_json(json_str)
        except ValidationError as e:
            raise ResultStoreError(f"Invalid result file {filepath}: {e}") from e

    def list_ids(self) -> List[str]:
        """
        List stored result ids.

        Returns:
            Sorted result ids
        """
        return sorted(p.stem for p in self.directory.glob("*.json"))

    def load_all(self) -> List[ExecutionResult]:
        return [self.load(result_id) for result_id in self.list_ids()]

    def load_readable(self) -> Tuple[List[ExecutionResult], Dict[str, str]]:
        """
        Load every stored result, skipping files that cannot be read.

        Returns:
            (results, errors) where errors maps each unreadable id to the reason
        """
        results: List[ExecutionResult] = []
        errors: Dict[str, str] = {}
        for result_id in self.list_ids():
            try:
                results.append(self.load(result_id))
            except ResultStoreError as e:
                errors[result_id] = str(e)
        return results, errors

    def delete(self, result_id: str) -> bool:
        """
        Delete a result file.

        Returns:
            True if a file was removed
        """
        filepath = self._path(result_id)
        if not filepath.exists():
            return False
        os.remove(filepath)
        return True

    def __contains__(self, result_id: object) -> bool:
        return isinstance(result_id, str) and _ID_RE.match(result_id) is not None and (
            self.directory / f"{result_id}.json"
        ).exists()
