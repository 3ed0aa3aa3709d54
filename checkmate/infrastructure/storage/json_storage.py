"""JSON file storage with Result-based error handling.

Thin wrapper around file I/O for JSON documents, returning Result types
instead of raising exceptions. No domain logic lives here.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from checkmate.domain.shared.result import Err, Ok, Result


class JsonStorage:
    """Low-level JSON document I/O.

    Writes go to a temporary file in the same directory and are moved into
    place, so a crash mid-write never leaves a truncated document.

    Example:
        storage = JsonStorage()
        result = storage.load_json(Path("tasks.json"), default={})
        if isinstance(result, Ok):
            data = result.value
        else:
            print(f"Error: {result.error}")
    """

    def load_json(
        self,
        path: Path,
        default: dict[str, Any] | None = None,
    ) -> Result[dict[str, Any], str]:
        """Load a JSON object from a file.

        Args:
            path: File to read.
            default: Returned (copied) when the file does not exist. When
                None, a missing file is an error.

        Returns:
            Ok(dict) if successful, Err(str) describing the failure.
        """
        try:
            if not path.exists():
                if default is not None:
                    return Ok(dict(default))
                return Err(f"File not found: {path}")

            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                return Err(f"Expected a JSON object in {path}")
            return Ok(data)

        except json.JSONDecodeError as e:
            return Err(f"Invalid JSON in {path}: {e}")
        except PermissionError:
            return Err(f"Permission denied reading {path}")
        except OSError as e:
            return Err(f"Error reading {path}: {e}")

    def save_json(
        self,
        path: Path,
        data: dict[str, Any],
        indent: int = 2,
    ) -> Result[None, str]:
        """Atomically replace ``path`` with ``data`` serialized as JSON.

        Returns:
            Ok(None) if successful, Err(str) describing the failure.
        """
        try:
            content = json.dumps(data, indent=indent, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            return Err(f"Data not JSON serializable: {e}")

        tmp_name: str | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                handle.write(content)
            os.replace(tmp_name, path)
            return Ok(None)

        except PermissionError:
            return Err(f"Permission denied writing {path}")
        except OSError as e:
            return Err(f"Error writing {path}: {e}")
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
