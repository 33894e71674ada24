import json
import os
import tempfile
from pathlib import Path
from typing import Any, List

from ...domains.shared.exceptions import StorageException


class JSONFileAdapter:
    def __init__(self, base_path: str = "."):
        self.base_path = Path(base_path)

    def path(self, filename: str) -> Path:
        return self.base_path / filename

    def read_json(self, filename: str, default: Any = None) -> Any:
        path = self.path(filename)
        if not path.exists():
            return default
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise StorageException(f"Corrupt JSON document {path}: {e}") from e

    def write_json(self, data: Any, filename: str) -> None:
        """Write via a temp file and rename so readers never see a partial document."""
        path = self.path(filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
            os.replace(tmp, path)
        except OSError as e:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise StorageException(f"Failed to write {path}: {e}") from e

    def file_exists(self, filename: str) -> bool:
        return self.path(filename).exists()

    def list_dirs(self, dirname: str) -> List[str]:
        path = self.path(dirname)
        if not path.is_dir():
            return []
        return [p.name for p in path.iterdir() if p.is_dir()]
