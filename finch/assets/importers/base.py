# finch/assets/importers/base.py
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any


class AssetImporter(ABC):
    @abstractmethod
    def import_file(self, path: Path) -> Any:
        """
        Decode one file into CPU-side data ready for upload. Raises
        ValueError (or a subclass) when the file cannot be decoded.
        """
