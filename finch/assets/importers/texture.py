# finch/assets/importers/texture.py
import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from finch.assets.importers.base import AssetImporter
from finch.assets.types import TextureData

log = logging.getLogger("finch")


class TextureImporter(AssetImporter):
    """
    Loads a diffuse image as tightly packed RGBA8 rows, top row first,
    which matches glTF's top-left UV origin once uploaded.
    """

    def import_file(self, path: Path) -> TextureData:
        try:
            with Image.open(path) as img:
                converted = img.convert("RGBA")
        except (OSError, UnidentifiedImageError) as e:
            raise ValueError(f"Cannot read texture {path}: {e}") from e

        width, height = converted.size
        log.debug("Loaded texture %s (%dx%d)", path, width, height)
        return TextureData(
            data=converted.tobytes(), width=width, height=height, components=4
        )
