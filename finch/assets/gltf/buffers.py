# finch/assets/gltf/buffers.py
import base64
import logging
from pathlib import Path
from typing import List
from urllib.parse import unquote

from finch.assets.gltf.document import Arena, Buffer, BufferView
from finch.assets.gltf.errors import BufferLoadError, TruncatedRangeError

log = logging.getLogger("finch")

_DATA_URI_PREFIX = "data:"


class BufferStore:
    """
    Raw bytes of every buffer a document declares, kept in declaration order.
    """

    def __init__(self, blobs: List[bytes]) -> None:
        self._blobs = Arena("buffer", blobs)

    @classmethod
    def load(cls, buffers: Arena[Buffer], base_dir: Path) -> "BufferStore":
        blobs = []
        for index, buffer in enumerate(buffers):
            data = _read_buffer(index, buffer, base_dir)
            if len(data) < buffer.byte_length:
                raise BufferLoadError(
                    index,
                    buffer.uri,
                    f"holds {len(data)} bytes, declares {buffer.byte_length}",
                )
            log.debug(
                "Loaded buffer %d (%s): %d bytes", index, buffer.uri, len(data)
            )
            blobs.append(data[: buffer.byte_length])
        return cls(blobs)

    def __len__(self) -> int:
        return len(self._blobs)

    def view_bytes(self, view: BufferView, via: str = "") -> memoryview:
        """
        Zero-copy slice of the buffer range a buffer view designates.
        """
        blob = self._blobs.get(view.buffer, via)
        end = view.byte_offset + view.byte_length
        if view.byte_offset < 0 or end > len(blob):
            raise TruncatedRangeError(
                f"{via}: range [{view.byte_offset}, {end}) exceeds "
                f"buffer {view.buffer} of {len(blob)} bytes"
            )
        return memoryview(blob)[view.byte_offset : end]


def _read_buffer(index: int, buffer: Buffer, base_dir: Path) -> bytes:
    if buffer.uri is None:
        raise BufferLoadError(
            index, None, "buffers without a uri (GLB chunks) are not supported"
        )

    if buffer.uri.startswith(_DATA_URI_PREFIX):
        header, _, payload = buffer.uri.partition(",")
        if not header.endswith(";base64"):
            raise BufferLoadError(
                index, buffer.uri[:32], "only base64 data URIs are supported"
            )
        try:
            return base64.b64decode(payload, validate=True)
        except ValueError as e:
            raise BufferLoadError(index, buffer.uri[:32], str(e)) from e

    path = base_dir / unquote(buffer.uri)
    try:
        return path.read_bytes()
    except OSError as e:
        raise BufferLoadError(index, buffer.uri, str(e)) from e
