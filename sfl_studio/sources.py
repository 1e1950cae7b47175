"""
Source capture.

Turns user-selected files into SourceItems. Text kinds are decoded to text
(.docx through python-docx); audio, video and image kinds are stored as bare
base64. A batch of files is read concurrently and committed once, after every
file has either produced an item or failed.
"""

import asyncio
import base64
import io
import mimetypes
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Protocol

from docx import Document as DocxDocument

from .logging_config import get_logger
from .models import SourceItem, SourceKind, new_id

logger = get_logger(__name__)

DEFAULT_MIME_TYPES = {
    SourceKind.TEXT: "text/plain",
    SourceKind.AUDIO: "audio/mpeg",
    SourceKind.VIDEO: "video/mp4",
    SourceKind.IMAGE: "image/png",
    SourceKind.LINK: "text/uri-list",
}

# "data:image/png;base64," as produced by browser FileReader.readAsDataURL
_TRANSPORT_PREFIX = re.compile(r"^data:[^,]*,", re.IGNORECASE)


class UploadLike(Protocol):
    """Anything with a filename, a content type and an async read(); FastAPI's UploadFile fits."""
    filename: Optional[str]
    content_type: Optional[str]

    async def read(self) -> bytes: ...


@dataclass
class LocalFile:
    """A file on disk, readable like an upload (used by the CLI)."""
    path: Path

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def content_type(self) -> Optional[str]:
        return mimetypes.guess_type(self.path.name)[0]

    async def read(self) -> bytes:
        return await asyncio.to_thread(self.path.read_bytes)


def strip_transport_prefix(payload: str) -> str:
    """Remove a leading data-URL header, leaving only the base64 body."""
    return _TRANSPORT_PREFIX.sub("", payload.strip(), count=1)


def encode_binary(raw: bytes) -> str:
    """Base64-encode file bytes as they are; data URLs arrive through make_encoded_source."""
    return base64.b64encode(raw).decode("ascii")


def decode_text(raw: bytes, filename: str) -> str:
    """Decode a text upload; Word documents are flattened to paragraphs."""
    if filename.lower().endswith(".docx"):
        doc = DocxDocument(io.BytesIO(raw))
        paragraphs = [p.text for p in doc.paragraphs if p.text.strip()]
        return "\n\n".join(paragraphs)
    return raw.decode("utf-8", errors="replace")


async def read_source(upload: UploadLike, kind: SourceKind) -> SourceItem:
    """
    Read one upload into a SourceItem.

    Args:
        upload: File-like object with filename, content_type and async read()
        kind: Declared media kind for the batch

    Returns:
        The captured SourceItem
    """
    raw = await upload.read()
    name = upload.filename or "untitled"

    if kind in (SourceKind.TEXT, SourceKind.LINK):
        data = decode_text(raw, name)
        mime_type = "text/plain" if name.lower().endswith(".docx") else (upload.content_type or DEFAULT_MIME_TYPES[kind])
    else:
        data = encode_binary(raw)
        mime_type = upload.content_type or DEFAULT_MIME_TYPES[kind]

    return SourceItem(id=new_id("source"), name=name, kind=kind, mime_type=mime_type, data=data)


class CaptureBatch:
    """
    Completion counter for one batch of file reads.

    settle() must be called exactly once per file; the commit callback runs
    once, when the last file settles, with every successful item.
    """

    def __init__(self, total: int, on_complete: Callable[[List[SourceItem]], None]):
        self.total = total
        self.pending = total
        self.items: List[SourceItem] = []
        self.completed = False
        self._on_complete = on_complete

    def settle(self, item: Optional[SourceItem]) -> None:
        if self.pending <= 0:
            raise RuntimeError("capture batch already completed")
        if item is not None:
            self.items.append(item)
        self.pending -= 1
        if self.pending == 0:
            self.completed = True
            self._on_complete(list(self.items))


async def capture_batch(
    files: Iterable[UploadLike],
    kind: SourceKind,
    on_complete: Optional[Callable[[List[SourceItem]], None]] = None,
) -> List[SourceItem]:
    """
    Read a batch of files concurrently and commit the successful ones once.

    Args:
        files: Uploads to read
        kind: Declared media kind for every file in the batch
        on_complete: Called once with the captured items (the atomic append)

    Returns:
        The captured items, in completion order
    """
    files = list(files)
    captured: List[SourceItem] = []

    def _commit(items: List[SourceItem]) -> None:
        captured.extend(items)
        if on_complete is not None:
            on_complete(items)

    batch = CaptureBatch(len(files), _commit)

    async def _read_one(upload: UploadLike) -> None:
        item = None
        try:
            item = await read_source(upload, kind)
        except Exception as e:
            logger.warning(f"Failed to read source '{getattr(upload, 'filename', '?')}': {e}")
        finally:
            batch.settle(item)

    await asyncio.gather(*(_read_one(f) for f in files))
    logger.info(f"Captured {len(captured)}/{len(files)} {kind.value} source(s)")
    return captured


def make_link_source(url: str, name: Optional[str] = None) -> SourceItem:
    """Create a link-reference source from manual entry."""
    url = url.strip()
    if not url:
        raise ValueError("Link URL must not be empty")
    return SourceItem(
        id=new_id("source"),
        name=name or url,
        kind=SourceKind.LINK,
        mime_type=DEFAULT_MIME_TYPES[SourceKind.LINK],
        data=url,
    )


def make_encoded_source(name: str, kind: SourceKind, mime_type: Optional[str], payload: str) -> SourceItem:
    """Create a source from an inline payload (text, or base64 possibly wrapped in a data URL)."""
    if kind.is_binary:
        data = strip_transport_prefix(payload)
        base64.b64decode(data, validate=True)
    else:
        data = payload
    return SourceItem(
        id=new_id("source"),
        name=name,
        kind=kind,
        mime_type=mime_type or DEFAULT_MIME_TYPES[kind],
        data=data,
    )
