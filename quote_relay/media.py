from __future__ import annotations

import mimetypes
import os
from dataclasses import dataclass
from urllib.parse import unquote, urlparse

import httpx

from .core.errors import MediaNotAllowedError, MediaTooLargeError

_DEFAULT_MIMETYPE = "application/octet-stream"


@dataclass(frozen=True)
class LoadedMedia:
    data: bytes
    mimetype: str
    file_name: str | None = None


def _guess_mimetype(name: str, fallback: str | None = None) -> str:
    guessed, _ = mimetypes.guess_type(name)
    return guessed or fallback or _DEFAULT_MIMETYPE


def _load_local(path: str, max_bytes: int) -> LoadedMedia:
    size = os.path.getsize(path)
    if size > max_bytes:
        raise MediaTooLargeError(size, max_bytes)
    with open(path, "rb") as fh:
        data = fh.read()
    return LoadedMedia(data=data, mimetype=_guess_mimetype(path), file_name=os.path.basename(path))


def _confine(ref: str, path: str, media_root: str | None) -> str:
    if not media_root:
        raise MediaNotAllowedError(ref)
    root = os.path.realpath(os.path.expanduser(media_root))
    resolved = os.path.realpath(os.path.join(root, path))
    if os.path.commonpath([root, resolved]) != root:
        raise MediaNotAllowedError(ref)
    return resolved


async def _load_remote(url: str, max_bytes: int, client: httpx.AsyncClient) -> LoadedMedia:
    async with client.stream("GET", url, follow_redirects=True) as resp:
        resp.raise_for_status()
        declared = resp.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > max_bytes:
            raise MediaTooLargeError(int(declared), max_bytes)
        buf = bytearray()
        async for chunk in resp.aiter_bytes():
            buf.extend(chunk)
            if len(buf) > max_bytes:
                raise MediaTooLargeError(len(buf), max_bytes)
        content_type = (resp.headers.get("content-type") or "").split(";", 1)[0].strip() or None

    name = os.path.basename(urlparse(url).path) or None
    mimetype = content_type if content_type and content_type != _DEFAULT_MIMETYPE else None
    if mimetype is None:
        mimetype = _guess_mimetype(name or "", content_type)
    return LoadedMedia(data=bytes(buf), mimetype=mimetype, file_name=name)


async def load_media(
    ref: str,
    max_bytes: int,
    *,
    client: httpx.AsyncClient | None = None,
    media_root: str | None = None,
) -> LoadedMedia:
    """Read a media reference (local path, file:// or http(s) URL), refusing anything over max_bytes.

    Local reads are off unless media_root is set, and then only files under that directory load.
    """

    parsed = urlparse(ref)
    if parsed.scheme in ("http", "https"):
        if client is not None:
            return await _load_remote(ref, max_bytes, client)
        async with httpx.AsyncClient(timeout=30) as own_client:
            return await _load_remote(ref, max_bytes, own_client)
    if parsed.scheme == "file":
        return _load_local(_confine(ref, unquote(parsed.path), media_root), max_bytes)
    return _load_local(_confine(ref, os.path.expanduser(ref), media_root), max_bytes)
