"""Image and file upload wrappers for the Feishu Open API.

Uploading is the first half of sending media: the upload returns an
``image_key`` / ``file_key`` that the client then sends as an ``image`` or
``file`` message.
"""

from __future__ import annotations

import os

from larkpost.errors import LarkpostAPIError

from .transport import AsyncLarkTransport, LarkTransport

IMAGES_PATH = "/im/v1/images"
FILES_PATH = "/im/v1/files"

_FILE_TYPES: dict[str, str] = {
    ".opus": "opus",
    ".ogg": "opus",
    ".mp4": "mp4",
    ".pdf": "pdf",
    ".doc": "doc",
    ".docx": "doc",
    ".xls": "xls",
    ".xlsx": "xls",
    ".ppt": "ppt",
    ".pptx": "ppt",
}


def infer_file_type(filename: str) -> str:
    """Map a filename's extension to a Feishu upload ``file_type``.

    Unknown extensions map to ``"stream"``.

    >>> infer_file_type("Report.PDF")
    'pdf'
    >>> infer_file_type("archive.tar.gz")
    'stream'
    """
    ext = os.path.splitext(filename)[1].lower()
    return _FILE_TYPES.get(ext, "stream")


def _require_key(data: dict, key: str, path: str) -> str:
    value = data.get(key)
    if not value:
        raise LarkpostAPIError(
            message=f"Upload to {path} returned no {key}",
            context={"method": "POST", "path": path, "data": data},
        )
    return value


class MediaAPI:
    """Synchronous wrapper for the image and file upload endpoints.

    Parameters
    ----------
    transport:
        A configured :class:`LarkTransport` instance.
    """

    def __init__(self, transport: LarkTransport) -> None:
        self._transport = transport

    def upload_image(self, data: bytes, filename: str) -> str:
        """Upload image bytes for use in messages; return the ``image_key``."""
        response = self._transport.request(
            "POST",
            IMAGES_PATH,
            data={"image_type": "message"},
            files={"image": (filename, data)},
        )
        return _require_key(response.get("data") or {}, "image_key", IMAGES_PATH)

    def upload_file(self, data: bytes, filename: str, file_type: str | None = None) -> str:
        """Upload file bytes; return the ``file_key``.

        *file_type* defaults to :func:`infer_file_type` of *filename*.
        """
        response = self._transport.request(
            "POST",
            FILES_PATH,
            data={
                "file_type": file_type or infer_file_type(filename),
                "file_name": filename,
            },
            files={"file": (filename, data)},
        )
        return _require_key(response.get("data") or {}, "file_key", FILES_PATH)


class AsyncMediaAPI:
    """Asynchronous wrapper for the image and file upload endpoints."""

    def __init__(self, transport: AsyncLarkTransport) -> None:
        self._transport = transport

    async def upload_image(self, data: bytes, filename: str) -> str:
        response = await self._transport.request(
            "POST",
            IMAGES_PATH,
            data={"image_type": "message"},
            files={"image": (filename, data)},
        )
        return _require_key(response.get("data") or {}, "image_key", IMAGES_PATH)

    async def upload_file(self, data: bytes, filename: str, file_type: str | None = None) -> str:
        response = await self._transport.request(
            "POST",
            FILES_PATH,
            data={
                "file_type": file_type or infer_file_type(filename),
                "file_name": filename,
            },
            files={"file": (filename, data)},
        )
        return _require_key(response.get("data") or {}, "file_key", FILES_PATH)
