"""Attachment encoding for plan requests.

Files are read in full and turned into base64 payloads without a data-URI
prefix, paired with their media type. Several files are encoded
concurrently; the resulting list follows selection order, and one unreadable
file does not stop its siblings.
"""

import asyncio
import base64
import logging
import mimetypes
from typing import List, Sequence, Tuple

from fastapi import UploadFile

from psst_planner import config
from psst_planner.errors import AttachmentError
from psst_planner.schemas import Attachment, AttachmentFailure

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


def _media_type(filename: str, declared: str = None) -> str:
    if declared:
        return declared
    guessed, _ = mimetypes.guess_type(filename or "")
    return guessed or DEFAULT_MIME_TYPE


def _to_attachment(filename: str, content: bytes, mime_type: str) -> Attachment:
    if len(content) > config.MAX_ATTACHMENT_BYTES:
        raise AttachmentError(
            filename,
            f"Attachment '{filename}' exceeds the "
            f"{config.MAX_ATTACHMENT_BYTES // (1024 * 1024)} MB limit.",
        )
    return Attachment(
        data=base64.b64encode(content).decode("ascii"),
        mime_type=mime_type,
    )


async def encode(upload: UploadFile) -> Attachment:
    filename = upload.filename or "upload"
    try:
        content = await upload.read()
    except OSError as e:
        raise AttachmentError(filename) from e
    return _to_attachment(filename, content, _media_type(filename, upload.content_type))


async def encode_all(
    uploads: Sequence[UploadFile],
) -> Tuple[List[Attachment], List[AttachmentFailure]]:
    results = await asyncio.gather(
        *(encode(upload) for upload in uploads),
        return_exceptions=True,
    )

    attachments = []
    failures = []
    for upload, result in zip(uploads, results):
        if isinstance(result, Exception):
            if not isinstance(result, AttachmentError):
                result = AttachmentError(upload.filename or "upload")
            logger.warning(f"Skipping attachment: {result.message}")
            failures.append(
                AttachmentFailure(filename=result.filename, message=result.message)
            )
        elif isinstance(result, BaseException):
            raise result
        else:
            attachments.append(result)

    return attachments, failures
