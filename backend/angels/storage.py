"""Supabase Storage integration for scholarship documents.

Transcripts and recommendation letters are uploaded to the public
``applications`` bucket before the scholarship form is submitted; the
returned public URL is stored on the application row.

Usage::

    from angels.storage import document_storage

    url = document_storage.upload(
        client,
        kind="transcript",
        filename="transcript.pdf",
        data=file_bytes,
        content_type="application/pdf",
    )
"""

import logging
import os
import time
import uuid

from dotenv import load_dotenv
from supabase import Client

load_dotenv()

logger = logging.getLogger(__name__)

BUCKET_NAME = os.getenv("APPLICATION_BUCKET", "applications")
MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024  # 10 MB

DOCUMENT_KINDS = ("transcript", "recommendation")

ALLOWED_EXTENSIONS = {"pdf", "doc", "docx", "jpg", "jpeg", "png"}


class DocumentStorage:
    """Thin wrapper around a Supabase Storage bucket for applicant documents."""

    def __init__(self, bucket: str = BUCKET_NAME) -> None:
        self.bucket = bucket

    def _object_path(self, kind: str, filename: str) -> str:
        """Build ``<kind>s/<timestamp>-<random>.<ext>``."""
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        unique = uuid.uuid4().hex[:8]
        stamp = int(time.time() * 1000)
        path = f"{kind}s/{stamp}-{unique}"
        return f"{path}.{ext}" if ext else path

    def upload(
        self,
        client: Client,
        kind: str,
        filename: str,
        data: bytes,
        content_type: str,
    ) -> str:
        """Upload a document and return its public URL.

        Raises ValueError for an unknown kind, an empty or oversized file,
        or a disallowed extension.
        """
        if kind not in DOCUMENT_KINDS:
            raise ValueError(
                f"Invalid document kind '{kind}'. "
                f"Must be one of: {', '.join(DOCUMENT_KINDS)}"
            )
        if not data:
            raise ValueError("Uploaded file is empty")
        if len(data) > MAX_FILE_SIZE_BYTES:
            raise ValueError(
                f"File size {len(data)} bytes exceeds maximum of "
                f"{MAX_FILE_SIZE_BYTES // (1024 * 1024)} MB"
            )
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        if ext not in ALLOWED_EXTENSIONS:
            raise ValueError(
                f"File type '.{ext}' is not allowed. "
                f"Accepted: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
            )

        path = self._object_path(kind, filename)
        bucket = client.storage.from_(self.bucket)
        bucket.upload(
            path=path,
            file=data,
            file_options={"content-type": content_type or "application/octet-stream"},
        )
        url = bucket.get_public_url(path)
        logger.info("Uploaded %s %s (%d bytes) to %s", kind, filename, len(data), path)
        return url


# Module-level singleton
document_storage = DocumentStorage()
