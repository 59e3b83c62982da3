"""Providers of raw workbook bytes.

A WorkbookSource turns a document ID into the bytes of its workbook. It
raises DocumentNotFoundError when the document has no workbook and
TransientFetchError for failures worth retrying later. Retries, if any,
belong to the caller's caller; the preview pipeline never retries.
"""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import Protocol

import httpx

from workbook_preview.config import Settings
from workbook_preview.utils.exceptions import (
    DocumentNotFoundError,
    ErrorCode,
    TransientFetchError,
    ValidationError,
)
from workbook_preview.utils.logging import get_logger

logger = get_logger(__name__)

WORKBOOK_EXTENSIONS = (".xlsx", ".xlsm")


class WorkbookSource(Protocol):
    """Interface of a workbook bytes provider."""

    name: str

    async def fetch_workbook_bytes(self, document_id: str) -> bytes:
        """Return the raw workbook bytes for ``document_id``."""
        ...

    async def aclose(self) -> None:
        """Release any held resources."""
        ...


def validate_document_id(document_id: str) -> str:
    """Reject IDs that are empty or could escape a storage directory."""
    if not document_id or not document_id.strip():
        raise ValidationError("Document ID must not be empty", field="submission_id")
    if "/" in document_id or "\\" in document_id or document_id in {".", ".."}:
        raise ValidationError(
            "Document ID contains invalid characters", field="submission_id"
        )
    return document_id


class LocalWorkbookSource:
    """Reads workbooks from a directory.

    For document ``abc`` the candidates are, in order: ``abc/abc``,
    ``abc/abc.xlsx``, ``abc/abc.xlsm``, ``abc.xlsx`` and ``abc.xlsm``.
    """

    name = "local"

    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir)

    def candidate_paths(self, document_id: str) -> list[Path]:
        folder = self.base_dir / document_id
        return [
            folder / document_id,
            *(folder / f"{document_id}{ext}" for ext in WORKBOOK_EXTENSIONS),
            *(self.base_dir / f"{document_id}{ext}" for ext in WORKBOOK_EXTENSIONS),
        ]

    def _read(self, document_id: str) -> bytes:
        for path in self.candidate_paths(document_id):
            if path.is_file():
                return path.read_bytes()
        raise DocumentNotFoundError(document_id)

    async def fetch_workbook_bytes(self, document_id: str) -> bytes:
        validate_document_id(document_id)
        try:
            return await asyncio.to_thread(self._read, document_id)
        except OSError as e:
            raise TransientFetchError(
                document_id,
                message=f"Failed to read workbook: {type(e).__name__}",
            ) from e

    async def aclose(self) -> None:
        return None


class HttpWorkbookSource:
    """Fetches workbooks from an HTTP endpoint.

    Issues ``GET <url>?submission_id=<id>``; a 404 means the document does
    not exist, any other failure is transient.
    """

    name = "http"

    def __init__(
        self,
        url: str,
        token: str = "",
        timeout_seconds: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the source.

        Args:
            url: Endpoint returning workbook bytes.
            token: Optional bearer token.
            timeout_seconds: Request timeout.
            client: Optional preconfigured client; closed by the caller.
        """
        self.url = url
        self._owns_client = client is None
        headers = {"Authorization": f"Bearer {token}"} if token else None
        self._client = client or httpx.AsyncClient(
            timeout=timeout_seconds,
            headers=headers,
            follow_redirects=True,
        )

    async def fetch_workbook_bytes(self, document_id: str) -> bytes:
        validate_document_id(document_id)
        start = time.monotonic()
        try:
            response = await self._client.get(
                self.url, params={"submission_id": document_id}
            )
        except httpx.TimeoutException as e:
            raise TransientFetchError(
                document_id,
                message="Timed out fetching workbook",
                error_code=ErrorCode.FETCH_TIMEOUT,
            ) from e
        except httpx.HTTPError as e:
            raise TransientFetchError(
                document_id,
                message=f"Failed to fetch workbook: {type(e).__name__}",
            ) from e

        logger.debug(
            "Workbook source responded",
            status_code=response.status_code,
            duration_seconds=f"{time.monotonic() - start:.3f}",
        )
        if response.status_code == httpx.codes.NOT_FOUND:
            raise DocumentNotFoundError(document_id)
        if not response.is_success:
            raise TransientFetchError(
                document_id,
                message=f"Failed to fetch workbook: {response.status_code}",
                status_code=response.status_code,
            )
        return response.content

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def build_workbook_source(s: Settings) -> WorkbookSource:
    """Pick the workbook source described by the settings."""
    if s.workbook_source_url:
        logger.info("Using HTTP workbook source", url=s.workbook_source_url)
        return HttpWorkbookSource(
            s.workbook_source_url,
            token=s.get_workbook_source_token(),
            timeout_seconds=s.fetch_timeout_seconds,
        )
    logger.info("Using local workbook source", workbook_dir=s.workbook_dir)
    return LocalWorkbookSource(s.workbook_dir)
