"""
Object Store
Blob storage for attachment contents, one bucket with keys namespaced by budget id.
"""
import asyncio
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union
from urllib.parse import quote

import httpx

from presupuestos.exceptions import NotFoundError
from presupuestos.logging_config import get_logger

logger = get_logger(__name__)

# Maximum response text length to include in error messages
MAX_ERROR_RESPONSE_LENGTH = 500


class ObjectStoreError(Exception):
    """Raised by adapters when the backend rejects a request"""
    pass


class ObjectStore(ABC):
    """
    Interface for the blob store.

    ``get`` raises ``NotFoundError`` for a missing key. ``delete_many`` is a
    single batched request and does not fail on keys that are already gone.
    """

    @abstractmethod
    async def put(self, path: str, data: bytes, content_type: Optional[str] = None) -> None:
        """Store ``data`` under ``path``. Existing keys are never overwritten."""
        pass

    @abstractmethod
    async def get(self, path: str) -> bytes:
        pass

    @abstractmethod
    async def delete_many(self, paths: Sequence[str]) -> List[str]:
        """Remove every key in ``paths``; returns the keys that existed."""
        pass

    async def close(self) -> None:
        pass


class LocalObjectStore(ObjectStore):
    """
    Filesystem-backed store, one directory per bucket.

    Disk access runs on a worker thread so large uploads do not stall the
    event loop.
    """

    def __init__(self, data_dir: Union[str, Path], bucket: str):
        self.root = (Path(data_dir) / bucket).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _absolute_path(self, path: str) -> Path:
        abs_path = (self.root / path).resolve()

        # Resolved path must stay inside the bucket directory
        try:
            abs_path.relative_to(self.root)
        except ValueError:
            raise ObjectStoreError(f"Path traversal detected: {path}")
        if abs_path == self.root:
            raise ObjectStoreError(f"Invalid object path: {path!r}")
        return abs_path

    async def put(self, path: str, data: bytes, content_type: Optional[str] = None) -> None:
        abs_path = self._absolute_path(path)
        await asyncio.to_thread(self._write, path, abs_path, data)
        logger.debug(f"Stored {len(data)} bytes at {path}")

    async def get(self, path: str) -> bytes:
        abs_path = self._absolute_path(path)
        return await asyncio.to_thread(self._read, path, abs_path)

    async def delete_many(self, paths: Sequence[str]) -> List[str]:
        # Resolve everything first so a bad key fails the batch before any removal
        resolved = [(path, self._absolute_path(path)) for path in paths]

        removed = await asyncio.to_thread(self._remove_all, resolved)
        logger.debug(f"Removed {len(removed)} of {len(paths)} objects")
        return removed

    @staticmethod
    def _write(path: str, abs_path: Path, data: bytes) -> None:
        abs_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(abs_path, 'xb') as dest:
                dest.write(data)
        except FileExistsError:
            raise ObjectStoreError(f"Object already exists: {path}")

    @staticmethod
    def _read(path: str, abs_path: Path) -> bytes:
        if not abs_path.is_file():
            raise NotFoundError(f"Object not found: {path}")
        with open(abs_path, 'rb') as src:
            return src.read()

    def _remove_all(self, resolved: List[Tuple[str, Path]]) -> List[str]:
        removed = []
        for path, abs_path in resolved:
            try:
                os.remove(abs_path)
            except FileNotFoundError:
                continue
            removed.append(path)
            if abs_path.parent != self.root:
                try:
                    abs_path.parent.rmdir()
                except OSError:
                    # Directory still holds other blobs
                    pass
        return removed


class SupabaseObjectStore(ObjectStore):
    """
    Supabase Storage over its REST API.

    Endpoints used:
    - POST   /storage/v1/object/{bucket}/{path}   upload
    - GET    /storage/v1/object/{bucket}/{path}   download
    - DELETE /storage/v1/object/{bucket}          batched remove, body {"prefixes": [...]}
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        bucket: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.bucket = bucket
        self.client = client or httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/storage/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
            },
            timeout=timeout,
        )

    def _object_url(self, path: str) -> str:
        return f"/object/{quote(self.bucket)}/{quote(path)}"

    @staticmethod
    def _is_not_found(response: httpx.Response) -> bool:
        if response.status_code == 404:
            return True
        # Storage API reports missing objects as 400 with an embedded 404
        if response.status_code == 400:
            try:
                body = response.json()
            except ValueError:
                return False
            return str(body.get("statusCode")) == "404" or body.get("error") in ("not_found", "Not found")
        return False

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str, path: str) -> None:
        if response.is_success:
            return
        text = response.text[:MAX_ERROR_RESPONSE_LENGTH]
        logger.error(f"Storage {action} failed for {path}: {response.status_code} {text}")
        raise ObjectStoreError(f"Storage {action} failed with status {response.status_code}: {text}")

    async def put(self, path: str, data: bytes, content_type: Optional[str] = None) -> None:
        response = await self.client.post(
            self._object_url(path),
            content=data,
            headers={
                "Content-Type": content_type or "application/octet-stream",
                "x-upsert": "false",
            },
        )
        self._raise_for_status(response, "upload", path)

    async def get(self, path: str) -> bytes:
        response = await self.client.get(self._object_url(path))
        if self._is_not_found(response):
            raise NotFoundError(f"Object not found: {path}")
        self._raise_for_status(response, "download", path)
        return response.content

    async def delete_many(self, paths: Sequence[str]) -> List[str]:
        response = await self.client.request(
            "DELETE",
            f"/object/{quote(self.bucket)}",
            json={"prefixes": list(paths)},
        )
        self._raise_for_status(response, "remove", ", ".join(paths))
        return [item.get("name") for item in response.json() or []]

    async def close(self) -> None:
        await self.client.aclose()
