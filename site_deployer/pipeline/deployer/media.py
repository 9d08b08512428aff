"""Media uploader: mirror remote images into the WordPress media library.

Images referenced by generated pages live on third-party hosts. This module
downloads them with a plain (unauthenticated) GET and re-uploads the raw bytes,
base64-encoded, to ``/wp/v2/media``. Batches run on a small worker pool so
that at most ``concurrency`` uploads are in flight at any instant: the remote
site and the upload bandwidth are the real constraints, and unbounded fan-out
invites rate limiting.

Download failures are reported immediately as ``DownloadError`` and are not
retried here; retries for the upload itself happen inside the REST client.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import PurePosixPath
from urllib.parse import urlparse

import aiohttp

from site_deployer.config import (
    DEFAULT_IMAGE_CONTENT_TYPE,
    DEFAULT_IMAGE_FILENAME,
    DEFAULT_MEDIA_CONCURRENCY,
    IMAGE_MIME_TYPES,
    MEDIA_ENDPOINT,
)
from site_deployer.exceptions import AppError, DownloadError

from .client import WordPressClient
from .schemas import WPMedia, parse_wp_media

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaItem:
    """An uploaded library item.

    ``url`` is the durable location on the target site; ``source_url`` is the
    original URL the bytes were fetched from, when known.
    """

    id: int
    url: str
    alt: str
    title: str
    source_url: str | None = None


@dataclass(frozen=True)
class ImageToUpload:
    url: str
    title: str | None = None
    alt: str | None = None
    caption: str | None = None


@dataclass(frozen=True)
class DownloadedImage:
    data: bytes
    content_type: str
    filename: str


def filename_from_url(url: str) -> str:
    """Return the last path segment of ``url``, or ``'image'`` if there is none.

    Examples
    --------
    >>> filename_from_url("https://cdn.example.com/a/b/hero.png?w=800")
    'hero.png'
    >>> filename_from_url("https://cdn.example.com/")
    'image'
    """
    try:
        path = urlparse(url).path
    except ValueError:
        return DEFAULT_IMAGE_FILENAME
    return PurePosixPath(path).name or DEFAULT_IMAGE_FILENAME


def guess_content_type(url: str, header: str | None = None) -> str:
    """Infer an image MIME type.

    The response header wins when it names an ``image/*`` type; otherwise the
    URL's file extension is mapped, falling back to ``image/jpeg``.

    Examples
    --------
    >>> guess_content_type("https://x/y.webp")
    'image/webp'
    >>> guess_content_type("https://x/y.png", "image/gif")
    'image/gif'
    >>> guess_content_type("https://x/y", "text/html")
    'image/jpeg'
    """
    if header and header.startswith("image/"):
        return header
    filename = filename_from_url(url)
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return IMAGE_MIME_TYPES.get(extension, DEFAULT_IMAGE_CONTENT_TYPE)


class MediaUploader:
    """Upload images from URLs to the WordPress media library.

    Parameters
    ----------
    client : WordPressClient
        Authenticated REST client used for the library endpoints.
    session : aiohttp.ClientSession | None, optional
        Session used for the plain image downloads; defaults to the client's.
    """

    def __init__(
        self, client: WordPressClient, session: aiohttp.ClientSession | None = None
    ) -> None:
        self.client = client
        self._session = session

    @property
    def session(self) -> aiohttp.ClientSession:
        return self._session or self.client.session

    async def download_image(self, url: str) -> DownloadedImage:
        """Fetch image bytes with a plain GET.

        Raises
        ------
        DownloadError
            On a non-2xx answer or any transport failure.
        """
        try:
            async with self.session.get(url, timeout=self.client.timeout) as response:
                if not 200 <= response.status < 300:
                    raise DownloadError(
                        f"Failed to download image: HTTP {response.status}",
                        url=url,
                        status=response.status,
                    )
                data = await response.read()
                header = response.headers.get("Content-Type")
        except aiohttp.ClientError as exc:
            raise DownloadError(
                f"Failed to download image: {exc or exc.__class__.__name__}", url=url
            ) from exc
        except asyncio.TimeoutError as exc:
            raise DownloadError("Failed to download image: timed out", url=url) from exc
        return DownloadedImage(
            data=data,
            content_type=guess_content_type(url, header),
            filename=filename_from_url(url),
        )

    async def _upload_bytes(
        self,
        image: DownloadedImage,
        *,
        title: str | None,
        alt: str | None,
        caption: str | None,
    ) -> WPMedia:
        payload = {
            "file": base64.b64encode(image.data).decode("ascii"),
            "filename": image.filename,
            "mime_type": image.content_type,
            "title": title or image.filename,
            "alt_text": alt or "",
            "caption": caption or "",
        }
        return parse_wp_media(await self.client.post(MEDIA_ENDPOINT, payload))

    async def upload(
        self,
        image_url: str,
        *,
        title: str | None = None,
        alt: str | None = None,
        caption: str | None = None,
    ) -> MediaItem:
        """Download one image and upload it to the media library.

        Parameters
        ----------
        image_url : str
            Publicly reachable source URL.
        title, alt, caption : str | None, optional
            Library metadata. ``title`` defaults to the source filename.

        Returns
        -------
        MediaItem
            Remote id and durable URL of the new attachment.

        Raises
        ------
        DownloadError
            If the source image cannot be fetched.
        RemoteAPIError, TransportError, ResponseFormatError
            If the upload itself fails.
        """
        downloaded = await self.download_image(image_url)
        media = await self._upload_bytes(
            downloaded, title=title, alt=alt, caption=caption
        )
        logger.debug(f"Uploaded {image_url} as media {media.id} ({media.source_url})")
        return MediaItem(
            id=media.id,
            url=media.source_url,
            alt=media.alt_text,
            title=media.title.rendered,
            source_url=image_url,
        )

    async def upload_batch(
        self,
        images: Sequence[ImageToUpload],
        *,
        concurrency: int = DEFAULT_MEDIA_CONCURRENCY,
        continue_on_error: bool = False,
    ) -> list[MediaItem]:
        """Upload many images with at most ``concurrency`` in flight.

        A fixed pool of workers pulls images from a shared queue until it is
        drained, so the concurrency ceiling holds regardless of list size.

        Parameters
        ----------
        images : Sequence[ImageToUpload]
            Images to mirror.
        concurrency : int, optional
            Number of workers (values below 1 are treated as 1).
        continue_on_error : bool, optional
            Drop failed images from the result instead of aborting the batch.

        Returns
        -------
        list[MediaItem]
            One item per successful upload, in completion order. Each item's
            ``source_url`` identifies the input it came from.

        Raises
        ------
        AppError
            The first upload failure when ``continue_on_error`` is False; the
            remaining workers are cancelled.
        """
        if not images:
            return []
        queue: asyncio.Queue[ImageToUpload] = asyncio.Queue()
        for image in images:
            queue.put_nowait(image)
        results: list[MediaItem] = []

        async def worker() -> None:
            while True:
                try:
                    image = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    item = await self.upload(
                        image.url,
                        title=image.title,
                        alt=image.alt,
                        caption=image.caption,
                    )
                except AppError as exc:
                    if not continue_on_error:
                        raise
                    logger.warning(f"Skipping image {image.url}: {exc}")
                    continue
                results.append(item)

        worker_count = max(1, min(concurrency, len(images)))
        tasks = [asyncio.create_task(worker()) for _ in range(worker_count)]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        logger.info(f"Uploaded {len(results)}/{len(images)} images")
        return results

    async def get_by_id(self, media_id: int) -> MediaItem | None:
        """Return the media item, or None if it cannot be fetched."""
        try:
            media = parse_wp_media(await self.client.get(f"{MEDIA_ENDPOINT}/{media_id}"))
        except AppError as exc:
            logger.debug(f"Media {media_id} lookup failed: {exc}")
            return None
        return MediaItem(
            id=media.id,
            url=media.source_url,
            alt=media.alt_text,
            title=media.title.rendered,
        )

    async def delete_by_id(self, media_id: int) -> None:
        """Permanently delete a media item (attachments cannot be trashed)."""
        await self.client.delete(f"{MEDIA_ENDPOINT}/{media_id}", {"force": True})
