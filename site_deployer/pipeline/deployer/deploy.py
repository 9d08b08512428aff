"""SiteDeployer: full-site deployment orchestration layer.

This module sequences a complete publish of a generated site to WordPress:

1. mirror every referenced image into the media library (bounded fan-out),
2. rewrite each page's content so it points at the new durable image URLs,
3. upsert the pages one by one, strictly in input order,
4. optionally declare the navigation menu,

and records each run as a :class:`DeploymentResult` under a unique
deployment id so that it can be inspected or rolled back later. All networking
is delegated to :class:`MediaUploader`, :class:`PageManager` and
:class:`WordPressClient`; this module owns only sequencing, URL rewriting,
error accounting and the deployment history.

Failures in the page and navigation stages are collected as plain-text
messages in ``errors`` (the structured exceptions are logged first). Only a
media batch that raises outright aborts the whole deployment, because without
media there is no reliable way to know which pages reference broken assets.

Examples
--------
>>> from site_deployer.pipeline.deployer import WordPressClient, WordPressConfig
>>> from site_deployer.pipeline.deployer.deploy import create_deployer_from_client
>>> from site_deployer.pipeline.deployer.models import GeneratedSite, DeploymentOptions
>>> async def main(site: GeneratedSite):
...     async with WordPressClient(WordPressConfig.from_env()) as client:
...         deployer = create_deployer_from_client(client)
...         result = await deployer.deploy(site, DeploymentOptions(dry_run=True))
...         print(result.success, result.deployment_id)
>>> # asyncio.run(main(site))
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone

from site_deployer.config import (
    DEFAULT_MEDIA_CONCURRENCY,
    DEPLOYMENT_ID_PREFIX,
    MENUS_ENDPOINT,
    NAVIGATION_MENU_NAME,
)
from site_deployer.exceptions import (
    DeploymentNotFoundError,
    FatalDeployError,
    RollbackError,
)

from .client import WordPressClient
from .media import ImageToUpload, MediaItem, MediaUploader
from .models import (
    DeploymentOptions,
    DeploymentResult,
    DeploymentState,
    DeploymentTiming,
    GeneratedSite,
    MediaDeploymentResult,
    Navigation,
    PageDeploymentResult,
)
from .pages import PageInput, PageManager
from .store import DeploymentStore, InMemoryDeploymentStore

logger = logging.getLogger(__name__)


def generate_deployment_id() -> str:
    """Return a unique id of the form ``deploy-<epoch ms>-<7 hex chars>``."""
    return f"{DEPLOYMENT_ID_PREFIX}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:7]}"


def replace_image_urls(content: str, url_mapping: Mapping[str, str]) -> str:
    """Replace every literal occurrence of each original URL with its new URL.

    Literal substring substitution, so URLs inside serialized block attributes
    (``{"url":"..."}``) are rewritten as well as ``src`` attributes. All URLs
    are replaced in a single pass, longest first: an original URL that is a
    prefix of another never splits it, and replacement text is never
    rewritten again.

    Examples
    --------
    >>> replace_image_urls('<img src="a"/><img src="a"/>', {"a": "b"})
    '<img src="b"/><img src="b"/>'
    >>> replace_image_urls("x.jpg x.jpg?w=8", {"x.jpg": "A", "x.jpg?w=8": "B"})
    'A B'
    """
    originals = sorted((url for url in url_mapping if url), key=len, reverse=True)
    if not originals:
        return content
    pattern = re.compile("|".join(re.escape(url) for url in originals))
    return pattern.sub(lambda match: url_mapping[match.group(0)], content)


def _error_message(exc: BaseException) -> str:
    return getattr(exc, "message", None) or str(exc) or exc.__class__.__name__


class SiteDeployer:
    """Deploy generated sites to WordPress and roll them back.

    Parameters
    ----------
    client : WordPressClient
        REST client, used directly for the navigation menu.
    media_uploader : MediaUploader
        Uploader for site images.
    page_manager : PageManager
        Upsert-capable page manager.
    store : DeploymentStore | None, optional
        Deployment history; a fresh in-memory store by default.
    media_concurrency : int, optional
        Parallel image uploads per deployment.

    Notes
    -----
    Several ``deploy()`` calls may run concurrently on one instance; each gets
    its own id and record, and they share the client's connection pool. A
    record becomes visible in the store only once its ``deploy()`` returns.
    There is no cancellation: a started deployment runs until it finishes or
    its error policy stops it.
    """

    def __init__(
        self,
        client: WordPressClient,
        media_uploader: MediaUploader,
        page_manager: PageManager,
        *,
        store: DeploymentStore | None = None,
        media_concurrency: int = DEFAULT_MEDIA_CONCURRENCY,
    ) -> None:
        self.client = client
        self.media_uploader = media_uploader
        self.page_manager = page_manager
        self.store: DeploymentStore = store if store is not None else InMemoryDeploymentStore()
        self.media_concurrency = media_concurrency

    async def deploy(
        self, site: GeneratedSite, options: DeploymentOptions | None = None
    ) -> DeploymentResult:
        """Publish ``site`` and record the outcome.

        Parameters
        ----------
        site : GeneratedSite
            Pages, images and navigation to publish.
        options : DeploymentOptions | None, optional
            ``dry_run`` publishes every page as a draft, ``continue_on_error``
            keeps going after a failed page, ``update_navigation`` declares
            the menu.

        Returns
        -------
        DeploymentResult
            The stored record; ``success`` is False whenever ``errors`` is
            non-empty.
        """
        options = options or DeploymentOptions()
        deployment_id = generate_deployment_id()
        started = datetime.now(timezone.utc)
        result = DeploymentResult(success=False, deployment_id=deployment_id)
        logger.info(
            f"Deployment {deployment_id} started: {len(site.pages)} pages, {len(site.images)} images"
        )

        url_mapping: dict[str, str] = {}
        if site.images:
            result.state = DeploymentState.UPLOADING_MEDIA
            try:
                url_mapping = await self._upload_media(site, result)
            except Exception as exc:
                fatal = FatalDeployError(
                    f"Media upload failed: {_error_message(exc)}",
                    context={"deployment_id": deployment_id},
                )
                logger.error(f"Deployment {deployment_id} aborted: {fatal.to_dict()}", exc_info=True)
                result.errors.append(fatal.message)
                result.media = []
                result.pages = []
                result.state = DeploymentState.FAILED
                return self._finish(result, started)

        result.state = DeploymentState.PUBLISHING_PAGES
        await self._publish_pages(site, options, url_mapping, result)

        if options.update_navigation and site.navigation.items:
            result.state = DeploymentState.UPDATING_NAVIGATION
            await self._update_navigation(site.navigation, result)

        return self._finish(result, started)

    async def _upload_media(
        self, site: GeneratedSite, result: DeploymentResult
    ) -> dict[str, str]:
        uploaded = await self.media_uploader.upload_batch(
            [
                ImageToUpload(url=image.original_url, title=image.title, alt=image.alt)
                for image in site.images
            ],
            concurrency=self.media_concurrency,
            continue_on_error=True,
        )
        # Batch results arrive in completion order; match them back to inputs.
        by_source: dict[str | None, list[MediaItem]] = {}
        for item in uploaded:
            by_source.setdefault(item.source_url, []).append(item)
        url_mapping: dict[str, str] = {}
        for image in site.images:
            candidates = by_source.get(image.original_url)
            if not candidates:
                logger.warning(f"Image {image.original_url} was not uploaded; keeping original URL")
                continue
            item = candidates.pop(0)
            url_mapping[image.original_url] = item.url
            result.media.append(
                MediaDeploymentResult(
                    original_url=image.original_url, wp_url=item.url, id=item.id
                )
            )
        return url_mapping

    async def _publish_pages(
        self,
        site: GeneratedSite,
        options: DeploymentOptions,
        url_mapping: Mapping[str, str],
        result: DeploymentResult,
    ) -> None:
        for page in site.pages:
            try:
                published = await self.page_manager.create_or_update(
                    PageInput(
                        title=page.title,
                        slug=page.slug,
                        content=replace_image_urls(page.content, url_mapping),
                        status="draft" if options.dry_run else page.status,
                        meta=page.meta,
                    )
                )
            except Exception as exc:
                logger.error(f"Failed to deploy page '{page.slug}': {exc}", exc_info=True)
                result.errors.append(_error_message(exc))
                if not options.continue_on_error:
                    break
                continue
            result.pages.append(
                PageDeploymentResult(slug=published.slug, url=published.url, id=published.id)
            )

    async def _update_navigation(
        self, navigation: Navigation, result: DeploymentResult
    ) -> None:
        try:
            await self.client.post(
                MENUS_ENDPOINT,
                {
                    "name": NAVIGATION_MENU_NAME,
                    "items": [
                        {"title": item.title, "url": item.url, "menu_order": index}
                        for index, item in enumerate(navigation.items)
                    ],
                },
            )
        except Exception as exc:
            # Pages stay published; the failure is only recorded.
            logger.error(f"Failed to update navigation: {exc}", exc_info=True)
            result.errors.append(_error_message(exc))

    def _finish(self, result: DeploymentResult, started: datetime) -> DeploymentResult:
        completed = datetime.now(timezone.utc)
        result.timing = DeploymentTiming(
            started_at=started.isoformat(),
            completed_at=completed.isoformat(),
            duration_ms=int((completed - started).total_seconds() * 1000),
        )
        result.success = not result.errors
        if result.state is not DeploymentState.FAILED:
            result.state = (
                DeploymentState.DONE if result.success else DeploymentState.PARTIAL_FAILURE
            )
        self.store.save(result)
        logger.info(
            f"Deployment {result.deployment_id} finished: state={result.state.value} "
            f"pages={len(result.pages)} media={len(result.media)} errors={len(result.errors)} "
            f"duration={result.timing.duration_ms}ms"
        )
        return result

    async def rollback(self, deployment_id: str) -> None:
        """Delete everything a deployment created.

        Pages are force-deleted first, then media. Every deletion is attempted
        even if earlier ones fail.

        Raises
        ------
        DeploymentNotFoundError
            If the id is unknown, including after a successful rollback.
        RollbackError
            If any deletion failed; the record is kept so rollback can be
            retried.
        """
        deployment = self.store.get(deployment_id)
        if deployment is None:
            raise DeploymentNotFoundError(deployment_id)

        failures: list[str] = []
        for page in deployment.pages:
            try:
                await self.page_manager.delete(page.id, force=True)
            except Exception as exc:
                logger.warning(f"Rollback of page {page.slug} (id={page.id}) failed: {exc}")
                failures.append(_error_message(exc))
        for media in deployment.media:
            try:
                await self.media_uploader.delete_by_id(media.id)
            except Exception as exc:
                logger.warning(f"Rollback of media {media.id} failed: {exc}")
                failures.append(_error_message(exc))

        if failures:
            raise RollbackError(deployment_id, failures)
        self.store.delete(deployment_id)
        logger.info(
            f"Rolled back deployment {deployment_id}: {len(deployment.pages)} pages, {len(deployment.media)} media"
        )

    def get_deployment_status(self, deployment_id: str) -> DeploymentResult | None:
        """Return the stored record for ``deployment_id``; no remote calls."""
        return self.store.get(deployment_id)


def create_deployer_from_client(
    client: WordPressClient, *, store: DeploymentStore | None = None
) -> SiteDeployer:
    """Build a deployer with a default media uploader and page manager."""
    return SiteDeployer(
        client, MediaUploader(client), PageManager(client), store=store
    )
