"""The deployer package publishes generated sites to a WordPress instance.

Layers, bottom-up: :class:`WordPressClient` (authenticated REST transport with
retries and optional rate limiting), :class:`MediaUploader` and
:class:`PageManager` (resource managers), and :class:`SiteDeployer` (the
deployment workflow with history and rollback).

Examples
--------
>>> from site_deployer.pipeline.deployer import WordPressClient, WordPressConfig
>>> from site_deployer.pipeline.deployer import create_deployer_from_client
>>> async def run(site):
...     async with WordPressClient(WordPressConfig.from_env()) as client:
...         return await create_deployer_from_client(client).deploy(site)
"""

from __future__ import annotations

from .client import WordPressClient
from .config import WordPressConfig
from .deploy import SiteDeployer, create_deployer_from_client, replace_image_urls
from .media import ImageToUpload, MediaItem, MediaUploader
from .models import (
    DeploymentOptions,
    DeploymentResult,
    DeploymentState,
    GeneratedSite,
    Navigation,
    NavigationItem,
    SiteImage,
    SitePage,
)
from .pages import Page, PageInput, PageManager
from .retry import retry_async
from .store import DeploymentStore, InMemoryDeploymentStore

__all__ = [
    "DeploymentOptions",
    "DeploymentResult",
    "DeploymentState",
    "DeploymentStore",
    "GeneratedSite",
    "ImageToUpload",
    "InMemoryDeploymentStore",
    "MediaItem",
    "MediaUploader",
    "Navigation",
    "NavigationItem",
    "Page",
    "PageInput",
    "PageManager",
    "SiteDeployer",
    "SiteImage",
    "SitePage",
    "WordPressClient",
    "WordPressConfig",
    "create_deployer_from_client",
    "replace_image_urls",
    "retry_async",
]
