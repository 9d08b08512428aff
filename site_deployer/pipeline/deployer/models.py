"""Deployment input and result types.

Input types (``GeneratedSite`` and its parts) are pydantic models because they
arrive as plain data from the content-generation pipeline or from a JSON file
and must be validated; camelCase aliases are accepted for interoperability.
Result types are plain dataclasses owned by the orchestrator.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

PageStatus = Literal["publish", "draft"]


class _SiteModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SiteImage(_SiteModel):
    """Externally hosted image to mirror before any page references it."""

    original_url: str = Field(alias="originalUrl")
    alt: str | None = None
    title: str | None = None


class SitePage(_SiteModel):
    """Page to publish; ``content`` is opaque block markup."""

    title: str
    slug: str
    content: str
    status: PageStatus
    meta: dict[str, Any] | None = None


class NavigationItem(_SiteModel):
    title: str
    url: str


class Navigation(_SiteModel):
    items: list[NavigationItem] = Field(default_factory=list)


class GeneratedSite(_SiteModel):
    """Everything a single deployment publishes."""

    pages: list[SitePage] = Field(default_factory=list)
    images: list[SiteImage] = Field(default_factory=list)
    navigation: Navigation = Field(default_factory=Navigation)


@dataclass(frozen=True)
class DeploymentOptions:
    dry_run: bool = False
    update_navigation: bool = False
    continue_on_error: bool = False


class DeploymentState(str, Enum):
    """Lifecycle of a single deployment."""

    START = "start"
    UPLOADING_MEDIA = "uploading_media"
    PUBLISHING_PAGES = "publishing_pages"
    UPDATING_NAVIGATION = "updating_navigation"
    DONE = "done"
    PARTIAL_FAILURE = "partial_failure"
    FAILED = "failed"


@dataclass(frozen=True)
class PageDeploymentResult:
    slug: str
    url: str
    id: int


@dataclass(frozen=True)
class MediaDeploymentResult:
    original_url: str
    wp_url: str
    id: int


@dataclass(frozen=True)
class DeploymentTiming:
    started_at: str
    completed_at: str
    duration_ms: int


@dataclass
class DeploymentResult:
    """Record of one ``deploy()`` call.

    ``success`` is true exactly when ``errors`` is empty. ``pages`` and
    ``media`` list only what was actually created or updated, in input order,
    and are what a rollback deletes.
    """

    success: bool
    deployment_id: str
    pages: list[PageDeploymentResult] = field(default_factory=list)
    media: list[MediaDeploymentResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    timing: DeploymentTiming | None = None
    state: DeploymentState = DeploymentState.START

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation."""
        data = asdict(self)
        data["state"] = self.state.value
        return data
