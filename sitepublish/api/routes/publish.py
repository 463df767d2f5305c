"""
Publish API.

POST /api/publish                                  on-demand, incremental or full publish
POST /api/publish/incremental                      incremental publish, optionally approving items first
GET  /api/publish/jobs/{job_id}                    normalised job status
GET  /api/publish/queued/{site}/{server}           changed content waiting for the next incremental
GET  /api/publish/queued/{site}/{server}/related   unapproved items related to the queued changes

Configuration errors map to HTTP errors; gate failures are returned as
data in the response status.
"""

from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from sitepublish.api.deps import get_dispatch
from sitepublish.components.dispatch import (
    JobStatusReport,
    PublishDispatchComponent,
    PublishResponse,
)
from sitepublish.domain.errors import (
    EditionNotFoundError,
    PublishRequestError,
    SitePublishError,
    TargetNotFoundError,
    UnsupportedPublishTypeError,
)

router = APIRouter()


# --- Request/Response Models ---


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class PublishRequest(_CamelModel):
    """Publish request model."""

    site_name: str | None = Field(default=None, alias="siteName")
    pub_type: str | None = Field(default=None, alias="type")
    item_id: str | None = Field(default=None, alias="itemId")
    is_resource: bool = Field(default=False, alias="isResource")
    server_name: str | None = Field(default=None, alias="serverName")


class IncrementalRequest(_CamelModel):
    site_name: str = Field(alias="siteName")
    server_name: str = Field(alias="serverName")
    item_ids: list[int] | None = Field(default=None, alias="itemIds")


class PublishResponseModel(_CamelModel):
    job_id: int = Field(alias="jobId")
    status: str
    delivered: str
    failures: str
    site_name: str = Field(alias="siteName")
    warning_message: str = Field(alias="warningMessage")


class ItemStatusModel(_CamelModel):
    content_id: int = Field(alias="contentId")
    status: str
    revision: int | None = None


class JobStatusResponse(_CamelModel):
    job_id: int = Field(alias="jobId")
    status: str
    finished: bool
    delivered: int
    failed: int
    removed: int
    items: list[ItemStatusModel]


class QueuedContentResponse(_CamelModel):
    site_name: str = Field(alias="siteName")
    server_name: str = Field(alias="serverName")
    content_ids: list[int] = Field(alias="contentIds")


# --- Helper Functions ---


def to_response(response: PublishResponse) -> PublishResponseModel:
    return PublishResponseModel.model_validate(response.to_dict())


def to_status_response(report: JobStatusReport) -> JobStatusResponse:
    return JobStatusResponse(
        job_id=report.job_id,
        status=report.status,
        finished=report.finished,
        delivered=report.delivered,
        failed=report.failed,
        removed=report.removed,
        items=[
            ItemStatusModel(content_id=i.content_id, status=i.status, revision=i.revision)
            for i in report.items
        ],
    )


def raise_http(error: SitePublishError) -> NoReturn:
    """Translate a publishing error into an HTTP error."""
    if isinstance(error, (TargetNotFoundError, EditionNotFoundError)):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, (PublishRequestError, UnsupportedPublishTypeError)):
        code = status.HTTP_400_BAD_REQUEST
    else:
        # ClosureNotConvergedError and anything unexpected
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    raise HTTPException(status_code=code, detail=str(error)) from error


# --- Endpoints ---


@router.post("", response_model=PublishResponseModel, summary="Publish a site or an item")
def publish(
    request: PublishRequest,
    dispatch: PublishDispatchComponent = Depends(get_dispatch),
) -> PublishResponseModel:
    """
    Dispatch a publish request.

    Gate failures (FORBIDDEN, INVALID, NOSTAGING_SERVERS, BADCONFIG) come
    back with job id 0 and the failure in `status`.
    """
    try:
        response = dispatch.publish(
            request.site_name,
            request.pub_type,
            request.item_id,
            request.is_resource,
            request.server_name,
        )
    except SitePublishError as e:
        raise_http(e)
    return to_response(response)


@router.post("/incremental", response_model=PublishResponseModel)
def publish_incremental(
    request: IncrementalRequest,
    dispatch: PublishDispatchComponent = Depends(get_dispatch),
) -> PublishResponseModel:
    try:
        if request.item_ids is None:
            response = dispatch.publish_incremental(request.site_name, request.server_name)
        else:
            response = dispatch.publish_incremental_with_approval(
                request.site_name, request.server_name, request.item_ids
            )
    except SitePublishError as e:
        raise_http(e)
    return to_response(response)


@router.get("/jobs/{job_id}", response_model=JobStatusResponse)
def job_status(
    job_id: int,
    dispatch: PublishDispatchComponent = Depends(get_dispatch),
) -> JobStatusResponse:
    return to_status_response(dispatch.job_status(job_id))


@router.get("/queued/{site_name}/{server_name}", response_model=QueuedContentResponse)
def queued_content(
    site_name: str,
    server_name: str,
    dispatch: PublishDispatchComponent = Depends(get_dispatch),
) -> QueuedContentResponse:
    try:
        ids = dispatch.queued_incremental_content(site_name, server_name)
    except SitePublishError as e:
        raise_http(e)
    return QueuedContentResponse(site_name=site_name, server_name=server_name, content_ids=ids)


@router.get("/queued/{site_name}/{server_name}/related", response_model=QueuedContentResponse)
def queued_related_content(
    site_name: str,
    server_name: str,
    dispatch: PublishDispatchComponent = Depends(get_dispatch),
) -> QueuedContentResponse:
    try:
        ids = dispatch.queued_incremental_related_content(site_name, server_name)
    except SitePublishError as e:
        raise_http(e)
    return QueuedContentResponse(site_name=site_name, server_name=server_name, content_ids=ids)
