"""Tracked video endpoints for CronPilot API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from cronpilot.api.dependencies import ServicesDep
from cronpilot.api.schemas import CommentResponse, DraftResponse, TrackVideoRequest, VideoResponse
from cronpilot.ingestion import IngestionPipeline
from cronpilot.storage import CommentRepository, CommentStatus, DraftRepository, VideoRepository

router = APIRouter()


@router.get("/videos", response_model=list[VideoResponse])
async def list_videos(services: ServicesDep) -> list[VideoResponse]:
    """List tracked videos."""
    with services.db.session_scope() as session:
        videos = VideoRepository(session).get_all()
        return [VideoResponse.model_validate(v) for v in videos]


@router.post("/videos", response_model=VideoResponse, status_code=201)
async def track_video(services: ServicesDep, request: TrackVideoRequest) -> VideoResponse:
    """Start tracking a video. Tracking an already tracked video is a no-op."""
    pipeline = IngestionPipeline(services.ingestion_store, services.comment_source)
    resource = await pipeline.track(request.video_id)
    return VideoResponse(
        video_id=resource.external_id,
        title=resource.title,
        channel_id=resource.channel_id,
        channel_title=resource.channel_title,
        published_at=resource.published_at,
        last_checked_at=resource.last_checked_at,
    )


@router.get("/videos/{video_id}/comments", response_model=list[CommentResponse])
async def list_comments(
    video_id: str,
    services: ServicesDep,
    status: CommentStatus | None = Query(None, description="Filter by status"),
    limit: int = Query(100, ge=1, le=500, description="Maximum comments"),
) -> list[CommentResponse]:
    """List saved comments of a tracked video, newest first.

    Raises:
        HTTPException: If the video is not tracked.
    """
    with services.db.session_scope() as session:
        if VideoRepository(session).get_by_video_id(video_id) is None:
            raise HTTPException(status_code=404, detail=f"Video '{video_id}' is not tracked")
        comments = CommentRepository(session).get_by_video(video_id, limit=limit, status=status)
        return [CommentResponse.model_validate(c) for c in comments]


@router.get("/drafts", response_model=list[DraftResponse])
async def list_drafts(
    services: ServicesDep,
    limit: int = Query(50, ge=1, le=200, description="Maximum drafts"),
) -> list[DraftResponse]:
    """List generated content drafts, newest first."""
    with services.db.session_scope() as session:
        drafts = DraftRepository(session).get_recent(limit=limit)
        return [DraftResponse.model_validate(d) for d in drafts]
