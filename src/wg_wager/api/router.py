"""Betting API router: periods, targets, wager placement, my wagers, market pools.

All endpoints return ApiResponse. request_id is read from request.state
(injected by RequestLogMiddleware).
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_common.database import get_db_session
from src.wg_common.enums import BetStatus, TargetType
from src.wg_common.response import ApiResponse, success_response
from src.wg_gateway.auth.dependencies import CurrentUser, get_current_user
from src.wg_gateway.middleware.rate_limit import limit_wager_placement
from src.wg_wager.application.schemas import PlaceWagerRequest
from src.wg_wager.application.service import WagerApplicationService

router = APIRouter(prefix="/betting", tags=["betting"])
_service = WagerApplicationService()


@router.get("/periods", response_model=ApiResponse, summary="Quarters open for betting")
async def list_periods(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    periods = await _service.list_periods(db)
    return success_response([p.model_dump(mode="json") for p in periods], request)


@router.get("/targets", response_model=ApiResponse, summary="Targets open to my wagers")
async def list_targets(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    target_type: TargetType | None = Query(None, description="COMPANY or USER"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    cursor: str | None = Query(None, description="Pagination cursor"),
) -> ApiResponse:
    result = await _service.list_bettable_targets(db, current_user.id, target_type, cursor, limit)
    return success_response(result.model_dump(mode="json"), request)


@router.get(
    "/targets/{target_type}/{target_id}",
    response_model=ApiResponse,
    summary="Target detail with stats and MRR history",
)
async def get_target(
    request: Request,
    target_type: TargetType,
    target_id: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_target_detail(db, current_user.id, target_type, target_id)
    return success_response(result.model_dump(mode="json"), request)


@router.post(
    "/wagers",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse,
    summary="Place a wager",
)
async def place_wager(
    request: Request,
    body: PlaceWagerRequest,
    current_user: Annotated[CurrentUser, Depends(limit_wager_placement)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.place_wager(db, current_user.id, body)
    resp = success_response(result.model_dump(mode="json"), request)
    resp.message = result.message
    return resp


@router.get("/wagers", response_model=ApiResponse, summary="List my wagers")
async def list_my_wagers(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    status: BetStatus | None = Query(None, description="Filter by wager status"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    cursor: str | None = Query(None, description="Pagination cursor"),
) -> ApiResponse:
    result = await _service.list_my_wagers(db, current_user.id, status, cursor, limit)
    return success_response(result.model_dump(mode="json"), request)


@router.get(
    "/markets/{quarter}/{target_type}/{target_id}",
    response_model=ApiResponse,
    summary="Pool totals for one market",
)
async def get_market_pool(
    request: Request,
    quarter: str,
    target_type: TargetType,
    target_id: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_market_pool(db, quarter, target_type, target_id)
    return success_response(result.model_dump(mode="json"), request)
