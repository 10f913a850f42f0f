"""Admin settlement triggers. The periodic job calls the same service."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.wg_common.response import ApiResponse, success_response
from src.wg_gateway.auth.dependencies import CurrentUser, require_admin
from src.wg_settlement.application.schemas import SettleRequest
from src.wg_settlement.application.service import SettlementService

router = APIRouter(prefix="/admin/settlements", tags=["admin"])


def get_settlement_service() -> SettlementService:
    return SettlementService()


@router.post("", response_model=ApiResponse, summary="Settle one quarter")
async def settle_quarter(
    request: Request,
    body: SettleRequest,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    service: Annotated[SettlementService, Depends(get_settlement_service)],
) -> ApiResponse:
    summary = await service.settle(body.quarter)
    return success_response(summary.model_dump(), request)


@router.post("/due", response_model=ApiResponse, summary="Settle every ended quarter")
async def settle_due(
    request: Request,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    service: Annotated[SettlementService, Depends(get_settlement_service)],
) -> ApiResponse:
    summaries = await service.settle_due()
    return success_response([s.model_dump() for s in summaries], request)
