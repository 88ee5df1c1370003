from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from bhxh_gateway.web.deps import AppDep, CredentialsDep, require_api_key
from bhxh_gateway.web.openapi import ApiResponse, ErrorResponse

router = APIRouter(tags=["geographic"], dependencies=[Depends(require_api_key)])


@router.get(
    "/geographic/districts",
    summary="List districts",
    description="Districts of a province (portal code 063).",
    operation_id="listDistricts",
    responses={
        200: {"description": "Districts"},
        422: {"description": "Missing maTinh"},
        502: {"model": ErrorResponse, "description": "Portal request failed"},
    },
)
async def list_districts(
    app: AppDep, credentials: CredentialsDep, ma_tinh: Annotated[str, Query(alias="maTinh", min_length=1)]
) -> ApiResponse[Any]:
    return ApiResponse[Any](data=await app.get_districts(credentials, ma_tinh))
