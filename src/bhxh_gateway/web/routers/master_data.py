from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from bhxh_gateway.core.modules.master_data.service import Catalog
from bhxh_gateway.web.deps import AppDep, CredentialsDep, require_api_key
from bhxh_gateway.web.openapi import ApiResponse, ErrorResponse

router = APIRouter(tags=["master-data"], dependencies=[Depends(require_api_key)])


@router.get(
    "/master-data/medical-facilities",
    summary="List medical facilities",
    description="Medical facilities of a province (portal code 063).",
    operation_id="listMedicalFacilities",
    responses={
        200: {"description": "Medical facilities"},
        502: {"model": ErrorResponse, "description": "Portal request failed"},
    },
)
async def list_medical_facilities(
    app: AppDep, credentials: CredentialsDep, ma_tinh: Annotated[str, Query(alias="maTinh", min_length=1)]
) -> ApiResponse[Any]:
    return ApiResponse[Any](data=await app.get_districts(credentials, ma_tinh))


@router.get(
    "/master-data/{catalog}",
    summary="Get lookup table",
    description=(
        "Reference catalog from the portal: paper-types (071), countries (072), ethnicities (073), "
        "labor-plan-types (086), benefits (098), relationships (099) or document-list (028)."
    ),
    operation_id="getCatalog",
    responses={
        200: {"description": "Catalog entries"},
        502: {"model": ErrorResponse, "description": "Portal request failed"},
    },
)
async def get_catalog(catalog: Catalog, app: AppDep, credentials: CredentialsDep) -> ApiResponse[Any]:
    return ApiResponse[Any](data=await app.get_catalog(credentials, catalog))
