from typing import Any

from fastapi import APIRouter, Depends

from bhxh_gateway.core.modules.session.models import SessionStatus
from bhxh_gateway.web.deps import AppDep, CredentialsDep, require_api_key
from bhxh_gateway.web.openapi import ApiResponse, ErrorResponse

router = APIRouter(tags=["session"], dependencies=[Depends(require_api_key)])


@router.get(
    "/session/status",
    summary="Get session status",
    description="Report whether a valid portal session is cached. Never triggers a login.",
    operation_id="getSessionStatus",
    responses={
        200: {"description": "Cached session state"},
        401: {"model": ErrorResponse, "description": "Missing API key"},
    },
)
async def get_session_status(app: AppDep, credentials: CredentialsDep) -> ApiResponse[SessionStatus]:
    return ApiResponse[SessionStatus](data=await app.get_session_status(credentials))


@router.post(
    "/session/refresh",
    summary="Refresh session",
    description="Discard the cached portal session and log in again (solves a new CAPTCHA).",
    operation_id="refreshSession",
    responses={
        200: {"description": "New session established"},
        502: {"model": ErrorResponse, "description": "Portal request failed"},
        503: {"model": ErrorResponse, "description": "CAPTCHA could not be solved"},
    },
)
async def refresh_session(app: AppDep, credentials: CredentialsDep) -> ApiResponse[SessionStatus]:
    session = await app.refresh_session(credentials)
    status = SessionStatus(status="active", expires_in=session.expires_in(), unit=session.unit.display_name)
    return ApiResponse[SessionStatus](data=status)


@router.get(
    "/session/company",
    summary="Get company profile",
    description="Unit record the gateway acts for, as returned by the portal at login.",
    operation_id="getCompanyProfile",
    responses={
        200: {"description": "Selected unit"},
        502: {"model": ErrorResponse, "description": "Portal request failed"},
        503: {"model": ErrorResponse, "description": "CAPTCHA could not be solved"},
    },
)
async def get_company_profile(app: AppDep, credentials: CredentialsDep) -> ApiResponse[dict[str, Any]]:
    session = await app.get_company(credentials)
    return ApiResponse[dict[str, Any]](
        data=session.unit.to_portal(),
        meta={"expiresIn": session.expires_in(), "status": "active" if session.is_valid() else "expired"},
    )
