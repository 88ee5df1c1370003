from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends

from bhxh_gateway.core.modules.declaration.service import DeclarationResult
from bhxh_gateway.web.deps import AppDep, CredentialsDep, require_api_key
from bhxh_gateway.web.openapi import ApiResponse, ErrorResponse

router = APIRouter(tags=["declarations"], dependencies=[Depends(require_api_key)])


@router.post(
    "/declarations/submit",
    summary="Submit declaration",
    description=(
        "Submit a monthly contribution declaration (D02-TS, TK1-TS, D01-TS forms) via portal code 084. "
        "maDonVi and maCoQuan in thuTuc are taken from the session's unit."
    ),
    operation_id="submitDeclaration",
    responses={
        200: {"description": "Submission result"},
        400: {"model": ErrorResponse, "description": "thuTuc missing"},
        502: {"model": ErrorResponse, "description": "Portal rejected the declaration"},
    },
)
async def submit_declaration(
    form: Annotated[dict[str, Any], Body()], app: AppDep, credentials: CredentialsDep
) -> ApiResponse[DeclarationResult]:
    result = await app.submit_declaration(credentials, form)
    return ApiResponse[DeclarationResult](success=result.success, data=result)
