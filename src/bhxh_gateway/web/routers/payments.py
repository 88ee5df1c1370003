from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from bhxh_gateway.core.modules.payment.models import (
    C12Query,
    C12ReportResult,
    PaymentHistoryQuery,
    PaymentReference,
    PaymentReferenceRequest,
)
from bhxh_gateway.web.deps import AppDep, CredentialsDep, require_api_key
from bhxh_gateway.web.openapi import ApiResponse, ErrorResponse, page_response

router = APIRouter(tags=["payments"], dependencies=[Depends(require_api_key)])


@router.get(
    "/payments/c12-report",
    summary="Get C12 statement",
    description="Monthly contribution statement (portal code 137), raw and summarised by section.",
    operation_id="getC12Report",
    responses={
        200: {"description": "C12 statement"},
        502: {"model": ErrorResponse, "description": "Portal request failed"},
    },
)
async def get_c12_report(
    app: AppDep,
    credentials: CredentialsDep,
    thang: Annotated[int, Query(ge=1, le=12, description="Month, 1-12")],
    nam: Annotated[int | None, Query(ge=2000, le=2100, description="Year, defaults to the current year")] = None,
) -> ApiResponse[C12ReportResult]:
    report = await app.get_c12_report(credentials, C12Query(month=thang, year=nam))
    return ApiResponse[C12ReportResult](data=report)


@router.get(
    "/payments/history",
    summary="List e-payment history",
    description="Electronic payment transactions (portal code 514). Units without e-payment get an empty list.",
    operation_id="listPaymentHistory",
    responses={
        200: {"description": "Page of transactions"},
        502: {"model": ErrorResponse, "description": "Portal request failed"},
    },
)
async def list_payment_history(
    app: AppDep,
    credentials: CredentialsDep,
    page_index: Annotated[int, Query(alias="PageIndex", ge=1)] = 1,
    page_size: Annotated[int, Query(alias="PageSize", ge=1)] = 10,
    filter_text: Annotated[str, Query(alias="Filter")] = "",
) -> ApiResponse[list[dict[str, Any]]]:
    query = PaymentHistoryQuery(page_index=page_index, page_size=page_size, filter_text=filter_text)
    return page_response(await app.get_payment_history(credentials, query))


@router.get(
    "/payments/bank-accounts",
    summary="List BHXH bank accounts",
    description="Collection accounts of the unit's social insurance agency (portal code 504).",
    operation_id="listBankAccounts",
    responses={
        200: {"description": "Bank accounts"},
        502: {"model": ErrorResponse, "description": "Portal request failed"},
    },
)
async def list_bank_accounts(app: AppDep, credentials: CredentialsDep) -> ApiResponse[Any]:
    return ApiResponse[Any](data=await app.get_bank_accounts(credentials))


@router.get(
    "/payments/unit-info",
    summary="Get payment unit info",
    description="Unit details used for payments (portal code 503).",
    operation_id="getPaymentUnitInfo",
    responses={
        200: {"description": "Unit info"},
        502: {"model": ErrorResponse, "description": "Portal request failed"},
    },
)
async def get_payment_unit_info(app: AppDep, credentials: CredentialsDep) -> ApiResponse[Any]:
    return ApiResponse[Any](data=await app.get_payment_unit_info(credentials))


@router.get(
    "/payments/reference",
    summary="Generate payment reference",
    description=(
        "Bank transfer memo in the form +BHXH+{type}+00+{unitCode}+{agencyCode}+{description}+. "
        "Unit and agency default to the session's unit."
    ),
    operation_id="getPaymentReference",
    responses={
        200: {"description": "Payment reference"},
        400: {"model": ErrorResponse, "description": "Unit or agency code unavailable"},
    },
)
async def get_payment_reference(
    app: AppDep,
    credentials: CredentialsDep,
    unit_code: Annotated[str | None, Query(alias="unitCode")] = None,
    agency_code: Annotated[str | None, Query(alias="agencyCode")] = None,
    transaction_type: Annotated[str, Query(alias="type", min_length=1)] = "103",
    description: Annotated[str, Query(min_length=1)] = "dong BHXH",
) -> ApiResponse[PaymentReference]:
    request = PaymentReferenceRequest(
        unit_code=unit_code, agency_code=agency_code, transaction_type=transaction_type, description=description
    )
    return ApiResponse[PaymentReference](data=await app.get_payment_reference(credentials, request))
