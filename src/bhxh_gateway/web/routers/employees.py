from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel, Field

from bhxh_gateway.core.modules.employee.models import MAX_PAGE_SIZE, EmployeeQuery, EmployeeSyncRequest
from bhxh_gateway.web.deps import AppDep, CredentialsDep, require_api_key
from bhxh_gateway.web.openapi import ApiResponse, ErrorResponse, page_response

router = APIRouter(tags=["employees"], dependencies=[Depends(require_api_key)])


class EmployeeDetailsRequest(BaseModel):
    """Request for full details of several employees."""

    list_nldid: list[int] = Field(..., alias="listNldid", description="Internal employee ids")

    model_config = {"json_schema_extra": {"examples": [{"listNldid": [101, 102]}]}}


@router.get(
    "/employees",
    summary="List employees",
    description="Employees of the selected unit (portal code 067).",
    operation_id="listEmployees",
    responses={
        200: {"description": "Page of employees"},
        502: {"model": ErrorResponse, "description": "Portal request failed"},
    },
)
async def list_employees(
    app: AppDep,
    credentials: CredentialsDep,
    ma_nguoi_lao_dong: Annotated[str, Query(alias="maNguoiLaoDong")] = "",
    ten: Annotated[str, Query()] = "",
    ma_phong_ban: Annotated[str, Query(alias="maPhongBan")] = "",
    ma_tinh_trang: Annotated[str, Query(alias="maTinhTrang")] = "",
    ma_so_bhxh: Annotated[str, Query(alias="MaSoBhxh")] = "",
    page_index: Annotated[int, Query(alias="PageIndex", ge=1)] = 1,
    page_size: Annotated[int, Query(alias="PageSize", ge=1, le=MAX_PAGE_SIZE)] = 100,
) -> ApiResponse[list[dict[str, Any]]]:
    query = EmployeeQuery(
        employee_code=ma_nguoi_lao_dong,
        name=ten,
        department_code=ma_phong_ban,
        status_code=ma_tinh_trang,
        insurance_number=ma_so_bhxh,
        page_index=page_index,
        page_size=page_size,
    )
    return page_response(await app.list_employees(credentials, query))


@router.post(
    "/employees/details",
    summary="Get full employee details",
    description="Contracts, salary, family and history for the given employees (portal code 117).",
    operation_id="getEmployeeDetails",
    responses={
        200: {"description": "Employee details"},
        400: {"model": ErrorResponse, "description": "Empty id list"},
    },
)
async def get_employee_details(
    req: EmployeeDetailsRequest, app: AppDep, credentials: CredentialsDep
) -> ApiResponse[Any]:
    return ApiResponse[Any](data=await app.get_employee_details(credentials, req.list_nldid))


@router.get(
    "/employees/{employee_id}",
    summary="Get employee",
    description="Single employee record by internal id (portal code 172).",
    operation_id="getEmployee",
    responses={
        200: {"description": "Employee record"},
        404: {"model": ErrorResponse, "description": "Employee not found"},
    },
)
async def get_employee(employee_id: int, app: AppDep, credentials: CredentialsDep) -> ApiResponse[Any]:
    return ApiResponse[Any](data=await app.get_employee(credentials, employee_id))


@router.put(
    "/employees/{employee_id}",
    summary="Update employee",
    description="Save an employee record (portal code 068). The id in the path wins over any id in the body.",
    operation_id="updateEmployee",
    responses={
        200: {"description": "Employee updated"},
        502: {"model": ErrorResponse, "description": "Portal rejected the update"},
    },
)
async def update_employee(
    employee_id: int, fields: Annotated[dict[str, Any], Body()], app: AppDep, credentials: CredentialsDep
) -> ApiResponse[Any]:
    data = await app.update_employee(credentials, employee_id, fields)
    return ApiResponse[Any](data=data, meta={"message": "Employee updated successfully"})


@router.get(
    "/employees/{employee_id}/sync",
    summary="Sync employee with central registry",
    description="Official employee data from the central BHXH system (portal code 156).",
    operation_id="syncEmployee",
    responses={
        200: {"description": "Official employee data"},
        502: {"model": ErrorResponse, "description": "Portal request failed"},
    },
)
async def sync_employee(
    employee_id: int,
    app: AppDep,
    credentials: CredentialsDep,
    maso_bhxh: Annotated[str, Query(alias="masoBhxh", min_length=1)],
    ma_cqbh: Annotated[str, Query(alias="maCqbh", min_length=1)],
) -> ApiResponse[Any]:
    request = EmployeeSyncRequest(insurance_number=maso_bhxh, agency_code=ma_cqbh)
    return ApiResponse[Any](data=await app.sync_employee(credentials, request), meta={"employeeId": employee_id})
