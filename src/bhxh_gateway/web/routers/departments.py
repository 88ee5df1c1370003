from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from bhxh_gateway.core.modules.department.models import DepartmentInput, DepartmentQuery
from bhxh_gateway.web.deps import AppDep, CredentialsDep, require_api_key
from bhxh_gateway.web.openapi import ApiResponse, ErrorResponse, page_response

router = APIRouter(tags=["departments"], dependencies=[Depends(require_api_key)])


@router.get(
    "/departments",
    summary="List departments",
    description="Departments of the selected unit (portal code 079).",
    operation_id="listDepartments",
    responses={
        200: {"description": "Page of departments"},
        502: {"model": ErrorResponse, "description": "Portal request failed"},
    },
)
async def list_departments(
    app: AppDep,
    credentials: CredentialsDep,
    ma: Annotated[str, Query(description="Department code filter")] = "",
    ten: Annotated[str, Query(description="Department name filter")] = "",
    page_index: Annotated[int, Query(alias="PageIndex", ge=1)] = 1,
    page_size: Annotated[int, Query(alias="PageSize", ge=1)] = 50,
) -> ApiResponse[list[dict[str, Any]]]:
    query = DepartmentQuery(code=ma, name=ten, page_index=page_index, page_size=page_size)
    return page_response(await app.list_departments(credentials, query))


@router.post(
    "/departments",
    summary="Create department",
    description="Create a department in the selected unit (portal code 077).",
    operation_id="createDepartment",
    status_code=201,
    responses={
        201: {"description": "Department created"},
        502: {"model": ErrorResponse, "description": "Portal rejected the department"},
    },
)
async def create_department(req: DepartmentInput, app: AppDep, credentials: CredentialsDep) -> ApiResponse[Any]:
    return ApiResponse[Any](data=await app.create_department(credentials, req))


@router.get(
    "/departments/{department_id}",
    summary="Get department",
    description="Single department by id, looked up in the first page of the department list.",
    operation_id="getDepartment",
    responses={
        200: {"description": "Department"},
        404: {"model": ErrorResponse, "description": "Department not found"},
    },
)
async def get_department(department_id: int, app: AppDep, credentials: CredentialsDep) -> ApiResponse[dict[str, Any]]:
    return ApiResponse[dict[str, Any]](data=await app.get_department(credentials, department_id))


@router.put(
    "/departments/{department_id}",
    summary="Update department",
    description="Save an existing department (portal code 077).",
    operation_id="updateDepartment",
    responses={
        200: {"description": "Department updated"},
        502: {"model": ErrorResponse, "description": "Portal rejected the department"},
    },
)
async def update_department(
    department_id: int, req: DepartmentInput, app: AppDep, credentials: CredentialsDep
) -> ApiResponse[Any]:
    return ApiResponse[Any](data=await app.update_department(credentials, department_id, req))


@router.delete(
    "/departments/{department_id}",
    summary="Delete department",
    description="Delete a department (portal code 080).",
    operation_id="deleteDepartment",
    responses={
        200: {"description": "Department deleted"},
        502: {"model": ErrorResponse, "description": "Portal rejected the deletion"},
    },
)
async def delete_department(department_id: int, app: AppDep, credentials: CredentialsDep) -> ApiResponse[dict[str, Any]]:
    await app.delete_department(credentials, department_id)
    return ApiResponse[dict[str, Any]](data={"id": department_id}, meta={"message": "Department deleted"})
