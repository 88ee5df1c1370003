from bhxh_gateway.web.routers.declarations import router as declarations_router
from bhxh_gateway.web.routers.departments import router as departments_router
from bhxh_gateway.web.routers.employees import router as employees_router
from bhxh_gateway.web.routers.geographic import router as geographic_router
from bhxh_gateway.web.routers.master_data import router as master_data_router
from bhxh_gateway.web.routers.payments import router as payments_router
from bhxh_gateway.web.routers.session import router as session_router

__all__ = [
    "declarations_router",
    "departments_router",
    "employees_router",
    "geographic_router",
    "master_data_router",
    "payments_router",
    "session_router",
]
