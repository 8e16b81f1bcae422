"""
HTTP routers for the demo workload.

Each router's handlers log through the correlated logger inside the request
span opened by middleware.tracing.TracingMiddleware.
"""

from api.orders import router as orders_router
from api.service_info import router as service_info_router
from api.simulation import router as simulation_router
from api.users import router as users_router

ROUTERS = [service_info_router, users_router, orders_router, simulation_router]

__all__ = [
    "ROUTERS",
    "orders_router",
    "service_info_router",
    "simulation_router",
    "users_router",
]
