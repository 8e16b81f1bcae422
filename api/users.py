"""
Fabricated user endpoints.

There is no user store: created users get a fresh id and are echoed back,
and a lookup by id returns a canned user carrying the requested id.
"""

import asyncio
import uuid

from fastapi import APIRouter

from api.deps import utc_now_iso
from api.models import CreateUserRequest, User
from errors.exceptions import resource_not_found, validation_error
from telemetry.correlated_logging import get_logger
from telemetry.service import get_tracer

logger = get_logger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])

# Simulated database round trip
USER_LOOKUP_DELAY_SECONDS = 0.05


@router.post("", response_model=User, status_code=201)
async def create_user(payload: CreateUserRequest):
    logger.info("Creating new user", user_name=payload.name, user_email=payload.email)

    if not payload.name.strip():
        logger.warning("User creation failed: empty name", user_email=payload.email)
        raise validation_error("Name cannot be empty", details={"field": "name"})

    user = User(
        id=str(uuid.uuid4()),
        name=payload.name,
        email=payload.email,
        created_at=utc_now_iso(),
    )

    logger.info("User created successfully", user_id=user.id)
    return user


@router.get("/{user_id}", response_model=User)
async def get_user(user_id: str):
    logger.info("Fetching user", user_id=user_id)

    user = await fetch_user_from_database(user_id)
    if user is None:
        logger.warning("User not found", user_id=user_id)
        raise resource_not_found("User not found", details={"user_id": user_id})

    logger.debug("User found", user_id=user_id)
    return user


async def fetch_user_from_database(user_id: str):
    """Simulated lookup in a child span; any non-blank id resolves."""
    with get_tracer(__name__).start_as_current_span(
        "fetch_user_from_database",
        attributes={"user.id": user_id, "db.operation": "SELECT"},
    ):
        await asyncio.sleep(USER_LOOKUP_DELAY_SECONDS)
        logger.debug("Querying database for user", user_id=user_id)

        if not user_id.strip():
            return None

        return User(
            id=user_id,
            name="John Doe",
            email="john.doe@example.com",
            created_at=utc_now_iso(),
        )
