"""
Request and response models for the demo API.

Users and orders are fabricated per request; nothing here is persisted.
"""

from typing import List

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str


class ServiceInfoResponse(BaseModel):
    message: str
    service: str
    version: str
    environment: str
    endpoints: List[str]


class CreateUserRequest(BaseModel):
    name: str
    email: str


class User(BaseModel):
    id: str
    name: str
    email: str
    created_at: str


class OrderItem(BaseModel):
    product_id: str
    quantity: int = Field(ge=0)
    price: float = Field(ge=0)


class OrderRequest(BaseModel):
    user_id: str
    items: List[OrderItem]


class OrderResponse(BaseModel):
    order_id: str
    user_id: str
    total_amount: float
    status: str
    created_at: str
