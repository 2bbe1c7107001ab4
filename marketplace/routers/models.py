"""
Cart API Pydantic Models
"""
from typing import List, Union

from pydantic import BaseModel, Field


class AddToCartRequest(BaseModel):
    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    image_url: str = ""
    price: Union[int, float] = Field(ge=0)


class LineItemResponse(BaseModel):
    id: str
    title: str
    image_url: str
    price: Union[int, float]
    quantity: int


class CartResponse(BaseModel):
    products: List[LineItemResponse]
    total_items: int
