from decimal import Decimal
from pydantic import BaseModel, ConfigDict
from shared.sales import Money

class ProductCreate(BaseModel):
    name: str
    category: str | None = None
    price: Decimal
    stock: int = 0

class ProductResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    category: str | None = None
    price: Money
    stock: int = 0
