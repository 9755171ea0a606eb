from fastapi import APIRouter, Depends, Query, status

from app.rfidpos.core.deps import get_terminal
from app.rfidpos.schemas.products import (
    ProductCreateRequest,
    ProductListResponse,
    ProductResponse,
    ProductUpdateRequest,
)

router = APIRouter()


@router.post("/rfidpos/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(payload: ProductCreateRequest, terminal=Depends(get_terminal)):
    product = terminal.add_product(payload.model_dump())
    return ProductResponse.from_domain(product)


@router.get("/rfidpos/products", response_model=ProductListResponse)
def list_products(include_sold: bool = Query(False), terminal=Depends(get_terminal)):
    rows = [ProductResponse.from_domain(product) for product in terminal.inventory.list(include_sold=include_sold)]
    return ProductListResponse(rows=rows, total=len(rows))


@router.get("/rfidpos/products/{tag_id}", response_model=ProductResponse)
def get_product(tag_id: str, terminal=Depends(get_terminal)):
    return ProductResponse.from_domain(terminal.inventory.require(tag_id))


@router.patch("/rfidpos/products/{tag_id}", response_model=ProductResponse)
def update_product(tag_id: str, payload: ProductUpdateRequest, terminal=Depends(get_terminal)):
    product = terminal.update_product(tag_id, payload.model_dump(exclude_unset=True))
    return ProductResponse.from_domain(product)
