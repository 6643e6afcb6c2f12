from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Request, Response, status

from product_api.core.deps import get_store
from product_api.core.logging import get_logger
from product_api.repositories import ProductStore
from product_api.schemas import Product, ProductCreate, ProductUpdate

logger = get_logger(__name__)

router = APIRouter(prefix="/products", tags=["products"])

# products.id is a 32-bit INTEGER column.
MAX_PRODUCT_ID = 2_147_483_647

ProductId = Annotated[int, Path(gt=0, le=MAX_PRODUCT_ID, description="Product identifier, greater than 0")]

_NOT_FOUND = {404: {"description": "Product not found"}}
_INVALID = {400: {"description": "Invalid product ID or data"}}


def _not_found(product_id: int) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Product {product_id} not found")


@router.get("", response_model=list[Product])
def http_list_products(store: ProductStore = Depends(get_store)):
    logger.info("Retrieving all products")
    items = store.list_all()
    logger.info("Retrieved %d products", len(items))
    return items


@router.get("/{product_id}", response_model=Product, name="get_product", responses={**_INVALID, **_NOT_FOUND})
def http_get_product(product_id: ProductId, store: ProductStore = Depends(get_store)):
    item = store.get_by_id(product_id)
    if item is None:
        logger.warning("Product not found with ID: %s", product_id)
        raise _not_found(product_id)
    return item


@router.post("", response_model=Product, status_code=status.HTTP_201_CREATED, responses=_INVALID)
def http_create_product(
    payload: ProductCreate,
    request: Request,
    response: Response,
    store: ProductStore = Depends(get_store),
):
    logger.info("Creating new product with name: %s", payload.name)
    product = store.create(payload.name, payload.price, payload.description)
    logger.info("Product created with ID: %s", product.id)

    response.headers["Location"] = str(request.app.url_path_for("get_product", product_id=product.id))
    return product


@router.put("/{product_id}", response_model=Product, responses={**_INVALID, **_NOT_FOUND})
def http_update_product(product_id: ProductId, payload: ProductUpdate, store: ProductStore = Depends(get_store)):
    logger.info("Updating product with ID: %s", product_id)
    product = store.update(product_id, payload.name, payload.price, payload.description)
    if product is None:
        logger.warning("Product not found for update with ID: %s", product_id)
        raise _not_found(product_id)
    return product


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={**_INVALID, **_NOT_FOUND},
)
def http_delete_product(product_id: ProductId, store: ProductStore = Depends(get_store)):
    logger.info("Deleting product with ID: %s", product_id)
    if not store.delete(product_id):
        logger.warning("Product not found for deletion with ID: %s", product_id)
        raise _not_found(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
