"""Product API router (registration and lookup only)."""

from fastapi import APIRouter, Depends, HTTPException

from farmtrace.common.exceptions import PersistenceError
from farmtrace.common.security import ActorContext, require_role
from farmtrace.products.schemas import ProductCreate, ProductResponse

router = APIRouter(prefix="/products")


def _get_service():
    from farmtrace.deps import get_product_service
    return get_product_service()


def _get_db():
    from farmtrace.deps import get_db
    return get_db()


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(
    body: ProductCreate,
    actor: ActorContext = Depends(require_role("producer", "admin")),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            product = await svc.create_product(
                session,
                name=body.name,
                batch_code=body.batch_code,
                created_by=actor.id,
                description=body.description,
            )
            return ProductResponse.model_validate(product)
    except PersistenceError as e:
        raise HTTPException(status_code=409, detail=e.message)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: int):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        product = await svc.get_by_id(session, product_id)
        if product is None:
            raise HTTPException(status_code=404, detail="Product not found")
        return ProductResponse.model_validate(product)
