"""Product directory — the lookups the stage ledger depends on."""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from farmtrace.common.exceptions import PersistenceError
from farmtrace.products.models import ProductModel


class ProductService:
    """Product registration and lookup by id and batch code."""

    async def create_product(
        self,
        session: AsyncSession,
        name: str,
        batch_code: str,
        created_by: int,
        description: str = "",
    ) -> ProductModel:
        product = ProductModel(
            name=name,
            batch_code=batch_code,
            description=description,
            created_by=created_by,
        )
        session.add(product)
        try:
            await session.flush()
        except IntegrityError as exc:
            raise PersistenceError(
                f"Could not register product with batch code '{batch_code}'",
                integrity=True,
            ) from exc
        return product

    async def get_by_id(
        self, session: AsyncSession, product_id: int
    ) -> ProductModel | None:
        return await session.get(ProductModel, product_id)

    async def get_by_batch_code(
        self, session: AsyncSession, batch_code: str
    ) -> ProductModel | None:
        result = await session.execute(
            select(ProductModel).where(ProductModel.batch_code == batch_code)
        )
        return result.scalar_one_or_none()
