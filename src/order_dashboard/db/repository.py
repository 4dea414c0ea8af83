"""Repositories for orders, buyers, blocks and email data access."""

from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from sqlalchemy import Select, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Block, Buyer, EmailLog, EmailTemplate, Order

ModelT = TypeVar("ModelT")


def _contains(search: str) -> str:
    """``ilike`` pattern matching ``search`` literally; pair with ``escape="\\"``."""
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class BaseRepository(Generic[ModelT]):
    """Single-table CRUD helpers shared by the concrete repositories.

    Every write commits immediately; there is no unit of work spanning
    several rows.
    """

    model: Type[ModelT]

    def __init__(self, session: AsyncSession):
        """Initialize repository with async session."""
        self.session = session

    async def get(self, obj_id: int) -> Optional[ModelT]:
        return await self.session.get(self.model, obj_id)

    async def create(self, data: Dict[str, Any]) -> ModelT:
        obj = self.model(**data)
        self.session.add(obj)
        await self.session.commit()
        await self.session.refresh(obj)
        return obj

    async def update(self, obj: ModelT, updates: Dict[str, Any]) -> ModelT:
        for key, value in updates.items():
            setattr(obj, key, value)
        await self.session.commit()
        await self.session.refresh(obj)
        return obj

    async def delete(self, obj_id: int) -> int:
        """Delete a row by id. Returns count of deleted rows."""
        stmt = delete(self.model).where(self.model.id == obj_id)
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount

    async def _paginate(
        self, query: Select, page: int, page_size: int
    ) -> Tuple[List[ModelT], int]:
        """Run ``query`` for one page and count all matching rows."""
        count_query = select(func.count()).select_from(query.order_by(None).subquery())
        total = (await self.session.execute(count_query)).scalar_one()

        offset = (page - 1) * page_size
        result = await self.session.execute(query.offset(offset).limit(page_size))
        return list(result.scalars().all()), total


class OrderRepository(BaseRepository[Order]):
    """Data access layer for Order model."""

    model = Order

    async def list_orders(
        self,
        page: int,
        page_size: int,
        sort: Sequence[Tuple[str, bool]] = (("order_date", False),),
        search: Optional[str] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> Tuple[List[Order], int]:
        """
        List one page of orders.

        Args:
            page: 1-based page number
            page_size: Rows per page
            sort: (column, ascending) pairs, applied in order
            search: Case-insensitive substring matched on order_ref or buyer
            filters: Column equality filters, all of which must match
        """
        query = self._filtered(select(Order), search, filters)
        for column, ascending in sort:
            col = getattr(Order, column)
            query = query.order_by(col.asc() if ascending else col.desc())
        query = query.order_by(Order.id.desc())
        return await self._paginate(query, page, page_size)

    async def find_orders(
        self,
        search: Optional[str] = None,
        filters: Optional[Dict[str, Any]] = None,
        ids: Optional[Sequence[int]] = None,
    ) -> List[Order]:
        """All orders matching the filters, unpaginated."""
        query = self._filtered(select(Order), search, filters)
        if ids is not None:
            query = query.where(Order.id.in_(list(ids)))
        result = await self.session.execute(query.order_by(Order.id))
        return list(result.scalars().all())

    @staticmethod
    def _filtered(
        query: Select, search: Optional[str], filters: Optional[Dict[str, Any]]
    ) -> Select:
        if search:
            pattern = _contains(search)
            query = query.where(
                or_(
                    Order.order_ref.ilike(pattern, escape="\\"),
                    Order.buyer.ilike(pattern, escape="\\"),
                )
            )
        for column, value in (filters or {}).items():
            if value is not None:
                query = query.where(getattr(Order, column) == value)
        return query

    async def get_by_shopify_id(self, shopify_id: str) -> Optional[Order]:
        result = await self.session.execute(
            select(Order).where(Order.shopify_id == shopify_id).limit(1)
        )
        return result.scalars().first()

    async def get_by_order_ref(self, order_ref: str) -> Optional[Order]:
        result = await self.session.execute(
            select(Order).where(Order.order_ref == order_ref).limit(1)
        )
        return result.scalars().first()

    async def has_orders_for_block(self, block_id: int) -> bool:
        result = await self.session.execute(
            select(Order.id).where(Order.block_id == block_id).limit(1)
        )
        return result.first() is not None

    async def has_orders_for_buyer(self, buyer_id: int) -> bool:
        result = await self.session.execute(
            select(Order.id).where(Order.buyer_id == buyer_id).limit(1)
        )
        return result.first() is not None

    async def max_shopify_id(self) -> Optional[int]:
        """Highest numeric Shopify id stored, used as since_id for incremental syncs."""
        result = await self.session.execute(
            select(Order.shopify_id).where(Order.shopify_id.is_not(None))
        )
        numeric_ids = [int(value) for value in result.scalars() if value and value.isdigit()]
        return max(numeric_ids) if numeric_ids else None

    async def mark_email_sent(self, order: Order, column: str) -> None:
        setattr(order, column, datetime.utcnow())
        await self.session.commit()


class BuyerRepository(BaseRepository[Buyer]):
    """Data access layer for Buyer model."""

    model = Buyer

    async def list_buyers(
        self, page: int, page_size: int, search: Optional[str] = None
    ) -> Tuple[List[Buyer], int]:
        query = select(Buyer)
        if search:
            pattern = _contains(search)
            query = query.where(
                or_(
                    Buyer.name.ilike(pattern, escape="\\"),
                    Buyer.buyer_no.ilike(pattern, escape="\\"),
                    Buyer.delivery_contact_person.ilike(pattern, escape="\\"),
                    Buyer.delivery_contact_email.ilike(pattern, escape="\\"),
                )
            )
        query = query.order_by(Buyer.name.asc(), Buyer.id.asc())
        return await self._paginate(query, page, page_size)

    async def order_counts(self, buyer_ids: Sequence[int]) -> Dict[int, int]:
        """Number of linked orders per buyer id."""
        if not buyer_ids:
            return {}
        result = await self.session.execute(
            select(Order.buyer_id, func.count(Order.id))
            .where(Order.buyer_id.in_(list(buyer_ids)))
            .group_by(Order.buyer_id)
        )
        return {buyer_id: count for buyer_id, count in result.all()}

    async def buyer_no_taken(self, buyer_no: str, exclude_id: Optional[int] = None) -> bool:
        query = select(Buyer.id).where(Buyer.buyer_no == buyer_no)
        if exclude_id is not None:
            query = query.where(Buyer.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.first() is not None


class BlockRepository(BaseRepository[Block]):
    """Data access layer for Block model."""

    model = Block

    async def list_blocks(
        self,
        page: int,
        page_size: int,
        search: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Tuple[List[Block], int]:
        query = select(Block)
        if search:
            query = query.where(Block.name.ilike(_contains(search), escape="\\"))
        if status:
            query = query.where(Block.ship_status == status)
        query = query.order_by(Block.ship_month.asc(), Block.id.asc())
        return await self._paginate(query, page, page_size)


class EmailTemplateRepository(BaseRepository[EmailTemplate]):
    """Data access layer for EmailTemplate model."""

    model = EmailTemplate

    async def get_by_type(self, template_type: str) -> Optional[EmailTemplate]:
        result = await self.session.execute(
            select(EmailTemplate).where(EmailTemplate.type == template_type).limit(1)
        )
        return result.scalars().first()

    async def list_all(self) -> List[EmailTemplate]:
        result = await self.session.execute(select(EmailTemplate).order_by(EmailTemplate.type))
        return list(result.scalars().all())

    async def upsert(self, template_type: str, subject: str, content: str) -> EmailTemplate:
        existing = await self.get_by_type(template_type)
        if existing:
            return await self.update(existing, {"subject": subject, "content": content})
        return await self.create({"type": template_type, "subject": subject, "content": content})


class EmailLogRepository(BaseRepository[EmailLog]):
    """Data access layer for EmailLog model."""

    model = EmailLog

    async def list_for_order(self, order_id: int) -> List[EmailLog]:
        result = await self.session.execute(
            select(EmailLog)
            .where(EmailLog.order_id == order_id)
            .order_by(EmailLog.created_at.desc(), EmailLog.id.desc())
        )
        return list(result.scalars().all())
