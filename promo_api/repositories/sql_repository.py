"""High-level data access helpers backed by SQLAlchemy."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError

from promo_api.core.utils import utcnow
from promo_api.db.models import (
    Action,
    LinkToken,
    Notification,
    Product,
    ProductStats,
    ProductUser,
    User,
    UserPreferences,
    UserProfile,
)
from promo_api.db.session import get_session
from promo_api.domain.constants import (
    ActionOrigin,
    ActionType,
    DEFAULT_STORE,
    MAX_NOTIFICATIONS_PER_USER,
    NotificationStatus,
)
from promo_api.domain.products import percentage_change
from promo_api.domain.tokens import new_action_id, new_id

_PRODUCT_FIELDS = (
    "offer_id",
    "title",
    "full_price",
    "price",
    "old_price",
    "lowest_price",
    "in_stock",
    "url",
    "image",
    "preorder",
    "category",
    "format",
    "genre",
    "publisher",
    "store",
    "contributors",
)


class InvalidCursorError(Exception):
    """lastKey does not point to a notification of the user."""


class SQLRepository:
    """CRUD helpers wrapping the SQLAlchemy session."""

    # -------------------------- users --------------------------
    def get_user(self, user_id: str) -> Optional[User]:
        if not user_id:
            return None
        with get_session() as session:
            return session.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        with get_session() as session:
            return session.execute(select(User).where(User.email == email)).scalar_one_or_none()

    def get_user_by_telegram_id(self, telegram_id: str) -> Optional[User]:
        with get_session() as session:
            stmt = select(User).where(User.telegram_id == str(telegram_id)).order_by(User.created_at)
            return session.execute(stmt).scalars().first()

    def create_user(self, **fields: Any) -> User:
        now = utcnow()
        fields.setdefault("id", new_id())
        with get_session() as session:
            user = User(created_at=now, updated_at=now, **fields)
            session.add(user)
            try:
                session.commit()
            except IntegrityError:
                # e-mail duplicado
                session.rollback()
                raise
            session.refresh(user)
            return user

    def update_user(self, user_id: str, **values: Any) -> None:
        with get_session() as session:
            stmt = update(User).where(User.id == user_id).values(updated_at=utcnow(), **values)
            session.execute(stmt)
            session.commit()

    def set_users_linking(self, user_ids: Iterable[str], is_linking: bool) -> None:
        ids = [uid for uid in user_ids if uid]
        if not ids:
            return
        with get_session() as session:
            stmt = update(User).where(User.id.in_(ids)).values(is_linking=is_linking, updated_at=utcnow())
            session.execute(stmt)
            session.commit()

    # -------------------------- profiles --------------------------
    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        with get_session() as session:
            stmt = select(UserProfile).where(UserProfile.user_id == user_id)
            return session.execute(stmt).scalar_one_or_none()

    def create_profile(self, user_id: str, nick: str) -> UserProfile:
        now = utcnow()
        with get_session() as session:
            profile = UserProfile(id=new_id(), user_id=user_id, nick=nick, created_at=now, updated_at=now)
            session.add(profile)
            session.commit()
            session.refresh(profile)
            return profile

    def update_profile_nick(self, user_id: str, nick: str) -> Optional[UserProfile]:
        with get_session() as session:
            profile = session.execute(select(UserProfile).where(UserProfile.user_id == user_id)).scalar_one_or_none()
            if not profile:
                return None
            profile.nick = nick
            profile.updated_at = utcnow()
            session.commit()
            session.refresh(profile)
            return profile

    # -------------------------- preferences --------------------------
    def get_preferences(self, user_id: str) -> Optional[UserPreferences]:
        with get_session() as session:
            stmt = select(UserPreferences).where(UserPreferences.user_id == user_id)
            return session.execute(stmt).scalar_one_or_none()

    def create_preferences(self, user_id: str, monitor_preorders: bool = False, monitor_coupons: bool = False) -> UserPreferences:
        now = utcnow()
        with get_session() as session:
            prefs = UserPreferences(
                id=new_id(),
                user_id=user_id,
                monitor_preorders=monitor_preorders,
                monitor_coupons=monitor_coupons,
                created_at=now,
                updated_at=now,
            )
            session.add(prefs)
            session.commit()
            session.refresh(prefs)
            return prefs

    def update_preferences(self, user_id: str, values: dict[str, bool]) -> Optional[UserPreferences]:
        with get_session() as session:
            prefs = session.execute(
                select(UserPreferences).where(UserPreferences.user_id == user_id)
            ).scalar_one_or_none()
            if not prefs:
                return None
            for field, value in values.items():
                setattr(prefs, field, value)
            prefs.updated_at = utcnow()
            session.commit()
            session.refresh(prefs)
            return prefs

    # -------------------------- products --------------------------
    def get_product(self, product_id: str) -> Optional[Product]:
        with get_session() as session:
            return session.get(Product, product_id)

    def list_products(self, limit: int) -> list[Product]:
        """Most recently updated first, capped at ``limit`` rows."""
        with get_session() as session:
            stmt = select(Product).order_by(Product.updated_at.desc(), Product.id).limit(limit)
            return list(session.execute(stmt).scalars())

    def upsert_product(self, product_id: str, data: dict[str, Any]) -> Product:
        """
        Cria ou atualiza um produto. Quando o preco muda, old_price recebe o
        preco anterior, lowest_price acompanha o minimo e um ProductStats e
        gravado com a variacao percentual.
        """
        now = utcnow()
        values = {key: data[key] for key in _PRODUCT_FIELDS if key in data}
        with get_session() as session:
            product = session.get(Product, product_id)
            if not product:
                values.setdefault("store", DEFAULT_STORE)
                values.setdefault("contributors", [])
                price = values.get("price")
                values.setdefault("lowest_price", price)
                product = Product(
                    id=product_id,
                    created_at=data.get("created_at") or now,
                    updated_at=data.get("updated_at") or now,
                    **values,
                )
                session.add(product)
                if price is not None:
                    session.add(
                        ProductStats(
                            id=new_id(),
                            product_id=product_id,
                            price=price,
                            old_price=values.get("old_price"),
                            percentage_change=percentage_change(values.get("old_price"), price),
                            created_at=product.created_at,
                        )
                    )
            else:
                previous = product.price
                new_price = values.get("price", previous)
                for field, value in values.items():
                    setattr(product, field, value)
                if new_price is not None and previous is not None and new_price != previous:
                    product.old_price = previous
                    session.add(
                        ProductStats(
                            id=new_id(),
                            product_id=product_id,
                            price=new_price,
                            old_price=previous,
                            percentage_change=percentage_change(previous, new_price),
                            created_at=now,
                        )
                    )
                if new_price is not None and (product.lowest_price is None or new_price < product.lowest_price):
                    product.lowest_price = new_price
                product.updated_at = data.get("updated_at") or now
            session.commit()
            session.refresh(product)
            return product

    # -------------------------- product stats --------------------------
    def create_product_stats(
        self,
        product_id: str,
        price: float,
        old_price: float | None = None,
        created_at: datetime | None = None,
    ) -> ProductStats:
        with get_session() as session:
            stats = ProductStats(
                id=new_id(),
                product_id=product_id,
                price=price,
                old_price=old_price,
                percentage_change=percentage_change(old_price, price),
                created_at=created_at or utcnow(),
            )
            session.add(stats)
            session.commit()
            session.refresh(stats)
            return stats

    def find_product_stats(self, product_id: str, start: datetime, end: datetime) -> list[ProductStats]:
        with get_session() as session:
            stmt = (
                select(ProductStats)
                .where(
                    ProductStats.product_id == product_id,
                    ProductStats.created_at >= start,
                    ProductStats.created_at <= end,
                )
                .order_by(ProductStats.created_at)
            )
            return list(session.execute(stmt).scalars())

    # -------------------------- product monitoring --------------------------
    def get_product_user(self, user_id: str, product_id: str) -> Optional[ProductUser]:
        with get_session() as session:
            stmt = select(ProductUser).where(ProductUser.user_id == user_id, ProductUser.product_id == product_id)
            return session.execute(stmt).scalar_one_or_none()

    def create_product_user(self, user_id: str, product_id: str, desired_price: float | None = None) -> ProductUser:
        now = utcnow()
        with get_session() as session:
            link = ProductUser(
                id=new_id(),
                user_id=user_id,
                product_id=product_id,
                desired_price=desired_price,
                created_at=now,
                updated_at=now,
            )
            session.add(link)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise
            session.refresh(link)
            return link

    def delete_product_user(self, user_id: str, product_id: str) -> bool:
        with get_session() as session:
            stmt = delete(ProductUser).where(ProductUser.user_id == user_id, ProductUser.product_id == product_id)
            result = session.execute(stmt)
            session.commit()
            return bool(result.rowcount)

    def list_monitored_product_ids(self, user_id: str) -> set[str]:
        with get_session() as session:
            stmt = select(ProductUser.product_id).where(ProductUser.user_id == user_id)
            return set(session.execute(stmt).scalars())

    # -------------------------- notifications --------------------------
    def create_notification(
        self,
        user_id: str,
        notification_type: str,
        title: str,
        message: str,
        metadata: dict | None = None,
        sent_via: str | None = None,
        created_at: datetime | None = None,
    ) -> Notification:
        with get_session() as session:
            # mantem no maximo MAX_NOTIFICATIONS_PER_USER por usuario
            total = session.execute(
                select(func.count()).select_from(Notification).where(Notification.user_id == user_id)
            ).scalar_one()
            overflow = total - MAX_NOTIFICATIONS_PER_USER + 1
            if overflow > 0:
                oldest = session.execute(
                    select(Notification.id)
                    .where(Notification.user_id == user_id)
                    .order_by(Notification.created_at, Notification.id)
                    .limit(overflow)
                ).scalars().all()
                session.execute(delete(Notification).where(Notification.id.in_(oldest)))
            notification = Notification(
                id=new_id(),
                user_id=user_id,
                type=notification_type,
                title=title,
                message=message,
                status=NotificationStatus.UNREAD.value,
                meta=metadata,
                sent_via=sent_via,
                created_at=created_at or utcnow(),
            )
            session.add(notification)
            session.commit()
            session.refresh(notification)
            return notification

    def get_notification(self, notification_id: str) -> Optional[Notification]:
        with get_session() as session:
            return session.get(Notification, notification_id)

    def list_notifications(
        self,
        user_id: str,
        *,
        limit: int,
        status: str | None = None,
        after_id: str | None = None,
    ) -> tuple[list[Notification], bool]:
        """Newest first. Returns the page and whether more rows follow it."""
        with get_session() as session:
            stmt = select(Notification).where(Notification.user_id == user_id)
            if status:
                stmt = stmt.where(Notification.status == status)
            if after_id:
                cursor = session.get(Notification, after_id)
                if not cursor or cursor.user_id != user_id:
                    raise InvalidCursorError(after_id)
                stmt = stmt.where(
                    or_(
                        Notification.created_at < cursor.created_at,
                        and_(Notification.created_at == cursor.created_at, Notification.id < cursor.id),
                    )
                )
            stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit + 1)
            rows = list(session.execute(stmt).scalars())
            return rows[:limit], len(rows) > limit

    def count_unread_notifications(self, user_id: str) -> int:
        with get_session() as session:
            stmt = (
                select(func.count())
                .select_from(Notification)
                .where(Notification.user_id == user_id, Notification.status == NotificationStatus.UNREAD.value)
            )
            return int(session.execute(stmt).scalar_one())

    def mark_notification_read(self, notification_id: str) -> None:
        with get_session() as session:
            stmt = (
                update(Notification)
                .where(Notification.id == notification_id)
                .values(status=NotificationStatus.READ.value, read_at=utcnow())
            )
            session.execute(stmt)
            session.commit()

    def mark_all_notifications_read(self, user_id: str) -> int:
        with get_session() as session:
            stmt = (
                update(Notification)
                .where(Notification.user_id == user_id, Notification.status == NotificationStatus.UNREAD.value)
                .values(status=NotificationStatus.READ.value, read_at=utcnow())
            )
            result = session.execute(stmt)
            session.commit()
            return int(result.rowcount or 0)

    def delete_notification(self, notification_id: str) -> None:
        with get_session() as session:
            session.execute(delete(Notification).where(Notification.id == notification_id))
            session.commit()

    def delete_old_notifications(self, older_than: datetime) -> int:
        with get_session() as session:
            result = session.execute(delete(Notification).where(Notification.created_at < older_than))
            session.commit()
            return int(result.rowcount or 0)

    # -------------------------- actions --------------------------
    def create_action(
        self,
        action_type: ActionType,
        value: str,
        *,
        user_id: str | None = None,
        origin: ActionOrigin | None = None,
    ) -> Action:
        with get_session() as session:
            action = Action(
                id=new_action_id(action_type),
                type=action_type.value,
                user_id=user_id,
                value=value,
                origin=origin.value if origin else None,
                is_processed=0,
                created_at=utcnow(),
            )
            session.add(action)
            session.commit()
            session.refresh(action)
            return action

    def list_pending_actions(self, action_type: ActionType | None = None) -> list[Action]:
        with get_session() as session:
            stmt = select(Action).where(Action.is_processed == 0)
            if action_type is not None:
                stmt = stmt.where(Action.type == action_type.value)
            return list(session.execute(stmt.order_by(Action.created_at)).scalars())

    # -------------------------- link tokens --------------------------
    def create_link_token(self, telegram_user_id: str, token: str, ttl_seconds: int) -> LinkToken:
        now = utcnow()
        with get_session() as session:
            entity = LinkToken(
                id=new_id(),
                telegram_user_id=str(telegram_user_id),
                token=token,
                expires_at=now + timedelta(seconds=ttl_seconds),
                used=False,
                created_at=now,
            )
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return entity

    def get_link_token(self, token: str) -> Optional[LinkToken]:
        with get_session() as session:
            stmt = select(LinkToken).where(LinkToken.token == token).order_by(LinkToken.created_at.desc())
            return session.execute(stmt).scalars().first()

    def mark_link_token_used(self, token_id: str) -> None:
        with get_session() as session:
            session.execute(update(LinkToken).where(LinkToken.id == token_id).values(used=True))
            session.commit()
