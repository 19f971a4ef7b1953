# marketplace/repositories/voucher_repo.py
import uuid

from sqlalchemy import func
from sqlmodel import Session, select

from marketplace.models.voucher import Voucher, VoucherRequest, VoucherUsage


class VoucherRepository:
    """
    Data access layer for vouchers, their usages and seller requests.
    """

    # ---- Vouchers ----

    def get_by_id(self, session: Session, voucher_id: uuid.UUID) -> Voucher | None:
        return session.get(Voucher, voucher_id)

    def get_by_code(
        self,
        session: Session,
        code: str,
        seller_id: uuid.UUID | None = None,
    ) -> Voucher | None:
        stmt = select(Voucher).where(Voucher.code == code)
        if seller_id is not None:
            stmt = stmt.where(Voucher.seller_id == seller_id)
        return session.exec(stmt).first()

    def list_for_seller(
        self,
        session: Session,
        seller_id: uuid.UUID,
        is_active: bool | None = None,
    ) -> list[Voucher]:
        stmt = select(Voucher).where(Voucher.seller_id == seller_id)
        if is_active is not None:
            stmt = stmt.where(Voucher.is_active == is_active)
        stmt = stmt.order_by(Voucher.created_at.desc())
        return session.exec(stmt).all()

    def stage_voucher(self, session: Session, voucher: Voucher) -> Voucher:
        session.add(voucher)
        session.flush()
        return voucher

    def save_voucher(self, session: Session, voucher: Voucher) -> Voucher:
        session.add(voucher)
        session.commit()
        session.refresh(voucher)
        return voucher

    # ---- Usages ----

    def count_usages(
        self,
        session: Session,
        voucher_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> int:
        stmt = (
            select(func.count())
            .select_from(VoucherUsage)
            .where(VoucherUsage.voucher_id == voucher_id, VoucherUsage.user_id == user_id)
        )
        return session.exec(stmt).one()

    # ---- Requests ----

    def get_request(self, session: Session, request_id: uuid.UUID) -> VoucherRequest | None:
        return session.get(VoucherRequest, request_id)

    def get_pending_request_by_code(self, session: Session, code: str) -> VoucherRequest | None:
        stmt = select(VoucherRequest).where(
            VoucherRequest.code == code,
            VoucherRequest.status == "pending",
        )
        return session.exec(stmt).first()

    def list_requests_for_seller(
        self,
        session: Session,
        seller_id: uuid.UUID,
        status: str | None = None,
    ) -> list[VoucherRequest]:
        stmt = select(VoucherRequest).where(VoucherRequest.seller_id == seller_id)
        if status:
            stmt = stmt.where(VoucherRequest.status == status)
        stmt = stmt.order_by(VoucherRequest.created_at.desc())
        return session.exec(stmt).all()

    def list_requests(
        self,
        session: Session,
        status: str | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[VoucherRequest], int]:
        """
        One page of requests plus the total matching count.
        """
        stmt = select(VoucherRequest)
        count_stmt = select(func.count()).select_from(VoucherRequest)
        if status:
            stmt = stmt.where(VoucherRequest.status == status)
            count_stmt = count_stmt.where(VoucherRequest.status == status)

        stmt = stmt.order_by(VoucherRequest.created_at.desc()).offset(skip).limit(limit)
        return session.exec(stmt).all(), session.exec(count_stmt).one()

    def save_request(self, session: Session, request: VoucherRequest) -> VoucherRequest:
        session.add(request)
        session.commit()
        session.refresh(request)
        return request
