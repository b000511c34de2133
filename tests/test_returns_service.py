"""Tests for the return -> replacement workflow."""

import re
import uuid
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import select

from app.core.exceptions import BadRequestError, ForbiddenError, NotFoundError, RefundPolicyBlockedError
from app.models.notification import Notification
from app.models.order import Order, OrderStatus, PaymentMode
from app.models.product import Product
from app.models.return_request import (
    ReplacementOrder,
    ReturnQCChecklist,
    ReturnReason,
    ReturnRequest,
    ReturnStatus,
)
from app.schemas.return_request import (
    QCChecklistSubmit,
    ReturnItemCreate,
    ReturnRequestCreate,
    ReturnStatusUpdate,
)
from app.services.returns_service import ReturnsService, evaluate_qc_checklist


async def _stock(db, product_id) -> int:
    result = await db.execute(
        select(Product).where(Product.id == product_id).execution_options(populate_existing=True)
    )
    return result.scalar_one().stock


def _request(order, product, quantity=1, reason=ReturnReason.DAMAGED_PRODUCT) -> ReturnRequestCreate:
    return ReturnRequestCreate(
        order_id=order.id,
        reason=reason,
        description="Screen cracked on arrival",
        items=[ReturnItemCreate(product_id=product.id, quantity=quantity)],
    )


@pytest_asyncio.fixture
async def delivered_order(make_order, product):
    return await make_order(product, OrderStatus.DELIVERED, quantity=2)


@pytest_asyncio.fixture
async def pending_return(db_session, customer, delivered_order, product) -> ReturnRequest:
    return await ReturnsService(db_session).create(customer.id, _request(delivered_order, product))


class TestCreate:
    async def test_creates_pending_return_with_timeline(self, pending_return, vendor, customer):
        assert pending_return.status == ReturnStatus.PENDING_APPROVAL.value
        assert re.fullmatch(r"RET-\d{4}-\d{6}", pending_return.return_number)
        assert pending_return.vendor_id == vendor.id
        assert len(pending_return.items) == 1
        assert pending_return.items[0].reason == ReturnReason.DAMAGED_PRODUCT.value
        assert [t.action for t in pending_return.timeline] == ["RETURN_REQUESTED"]
        assert pending_return.timeline[0].performed_by == "CUSTOMER"
        assert pending_return.timeline[0].actor_id == customer.id

    async def test_order_status_is_left_alone(self, db_session, pending_return, delivered_order):
        status = (await db_session.execute(select(Order.status).where(Order.id == delivered_order.id))).scalar_one()
        assert status == OrderStatus.DELIVERED.value

    async def test_only_delivered_orders(self, db_session, customer, make_order, product):
        order = await make_order(product, OrderStatus.SHIPPED)

        with pytest.raises(BadRequestError) as exc:
            await ReturnsService(db_session).create(customer.id, _request(order, product))
        assert exc.value.detail == "Returns can only be requested for delivered orders"

    async def test_someone_elses_order(self, db_session, vendor_user, delivered_order, product):
        with pytest.raises(NotFoundError):
            await ReturnsService(db_session).create(vendor_user.id, _request(delivered_order, product))

    async def test_one_open_return_per_order(self, db_session, customer, pending_return, delivered_order, product):
        with pytest.raises(BadRequestError):
            await ReturnsService(db_session).create(customer.id, _request(delivered_order, product))

    async def test_item_must_belong_to_order(self, db_session, customer, delivered_order, variant_product):
        with pytest.raises(BadRequestError):
            await ReturnsService(db_session).create(customer.id, _request(delivered_order, variant_product))

    async def test_cannot_return_more_than_ordered(self, db_session, customer, delivered_order, product):
        with pytest.raises(BadRequestError):
            await ReturnsService(db_session).create(customer.id, _request(delivered_order, product, quantity=3))

    async def test_new_return_allowed_after_rejection(
        self, db_session, customer, admin, pending_return, delivered_order, product
    ):
        service = ReturnsService(db_session)
        await service.update_status(
            pending_return.id,
            ReturnStatusUpdate(status=ReturnStatus.REJECTED, rejection_reason="Outside return window"),
            admin.id,
        )

        again = await service.create(customer.id, _request(delivered_order, product))
        assert again.id != pending_return.id


class TestApproval:
    async def test_approval_creates_free_replacement_and_deducts_stock(
        self, db_session, admin, pending_return, delivered_order, product
    ):
        returned = await ReturnsService(db_session).update_status(
            pending_return.id, ReturnStatusUpdate(status=ReturnStatus.APPROVED), admin.id
        )

        assert returned.status == ReturnStatus.APPROVED.value
        assert returned.approved_at is not None
        assert returned.replacement is not None
        assert returned.replacement.original_order_id == delivered_order.id

        new_order = (
            await db_session.execute(select(Order).where(Order.id == returned.replacement.new_order_id))
        ).scalar_one()
        assert new_order.total_amount == 0
        assert new_order.status == OrderStatus.CONFIRMED.value
        assert new_order.payment_mode == PaymentMode.COD.value
        assert new_order.is_replacement is True
        assert new_order.user_id == delivered_order.user_id
        assert new_order.address_id == delivered_order.address_id
        assert new_order.items_snapshot == delivered_order.items_snapshot

        assert await _stock(db_session, product.id) == 9

    async def test_repeated_approval_creates_one_replacement(self, db_session, admin, pending_return, product):
        service = ReturnsService(db_session)
        approve = ReturnStatusUpdate(status=ReturnStatus.APPROVED)

        await service.update_status(pending_return.id, approve, admin.id)
        returned = await service.update_status(pending_return.id, approve, admin.id)

        replacements = (
            await db_session.execute(select(ReplacementOrder).where(ReplacementOrder.return_id == pending_return.id))
        ).scalars().all()
        assert len(replacements) == 1
        assert await _stock(db_session, product.id) == 9
        # Same-status calls still leave a trace
        assert [t.action for t in returned.timeline] == [
            "RETURN_REQUESTED",
            "STATUS_UPDATE_TO_APPROVED",
            "STATUS_UPDATE_TO_APPROVED",
        ]

    async def test_vendor_is_notified(self, db_session, admin, vendor_user, pending_return):
        await ReturnsService(db_session).update_status(
            pending_return.id, ReturnStatusUpdate(status=ReturnStatus.APPROVED), admin.id
        )

        notification = (
            await db_session.execute(select(Notification).where(Notification.user_id == vendor_user.id))
        ).scalar_one()
        assert notification.title == "Return Approved"
        assert notification.audience == "VENDOR"

    async def test_approval_rolls_back_when_stock_is_short(self, db_session, admin, pending_return, product):
        return_id = pending_return.id
        product_id = product.id
        admin_id = admin.id
        product.stock = 0
        await db_session.commit()

        with pytest.raises(BadRequestError):
            await ReturnsService(db_session).update_status(
                return_id, ReturnStatusUpdate(status=ReturnStatus.APPROVED), admin_id
            )

        reloaded = await ReturnsService(db_session).find_one(return_id)
        assert reloaded.status == ReturnStatus.PENDING_APPROVAL.value
        assert reloaded.replacement is None
        orders = (await db_session.execute(select(Order).where(Order.is_replacement.is_(True)))).scalars().all()
        assert orders == []
        assert await _stock(db_session, product_id) == 0

    async def test_ensure_replacement_is_idempotent(self, db_session, admin, pending_return):
        service = ReturnsService(db_session)
        approved = await service.update_status(
            pending_return.id, ReturnStatusUpdate(status=ReturnStatus.APPROVED), admin.id
        )

        replacement = await service.ensure_replacement(pending_return.id, admin.id)
        assert replacement.id == approved.replacement.id

    async def test_ensure_replacement_requires_approval(self, db_session, admin, pending_return):
        with pytest.raises(BadRequestError):
            await ReturnsService(db_session).ensure_replacement(pending_return.id, admin.id)


class TestStatusRules:
    async def test_illegal_jump_rejected(self, db_session, admin, pending_return):
        with pytest.raises(BadRequestError):
            await ReturnsService(db_session).update_status(
                pending_return.id, ReturnStatusUpdate(status=ReturnStatus.QC_PASSED), admin.id
            )

    async def test_refund_status_blocked_without_override(self, db_session, admin, pending_return):
        service = ReturnsService(db_session)
        await service.update_status(pending_return.id, ReturnStatusUpdate(status=ReturnStatus.APPROVED), admin.id)

        with pytest.raises(RefundPolicyBlockedError) as exc:
            await service.update_status(
                pending_return.id, ReturnStatusUpdate(status=ReturnStatus.REFUND_INITIATED), admin.id
            )
        assert exc.value.status_code == 409
        assert exc.value.decision.allowed is False

    async def test_rejection_records_reason(self, db_session, admin, pending_return):
        rejected = await ReturnsService(db_session).update_status(
            pending_return.id,
            ReturnStatusUpdate(status=ReturnStatus.REJECTED, rejection_reason="Outside return window"),
            admin.id,
        )
        assert rejected.rejection_reason == "Outside return window"
        assert rejected.rejected_at is not None

    async def test_qc_passed_restocks_once(self, db_session, admin, pending_return, product):
        service = ReturnsService(db_session)
        await service.update_status(pending_return.id, ReturnStatusUpdate(status=ReturnStatus.APPROVED), admin.id)
        assert await _stock(db_session, product.id) == 9

        passed = await service.update_status(
            pending_return.id, ReturnStatusUpdate(status=ReturnStatus.QC_PASSED), admin.id
        )
        assert passed.stock_restored_at is not None
        assert await _stock(db_session, product.id) == 10

        # Leave and re-enter QC_PASSED
        await service.update_status(
            pending_return.id, ReturnStatusUpdate(status=ReturnStatus.RECEIVED_AT_WAREHOUSE), admin.id
        )
        await service.update_status(pending_return.id, ReturnStatusUpdate(status=ReturnStatus.QC_PASSED), admin.id)
        await service.update_status(pending_return.id, ReturnStatusUpdate(status=ReturnStatus.QC_PASSED), admin.id)

        assert await _stock(db_session, product.id) == 10


class TestReplacementShipping:
    async def test_ship_replacement(self, db_session, admin, customer, pending_return):
        service = ReturnsService(db_session)
        await service.update_status(pending_return.id, ReturnStatusUpdate(status=ReturnStatus.APPROVED), admin.id)

        shipped = await service.ship_replacement(pending_return.id, "AWB123456", admin.id)

        assert shipped.status == ReturnStatus.REPLACEMENT_SHIPPED.value
        assert shipped.replacement_tracking_id == "AWB123456"
        assert shipped.timeline[-1].action == "REPLACEMENT_DISPATCHED"
        assert shipped.timeline[-1].notes == "Tracking ID: AWB123456"

        titles = (
            await db_session.execute(select(Notification.title).where(Notification.user_id == customer.id))
        ).scalars().all()
        assert titles == ["Replacement Shipped"]

    async def test_ship_requires_replacement(self, db_session, admin, pending_return):
        with pytest.raises(BadRequestError):
            await ReturnsService(db_session).ship_replacement(pending_return.id, "AWB1", admin.id)


class TestVendorDecisions:
    async def test_vendor_accepts(self, db_session, vendor, vendor_user, pending_return):
        accepted = await ReturnsService(db_session).accept_return(vendor.id, pending_return.id, vendor_user.id)

        assert accepted.status == ReturnStatus.APPROVED.value
        assert accepted.replacement is not None
        assert accepted.timeline[-1].performed_by == "VENDOR"
        assert accepted.timeline[-1].notes == "Accepted by vendor"

    async def test_vendor_rejects(self, db_session, vendor, vendor_user, pending_return):
        rejected = await ReturnsService(db_session).reject_return(
            vendor.id, pending_return.id, vendor_user.id, "Seal broken by customer"
        )
        assert rejected.status == ReturnStatus.REJECTED.value
        assert rejected.rejection_reason == "Seal broken by customer"

    async def test_other_vendor_forbidden(self, db_session, other_vendor, vendor_user, pending_return):
        with pytest.raises(ForbiddenError) as exc:
            await ReturnsService(db_session).accept_return(other_vendor.id, pending_return.id, vendor_user.id)
        assert exc.value.detail == "Return request does not belong to this vendor"

    async def test_only_pending_returns(self, db_session, admin, vendor, vendor_user, pending_return):
        service = ReturnsService(db_session)
        await service.update_status(pending_return.id, ReturnStatusUpdate(status=ReturnStatus.APPROVED), admin.id)

        with pytest.raises(BadRequestError) as exc:
            await service.reject_return(vendor.id, pending_return.id, vendor_user.id, "late")
        assert "Cannot reject return in APPROVED status" in exc.value.detail

    async def test_vendor_stats(self, db_session, vendor, pending_return):
        stats = await ReturnsService(db_session).get_vendor_stats(vendor.id)
        assert stats == {
            "total": 1,
            "pending": 1,
            "approved": 0,
            "rejected": 0,
            "qc_failed": 0,
            "replacement_shipped": 0,
            "last_30_days": 1,
        }


class TestListing:
    async def test_filters(self, db_session, customer, vendor, other_vendor, pending_return):
        service = ReturnsService(db_session)

        items, total = await service.find_all(user_id=customer.id)
        assert total == 1 and items[0].id == pending_return.id

        _, total = await service.find_all(vendor_id=other_vendor.id)
        assert total == 0

        _, total = await service.find_all(status="ALL")
        assert total == 1

        _, total = await service.find_all(status=ReturnStatus.APPROVED.value)
        assert total == 0

        items, _ = await service.find_all(search=pending_return.return_number[-6:])
        assert [r.id for r in items] == [pending_return.id]

    async def test_customer_cannot_read_others_return(self, db_session, vendor_user, pending_return):
        with pytest.raises(NotFoundError):
            await ReturnsService(db_session).find_one(pending_return.id, user_id=vendor_user.id)


class TestQualityCheck:
    @pytest.mark.parametrize(
        "version,fields,expected",
        [
            ("BOX_INTEGRITY", {}, "PASSED"),
            ("BOX_INTEGRITY", {"is_brand_box_intact": False}, "FAILED"),
            ("BOX_INTEGRITY", {"has_physical_damage": True}, "PASSED"),
            ("CONDITION", {}, "PASSED"),
            ("CONDITION", {"has_physical_damage": True}, "FAILED"),
            ("CONDITION", {"is_unused": False}, "FAILED"),
            ("CONDITION", {"missing_accessories": ["charger"]}, "FAILED"),
            ("condition", {"is_brand_box_intact": False}, "PASSED"),
        ],
    )
    def test_grading_rules(self, version, fields, expected):
        assert evaluate_qc_checklist(QCChecklistSubmit(schema_version=version, **fields)) == expected

    def test_unknown_version(self):
        with pytest.raises(BadRequestError):
            evaluate_qc_checklist(QCChecklistSubmit(schema_version="V9"))

    async def test_passing_checklist_marks_order_received(self, db_session, admin, delivered_order):
        record = await ReturnsService(db_session).submit_qc_checklist(
            delivered_order.id, admin.id, QCChecklistSubmit()
        )

        assert record.status == "PASSED"
        status = (await db_session.execute(select(Order.status).where(Order.id == delivered_order.id))).scalar_one()
        assert status == OrderStatus.RETURN_RECEIVED.value

    async def test_failing_checklist_leaves_order(self, db_session, admin, delivered_order):
        record = await ReturnsService(db_session).submit_qc_checklist(
            delivered_order.id, admin.id, QCChecklistSubmit(has_physical_damage=True)
        )

        assert record.status == "FAILED"
        status = (await db_session.execute(select(Order.status).where(Order.id == delivered_order.id))).scalar_one()
        assert status == OrderStatus.DELIVERED.value

    async def test_resubmission_updates_single_checklist(self, db_session, admin, delivered_order):
        service = ReturnsService(db_session)
        await service.submit_qc_checklist(delivered_order.id, admin.id, QCChecklistSubmit(is_unused=False))
        await service.submit_qc_checklist(delivered_order.id, admin.id, QCChecklistSubmit())

        records = (
            await db_session.execute(
                select(ReturnQCChecklist).where(ReturnQCChecklist.order_id == delivered_order.id)
            )
        ).scalars().all()
        assert len(records) == 1
        assert records[0].status == "PASSED"

    async def test_unknown_order(self, db_session, admin):
        with pytest.raises(NotFoundError):
            await ReturnsService(db_session).submit_qc_checklist(uuid.uuid4(), admin.id, QCChecklistSubmit())

    async def test_inspect_return_moves_to_qc_result(self, db_session, admin, pending_return, product):
        service = ReturnsService(db_session)
        await service.update_status(pending_return.id, ReturnStatusUpdate(status=ReturnStatus.APPROVED), admin.id)

        inspected = await service.inspect_return(pending_return.id, admin.id, QCChecklistSubmit())

        assert inspected.status == ReturnStatus.QC_PASSED.value
        assert await _stock(db_session, product.id) == 10

    async def test_inspect_return_failure(self, db_session, admin, pending_return):
        service = ReturnsService(db_session)
        await service.update_status(pending_return.id, ReturnStatusUpdate(status=ReturnStatus.APPROVED), admin.id)

        inspected = await service.inspect_return(
            pending_return.id, admin.id, QCChecklistSubmit(schema_version="BOX_INTEGRITY", is_product_intact=False)
        )
        assert inspected.status == ReturnStatus.QC_FAILED.value

    async def test_inspecting_pending_return_records_nothing(
        self, db_session, admin, pending_return, delivered_order
    ):
        return_id, order_id = pending_return.id, delivered_order.id

        with pytest.raises(BadRequestError) as exc:
            await ReturnsService(db_session).inspect_return(return_id, admin.id, QCChecklistSubmit())
        assert exc.value.detail == "Cannot move return from PENDING_APPROVAL to QC_PASSED"

        checklists = (
            await db_session.execute(select(ReturnQCChecklist).where(ReturnQCChecklist.order_id == order_id))
        ).scalars().all()
        assert checklists == []
        status = (await db_session.execute(select(Order.status).where(Order.id == order_id))).scalar_one()
        assert status == OrderStatus.DELIVERED.value


@pytest_asyncio.fixture
async def power_bank(db_session, vendor) -> Product:
    product = Product(
        vendor_id=vendor.id,
        name="Mi Power Bank 20000",
        sku="PB-20K",
        price=Decimal("1999.00"),
        stock=5,
    )
    db_session.add(product)
    await db_session.commit()
    return product


@pytest_asyncio.fixture
async def two_line_order(db_session, customer, vendor, product, power_bank) -> Order:
    order = Order(
        order_number=f"ORD-{uuid.uuid4().hex[:10].upper()}",
        user_id=customer.id,
        status=OrderStatus.DELIVERED.value,
        payment_mode=PaymentMode.ONLINE.value,
        total_amount=product.price + power_bank.price * 2,
        items_snapshot=[
            {"product_id": str(product.id), "vendor_id": str(vendor.id), "variant_id": None,
             "quantity": 1, "price": str(product.price), "name": product.name},
            {"product_id": str(power_bank.id), "vendor_id": str(vendor.id), "variant_id": None,
             "quantity": 2, "price": str(power_bank.price), "name": power_bank.name},
        ],
        address_id=uuid.uuid4(),
    )
    db_session.add(order)
    await db_session.commit()
    return order


class TestMultiItemReturns:
    async def test_every_item_is_deducted_and_restored(
        self, db_session, customer, admin, two_line_order, product, power_bank
    ):
        service = ReturnsService(db_session)
        created = await service.create(
            customer.id,
            ReturnRequestCreate(
                order_id=two_line_order.id,
                reason=ReturnReason.WRONG_ITEM,
                items=[
                    ReturnItemCreate(product_id=product.id, quantity=1),
                    ReturnItemCreate(product_id=power_bank.id, quantity=2),
                ],
            ),
        )
        assert len(created.items) == 2

        approved = await service.update_status(
            created.id, ReturnStatusUpdate(status=ReturnStatus.APPROVED), admin.id
        )
        assert await _stock(db_session, product.id) == 9
        assert await _stock(db_session, power_bank.id) == 3

        replacement = (
            await db_session.execute(select(Order).where(Order.id == approved.replacement.new_order_id))
        ).scalar_one()
        assert [line["quantity"] for line in replacement.items_snapshot] == [1, 2]

        await service.update_status(created.id, ReturnStatusUpdate(status=ReturnStatus.QC_PASSED), admin.id)
        assert await _stock(db_session, product.id) == 10
        assert await _stock(db_session, power_bank.id) == 5
