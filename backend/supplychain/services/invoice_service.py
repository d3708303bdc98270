"""Invoice generation.

One invoice per confirmed GRN. Lines bill the received quantities at the
prices and GST rates frozen on the dispatch. Invoices are append-only: the
model layer rejects any later UPDATE or DELETE.
"""

import logging
from typing import List, Optional

from sqlalchemy import select

from supplychain.core import money
from supplychain.core.config import settings
from supplychain.core.errors import DuplicateReference, InvalidState, ValidationFailure
from supplychain.core.rbac import Principal, UserRole, ensure_role
from supplychain.db.unit_of_work import UnitOfWork
from supplychain.models.grn import GRN, GRNStatus
from supplychain.models.invoice import Invoice, InvoiceItem
from supplychain.models.material import Material
from supplychain.services.common import ensure_party, get_or_404, locked_get
from supplychain.services.sequence_service import INVOICE_PREFIX, SequenceService

logger = logging.getLogger(__name__)


def build_invoice_item(dispatch_item, material_name: str, packets: int, loose_units: int,
                       is_interstate: bool) -> InvoiceItem:
    """Price one received line and split its GST."""
    taxable = money.line_total(dispatch_item.packet_price, packets, dispatch_item.unit_price, loose_units)
    cgst, sgst, igst = money.split_gst(taxable, dispatch_item.gst_rate, is_interstate)
    return InvoiceItem(
        material_id=dispatch_item.material_id,
        material_name=material_name,
        hsn_code=dispatch_item.hsn_code,
        gst_rate=dispatch_item.gst_rate,
        packets=packets,
        loose_units=loose_units,
        packet_price=dispatch_item.packet_price,
        unit_price=dispatch_item.unit_price,
        taxable_amount=taxable,
        cgst_amount=cgst,
        sgst_amount=sgst,
        igst_amount=igst,
        line_total=money.total([taxable, cgst, sgst, igst]),
    )


class InvoiceService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.db = uow.session

    def generate_invoice(
        self,
        principal: Principal,
        grn_id: int,
        is_interstate: Optional[bool] = None,
    ) -> Invoice:
        """Bill a confirmed GRN.

        Raises:
            InvalidState: the GRN is not CONFIRMED.
            DuplicateReference: the GRN already has an invoice.
        """
        ensure_role(principal, UserRole.ADMIN)
        if is_interstate is None:
            is_interstate = settings.default_is_interstate

        with self.uow.transaction():
            grn = locked_get(self.uow, GRN, grn_id, "GRN")
            if grn.status != GRNStatus.CONFIRMED:
                raise InvalidState(
                    f"GRN {grn.grn_number} is {grn.status.value}; only confirmed GRNs can be invoiced",
                    grn_id=grn_id,
                    status=grn.status.value,
                )
            existing = self.get_for_grn(grn_id)
            if existing is not None:
                raise DuplicateReference(
                    f"GRN {grn.grn_number} already has invoice {existing.invoice_number}",
                    grn_id=grn_id,
                    invoice_number=existing.invoice_number,
                )

            items = []
            for grn_item in grn.items:
                packets = grn_item.received_packets or 0
                loose_units = grn_item.received_loose_units or 0
                if packets == 0 and loose_units == 0:
                    continue
                material = self.db.get(Material, grn_item.material_id)
                items.append(build_invoice_item(grn_item.dispatch_item, material.name,
                                                packets, loose_units, is_interstate))
            if not items:
                raise ValidationFailure(
                    f"Nothing was received against GRN {grn.grn_number}", grn_id=grn_id
                )

            subtotal = money.total(i.taxable_amount for i in items)
            cgst = money.total(i.cgst_amount for i in items)
            sgst = money.total(i.sgst_amount for i in items)
            igst = money.total(i.igst_amount for i in items)
            total_tax = money.total([cgst, sgst, igst])

            invoice = Invoice(
                invoice_number=SequenceService(self.uow).next_number(INVOICE_PREFIX),
                grn_id=grn.id,
                dispatch_id=grn.dispatch_id,
                retailer_id=grn.retailer_id,
                manufacturer_id=grn.manufacturer_id,
                created_by=principal.user_id,
                is_interstate=is_interstate,
                subtotal=subtotal,
                cgst_amount=cgst,
                sgst_amount=sgst,
                igst_amount=igst,
                total_tax=total_tax,
                total_amount=money.total([subtotal, total_tax]),
                items=items,
            )
            self.db.add(invoice)
            self.db.flush()

        logger.info(
            f"Invoice {invoice.invoice_number} generated for GRN {grn.grn_number}: "
            f"total {invoice.total_amount}"
        )
        return invoice

    # ===== QUERIES =====

    def get_invoice(self, principal: Principal, invoice_id: int) -> Invoice:
        invoice = get_or_404(self.uow, Invoice, invoice_id, "Invoice")
        ensure_party(principal, invoice.retailer_id, invoice.manufacturer_id, "Invoice")
        return invoice

    def get_for_grn(self, grn_id: int) -> Optional[Invoice]:
        return self.db.execute(
            select(Invoice).where(Invoice.grn_id == grn_id)
        ).scalar_one_or_none()

    def list_for_retailer(self, retailer_id: int) -> List[Invoice]:
        stmt = select(Invoice).where(Invoice.retailer_id == retailer_id).order_by(Invoice.id.desc())
        return list(self.db.execute(stmt).scalars())

    def list_all(self) -> List[Invoice]:
        return list(self.db.execute(select(Invoice).order_by(Invoice.id.desc())).scalars())
