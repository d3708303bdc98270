"""SQLAlchemy models."""

from supplychain.models.user import User
from supplychain.models.material import Material, CommissionType
from supplychain.models.production import ProductionBatch
from supplychain.models.inventory import (
    ManufacturerInventory,
    RetailerInventory,
    InventoryTransaction,
    TransactionType,
    OwnerKind,
)
from supplychain.models.assignment import RetailerAssignment
from supplychain.models.srn import SRN, SRNItem, SRNStatus
from supplychain.models.dispatch import DispatchOrder, DispatchItem, DispatchStatus
from supplychain.models.grn import GRN, GRNItem, GRNStatus
from supplychain.models.invoice import Invoice, InvoiceItem
from supplychain.models.sale import Sale, Commission, CommissionStatus
from supplychain.models.returns import (
    ReturnRequest,
    ReturnItem,
    ReturnReason,
    ReturnStatus,
    TERMINAL_RETURN_STATUSES,
)
from supplychain.models.sequence import SequenceCounter

__all__ = [
    "User",
    "Material",
    "CommissionType",
    "ProductionBatch",
    "ManufacturerInventory",
    "RetailerInventory",
    "InventoryTransaction",
    "TransactionType",
    "OwnerKind",
    "RetailerAssignment",
    "SRN",
    "SRNItem",
    "SRNStatus",
    "DispatchOrder",
    "DispatchItem",
    "DispatchStatus",
    "GRN",
    "GRNItem",
    "GRNStatus",
    "Invoice",
    "InvoiceItem",
    "Sale",
    "Commission",
    "CommissionStatus",
    "ReturnRequest",
    "ReturnItem",
    "ReturnReason",
    "ReturnStatus",
    "TERMINAL_RETURN_STATUSES",
    "SequenceCounter",
]
