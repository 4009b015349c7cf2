from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from . import PDF_MIMETYPE, bytes_to_data_uri, data_uri_to_bytes, money


class Channel(StrEnum):
    EMAIL = 'email'
    WHATSAPP = 'whatsapp'


class LineItem(BaseModel):
    model_config = ConfigDict(extra='allow')

    name: str = Field(min_length=1)
    price: Decimal = Field(ge=0)
    quantity: int = Field(gt=0)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class ReceiptModel(BaseModel):
    """Everything needed to render and deliver one receipt.

    Monetary totals are computed by the caller and trusted as-is.
    """

    model_config = ConfigDict(extra='allow', populate_by_name=True)

    receipt_number: str
    date: str = ''
    company_name: str = Field('', alias='companyName')
    company_logo: Optional[str] = None
    customer_name: str
    customer_number: Optional[str] = None
    customer_address: Optional[str] = None
    customer_email: Optional[str] = None
    customer_whatsapp: Optional[str] = None
    items: list[LineItem] = Field(default_factory=list)
    currency: str = ''
    tax_rate: Decimal = Decimal(0)
    subtotal: Decimal = Decimal(0)
    tax: Decimal = Decimal(0)
    total: Decimal = Decimal(0)
    payment_method: str = ''
    signature: Optional[str] = None
    title: Optional[str] = None
    sent_via: Optional[Channel] = None

    @property
    def document_filename(self) -> str:
        return f'receipt-{self.receipt_number}.pdf'

    def to_row(self, profile_id: str) -> dict:
        """Receipt row as stored in the `receipts` table"""
        return {
            'profile_id': profile_id,
            'receipt_number': self.receipt_number,
            'customer_name': self.customer_name,
            'customer_email': self.customer_email,
            'customer_whatsapp': self.customer_whatsapp,
            'customer_number': self.customer_number,
            'customer_address': self.customer_address,
            'payment_method': self.payment_method,
            'items': [
                {'name': item.name, 'price': float(item.price), 'quantity': item.quantity} for item in self.items
            ],
            'currency': self.currency,
            'subtotal': float(money(self.subtotal)),
            'tax_rate': float(self.tax_rate),
            'tax': float(money(self.tax)),
            'total': float(money(self.total)),
            'sent_via': str(self.sent_via) if self.sent_via else None,
            'signature': self.signature,
            'title': self.title,
        }


class DeliveryRequest(ReceiptModel):
    """Inbound delivery request: the receipt plus an optional pre-rendered document"""

    pdf_content: Optional[str] = Field(None, alias='pdfContent')

    def document(self) -> Optional['RenderedDocument']:
        if not self.pdf_content:
            return None
        return RenderedDocument.from_data_uri(self.pdf_content)


@dataclass(frozen=True)
class RenderedDocument:
    content: bytes
    mimetype: str = PDF_MIMETYPE
    warnings: tuple[str, ...] = ()

    @property
    def data_uri(self) -> str:
        return bytes_to_data_uri(self.content, self.mimetype)

    @classmethod
    def from_data_uri(cls, value: str) -> 'RenderedDocument':
        return cls(data_uri_to_bytes(value))
