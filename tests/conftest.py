import io

import pytest
from PIL import Image

from quickpaper.utils import bytes_to_data_uri
from quickpaper.utils.models import DeliveryRequest, ReceiptModel

COFFEE = {
    'receipt_number': 'REC-123456',
    'date': 'October 19, 2026',
    'companyName': 'Himalayan Java',
    'customer_name': 'Sita Sharma',
    'customer_email': 'sita@example.com',
    'customer_whatsapp': '+977 984-123-4567',
    'items': [{'name': 'Coffee', 'price': 3.50, 'quantity': 2}],
    'currency': 'NRs',
    'tax_rate': 10,
    'subtotal': 7.00,
    'tax': 0.70,
    'total': 7.70,
    'payment_method': 'Cash',
    'sent_via': 'email',
}


def png_data_uri(size=(200, 100), color='red') -> str:
    buf = io.BytesIO()
    Image.new('RGB', size, color).save(buf, format='png')
    return bytes_to_data_uri(buf.getvalue(), 'image/png')


@pytest.fixture
def receipt_data():
    return {**COFFEE, 'items': [dict(item) for item in COFFEE['items']]}


@pytest.fixture
def receipt(receipt_data):
    return ReceiptModel(**receipt_data)


@pytest.fixture
def request_model(receipt_data):
    return DeliveryRequest(**receipt_data)


@pytest.fixture
def make_png():
    return png_data_uri
