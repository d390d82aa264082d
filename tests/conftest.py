"""
Shared fixtures for the transaction document tests.

Run with: python -m pytest tests/ -v
"""

import io
import sys
from pathlib import Path

import pytest
from pypdf import PdfWriter

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from services.documents import FieldMapLoader


def make_template(pages: int = 2, width: float = 612, height: float = 792) -> bytes:
    """Blank PDF with the given number of pages."""
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=width, height=height)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest.fixture
def template_bytes():
    return make_template(pages=2)


@pytest.fixture
def field_map():
    FieldMapLoader.clear()
    FieldMapLoader.load_all()
    return FieldMapLoader.get_or_raise('transaction-summary')


@pytest.fixture
def submission():
    """A submission as the current agent portal posts it."""
    return {
        'transactionId': 'recTXN123',
        'agentData': {'role': 'LISTING_AGENT', 'name': 'Pat Agent'},
        'propertyData': {
            'mlsNumber': 'PM-12345',
            'address': '123 Main St, Erie, PA',
            'salePrice': '350000',
            'closingDate': '2025-06-30',
            'status': 'occupied',
            'propertyType': 'residential',
            'isWinterized': 'NO',
            'updateMls': 'YES',
            'propertyAccessType': 'lockbox',
            'lockboxAccessCode': '4321',
        },
        'clients': [
            {
                'name': 'Jamie Buyer',
                'phone': '(814) 555-0100',
                'email': 'jamie@example.com',
                'address': '9 Elm St',
                'type': 'buyer',
                'maritalStatus': 'SINGLE',
            },
            {
                'name': 'Sam Seller',
                'phone': '(814) 555-0199',
                'email': 'sam@example.com',
                'streetAddress': '123 Main St',
                'type': 'SELLERS',
            },
        ],
        'commissionData': {
            'totalCommissionPercentage': '6',
            'listingAgentPercentage': '3',
            'buyersAgentPercentage': '3',
            'brokerFeeAmount': '21000',
            'buyerPaidAmount': '0',
            'hasSellersAssist': True,
            'sellersAssistAmount': '5000',
            'isReferral': 'YES',
            'referralParty': 'Acme Realty',
            'referralFee': '25',
            'coordinatorFeePaidBy': 'seller',
        },
        'titleData': {'titleCompany': 'Keystone Title'},
        'propertyDetails': {'municipality': 'Millcreek Twp', 'hoaName': 'Lakeview HOA'},
        'additionalInfo': {'specialInstructions': 'Call before showing'},
    }
