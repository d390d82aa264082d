"""
Record Normalizer

Turns a raw agent-portal submission into a NormalizedRecord: every
canonical value resolved through FieldResolver and formatted with its
transform, clients normalized and typed. Pure; no I/O.
"""

import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional

from .field_resolver import FieldResolver, is_empty
from .transforms import apply_transform, transform_client_type, transform_yes_no
from .types import Client, NormalizedRecord

logger = logging.getLogger(__name__)


# Canonical name -> transform applied to the resolved value
CANONICAL_FIELDS: Dict[str, Optional[str]] = {
    'property.address': None,
    'property.mls_number': None,
    'property.sale_price': 'currency',
    'property.closing_date': 'date',
    'property.status': 'uppercase',
    'property.type': 'uppercase',
    'property.access_type': 'uppercase',
    'property.lockbox_code': None,
    'property.winterized': 'yes_no',
    'property.update_mls': 'yes_no',
    'property.built_before_1978': 'yes_no',
    'agent.name': None,
    'agent.role': 'role',
    'commission.total_percentage': 'percentage',
    'commission.listing_agent_percentage': 'percentage',
    'commission.buyers_agent_percentage': 'percentage',
    'commission.seller_paid': 'currency',
    'commission.buyer_paid': 'currency',
    'commission.broker_ein': None,
    'commission.coordinator_fee_paid_by': 'uppercase',
    'title.company': None,
    'details.municipality': None,
    'details.hoa_name': None,
    'details.attorney_name': None,
    'details.first_right_name': None,
    'notes.special_instructions': None,
    'notes.urgent_issues': None,
    'notes.additional_notes': None,
}

# Values computed from more than one raw field
DERIVED_FIELDS = (
    'commission.sellers_assist',
    'commission.referral_party',
    'commission.referral_fee',
)

CLIENT_ATTRIBUTES = ('name', 'phone', 'address', 'email', 'type', 'marital_status')


def known_canonical_names() -> List[str]:
    """Every name a NormalizedRecord can carry, for field-map validation."""
    names = list(CANONICAL_FIELDS) + list(DERIVED_FIELDS)
    for role in ('buyer', 'seller'):
        names.extend(f"{role}.{attribute}" for attribute in CLIENT_ATTRIBUTES)
    return names


def is_referral(resolver: FieldResolver) -> bool:
    """Referral flag arrives as "YES"/"NO" or as a boolean."""
    return transform_yes_no(resolver.resolve('commission.is_referral')) == 'YES'


def normalize_client(raw_client: Any) -> Client:
    """Normalize one client entry; the address falls back to streetAddress."""
    if not isinstance(raw_client, dict):
        return Client()

    def text(attribute):
        value = FieldResolver.resolve_client_field(raw_client, attribute)
        return '' if value is None else str(value).strip()

    return Client(
        name=text('name'),
        phone=text('phone'),
        address=text('address'),
        email=text('email'),
        type=transform_client_type(FieldResolver.resolve_client_field(raw_client, 'type')),
        marital_status=text('marital_status'),
    )


def normalize_record(raw: Dict[str, Any]) -> NormalizedRecord:
    """
    Normalize a raw transaction submission.

    Args:
        raw: The JSON body posted by the agent portal

    Returns:
        NormalizedRecord with display-ready values. Absent fields are
        left out rather than stored as empty strings.
    """
    resolver = FieldResolver(raw)
    values: Dict[str, str] = {}

    for name, transform in CANONICAL_FIELDS.items():
        value = apply_transform(resolver.resolve(name), transform)
        if value:
            values[name] = value

    # Seller's assist: explicit amount, or the amount behind the checkbox
    assist = resolver.resolve('commission.sellers_assist')
    if is_empty(assist) and transform_yes_no(resolver.resolve('commission.has_sellers_assist')) == 'YES':
        assist = resolver.resolve('commission.sellers_assist_amount')
    assist = apply_transform(assist, 'currency')
    if assist:
        values['commission.sellers_assist'] = assist

    # Referral party and fee only print for referral transactions
    if is_referral(resolver):
        party = apply_transform(resolver.resolve('commission.referral_party'), None)
        if party:
            values['commission.referral_party'] = party
            fee = apply_transform(resolver.resolve('commission.referral_fee'), 'percentage')
            if fee:
                values['commission.referral_fee'] = fee

    raw_clients = (raw or {}).get('clients') or []
    if not isinstance(raw_clients, list):
        logger.warning(f"Ignoring clients of type {type(raw_clients).__name__}")
        raw_clients = []
    clients = [normalize_client(c) for c in raw_clients]

    transaction_id = resolver.resolve('transaction.id')

    record = NormalizedRecord(
        values=values,
        clients=clients,
        transaction_id=str(transaction_id).strip() if transaction_id is not None else None,
    )
    logger.debug(
        f"Normalized record: {len(values)} values, "
        f"{len(record.buyers)} buyer(s), {len(record.sellers)} seller(s)"
    )
    return record


def _slugify(text: str, max_length: int = 30) -> str:
    slug = re.sub(r'[^a-zA-Z0-9]', '_', text)
    slug = re.sub(r'_+', '_', slug)
    return slug[:max_length]


def build_filename(record: NormalizedRecord, today: date = None) -> str:
    """
    Derive the document filename.

    Examples:
        MLS "PM-12345", 2025-05-06 -> "Transaction_PM-12345_2025-05-06.pdf"
        address "123 Main St."     -> "Transaction_123_Main_St__2025-05-06.pdf"
    """
    today = today or date.today()

    mls = record.get('property.mls_number')
    if mls:
        slug = re.sub(r'[^a-zA-Z0-9-]', '_', mls)
    elif record.get('property.address'):
        slug = _slugify(record.get('property.address'))
    else:
        slug = 'unknown_address'

    return f"Transaction_{slug}_{today.isoformat()}.pdf"
