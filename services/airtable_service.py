"""
Airtable Service

Writes transaction and client rows to the Airtable base and attaches
rendered PDFs to transaction rows. Field IDs are used instead of field
names so renaming a column in Airtable doesn't break submissions.
"""

import logging
import os
import time
from typing import Any, Dict, List

import requests
from pyairtable import Api

from services.documents.exceptions import RecordStoreError
from services.documents.field_resolver import FieldResolver, is_empty
from services.documents.normalizer import is_referral
from services.documents.transforms import parse_amount, transform_client_type, transform_yes_no

logger = logging.getLogger(__name__)

TRANSACTIONS_TABLE = 'Transactions'
CLIENTS_TABLE = 'Clients'

PDF_ATTACHMENT_FIELD_ID = 'fldhrYdoFwtNfzdFY'

TRANSACTION_FIELD_IDS = {
    'agent_role': 'fldOVyoxz38rWwAFy',
    'agent_name': 'fldFD4xHD0vxnSOHJ',
    'mls_number': 'fld6O2FgIXQU5G27o',
    'property_address': 'fldypnfnHhplWYcCW',
    'sale_price': 'fldhHjBZJISmnP8SK',
    'property_status': 'fldV2eLxz6w0TpLFU',
    'winterized_status': 'fldExdgBDgdB1i9jy',
    'update_mls': 'fldw3GlfvKtyNfIAW',
    'property_access_type': 'fld7TTQpaC83ehY7H',
    'lockbox_access_code': 'fldrh8eB5V8TjSZlR',
    'property_type': 'fldzM4oyw2PyKt887',
    'built_before_1978': 'fldZmPfpsSJLOtcYr',
    'closing_date': 'fldacjkqtnbdTUUTx',
    'total_commission_percentage': 'fldE8INzEorBtx2uN',
    'listing_agent_percentage': 'flduuQQT7o6XAGlRe',
    'buyers_agent_percentage': 'fld5KRrToAAt5kOLd',
    'seller_paid': 'flddRltdGj05Clzpa',
    'buyer_paid': 'fldO6MAwuLTvuFjui',
    'sellers_assist': 'fldTvXx96Na0zRh6W',
    'referral_party': 'fldzVtmn8uylVxuTF',
    'referral_fee': 'fldewmjoaJVwiMF46',
    'broker_ein': 'fld20VbKbWzdR4Sp7',
    'coordinator_fee_paid_by': 'fldrplBqdhDcoy04S',
    'pdf_attachment': PDF_ATTACHMENT_FIELD_ID,
    'hoa_name': 'fld9oG6SMAkh4hvNL',
    'municipality': 'fld9Qw4mGeI9kk42F',
    'first_right_name': 'fldeHKiUreeDs5n4o',
    'attorney_name': 'fld4YZ0qKHvRLK4Xg',
    'title_company': 'fldqeArDeRkxiYz9u',
    'special_instructions': 'fldDWN8jU4kdCffzu',
    'urgent_issues': 'fldgW16aPdFMdspO6',
    'additional_notes': 'fld30htJ7euVerCLW',
    'clients': 'fldmPyBwuOO1dgj1g',
}

CLIENT_FIELD_IDS = {
    'name': 'fldSqxNOZ9B5PgSab',
    'email': 'flddP6a8EG6qTJdIi',
    'phone': 'fldBnh8W6iGW014yY',
    'client_address': 'fldz1IpeR1256LhuC',
    'property_address': 'fldx7IEsPmHTJXDYS',
    'marital_status': 'fldeK6mjSfxELU0MD',
    'type': 'fldSY6vbE1zAhJZqd',
}

# (Transactions column, canonical name)
TEXT_COLUMNS = (
    ('agent_name', 'agent.name'),
    ('mls_number', 'property.mls_number'),
    ('property_address', 'property.address'),
    ('lockbox_access_code', 'property.lockbox_code'),
    ('closing_date', 'property.closing_date'),
    ('broker_ein', 'commission.broker_ein'),
    ('hoa_name', 'details.hoa_name'),
    ('municipality', 'details.municipality'),
    ('first_right_name', 'details.first_right_name'),
    ('attorney_name', 'details.attorney_name'),
    ('title_company', 'title.company'),
    ('special_instructions', 'notes.special_instructions'),
    ('urgent_issues', 'notes.urgent_issues'),
    ('additional_notes', 'notes.additional_notes'),
)

NUMBER_COLUMNS = (
    ('sale_price', 'property.sale_price'),
    ('total_commission_percentage', 'commission.total_percentage'),
    ('listing_agent_percentage', 'commission.listing_agent_percentage'),
    ('buyers_agent_percentage', 'commission.buyers_agent_percentage'),
    ('seller_paid', 'commission.seller_paid'),
)

UPPERCASE_COLUMNS = (
    ('agent_role', 'agent.role'),
    ('property_status', 'property.status'),
    ('property_type', 'property.type'),
    ('property_access_type', 'property.access_type'),
    ('coordinator_fee_paid_by', 'commission.coordinator_fee_paid_by'),
)

YES_NO_COLUMNS = (
    ('update_mls', 'property.update_mls'),
    ('built_before_1978', 'property.built_before_1978'),
)


def format_winterized(value: Any) -> str:
    """Winterized flag as the Airtable single-select option."""
    return 'WINTERIZED' if transform_yes_no(value) == 'YES' else 'NOT WINTERIZED'


def _text(value: Any) -> str:
    return '' if value is None else str(value).strip()


def build_transaction_fields(raw: Dict[str, Any], client_ids: List[str] = None) -> Dict[str, Any]:
    """
    Map a raw submission onto Transactions column IDs.

    Prices and percentages are sent as numbers, enums uppercased.
    Absent values are left out so Airtable keeps its defaults.
    """
    resolver = FieldResolver(raw)
    fields: Dict[str, Any] = {}

    def put(column, value):
        if not is_empty(value):
            fields[TRANSACTION_FIELD_IDS[column]] = value

    for column, name in TEXT_COLUMNS:
        put(column, _text(resolver.resolve(name)))

    for column, name in NUMBER_COLUMNS:
        put(column, parse_amount(resolver.resolve(name)))

    for column, name in UPPERCASE_COLUMNS:
        put(column, _text(resolver.resolve(name)).upper())

    for column, name in YES_NO_COLUMNS:
        put(column, transform_yes_no(resolver.resolve(name)))

    winterized = resolver.resolve('property.winterized')
    if not is_empty(winterized):
        put('winterized_status', format_winterized(winterized))

    # Buyer paid defaults to zero when the form leaves it out
    buyer_paid = parse_amount(resolver.resolve('commission.buyer_paid'))
    fields[TRANSACTION_FIELD_IDS['buyer_paid']] = buyer_paid if buyer_paid is not None else 0

    if transform_yes_no(resolver.resolve('commission.has_sellers_assist')) == 'YES':
        assist = resolver.resolve('commission.sellers_assist')
        if is_empty(assist):
            assist = resolver.resolve('commission.sellers_assist_amount')
        put('sellers_assist', parse_amount(assist))

    if is_referral(resolver):
        put('referral_party', _text(resolver.resolve('commission.referral_party')))
        put('referral_fee', parse_amount(resolver.resolve('commission.referral_fee')))

    if client_ids:
        fields[TRANSACTION_FIELD_IDS['clients']] = list(client_ids)

    return fields


def build_client_fields(client: Dict[str, Any], property_address: str = '') -> Dict[str, Any]:
    """
    Map one client entry onto Clients column IDs.

    The client's own address goes to client_address; the property address
    is copied to the lookup column that joins clients to transactions.
    """
    fields: Dict[str, Any] = {}

    def put(column, value):
        if not is_empty(value):
            fields[CLIENT_FIELD_IDS[column]] = value

    put('name', _text(FieldResolver.resolve_client_field(client, 'name')))
    put('email', _text(FieldResolver.resolve_client_field(client, 'email')))
    put('phone', _text(FieldResolver.resolve_client_field(client, 'phone')))
    put('client_address', _text(FieldResolver.resolve_client_field(client, 'address')))
    put('property_address', _text(property_address))
    put('marital_status', _text(FieldResolver.resolve_client_field(client, 'marital_status')))
    put('type', transform_client_type(FieldResolver.resolve_client_field(client, 'type')))
    return fields


class AirtableService:
    """
    Airtable reads and writes for the transaction base.

    Usage:
        service = AirtableService(api_key, base_id)
        service.attach_pdf(record_id, pdf_url, filename)
    """

    def __init__(
        self,
        api_key: str = None,
        base_id: str = None,
        transactions_table: str = TRANSACTIONS_TABLE,
        clients_table: str = CLIENTS_TABLE,
        api: Api = None
    ):
        self.api_key = api_key or os.getenv('AIRTABLE_API_KEY')
        self.base_id = base_id or os.getenv('AIRTABLE_BASE_ID')
        self.transactions_table = transactions_table
        self.clients_table = clients_table
        self._api = api

    @property
    def is_configured(self) -> bool:
        return bool(self._api or (self.api_key and self.base_id))

    @property
    def api(self) -> Api:
        if self._api is None:
            if not self.api_key or not self.base_id:
                raise RecordStoreError("AIRTABLE_API_KEY and AIRTABLE_BASE_ID are required")
            self._api = Api(self.api_key)
        return self._api

    def _table(self, name: str):
        return self.api.table(self.base_id, name)

    def attach_pdf(
        self,
        record_id: str,
        pdf_url: str,
        filename: str,
        field_id: str = PDF_ATTACHMENT_FIELD_ID
    ) -> Dict[str, Any]:
        """
        Replace the attachment field of a transaction row.

        pdf_url may be a public URL or a data URI. The newest document
        replaces whatever the field held before.
        """
        if not record_id:
            raise RecordStoreError("No record ID provided")

        attachment = [{'url': pdf_url, 'filename': filename}]
        try:
            record = self._table(self.transactions_table).update(record_id, {field_id: attachment})
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to attach {filename} to {record_id}: {e}")
            raise RecordStoreError(f"Airtable update failed: {e}", record_id=record_id) from e

        logger.info(f"Attached {filename} to Airtable record {record_id}")
        return record

    def attach_pdf_with_retry(
        self,
        record_id: str,
        pdf_url: str,
        filename: str,
        field_id: str = PDF_ATTACHMENT_FIELD_ID,
        attempts: int = 3,
        delay: float = 1.0,
        sleep=time.sleep
    ) -> Dict[str, Any]:
        """
        attach_pdf with a fixed delay between attempts.

        Raises:
            RecordStoreError: from the last attempt once all attempts fail
        """
        attempts = max(1, attempts)
        for attempt in range(1, attempts + 1):
            if attempt > 1:
                logger.info(f"Retry {attempt - 1} of {attempts - 1} for record {record_id}")
                sleep(delay)
            try:
                return self.attach_pdf(record_id, pdf_url, filename, field_id=field_id)
            except RecordStoreError as e:
                logger.warning(f"Attachment attempt {attempt} for {record_id} failed: {e}")
                if attempt == attempts:
                    raise

    def create_client(self, client: Dict[str, Any], property_address: str = '') -> str:
        """Create one Clients row and return its record ID."""
        fields = build_client_fields(client, property_address)
        try:
            record = self._table(self.clients_table).create(fields)
        except requests.exceptions.RequestException as e:
            raise RecordStoreError(f"Airtable client create failed: {e}") from e
        return record['id']

    def create_transaction(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a Clients row for every client, then the Transactions row
        linking them.

        A failed client row is reported but does not stop the transaction
        from being created.

        Returns:
            dict with 'transactionId', 'clientIds' and 'clientErrors'
        """
        resolver = FieldResolver(raw)
        property_address = _text(resolver.resolve('property.address'))

        raw_clients = (raw or {}).get('clients') or []
        if not isinstance(raw_clients, list):
            raw_clients = []

        client_ids: List[str] = []
        client_errors: List[Dict[str, str]] = []
        for client in raw_clients:
            if not isinstance(client, dict):
                continue
            try:
                client_ids.append(self.create_client(client, property_address))
            except RecordStoreError as e:
                logger.warning(f"Client row for {client.get('name') or 'unknown client'} failed: {e}")
                client_errors.append({
                    'client': client.get('name') or 'Unknown client',
                    'error': str(e),
                })

        fields = build_transaction_fields(raw, client_ids)
        try:
            record = self._table(self.transactions_table).create(fields)
        except requests.exceptions.RequestException as e:
            status_code = getattr(getattr(e, 'response', None), 'status_code', None)
            if status_code == 413:
                message = "The transaction data is too large to submit"
            elif status_code == 429:
                message = "Too many requests to Airtable. Please wait a moment and try again"
            else:
                message = f"Airtable API error: {e}"
            logger.error(f"Transaction create failed: {e}")
            raise RecordStoreError(message) from e

        logger.info(f"Created transaction {record['id']} with {len(client_ids)} client(s)")
        return {
            'transactionId': record['id'],
            'clientIds': client_ids,
            'clientErrors': client_errors,
        }

