"""
Tests for alias resolution and record normalization.

Run with: python -m pytest tests/test_normalizer.py -v
"""

from datetime import date

import pytest

from services.documents.field_resolver import FIELD_ALIASES, FieldResolver
from services.documents.normalizer import CANONICAL_FIELDS, build_filename, known_canonical_names, normalize_record
from services.documents.types import NormalizedRecord


class TestFieldResolver:

    def test_modern_section_preferred_over_legacy(self):
        raw = {'property': {'address': 'New St'}, 'propertyData': {'address': 'Old St'}}
        assert FieldResolver(raw).resolve('property.address') == 'New St'

    def test_falls_back_to_legacy_section(self):
        raw = {'propertyData': {'address': 'Old St'}}
        assert FieldResolver(raw).resolve('property.address') == 'Old St'

    def test_empty_string_counts_as_absent(self):
        raw = {'property': {'address': '  '}, 'propertyData': {'address': 'Old St'}}
        assert FieldResolver(raw).resolve('property.address') == 'Old St'

    def test_missing_everywhere_is_none(self):
        assert FieldResolver({}).resolve('title.company') is None

    def test_bracket_paths(self):
        raw = {'clients': [{'name': 'A'}, {'name': 'B'}]}
        assert FieldResolver.resolve_path('clients[1].name', raw) == 'B'
        assert FieldResolver.resolve_path('clients[5].name', raw) is None

    def test_agent_name_falls_back_to_signature(self):
        raw = {'signatureData': {'agentName': 'Signed Agent'}}
        assert FieldResolver(raw).resolve('agent.name') == 'Signed Agent'

    def test_commission_total_prefers_total_commission(self):
        raw = {'commissionData': {'totalCommission': '5', 'totalCommissionPercentage': '6'}}
        assert FieldResolver(raw).resolve('commission.total_percentage') == '5'

    def test_every_canonical_field_has_aliases(self):
        assert set(CANONICAL_FIELDS) <= set(FIELD_ALIASES)


class TestNormalizeRecord:

    def test_formats_values(self, submission):
        record = normalize_record(submission)

        assert record.get('property.address') == '123 Main St, Erie, PA'
        assert record.get('property.sale_price') == '$350,000.00'
        assert record.get('property.closing_date') == '06/30/2025'
        assert record.get('agent.role') == 'LISTING AGENT'
        assert record.get('commission.total_percentage') == '6.0%'
        assert record.get('commission.seller_paid') == '$21,000.00'
        assert record.get('title.company') == 'Keystone Title'
        assert record.transaction_id == 'recTXN123'

    def test_partitions_clients(self, submission):
        record = normalize_record(submission)

        assert [c.name for c in record.buyers] == ['Jamie Buyer']
        assert [c.name for c in record.sellers] == ['Sam Seller']
        assert record.get('buyer.email') == 'jamie@example.com'

    def test_client_address_falls_back_to_street_address(self, submission):
        record = normalize_record(submission)
        assert record.get('seller.address') == '123 Main St'

    def test_only_first_buyer_is_selected(self, submission):
        submission['clients'].append({'name': 'Second Buyer', 'type': 'BUYER'})
        record = normalize_record(submission)

        assert len(record.buyers) == 2
        assert record.get('buyer.name') == 'Jamie Buyer'

    def test_sellers_assist_from_amount_when_checked(self, submission):
        record = normalize_record(submission)
        assert record.get('commission.sellers_assist') == '$5,000.00'

    def test_sellers_assist_omitted_when_unchecked(self, submission):
        submission['commissionData']['hasSellersAssist'] = False
        record = normalize_record(submission)
        assert not record.has('commission.sellers_assist')

    def test_referral_fields_only_for_referrals(self, submission):
        record = normalize_record(submission)
        assert record.get('commission.referral_party') == 'Acme Realty'
        assert record.get('commission.referral_fee') == '25.0%'

        submission['commissionData']['isReferral'] = 'NO'
        record = normalize_record(submission)
        assert not record.has('commission.referral_party')
        assert not record.has('commission.referral_fee')

    def test_empty_submission(self):
        record = normalize_record({})
        assert record.values == {}
        assert record.clients == []
        assert record.transaction_id is None
        assert record.get('buyer.name') == ''

    def test_non_list_clients_ignored(self):
        record = normalize_record({'clients': 'Jamie'})
        assert record.clients == []

    def test_every_name_is_known(self, submission):
        record = normalize_record(submission)
        assert set(record.values) <= set(known_canonical_names())


class TestBuildFilename:

    def test_uses_mls_number(self):
        record = NormalizedRecord(values={'property.mls_number': 'PM-12345', 'property.address': '1 A St'})
        assert build_filename(record, date(2025, 5, 6)) == 'Transaction_PM-12345_2025-05-06.pdf'

    def test_address_slug_when_no_mls(self):
        record = NormalizedRecord(values={'property.address': '123 Main St., Erie, PA'})
        assert build_filename(record, date(2025, 5, 6)) == 'Transaction_123_Main_St_Erie_PA_2025-05-06.pdf'

    def test_address_slug_is_truncated(self):
        record = NormalizedRecord(values={'property.address': 'x' * 50})
        assert build_filename(record, date(2025, 5, 6)) == f"Transaction_{'x' * 30}_2025-05-06.pdf"

    def test_unknown_address(self):
        assert build_filename(NormalizedRecord(), date(2025, 5, 6)) == 'Transaction_unknown_address_2025-05-06.pdf'

    @pytest.mark.parametrize('mls', ['A/B 1', 'PM#9'])
    def test_mls_is_made_filename_safe(self, mls):
        record = NormalizedRecord(values={'property.mls_number': mls})
        filename = build_filename(record, date(2025, 5, 6))
        assert '/' not in filename and '#' not in filename and ' ' not in filename
