"""
Field Resolver

Resolves canonical field names against a raw form submission. The
agent portal has shipped several form versions, so one logical value
can arrive under different section or field names. Every alternative
lives in FIELD_ALIASES; nothing else in the codebase chains fallbacks.

Source path syntax:
    propertyData.address       -> raw['propertyData']['address']
    clients[0].name            -> raw['clients'][0]['name']
    signatureData.agentName    -> raw['signatureData']['agentName']

Resolution order per canonical name: preferred modern path first,
then each legacy alias in order, then None.
"""

import logging
import re
from typing import Any, Dict, List, Tuple

logger = logging.getLogger(__name__)


FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    # Property
    'property.address': ('property.address', 'propertyData.address'),
    'property.mls_number': ('property.mlsNumber', 'propertyData.mlsNumber'),
    'property.sale_price': ('property.salePrice', 'propertyData.salePrice'),
    'property.closing_date': ('property.closingDate', 'propertyData.closingDate'),
    'property.status': ('property.status', 'propertyData.status'),
    'property.type': ('property.propertyType', 'propertyData.propertyType'),
    'property.access_type': (
        'property.propertyAccessType', 'propertyData.propertyAccessType',
        'property.accessType', 'propertyData.accessType',
    ),
    'property.lockbox_code': (
        'property.lockboxAccessCode', 'propertyData.lockboxAccessCode',
        'property.lockboxCode', 'propertyData.lockboxCode',
    ),
    'property.winterized': ('property.isWinterized', 'propertyData.isWinterized'),
    'property.update_mls': ('property.updateMls', 'propertyData.updateMls'),
    'property.built_before_1978': (
        'property.isBuiltBefore1978', 'propertyData.isBuiltBefore1978',
        'property.builtBefore1978', 'propertyData.builtBefore1978',
    ),

    # Agent
    'agent.name': (
        'agent.name', 'agentData.name', 'agentData.agentName',
        'signatureData.agentName', 'signatureData.signature',
    ),
    'agent.role': ('agent.role', 'agentData.role'),

    # Commission
    'commission.total_percentage': (
        'commission.totalCommission', 'commission.totalCommissionPercentage',
        'commissionData.totalCommission', 'commissionData.totalCommissionPercentage',
    ),
    'commission.listing_agent_percentage': (
        'commission.listingAgentCommission', 'commission.listingAgentPercentage',
        'commissionData.listingAgentCommission', 'commissionData.listingAgentPercentage',
    ),
    'commission.buyers_agent_percentage': (
        'commission.buyersAgentCommission', 'commission.buyersAgentPercentage',
        'commissionData.buyersAgentCommission', 'commissionData.buyersAgentPercentage',
    ),
    'commission.seller_paid': (
        'commission.brokerFeeAmount', 'commission.brokerFee',
        'commissionData.brokerFeeAmount', 'commissionData.brokerFee',
    ),
    'commission.buyer_paid': (
        'commission.buyerPaidAmount', 'commission.buyerPaidCommission',
        'commissionData.buyerPaidAmount', 'commissionData.buyerPaidCommission',
    ),
    'commission.sellers_assist': ('commission.sellersAssist', 'commissionData.sellersAssist'),
    'commission.sellers_assist_amount': (
        'commission.sellersAssistAmount', 'commissionData.sellersAssistAmount',
    ),
    'commission.has_sellers_assist': (
        'commission.hasSellersAssist', 'commissionData.hasSellersAssist',
    ),
    'commission.is_referral': ('commission.isReferral', 'commissionData.isReferral'),
    'commission.referral_party': ('commission.referralParty', 'commissionData.referralParty'),
    'commission.referral_fee': ('commission.referralFee', 'commissionData.referralFee'),
    'commission.broker_ein': ('commission.brokerEin', 'commissionData.brokerEin'),
    'commission.coordinator_fee_paid_by': (
        'commission.coordinatorFeePaidBy', 'commissionData.coordinatorFeePaidBy',
    ),

    # Title
    'title.company': (
        'title.titleCompany', 'title.company',
        'titleData.titleCompany', 'titleData.company',
    ),

    # Property details
    'details.municipality': ('propertyDetails.municipality',),
    'details.hoa_name': ('propertyDetails.hoaName', 'propertyDetails.hoa'),
    'details.attorney_name': ('propertyDetails.attorneyName',),
    'details.first_right_name': ('propertyDetails.firstRightName',),

    # Additional info
    'notes.special_instructions': (
        'additionalInfo.specialInstructions', 'additionalInfo.notes',
    ),
    'notes.urgent_issues': ('additionalInfo.urgentIssues',),
    'notes.additional_notes': ('additionalInfo.additionalNotes', 'additionalInfo.comments'),

    # Submission
    'transaction.id': ('transactionId', 'transaction.id', 'recordId'),
}

# Alternate names inside a single client entry
CLIENT_ALIASES: Dict[str, Tuple[str, ...]] = {
    'name': ('name', 'fullName'),
    'phone': ('phone', 'phoneNumber'),
    'address': ('address', 'streetAddress'),
    'email': ('email',),
    'type': ('type', 'clientType'),
    'marital_status': ('maritalStatus',),
}


def is_empty(value: Any) -> bool:
    """None, empty and whitespace-only strings count as absent."""
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


class FieldResolver:
    """
    Resolves canonical names to raw values from one form submission.

    Usage:
        resolver = FieldResolver(request.get_json())
        resolver.resolve('commission.seller_paid')
    """

    # Pattern for bracket notation: name[index]
    BRACKET_PATTERN = re.compile(r'^([a-zA-Z_][a-zA-Z0-9_]*)\[(\d+)\]$')

    def __init__(self, raw: Dict[str, Any], aliases: Dict[str, Tuple[str, ...]] = None):
        self.raw = raw or {}
        self.aliases = aliases if aliases is not None else FIELD_ALIASES

    def resolve(self, canonical_name: str) -> Any:
        """
        Resolve a canonical name through its alias list.

        Returns:
            The first non-empty value found, or None
        """
        paths = self.aliases.get(canonical_name)
        if paths is None:
            logger.warning(f"No aliases registered for {canonical_name}")
            return None

        for path in paths:
            value = self.resolve_path(path, self.raw)
            if not is_empty(value):
                return value
        return None

    def resolve_all(self, canonical_names: List[str]) -> Dict[str, Any]:
        """Resolve several names at once, leaving out absent ones."""
        values = {}
        for name in canonical_names:
            value = self.resolve(name)
            if value is not None:
                values[name] = value
        return values

    @classmethod
    def resolve_path(cls, source_path: str, data: Any) -> Any:
        """
        Resolve a source path to a value.

        Args:
            source_path: Path like "propertyData.address" or "clients[0].name"
            data: Root dict (or object) to navigate

        Returns:
            The resolved value, or None if not found
        """
        if not source_path:
            return None

        current = data
        for part in cls._parse_path(source_path):
            if current is None:
                return None
            current = cls._get_value(current, part)

        return current

    @classmethod
    def _parse_path(cls, path: str) -> List[str]:
        """
        Parse a source path into parts.

        Examples:
            "propertyData.address" -> ["propertyData", "address"]
            "clients[0].name" -> ["clients[0]", "name"]
        """
        return [part for part in path.split('.') if part]

    @classmethod
    def _get_value(cls, obj: Any, part: str) -> Any:
        """
        Get a value from an object by property name or index.

        Handles:
            - Dict keys
            - Object attributes (getattr)
            - List/tuple indices via bracket notation
        """
        bracket_match = cls.BRACKET_PATTERN.match(part)
        if bracket_match:
            attr_name = bracket_match.group(1)
            index = int(bracket_match.group(2))

            collection = cls._get_attr_or_key(obj, attr_name)
            if isinstance(collection, (list, tuple)) and 0 <= index < len(collection):
                return collection[index]
            return None

        return cls._get_attr_or_key(obj, part)

    @classmethod
    def _get_attr_or_key(cls, obj: Any, key: str) -> Any:
        """Get a value by dict key or attribute."""
        if isinstance(obj, dict):
            return obj.get(key)

        if isinstance(obj, (str, int, float, bool, list, tuple)):
            return None

        return getattr(obj, key, None)

    @classmethod
    def resolve_client_field(cls, client: Dict[str, Any], attribute: str) -> Any:
        """Resolve one attribute of a client entry through CLIENT_ALIASES."""
        for key in CLIENT_ALIASES.get(attribute, (attribute,)):
            value = cls._get_attr_or_key(client, key)
            if not is_empty(value):
                return value
        return None
