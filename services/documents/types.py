"""
Document System Type Definitions

Dataclasses for the field map loaded from YAML, the normalized
transaction record and the rendered document. Definitions are
immutable after loading and validated on startup.
"""

import base64
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any, Tuple
from enum import Enum


# US Letter, in points
LETTER_SIZE = (612.0, 792.0)


class FontWeight(Enum):
    """Font variants embedded in every rendered document."""
    REGULAR = "regular"
    BOLD = "bold"


class ClientType(Enum):
    """Client roles the template reserves a slot for."""
    BUYER = "BUYER"
    SELLER = "SELLER"


@dataclass(frozen=True)
class FieldPlacement:
    """
    Where and how one value is drawn on the template.

    Attributes:
        field_key: Stable internal identifier (snake_case)
        source: Canonical name of the normalized value (e.g., "property.address")
        page: 1-based page number
        x, y: Baseline origin in PDF points (origin bottom-left)
        size: Font size in points
        weight: Regular or bold
        prefix: Literal text drawn before the value (e.g., "Municipality: ")
    """
    field_key: str
    source: str
    page: int
    x: float
    y: float
    size: float
    weight: FontWeight = FontWeight.BOLD
    prefix: str = ""

    @property
    def page_index(self) -> int:
        return self.page - 1


@dataclass(frozen=True)
class FieldMapDefinition:
    """
    Complete layout of one template revision loaded from YAML.

    One YAML file = one FieldMapDefinition. Moving to a new template
    revision means editing coordinates here, not code.
    """
    schema_version: str
    slug: str
    name: str
    page_size: Tuple[float, float]
    fonts: Dict[str, str]
    fields: Tuple[FieldPlacement, ...]

    def get_field(self, field_key: str) -> Optional[FieldPlacement]:
        """Get a placement by its key."""
        return next((f for f in self.fields if f.field_key == field_key), None)

    def get_fields_for_page(self, page: int) -> List[FieldPlacement]:
        """Get all placements drawn on a 1-based page number."""
        return [f for f in self.fields if f.page == page]

    def get_sources(self) -> List[str]:
        """Get the canonical names this layout reads."""
        return [f.source for f in self.fields]

    @property
    def max_page(self) -> int:
        return max((f.page for f in self.fields), default=1)

    def font_name(self, weight: FontWeight) -> str:
        return self.fonts[weight.value]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FieldMapDefinition':
        """
        Create a FieldMapDefinition from a parsed YAML dict.

        This handles the conversion from raw dict to typed dataclasses.
        """
        fonts_data = data.get('fonts', {})
        fonts = {
            FontWeight.REGULAR.value: fonts_data.get('regular', 'Helvetica'),
            FontWeight.BOLD.value: fonts_data.get('bold', 'Helvetica-Bold'),
        }

        page_size = tuple(float(v) for v in data.get('page_size', LETTER_SIZE))

        fields = []
        for field_data in data.get('fields', []):
            fields.append(FieldPlacement(
                field_key=field_data['field_key'],
                source=field_data['source'],
                page=int(field_data.get('page', 1)),
                x=float(field_data['x']),
                y=float(field_data['y']),
                size=float(field_data.get('size', 11)),
                weight=FontWeight(field_data.get('weight', 'bold')),
                prefix=field_data.get('prefix', '') or '',
            ))

        return cls(
            schema_version=str(data['schema_version']),
            slug=data['slug'],
            name=data['name'],
            page_size=page_size,
            fonts=fonts,
            fields=tuple(fields)  # Convert to tuple for immutability
        )


@dataclass(frozen=True)
class Client:
    """A buyer or seller as entered on the form."""
    name: str = ""
    phone: str = ""
    address: str = ""
    email: str = ""
    type: str = ""
    marital_status: str = ""

    @property
    def is_buyer(self) -> bool:
        return self.type == ClientType.BUYER.value

    @property
    def is_seller(self) -> bool:
        return self.type == ClientType.SELLER.value

    def get(self, attribute: str) -> str:
        return getattr(self, attribute, "") or ""


@dataclass
class NormalizedRecord:
    """
    A transaction record after alias resolution and value formatting.

    `values` maps canonical names (e.g., "commission.total_percentage")
    to display strings; absent fields are simply missing.
    """
    values: Dict[str, str] = field(default_factory=dict)
    clients: List[Client] = field(default_factory=list)
    transaction_id: Optional[str] = None

    @property
    def buyers(self) -> List[Client]:
        return [c for c in self.clients if c.is_buyer]

    @property
    def sellers(self) -> List[Client]:
        return [c for c in self.clients if c.is_seller]

    @property
    def first_buyer(self) -> Optional[Client]:
        buyers = self.buyers
        return buyers[0] if buyers else None

    @property
    def first_seller(self) -> Optional[Client]:
        sellers = self.sellers
        return sellers[0] if sellers else None

    def get(self, name: str, default: str = "") -> str:
        """
        Look up a canonical value.

        `buyer.<attr>` and `seller.<attr>` read the first client of
        that type; only one slot per role exists on the template.
        """
        role, _, attribute = name.partition('.')
        if role in ('buyer', 'seller') and attribute:
            client = self.first_buyer if role == 'buyer' else self.first_seller
            if client is None:
                return default
            return client.get(attribute) or default
        return self.values.get(name) or default

    def has(self, name: str) -> bool:
        return bool(self.get(name))


@dataclass(frozen=True)
class RenderedDocument:
    """A finished PDF. Produced once per submission, never mutated."""
    content: bytes
    filename: str

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def base64(self) -> str:
        return base64.b64encode(self.content).decode('ascii')

    @property
    def data_uri(self) -> str:
        return f"data:application/pdf;base64,{self.base64}"
