"""
Relationship graph and ranked contact models.

A ContactNode is identified by its contact id when the upstream supplies
one, otherwise by a normalized (first name, last name) key. Merging two
nodes with the same key only fills gaps; known fields are never replaced.
"""

from dataclasses import dataclass, field, asdict
from typing import Optional, List


def normalize_name_key(first_name: Optional[str], last_name: Optional[str]) -> str:
    """Case- and whitespace-insensitive name key."""
    first = ' '.join((first_name or '').split()).lower()
    last = ' '.join((last_name or '').split()).lower()
    return f'name:{first}|{last}'


def contact_key(contact_id: Optional[int], first_name: Optional[str], last_name: Optional[str]) -> str:
    if contact_id is not None:
        return f'id:{contact_id}'
    return normalize_name_key(first_name, last_name)


@dataclass
class CompanyNode:
    company_id: int
    company_name: str
    role: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None


@dataclass
class ContactNode:
    contact_id: Optional[int]
    first_name: str
    last_name: str
    title: Optional[str] = None
    email: Optional[str] = None
    phone_mobile: Optional[str] = None
    phone_office: Optional[str] = None

    @property
    def key(self) -> str:
        return contact_key(self.contact_id, self.first_name, self.last_name)

    def merge(self, other: 'ContactNode') -> None:
        """Fill gaps from another sighting of the same contact."""
        if not self.title and other.title:
            self.title = other.title
        if not self.email and other.email:
            self.email = other.email
        if not self.phone_mobile and other.phone_mobile:
            self.phone_mobile = other.phone_mobile
        if not self.phone_office and other.phone_office:
            self.phone_office = other.phone_office


@dataclass(frozen=True)
class RelationshipEdge:
    """Links an aircraft to a company and optionally a contact."""
    aircraft_id: int
    company_id: Optional[int]
    contact_id: Optional[int]
    relationship_type: str
    # Set for contacts without an upstream id so edges still resolve
    contact_key: Optional[str] = None

    @property
    def resolved_contact_key(self) -> Optional[str]:
        if self.contact_id is not None:
            return contact_key(self.contact_id, None, None)
        return self.contact_key


@dataclass
class RelationshipGraph:
    companies: List[CompanyNode] = field(default_factory=list)
    contacts: List[ContactNode] = field(default_factory=list)
    edges: List[RelationshipEdge] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.companies or self.contacts or self.edges)

    def to_dict(self) -> dict:
        return {
            'companies': [asdict(c) for c in self.companies],
            'contacts': [asdict(c) for c in self.contacts],
            'edges': [asdict(e) for e in self.edges],
        }


@dataclass
class ContactPhones:
    mobile: Optional[str] = None
    work: Optional[str] = None


@dataclass
class BrokerContact:
    """Ranked, deduplicated, persona-scored contact. Request-scoped."""
    contact_id: Optional[int]
    company_id: Optional[int]
    first_name: str
    last_name: str
    title: Optional[str]
    company_name: str
    relationship_type: str
    tier: str
    score: int
    role_badge: str
    emails: List[str] = field(default_factory=list)
    phones: ContactPhones = field(default_factory=ContactPhones)
    reasons: List[str] = field(default_factory=list)
    preferred_channels: List[str] = field(default_factory=list)
    registration: Optional[str] = None
    model: Optional[str] = None

    @property
    def full_name(self) -> str:
        return ' '.join(p for p in (self.first_name, self.last_name) if p)

    def to_dict(self) -> dict:
        data = asdict(self)
        data['full_name'] = self.full_name
        return data
