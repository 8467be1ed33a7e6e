"""
Contact ranking over a relationship graph.

One ranking function for every weight table (persona or standard):

1. Contact nodes are merged by contact key (id, else normalized name)
2. Edges are grouped per (contact, company); the first edge of a group
   sets the relationship type
3. Score = clamp(sum of matched signal weights, 0, 100)
4. Tier, first match wins: Primary, Aviation Ops, Finance/Admin,
   Secondary, Historical
5. Groups for the same contact collapse into one BrokerContact: the
   higher score keeps tier/reasons/company, emails are unioned, phones
   only fill gaps, preferred channels are unioned
6. Order: score descending, then "last first" name ascending
"""

import logging
from typing import Dict, List, Optional, Tuple

from jetintel.analytics.contact_weights import (
    ASSISTANT_SIGNALS,
    FINANCE_SIGNALS,
    OPS_SIGNALS,
    RELATIONSHIP_SIGNALS,
    STANDARD_TABLE,
    ContactWeightTable,
)
from jetintel.models.relationships import (
    BrokerContact,
    CompanyNode,
    ContactNode,
    ContactPhones,
    RelationshipEdge,
    RelationshipGraph,
)

logger = logging.getLogger(__name__)

PRIMARY_MIN_SCORE = 40
SECONDARY_MIN_SCORE = 20
MAX_SCORE = 100

DECISION_MAKER_KEYWORDS = (
    'director', 'vp', 'vice president', 'president', 'ceo', 'owner',
    'principal', 'cfo', 'coo', 'managing', 'chairman',
)
INFLUENCER_KEYWORDS = ('pilot', 'captain', 'chief pilot', 'aviation manager', 'flight', 'broker')


def classify_contact_role(title: Optional[str]) -> str:
    """Decision Maker, Influencer or Operational, from a company contact's title."""
    if not title:
        return 'Operational'
    t = title.lower()
    if any(k in t for k in DECISION_MAKER_KEYWORDS):
        return 'Decision Maker'
    if any(k in t for k in INFLUENCER_KEYWORDS):
        return 'Influencer'
    return 'Operational'


def score_contact(
    table: ContactWeightTable,
    contact: ContactNode,
    relationship_type: str,
) -> int:
    score = 0

    rel = relationship_type.lower()
    if rel in RELATIONSHIP_SIGNALS:
        score += table.weight(rel)

    for signal in table.detect_title_signals(contact.title):
        score += table.weight(signal)

    if contact.email:
        score += table.weight('email_available')
    if contact.phone_mobile:
        score += table.weight('mobile_available')
    if contact.contact_id is not None:
        score += table.weight('direct_edge')

    return max(0, min(score, MAX_SCORE))


def classify_tier(score: int, relationship_type: str, title_signals: Tuple[str, ...]) -> str:
    if relationship_type.lower() in RELATIONSHIP_SIGNALS and score >= PRIMARY_MIN_SCORE:
        return 'Primary'
    if any(s in OPS_SIGNALS for s in title_signals):
        return 'Aviation Ops'
    if any(s in FINANCE_SIGNALS for s in title_signals):
        return 'Finance/Admin'
    if any(s in ASSISTANT_SIGNALS for s in title_signals) or score >= SECONDARY_MIN_SCORE:
        return 'Secondary'
    return 'Historical'


def role_badge(relationship_type: str, title: Optional[str]) -> str:
    rel = relationship_type.lower()
    t = (title or '').lower()

    if rel == 'owner':
        return 'Owner Rep'
    if rel == 'operator':
        return 'Operator'
    if rel == 'manager':
        return 'Management'
    if 'dom' in t or 'director of maintenance' in t:
        return 'DOM'
    if 'chief pilot' in t:
        return 'Chief Pilot'
    if 'scheduler' in t:
        return 'Scheduler'
    if 'dispatch' in t:
        return 'Dispatch'
    if 'cfo' in t or 'controller' in t:
        return 'Controller/CFO'
    if 'director of aviation' in t:
        return 'Director of Aviation'
    if 'executive assistant' in t or 'assistant to' in t:
        return 'Executive Assistant'
    return relationship_type or 'Contact'


def preferred_channels(contact: ContactNode) -> List[str]:
    channels = []
    if contact.email:
        channels.append('email')
    if contact.phone_mobile:
        channels.append('sms')
    if contact.phone_mobile or contact.phone_office:
        channels.append('call')
    return channels


def contact_reasons(
    contact: ContactNode,
    relationship_type: str,
    title_signals: Tuple[str, ...],
    tier: str,
) -> List[str]:
    reasons = []

    if relationship_type.lower() in RELATIONSHIP_SIGNALS:
        reasons.append(f'{relationship_type} relationship - direct decision authority')
    if any(s in OPS_SIGNALS for s in title_signals):
        reasons.append(f'Title "{contact.title}" indicates aviation operations role')
    if any(s in FINANCE_SIGNALS for s in title_signals):
        reasons.append(f'Title "{contact.title}" indicates financial authority')
    if any(s in ASSISTANT_SIGNALS for s in title_signals):
        reasons.append(f'Title "{contact.title}" indicates executive support role')
    if contact.email:
        reasons.append('Email available for outreach')
    if contact.phone_mobile:
        reasons.append('Mobile phone available for direct contact')

    if not reasons:
        reasons.append(f'{tier} tier contact')
    return reasons


def _merged_contacts(contacts: List[ContactNode]) -> Dict[str, ContactNode]:
    merged: Dict[str, ContactNode] = {}
    for node in contacts:
        existing = merged.get(node.key)
        if existing is None:
            merged[node.key] = ContactNode(
                contact_id=node.contact_id,
                first_name=node.first_name,
                last_name=node.last_name,
                title=node.title,
                email=node.email,
                phone_mobile=node.phone_mobile,
                phone_office=node.phone_office,
            )
        else:
            existing.merge(node)
    return merged


def _collapse(existing: BrokerContact, candidate: BrokerContact) -> None:
    """Fold another ranking of the same contact into an existing one."""
    if candidate.score > existing.score:
        existing.score = candidate.score
        existing.tier = candidate.tier
        existing.role_badge = candidate.role_badge
        existing.reasons = candidate.reasons
        existing.relationship_type = candidate.relationship_type
        if candidate.company_id is not None:
            existing.company_id = candidate.company_id
            existing.company_name = candidate.company_name

    for email in candidate.emails:
        if email not in existing.emails:
            existing.emails.append(email)
    if candidate.phones.mobile and not existing.phones.mobile:
        existing.phones.mobile = candidate.phones.mobile
    if candidate.phones.work and not existing.phones.work:
        existing.phones.work = candidate.phones.work
    for channel in candidate.preferred_channels:
        if channel not in existing.preferred_channels:
            existing.preferred_channels.append(channel)


def _sort_key(contact: BrokerContact) -> Tuple[int, str]:
    return -contact.score, f'{contact.last_name} {contact.first_name}'.lower()


def rank_contacts(
    graph: RelationshipGraph,
    table: Optional[ContactWeightTable] = None,
) -> List[BrokerContact]:
    """
    Rank the graph's contacts for one weight table.

    Request-scoped: the graph is not modified.
    """
    table = table or STANDARD_TABLE

    companies: Dict[int, CompanyNode] = {c.company_id: c for c in graph.companies}
    contacts = _merged_contacts(graph.contacts)

    groups: Dict[Tuple[str, Optional[int]], List[RelationshipEdge]] = {}
    for edge in graph.edges:
        key = edge.resolved_contact_key
        if key is None or key not in contacts:
            continue
        groups.setdefault((key, edge.company_id), []).append(edge)

    ranked: Dict[str, BrokerContact] = {}
    for (key, company_id), edges in groups.items():
        contact = contacts[key]
        company = companies.get(company_id) if company_id is not None else None
        rel_type = edges[0].relationship_type or ''

        signals = table.detect_title_signals(contact.title)
        score = score_contact(table, contact, rel_type)
        tier = classify_tier(score, rel_type, signals)

        candidate = BrokerContact(
            contact_id=contact.contact_id,
            company_id=company.company_id if company else None,
            first_name=contact.first_name,
            last_name=contact.last_name,
            title=contact.title,
            company_name=company.company_name if company else '',
            relationship_type=rel_type,
            tier=tier,
            score=score,
            role_badge=role_badge(rel_type, contact.title),
            emails=[contact.email] if contact.email else [],
            phones=ContactPhones(mobile=contact.phone_mobile, work=contact.phone_office),
            reasons=contact_reasons(contact, rel_type, signals, tier),
            preferred_channels=preferred_channels(contact),
        )

        existing = ranked.get(key)
        if existing is None:
            ranked[key] = candidate
        else:
            _collapse(existing, candidate)

    results = sorted(ranked.values(), key=_sort_key)
    logger.debug(f'Ranked {len(results)} contacts with the {table.name} table')
    return results
