"""
Relationship graph construction.

Turns the relationships payload into a RelationshipGraph:
- Companies deduplicated by company id (first sighting wins)
- Contacts keyed by contact id, else by normalized (first, last) name;
  repeat sightings only fill missing title/email/phones
- Rows without a contact name still link the aircraft to the company
- Edges deduplicated on (aircraft, company, contact key, type)
"""

import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from jetintel.models.relationships import (
    CompanyNode,
    ContactNode,
    RelationshipEdge,
    RelationshipGraph,
    contact_key,
)
from jetintel.upstream.schema import iter_relationship_rows

logger = logging.getLogger(__name__)

EdgeKey = Tuple[int, Optional[int], Optional[str], str]


def build_relationship_graph(payload: Any, aircraft_id: Optional[int] = None) -> RelationshipGraph:
    """
    Normalize a relationships payload.

    aircraft_id is used for rows that do not name their aircraft.
    """
    companies: Dict[int, CompanyNode] = {}
    contacts: Dict[str, ContactNode] = {}
    edges: List[RelationshipEdge] = []
    seen_edges: Set[EdgeKey] = set()

    def add_edge(edge: RelationshipEdge, key: Optional[str]) -> None:
        edge_key = (edge.aircraft_id, edge.company_id, key, edge.relationship_type)
        if edge_key not in seen_edges:
            seen_edges.add(edge_key)
            edges.append(edge)

    for row in iter_relationship_rows(payload):
        acid = row.aircraft_id or aircraft_id or 0

        if row.company_id is not None and row.company_id not in companies:
            companies[row.company_id] = CompanyNode(
                company_id=row.company_id,
                company_name=row.company_name,
                role=row.relationship_type,
                city=row.city,
                state=row.state,
                country=row.country,
            )

        if not row.has_contact:
            if row.company_id is not None and acid:
                add_edge(
                    RelationshipEdge(
                        aircraft_id=acid,
                        company_id=row.company_id,
                        contact_id=None,
                        relationship_type=row.relationship_type,
                    ),
                    None,
                )
            continue

        node = ContactNode(
            contact_id=row.contact_id,
            first_name=row.first_name,
            last_name=row.last_name,
            title=row.title,
            email=row.email,
            phone_mobile=row.mobile,
            phone_office=row.office,
        )
        key = contact_key(row.contact_id, row.first_name, row.last_name)
        if key in contacts:
            contacts[key].merge(node)
        else:
            contacts[key] = node

        if acid:
            add_edge(
                RelationshipEdge(
                    aircraft_id=acid,
                    company_id=row.company_id,
                    contact_id=row.contact_id,
                    relationship_type=row.relationship_type,
                    contact_key=None if row.contact_id is not None else key,
                ),
                key,
            )

    graph = RelationshipGraph(
        companies=list(companies.values()),
        contacts=list(contacts.values()),
        edges=edges,
    )
    logger.debug(
        f'Relationship graph: {len(graph.companies)} companies, '
        f'{len(graph.contacts)} contacts, {len(graph.edges)} edges'
    )
    return graph
