"""
Profile aggregator.

Resolves a registration and fans out the per-aircraft lookups
concurrently:
- pictures
- relationships (graph + flat rows)
- flight data (utilization summary)
- transaction history
- model market trends (through the trend cache, when the model is known)
- full aircraft record (specifications, estimated airframe time)
- owner fleet (when the identity names an owner company)
- owner company profile and contacts (when the owner has a company id)

Only the identity lookup and authentication fail hard. Every other
source that fails is recorded as a PartialAggregationFailure and its
field keeps its empty default. Specifications fall back to those on the
registration lookup record when the full record is unavailable. The merged profile then feeds the
marketability and disposition engines synchronously.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from jetintel.analytics.contact_ranker import classify_contact_role, rank_contacts
from jetintel.analytics.contact_weights import ContactWeightTable, resolve_weight_table
from jetintel.analytics.disposition import compute_disposition
from jetintel.analytics.scoring import compute_hot_not_score
from jetintel.cache import MarketTrendCache, model_trend_cache
from jetintel.config import config
from jetintel.errors import AuthError
from jetintel.models.aircraft import (
    AircraftIdentity,
    AircraftProfile,
    FleetAircraft,
    HistoryEntry,
    PartialAggregationFailure,
    UtilizationSummary,
)
from jetintel.models.flight import FlightRecord
from jetintel.models.relationships import BrokerContact, RelationshipGraph
from jetintel.services.model_trends import fetch_model_trends
from jetintel.services.relationships import build_relationship_graph
from jetintel.upstream.client import UpstreamClient
from jetintel.upstream.schema import parse_relationships
from jetintel.upstream.session import Session

logger = logging.getLogger(__name__)

MAX_PRIOR_AIRCRAFT = 5


def summarize_utilization(flights: List[FlightRecord]) -> Optional[UtilizationSummary]:
    """
    Flight count and average flights per month over the observed span.

    A month is 30 days. With fewer than two flights the trailing window
    of 12 months is assumed.
    """
    if not flights:
        return None

    total = len(flights)
    if total < 2:
        return UtilizationSummary(
            total_flights=total,
            date_range='Last 12 months',
            avg_flights_per_month=total / 12,
        )

    earliest = min(f.date for f in flights)
    latest = max(f.date for f in flights)
    month_span = max(1.0, (latest - earliest).days / 30)

    return UtilizationSummary(
        total_flights=total,
        date_range=f'{earliest.isoformat()} - {latest.isoformat()}',
        avg_flights_per_month=round(total / month_span, 1),
    )


def prior_aircraft_from_history(history: List[HistoryEntry]) -> List[str]:
    """Descriptions of past sale transactions, most relevant first."""
    sales = [h.description for h in history if 'sale' in h.transaction_type.lower()]
    return sales[:MAX_PRIOR_AIRCRAFT]


class ProfileBuilder:
    """
    Builds AircraftProfiles from the upstream provider.

    Usage:
        builder = ProfileBuilder(client)
        profile = builder.build_profile('N123AB', session)
    """

    def __init__(
        self,
        client: UpstreamClient,
        trend_cache: Optional[MarketTrendCache] = None,
        max_workers: Optional[int] = None,
    ):
        self.client = client
        self.trend_cache = trend_cache or model_trend_cache
        self.max_workers = max_workers or config.aggregator.max_workers

    def _run_concurrently(self, tasks: Dict[str, Callable[[], Any]]) -> Dict[str, Any]:
        """
        Run every task to completion; returns {name: result or exception}.

        No task's failure cancels or blocks the others.
        """
        outcomes: Dict[str, Any] = {}
        if not tasks:
            return outcomes

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(tasks))) as executor:
            futures = {name: executor.submit(fn) for name, fn in tasks.items()}
            for name, future in futures.items():
                try:
                    outcomes[name] = future.result()
                except Exception as e:
                    outcomes[name] = e
        return outcomes

    def build_profile(
        self,
        registration: str,
        session: Session,
        as_of: Optional[date] = None,
    ) -> AircraftProfile:
        """
        Build the merged profile for a registration.

        Raises:
            AircraftNotFoundError: registration did not resolve
            AuthError: authentication impossible
            UpstreamError / UpstreamHTTPError: identity lookup failed
        """
        identity = self.client.lookup_by_registration(session, registration)
        profile = AircraftProfile.from_identity(identity)
        aircraft_id = identity.aircraft_id

        tasks: Dict[str, Callable[[], Any]] = {
            'pictures': lambda: self.client.get_pictures(session, aircraft_id),
            'relationships': lambda: self.client.get_relationships(session, aircraft_id),
            'flights': lambda: self.client.get_flight_data(session, aircraft_id),
            'history': lambda: self.client.get_history(session, aircraft_id),
            'aircraft_details': lambda: self.client.get_aircraft(session, aircraft_id),
        }

        model_id = identity.model_id
        if model_id:
            tasks['model_trends'] = lambda: fetch_model_trends(
                model_id, session, self.client, self.trend_cache,
            )

        owner = identity.owner_relationship
        if owner is not None and owner.company_name and owner.company_name != 'Unknown':
            tasks['fleet'] = lambda: self.client.search_fleet_by_company(
                session, owner.company_name, exclude_aircraft_id=aircraft_id,
            )

        if owner is not None and owner.company_id:
            company_id = owner.company_id
            tasks['company'] = lambda: self.client.get_company(session, company_id)
            tasks['contacts'] = lambda: self.client.get_company_contacts(session, company_id)

        outcomes = self._run_concurrently(tasks)

        for outcome in outcomes.values():
            if isinstance(outcome, AuthError):
                raise outcome

        for source, outcome in outcomes.items():
            if isinstance(outcome, Exception):
                logger.warning(f'{identity.registration}: {source} lookup failed: {outcome}')
                profile.partial_failures.append(
                    PartialAggregationFailure(source=source, reason=str(outcome))
                )

        def ok(source: str) -> bool:
            return source in outcomes and not isinstance(outcomes[source], Exception)

        if ok('pictures'):
            profile.pictures = outcomes['pictures']

        if ok('relationships'):
            self._merge_relationships(profile, identity, outcomes['relationships'])

        if ok('flights'):
            profile.utilization_summary = summarize_utilization(outcomes['flights'])

        if ok('history'):
            profile.history = outcomes['history']

        if ok('model_trends'):
            profile.model_trends = outcomes['model_trends']

        details = outcomes['aircraft_details'] if ok('aircraft_details') else None
        if details is not None:
            profile.specs = details.specs or identity.specs
            profile.estimated_aftt = identity.estimated_aftt or details.estimated_aftt

        if ok('company'):
            profile.company_profile = outcomes['company']

        if ok('contacts'):
            for contact in outcomes['contacts']:
                contact.role_signal = classify_contact_role(contact.title)
            profile.contacts = outcomes['contacts']

        fleet: List[FleetAircraft] = outcomes['fleet'] if ok('fleet') else []
        profile.fleet = fleet
        profile.lookups_completed_at = datetime.now(timezone.utc)

        profile.hot_not_score = compute_hot_not_score(profile, as_of=as_of)
        profile.owner_intelligence = compute_disposition(
            profile,
            fleet,
            prior_aircraft_from_history(profile.history),
            as_of=as_of,
        )

        logger.info(
            f'Built profile for {profile.registration}: score {profile.hot_not_score.score} '
            f'({profile.hot_not_score.label}), {len(profile.partial_failures)} partial failures'
        )
        return profile

    @staticmethod
    def _merge_relationships(profile: AircraftProfile, identity: AircraftIdentity, payload: Any) -> None:
        enriched = parse_relationships(payload)
        if enriched:
            profile.relationships = enriched
        graph = build_relationship_graph(payload, aircraft_id=identity.aircraft_id)
        if not graph.is_empty:
            profile.relationship_graph = graph

    def fetch_flight_records(
        self,
        registration: str,
        session: Session,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Tuple[AircraftIdentity, List[FlightRecord]]:
        """(identity, flight records) for on-demand flight analytics."""
        identity = self.client.lookup_by_registration(session, registration)
        flights = self.client.get_flight_data(session, identity.aircraft_id, start=start, end=end)
        return identity, flights

    def relationship_intel(
        self,
        registration: str,
        session: Session,
        persona: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Relationship graph plus ranked contacts for a registration.

        Each ranked contact is stamped with the registration and model.
        """
        table: ContactWeightTable = resolve_weight_table(persona)
        identity = self.client.lookup_by_registration(session, registration)
        payload = self.client.get_relationships(session, identity.aircraft_id)
        graph: RelationshipGraph = build_relationship_graph(payload, aircraft_id=identity.aircraft_id)

        recommendations: List[BrokerContact] = rank_contacts(graph, table)
        for contact in recommendations:
            contact.registration = registration
            contact.model = identity.model

        return {
            'registration': registration,
            'aircraft_id': identity.aircraft_id,
            'persona': table.name,
            'relationships': graph.to_dict(),
            'recommendations': [c.to_dict() for c in recommendations],
            'generated_at': datetime.now(timezone.utc).isoformat(),
        }
