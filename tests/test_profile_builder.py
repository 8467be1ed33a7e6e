"""Tests for the profile aggregator."""

from datetime import date

import pytest

from jetintel.cache import MarketTrendCache
from jetintel.errors import AircraftNotFoundError, AuthError, UpstreamHTTPError
from jetintel.models.aircraft import AircraftSpecs, HistoryEntry, Relationship
from jetintel.models.flight import FlightRecord
from jetintel.services.profile_builder import ProfileBuilder, prior_aircraft_from_history, summarize_utilization

AS_OF = date(2025, 1, 15)


@pytest.fixture
def builder(fake_client, clock):
    return ProfileBuilder(fake_client, trend_cache=MarketTrendCache(ttl_seconds=3600, clock=clock), max_workers=4)


class TestUtilizationSummary:
    """Tests for the flight count summary."""

    def test_no_flights(self):
        assert summarize_utilization([]) is None

    def test_single_flight_assumes_twelve_months(self):
        summary = summarize_utilization([FlightRecord(date(2024, 5, 1), 'KTEB', 'KPBI')])

        assert summary.total_flights == 1
        assert summary.date_range == 'Last 12 months'
        assert summary.avg_flights_per_month == pytest.approx(1 / 12)

    def test_span_in_thirty_day_months(self):
        flights = [FlightRecord(date(2024, 1, 1), '', ''), FlightRecord(date(2024, 4, 1), '', '')] * 3

        summary = summarize_utilization(flights)

        assert summary.date_range == '2024-01-01 - 2024-04-01'
        assert summary.avg_flights_per_month == 2.0

    def test_prior_aircraft_from_sales(self):
        history = [
            HistoryEntry('2019-01-01', 'Full Sale', 'A'),
            HistoryEntry('2018-01-01', 'Lease', 'B'),
        ] + [HistoryEntry('2010-01-01', 'Sale', f'S{i}') for i in range(6)]

        assert prior_aircraft_from_history(history) == ['A', 'S0', 'S1', 'S2', 'S3']


class TestBuildProfile:
    """Tests for fan-out and merge."""

    def test_full_profile(self, builder, fake_client, session):
        profile = builder.build_profile('N123AB', session, as_of=AS_OF)

        assert profile.aircraft_id == 1001
        assert len(profile.pictures) == 1
        assert profile.utilization_summary.total_flights == 12
        assert profile.model_trends.inventory_trend == 'Decreasing'
        assert [a.registration for a in profile.fleet] == ['N456CD']
        assert profile.company_profile.headquarters.city == 'Wilmington'
        assert profile.specs.engine_model == 'BR710'
        assert profile.estimated_aftt == 4200.0
        assert len(profile.relationship_graph.contacts) == 2
        assert profile.relationships[0].contact_name == 'Ann Lee'
        assert profile.partial_failures == []
        assert profile.hot_not_score is not None
        assert profile.owner_intelligence.fleet_size == 1
        assert profile.owner_intelligence.prior_aircraft == ['Gulfstream G450 sold to Acme Air']
        assert profile.lookups_completed_at is not None
        assert set(fake_client.calls) == {
            'lookup', 'pictures', 'relationships', 'flights', 'history', 'model_trends', 'fleet',
            'aircraft_details', 'company', 'contacts',
        }

    def test_failed_pictures_and_flights_degrade(self, builder, fake_client, session):
        """Two failed sources still yield a profile with a completeness penalty."""
        complete = builder.build_profile('N123AB', session, as_of=AS_OF)

        fake_client.failures = {
            'pictures': UpstreamHTTPError('https://jetnet.test/pictures', 503, 'Service Unavailable'),
            'flights': RuntimeError('timeout'),
        }
        partial = builder.build_profile('N123AB', session, as_of=AS_OF)

        assert partial is not None
        assert partial.pictures == []
        assert partial.utilization_summary is None
        assert sorted(partial.failed_sources()) == ['flights', 'pictures']

        completeness = {f.name: f for f in partial.hot_not_score.factors}['Data Completeness']
        assert completeness.value == pytest.approx(5 / 7)
        assert 'pictures' in completeness.explanation
        assert 'utilization' in completeness.explanation
        assert partial.hot_not_score.score < complete.hot_not_score.score

    def test_every_enrichment_failing(self, builder, fake_client, session):
        fake_client.failures = {
            name: RuntimeError(name)
            for name in (
                'pictures', 'relationships', 'flights', 'history', 'model_trends', 'fleet',
                'aircraft_details', 'company', 'contacts',
            )
        }

        profile = builder.build_profile('N123AB', session, as_of=AS_OF)

        assert len(profile.partial_failures) == 9
        assert profile.company_profile is None
        assert profile.contacts == []
        assert profile.specs is None
        assert profile.estimated_aftt is None
        assert profile.relationship_graph is None
        assert profile.relationships[0].company_name == 'Acme Air LLC'
        assert profile.model_trends is None
        assert profile.owner_intelligence.fleet_size == 0
        assert 0 <= profile.hot_not_score.score <= 100

    def test_identity_failure_is_fatal(self, builder, session):
        with pytest.raises(AircraftNotFoundError):
            builder.build_profile('N000XX', session)

    def test_auth_failure_in_enrichment_is_fatal(self, builder, fake_client, session):
        fake_client.failures = {'history': AuthError('JETNET login rejected')}

        with pytest.raises(AuthError):
            builder.build_profile('N123AB', session)

    def test_optional_sources_skipped(self, builder, fake_client, session):
        """No model id means no trend call; no owner means no fleet or company calls."""
        fake_client.identity.model_id = None
        fake_client.identity.flat_relationships = []

        profile = builder.build_profile('N123AB', session, as_of=AS_OF)

        assert 'model_trends' not in fake_client.calls
        assert 'fleet' not in fake_client.calls
        assert 'company' not in fake_client.calls
        assert 'contacts' not in fake_client.calls
        assert profile.partial_failures == []

    def test_owner_without_company_id_skips_company_calls(self, builder, fake_client, session):
        fake_client.identity.flat_relationships = [
            Relationship(company_id=None, company_name='Acme Air LLC', relation_type='Owner'),
        ]

        profile = builder.build_profile('N123AB', session, as_of=AS_OF)

        assert 'fleet' in fake_client.calls
        assert 'company' not in fake_client.calls
        assert profile.company_profile is None

    def test_model_trends_cached_across_builds(self, builder, fake_client, session):
        builder.build_profile('N123AB', session, as_of=AS_OF)
        builder.build_profile('N123AB', session, as_of=AS_OF)

        assert fake_client.calls.count('model_trends') == 1

    def test_to_dict(self, builder, session):
        data = builder.build_profile('N123AB', session, as_of=AS_OF).to_dict()

        assert data['registration'] == 'N123AB'
        assert data['hot_not_score']['label'] in ('HOT', 'WARM', 'NEUTRAL', 'COLD')
        assert data['partial_failures'] == []


class TestOwnerCompanyAndSpecs:
    """Tests for the owner company, its contacts and the full aircraft record."""

    def test_contacts_carry_role_signals(self, builder, session):
        profile = builder.build_profile('N123AB', session, as_of=AS_OF)

        roles = {c.contact_name: c.role_signal for c in profile.contacts}
        assert roles == {'Ann Lee': 'Decision Maker', 'Bo Park': 'Influencer', 'Cy Dunn': 'Operational'}

    def test_company_failure_degrades_to_none(self, builder, fake_client, session):
        fake_client.failures = {'company': UpstreamHTTPError('https://jetnet.test/company', 500, 'Server Error')}

        profile = builder.build_profile('N123AB', session, as_of=AS_OF)

        assert profile.company_profile is None
        assert len(profile.contacts) == 3
        assert profile.failed_sources() == ['company']

    def test_contacts_failure_degrades_to_empty(self, builder, fake_client, session):
        fake_client.failures = {'contacts': RuntimeError('timeout')}

        profile = builder.build_profile('N123AB', session, as_of=AS_OF)

        assert profile.contacts == []
        assert profile.company_profile.company_name == 'Acme Air LLC'

    def test_specs_fall_back_to_lookup_record(self, builder, fake_client, session):
        """Without the full record, specs and airframe time come from the registration lookup."""
        fake_client.identity.specs = AircraftSpecs(engine_model='BR700', cabin_seats=14)
        fake_client.identity.estimated_aftt = 3900.0
        fake_client.failures = {'aircraft_details': RuntimeError('timeout')}

        profile = builder.build_profile('N123AB', session, as_of=AS_OF)

        assert profile.specs.engine_model == 'BR700'
        assert profile.estimated_aftt == 3900.0
        assert profile.failed_sources() == ['aircraft_details']

    def test_lookup_airframe_time_preferred(self, builder, fake_client, session):
        fake_client.identity.estimated_aftt = 3900.0

        profile = builder.build_profile('N123AB', session, as_of=AS_OF)

        assert profile.estimated_aftt == 3900.0
        assert profile.specs.cabin_seats == 16

    def test_to_dict_includes_new_sources(self, builder, session):
        data = builder.build_profile('N123AB', session, as_of=AS_OF).to_dict()

        assert data['company_profile']['headquarters']['country'] == 'US'
        assert data['contacts'][0]['role_signal'] == 'Decision Maker'
        assert data['specs']['engine_count'] == 2
        assert data['estimated_aftt'] == 4200.0


class TestRelationshipIntel:
    """Tests for ranked contacts per persona."""

    def test_standard_ranking(self, builder, session):
        result = builder.relationship_intel('N123AB', session)

        assert result['persona'] == 'standard'
        top = result['recommendations'][0]
        assert top['full_name'] == 'Ann Lee'
        assert top['registration'] == 'N123AB'
        assert top['model'] == 'G550'
        assert len(result['relationships']['companies']) == 2

    def test_persona_ranking(self, builder, session):
        result = builder.relationship_intel('N123AB', session, persona='fbo')

        assert result['persona'] == 'fbo'
        assert result['recommendations'][0]['full_name'] == 'Dee Ray'

    def test_unknown_persona(self, builder, fake_client, session):
        with pytest.raises(ValueError):
            builder.relationship_intel('N123AB', session, persona='astronaut')
        assert fake_client.calls == []
