"""
Contact ranking weight tables.

A ContactWeightTable is the full configuration for one ranking run:
which title keywords raise which signals, and how many points each
signal is worth. The nine persona tables share one title-signal map;
the standard table groups titles into two broader signals and also
rewards contacts that carry an upstream contact id.

Signals:
    owner, operator, manager              relationship type
    chief_pilot, dom, scheduler,
    dispatch, director_aviation,
    aviation_ops                          aviation operations titles
    cfo, controller, finance              finance titles
    executive_assistant                   support titles
    email_available, mobile_available     reachable channels
    direct_edge                           contact linked by id
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

RELATIONSHIP_SIGNALS: FrozenSet[str] = frozenset({'owner', 'operator', 'manager'})
OPS_SIGNALS: FrozenSet[str] = frozenset({
    'chief_pilot', 'dom', 'scheduler', 'dispatch', 'director_aviation', 'aviation_ops',
})
FINANCE_SIGNALS: FrozenSet[str] = frozenset({'cfo', 'controller', 'finance'})
ASSISTANT_SIGNALS: FrozenSet[str] = frozenset({'executive_assistant'})

TitleSignals = Tuple[Tuple[Tuple[str, ...], str], ...]

PERSONA_TITLE_SIGNALS: TitleSignals = (
    (('chief pilot',), 'chief_pilot'),
    (('dom', 'director of maintenance'), 'dom'),
    (('scheduler',), 'scheduler'),
    (('dispatch',), 'dispatch'),
    (('cfo',), 'cfo'),
    (('controller',), 'controller'),
    (('director of aviation',), 'director_aviation'),
    (('executive assistant', 'assistant to'), 'executive_assistant'),
)

STANDARD_TITLE_SIGNALS: TitleSignals = (
    (('chief pilot', 'director of aviation', 'dom', 'director of maintenance', 'scheduler'), 'aviation_ops'),
    (('cfo', 'controller', 'finance', 'treasurer'), 'finance'),
)


class Persona(str, Enum):
    """Consumer role a contact ranking is tailored for."""
    DEALER_BROKER = 'dealer_broker'
    FBO = 'fbo'
    MRO = 'mro'
    CHARTER = 'charter'
    FLEET_MANAGEMENT = 'fleet_management'
    FINANCE = 'finance'
    CATERING = 'catering'
    GROUND_TRANSPORTATION = 'ground_transportation'
    DETAILING = 'detailing'


@dataclass(frozen=True)
class ContactWeightTable:
    name: str
    weights: Dict[str, int]
    title_signals: TitleSignals = PERSONA_TITLE_SIGNALS

    def weight(self, signal: str) -> int:
        return self.weights.get(signal, 0)

    def detect_title_signals(self, title: Optional[str]) -> Tuple[str, ...]:
        """Signals whose keywords appear in the title, in table order."""
        if not title:
            return ()
        lower = title.lower()
        return tuple(
            signal for keywords, signal in self.title_signals
            if any(kw in lower for kw in keywords)
        )


def _persona_table(persona: Persona, **weights: int) -> ContactWeightTable:
    return ContactWeightTable(name=persona.value, weights=dict(weights))


PERSONA_TABLES: Dict[Persona, ContactWeightTable] = {
    Persona.DEALER_BROKER: _persona_table(
        Persona.DEALER_BROKER, owner=30, operator=25, manager=20, chief_pilot=5, dom=0, scheduler=0,
        dispatch=0, cfo=15, controller=10, director_aviation=10, executive_assistant=0,
        email_available=5, mobile_available=5,
    ),
    Persona.FBO: _persona_table(
        Persona.FBO, owner=10, operator=20, manager=15, chief_pilot=20, dom=10, scheduler=30,
        dispatch=20, cfo=0, controller=0, director_aviation=5, executive_assistant=10,
        email_available=5, mobile_available=5,
    ),
    Persona.MRO: _persona_table(
        Persona.MRO, owner=0, operator=20, manager=10, chief_pilot=25, dom=35, scheduler=5,
        dispatch=5, cfo=0, controller=0, director_aviation=15, executive_assistant=0,
        email_available=5, mobile_available=5,
    ),
    Persona.CHARTER: _persona_table(
        Persona.CHARTER, owner=5, operator=30, manager=25, chief_pilot=10, dom=0, scheduler=25,
        dispatch=20, cfo=0, controller=0, director_aviation=5, executive_assistant=0,
        email_available=5, mobile_available=5,
    ),
    Persona.FLEET_MANAGEMENT: _persona_table(
        Persona.FLEET_MANAGEMENT, owner=25, operator=25, manager=20, chief_pilot=15, dom=10, scheduler=5,
        dispatch=5, cfo=10, controller=5, director_aviation=10, executive_assistant=0,
        email_available=5, mobile_available=5,
    ),
    Persona.FINANCE: _persona_table(
        Persona.FINANCE, owner=30, operator=10, manager=25, chief_pilot=0, dom=0, scheduler=0,
        dispatch=0, cfo=25, controller=20, director_aviation=5, executive_assistant=0,
        email_available=5, mobile_available=5,
    ),
    Persona.CATERING: _persona_table(
        Persona.CATERING, owner=0, operator=15, manager=10, chief_pilot=20, dom=5, scheduler=35,
        dispatch=25, cfo=0, controller=0, director_aviation=0, executive_assistant=20,
        email_available=5, mobile_available=5,
    ),
    Persona.GROUND_TRANSPORTATION: _persona_table(
        Persona.GROUND_TRANSPORTATION, owner=5, operator=15, manager=20, chief_pilot=10, dom=0, scheduler=25,
        dispatch=15, cfo=0, controller=0, director_aviation=0, executive_assistant=30,
        email_available=5, mobile_available=5,
    ),
    Persona.DETAILING: _persona_table(
        Persona.DETAILING, owner=0, operator=15, manager=10, chief_pilot=20, dom=30, scheduler=25,
        dispatch=15, cfo=0, controller=0, director_aviation=5, executive_assistant=0,
        email_available=5, mobile_available=5,
    ),
}

STANDARD_TABLE = ContactWeightTable(
    name='standard',
    weights={
        'owner': 30,
        'operator': 30,
        'manager': 30,
        'aviation_ops': 15,
        'finance': 15,
        'email_available': 20,
        'mobile_available': 10,
        'direct_edge': 10,
    },
    title_signals=STANDARD_TITLE_SIGNALS,
)


def resolve_weight_table(persona: Optional[str]) -> ContactWeightTable:
    """
    Table for a persona id; None or 'standard' selects the standard table.

    Raises ValueError for unknown persona ids.
    """
    if persona is None or persona == '' or persona == STANDARD_TABLE.name:
        return STANDARD_TABLE
    return PERSONA_TABLES[Persona(persona)]
