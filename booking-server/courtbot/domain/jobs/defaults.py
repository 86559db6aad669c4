"""Default values offered by the reservation form."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Optional

DEFAULT_LEAD_DAYS = 6

COURT_LOCATIONS = (
    "Alain Mimoun", "Amandiers", "Atlantique", "Aurelle de Paladines", "Bertrand Dauvin",
    "Bobigny", "Broquedis - Asnières", "Candie", "Carnot", "Château des Rentiers",
    "Cordelières", "Courcelles", "Croix Nivert", "Docteurs Déjerine", "Dunois",
    "Edouard Pailleron", "Elisabeth", "Georges Carpentier", "Halle Fret",
    "Henry de Montherlant", "Jandelle", "Jesse Owens", "Jules Ladoumègue",
    "La Faluère", "Léo Lagrange", "Max Rousié", "Moureu - Baudricourt",
    "NEUVE SAINT PIERRE", "Niox", "Paul Barruel", "Philippe Auguste", "Poissonniers",
    "Poliveau", "Poterne des Peupliers", "Puteaux", "René et André Mourlon",
    "Rigoulot - La Plaine", "Sablonnière", "Sept arpents", "Suzanne Lenglen",
    "Thiéré", "Valeyre",
)


def build_form_defaults(today: Optional[date] = None) -> dict[str, Any]:
    """Form values for a new reservation; the date is ``today`` plus six days."""
    today = today or date.today()
    return {
        "date": (today + timedelta(days=DEFAULT_LEAD_DAYS)).isoformat(),
        "hour": "09",
        "location": COURT_LOCATIONS[0],
        "priceType": ["Tarif plein"],
        "courtType": ["Découvert"],
        "planTime": "00:00",
        "players": [{"firstName": "Louis", "lastName": "Gallais"}],
        "locations": list(COURT_LOCATIONS),
    }
