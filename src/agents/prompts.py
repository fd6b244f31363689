"""Prompt text for the recipe and vision agents."""

from collections.abc import Sequence
from datetime import date

from src.domain.pantry import Category, PantryItem


RECIPE_SYSTEM_PROMPT = (
    "Agisci come uno chef esperto di cucina sostenibile e anti-spreco. "
    "Rispondi sempre in Italiano. La difficoltà è una tra: Facile, Media, Difficile."
)

VISION_SYSTEM_PROMPT = "Riconosci prodotti alimentari da fotografie e descrivili in Italiano."

_PANTRY_PROMPT = """\
Ho questi ingredienti nella mia dispensa: {inventory}.

Suggerisci 3 ricette gustose che posso preparare principalmente con questi ingredienti per evitare che scadano.

IMPORTANTE:
- In "ingredientsUsed", devi indicare ESATTAMENTE il nome del prodotto presente in dispensa e la quantità necessaria per la ricetta.
- Se serve mezza bottiglia di latte e in dispensa c'è "Latte", scrivi quantity: 0.5, unit: l (o l'unità coerente).
- È accettabile suggerire di comprare 1-2 ingredienti freschi extra se necessario.
"""

_IDEA_PROMPT = """\
L'utente vuole cucinare: "{idea}".

La sua dispensa contiene: {inventory}.

1. Genera una ricetta dettagliata per "{idea}".
2. Confronta gli ingredienti necessari per la ricetta con quelli in dispensa.
3. Metti in "ingredientsUsed" SOLO quelli presenti in dispensa che servono per la ricetta. Usa quantità numeriche precise.
4. Metti in "missingIngredients" TUTTO ciò che manca e che l'utente deve comprare.

Restituisci una lista contenente questa singola ricetta (o varianti se la richiesta è generica).
"""

_VISION_PROMPT = """\
Analizza questa immagine di un prodotto alimentare.
Identifica il prodotto e compila:
- name: Nome breve e descrittivo in Italiano (es. "Latte Parzialmente Scremato", "Mele Golden").
- category: Una delle seguenti categorie esatte: {categories}.
- quantity: Stima numerica della quantità (di default 1 se non chiaro).
- unit: Unità di misura stimata (pz, kg, l, g).
- expiryDate: Una stima della data di scadenza (YYYY-MM-DD) basata sul tipo di prodotto fresco assumendo che sia stato comprato oggi ({today}). Se è un prodotto a lunga conservazione, lascia vuoto o stima una data lontana.

Se non è un prodotto alimentare, imposta is_food a false e lascia item vuoto.
"""


def format_inventory_line(item: PantryItem) -> str:
    """Describe one pantry item, e.g. "0.5 l di Latte (scade il: 2024-05-01)"."""
    expiry = item.expiry_date.isoformat() if item.expiry_date else "N/A"
    return f"{item.quantity:g} {item.unit} di {item.name} (scade il: {expiry})"


def build_pantry_prompt(items: Sequence[PantryItem]) -> str:
    inventory = ", ".join(format_inventory_line(item) for item in items)
    return _PANTRY_PROMPT.format(inventory=inventory)


def build_idea_prompt(idea: str, items: Sequence[PantryItem]) -> str:
    inventory = ", ".join(item.name for item in items)
    return _IDEA_PROMPT.format(idea=idea.strip(), inventory=inventory)


def build_vision_prompt(today: date) -> str:
    categories = ", ".join(category.value for category in Category)
    return _VISION_PROMPT.format(categories=categories, today=today.isoformat())
