import re
from typing import Iterable, List, Optional, Tuple

from .models import Category, Product

ALL = "all"

_AMOUNT_SUFFIX = re.compile(r"^(?P<name>.*?)\s*\((?P<amount>[^()]*)\)\s*$")


def split_ingredient(text: str) -> Tuple[str, Optional[str]]:
    """Split ``"Vitamin C (500mg)"`` into ``("Vitamin C", "500mg")``."""
    text = text.strip()
    m = _AMOUNT_SUFFIX.match(text)
    if not m or not m.group("name"):
        return text, None
    return m.group("name"), m.group("amount").strip() or None


def filter_products(products: Iterable[Product], category: str = ALL, query: str = "") -> List[Product]:
    term = query.strip().lower()
    wanted = category.strip().lower()
    out = []
    for p in products:
        if wanted and wanted != ALL and p.category.lower() != wanted:
            continue
        if term and term not in p.name.lower() and term not in p.description.lower():
            continue
        out.append(p)
    return out


def category_names(products: Iterable[Product], categories: Iterable[Category]) -> List[str]:
    """Tab names: "all", the known categories, then any names only products use."""
    names = [ALL]
    for c in categories:
        if c.name not in names:
            names.append(c.name)
    for p in products:
        # products may still point at a deleted category
        name = p.category.lower()
        if name and name not in names:
            names.append(name)
    return names
