from typing import List, Optional

from pydantic import BaseModel, Field

PRODUCTS = "products"
CATEGORIES = "categories"
ABOUT = "about"
ABOUT_KEY = "main"

MAX_LIST_ENTRIES = 10


class Product(BaseModel):
    id: str
    name: str
    category: str
    description: str
    size: str
    benefits: List[str] = Field(default_factory=list, max_length=MAX_LIST_ENTRIES)
    ingredients: List[str] = Field(default_factory=list, max_length=MAX_LIST_ENTRIES)
    # data URL, or None when no picture was uploaded
    image: Optional[str] = None


class Category(BaseModel):
    name: str


class AboutText(BaseModel):
    title: str
    subtitle: str
    description: str
    image: Optional[str] = None


DEFAULT_ABOUT = AboutText(
    title="Our Quality Promise",
    subtitle="Every batch tested for purity and potency",
    description=(
        "Our formulas are developed on the latest dermatological research and "
        "tested by independent laboratories to ensure efficacy and safety."
    ),
)
