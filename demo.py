#!/usr/bin/env python
import asyncio

from docstore.database import DocumentStore
from storefront.admin import CategoryManager, delete_product
from storefront.catalog import filter_products
from storefront.context import ViewContext
from storefront.mirror import LocalMirror
from storefront.sessions import ProductEditSession


async def main():
    store = DocumentStore()
    ctx = ViewContext(is_admin=True, confirm=lambda question: True)

    # -----------------------------
    # Bootstrap + live subscriptions
    # -----------------------------
    print("Starting mirror on an empty store...")
    mirror = LocalMirror(store, seed_about=True)
    mirror.add_listener(lambda section: print(f"  ↻ {section} snapshot delivered"))
    await mirror.start()
    print("About title:", mirror.about.title)

    # -----------------------------
    # Categories
    # -----------------------------
    print("\nAdding categories...")
    categories = CategoryManager(store, mirror, ctx)
    await categories.add("Sunscreen")
    await categories.add("Moisturizer")
    if not await categories.add("SUNSCREEN"):
        print("  rejected:", categories.message)
    print("Categories:", [c.name for c in mirror.categories])

    # -----------------------------
    # Product edit session
    # -----------------------------
    print("\nCreating a product...")
    session = ProductEditSession(store, ctx, mirror)
    session.open()
    session.set_field("name", "Daily Shield SPF 50")
    session.set_field("category", "sunscreen")
    session.set_field("description", "Lightweight mineral sunscreen.")
    session.set_field("size", "50ml")
    session.set_benefit(0, "Broad spectrum protection")
    session.set_benefit(3, "   ")
    session.set_ingredient(0, "Zinc Oxide (20%)")
    saved = await session.save()
    print("Saved:", saved)
    print("Mirror products:", [p.name for p in mirror.products])

    # -----------------------------
    # Search
    # -----------------------------
    print("\nSearching for 'mineral'...")
    print([p.name for p in filter_products(mirror.products, query="mineral")])

    # -----------------------------
    # Delete
    # -----------------------------
    print("\nDeleting the product...")
    await delete_product(store, ctx, saved.id)
    print("Mirror products:", [p.name for p in mirror.products])

    mirror.close()


if __name__ == "__main__":
    asyncio.run(main())
