import asyncio

from docstore.database import DocumentStore
from storefront.context import ViewContext
from storefront.mirror import LocalMirror
from storefront.models import Product
from storefront.sessions import ProductEditSession


async def edit_name(store, mirror, product: Product, name: str, delay: float):
    ctx = ViewContext(is_admin=True)
    session = ProductEditSession(store, ctx, mirror)
    session.open(product)
    session.set_field("name", name)
    await asyncio.sleep(delay)
    saved = await session.save()
    print(f"✅ saved '{saved.name}'" if saved else f"⚠️  save failed: {session.message}")


async def main():
    store = DocumentStore()
    admin_view = LocalMirror(store)
    visitor_view = LocalMirror(store)
    await admin_view.start()
    await visitor_view.start()

    await store.add("categories", {"name": "moisturizer"})
    seed = Product(id="p-1", name="Night Cream", category="moisturizer",
                   description="Rich overnight cream.", size="30ml")
    await store.put("products", seed.id, seed.model_dump())
    print("\n🧴 Seeded:", [p.name for p in visitor_view.products])

    # Two admins edit the same product; the last full replace wins everywhere
    print("\n⚡ Simulating concurrent edits...")
    await asyncio.gather(
        edit_name(store, admin_view, admin_view.products[0], "Night Cream Plus", 0.02),
        edit_name(store, admin_view, admin_view.products[0], "Night Cream Ultra", 0.01),
    )

    print("\n📦 Admin view:", [p.name for p in admin_view.products])
    print("📦 Visitor view:", [p.name for p in visitor_view.products])

    admin_view.close()
    visitor_view.close()


if __name__ == "__main__":
    asyncio.run(main())
