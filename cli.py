# cli.py: admin console for the catalog, plus the serve, reset and seed commands
import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import Confirm
from rich import box

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style as PromptStyle

from docstore.database import StoreError
from sdk.storeclient import AsyncStoreClient, StoreClient
from storefront.admin import CategoryManager, delete_product
from storefront.catalog import category_names, filter_products, split_ingredient
from storefront.config import Settings
from storefront.context import ViewContext
from storefront.log import setup_logging
from storefront.mirror import LocalMirror
from storefront.models import ABOUT, ABOUT_KEY, DEFAULT_ABOUT, Product
from storefront.sessions import AboutEditSession, EditSession, ProductEditSession

console = Console()

# Custom prompt style for prompt_toolkit
custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
})


# ---------------------------
# Display helpers
# ---------------------------
def show_products(products: List[Product]):
    if not products:
        console.print("[italic yellow]No products found[/italic yellow]")
        return

    table = Table(
        title="📦 Products Catalog",
        box=box.ROUNDED,
        header_style="bold cyan",
        title_style="bold magenta",
        show_lines=True
    )
    table.add_column("ID", style="dim", width=12)
    table.add_column("Name", style="bold", width=20)
    table.add_column("Category", width=15)
    table.add_column("Size", width=8)
    table.add_column("Ingredients", width=30)
    table.add_column("Image", width=6)

    for p in products:
        ingredients = []
        for text in p.ingredients[:3]:
            name, amount = split_ingredient(text)
            ingredients.append(f"{name} [dim]{amount}[/dim]" if amount else name)
        if len(p.ingredients) > 3:
            ingredients.append(f"+{len(p.ingredients) - 3} more")
        table.add_row(p.id[:12], p.name, p.category, p.size, "\n".join(ingredients), "✔" if p.image else "")
    console.print(table)


def show_product(p: Product):
    body = Table.grid(padding=(0, 2))
    body.add_column(style="bold cyan")
    body.add_column()
    body.add_row("Category", p.category)
    body.add_row("Size", p.size)
    body.add_row("Description", p.description)
    body.add_row("Benefits", "\n".join(f"• {b}" for b in p.benefits) or "-")
    body.add_row("Ingredients", "\n".join(f"• {i}" for i in p.ingredients) or "-")
    console.print(Panel(body, title=f"{p.name} [dim]({p.id})[/dim]", border_style="magenta"))


def show_categories(mirror: LocalMirror):
    names = category_names(mirror.products, mirror.categories)[1:]
    known = {c.name for c in mirror.categories}
    if not names:
        console.print("[italic yellow]No categories yet[/italic yellow]")
        return
    table = Table(title="🏷️ Categories", box=box.ROUNDED, header_style="bold yellow")
    table.add_column("Name", width=24)
    table.add_column("Products", justify="right", width=8)
    for name in names:
        count = len(filter_products(mirror.products, category=name))
        label = name if name in known else f"[red]{name} (deleted)[/red]"
        table.add_row(label, str(count))
    console.print(table)


def show_about(mirror: LocalMirror):
    about = mirror.about
    console.print(Panel(
        f"[bold]{about.subtitle}[/bold]\n\n{about.description}",
        title=f"ℹ️ {about.title}",
        border_style="blue"
    ))


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


def create_header(ctx: ViewContext):
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)

    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    mode = "[green]admin[/green]" if ctx.is_admin else "[yellow]visitor[/yellow]"
    header.add_row(
        f"💄 Lumiere catalog ({mode})",
        "[bold blue]Live catalog console[/bold blue]",
        f"[dim]{now}[/dim]"
    )
    return Panel(header, style="bold blue")


# ---------------------------
# Console
# ---------------------------
class CatalogConsole:
    def __init__(self, client: AsyncStoreClient, mirror: LocalMirror, ctx: ViewContext, settings: Settings):
        self.client = client
        self.mirror = mirror
        self.ctx = ctx
        self.settings = settings
        self.prompt_session = PromptSession(style=custom_style)
        self.categories = CategoryManager(client, mirror, ctx)

    async def ask(self, message: str, completer=None, default: str = "") -> str:
        return await self.prompt_session.prompt_async(f"{message} ", completer=completer, default=default)

    def product_completer(self):
        names = [p.name for p in self.mirror.products] + [p.id for p in self.mirror.products]
        return WordCompleter([n for n in names if n], ignore_case=True)

    def category_completer(self):
        return WordCompleter([c.name for c in self.mirror.categories], ignore_case=True)

    def find_product(self, term: str) -> Optional[Product]:
        term = term.strip()
        for p in self.mirror.products:
            if p.id == term or p.name.lower() == term.lower():
                return p
        return None

    async def attach_image(self, session: EditSession):
        raw = (await self.ask("🖼️ Image path (blank to keep, - to remove)")).strip()
        if not raw:
            return
        if raw == "-":
            session.remove_image()
            console.print(show_status("Image removed"))
            return
        path = Path(raw).expanduser()
        try:
            data = path.read_bytes()
        except OSError as e:
            console.print(show_status(f"Cannot read {path}: {e}", False))
            return
        if await session.attach_image(data):
            console.print(show_status("Image attached"))
        else:
            console.print(show_status(session.message or "Image rejected", False))

    async def fill_required(self, session: EditSession):
        for name in session.required:
            value = await self.ask(f"{name.capitalize()}", default=session.draft[name],
                                   completer=self.category_completer() if name == "category" else None)
            session.set_field(name, value)

    async def save_loop(self, session: EditSession):
        while session.is_open:
            saved = await session.save()
            if saved is not None:
                console.print(show_status("Saved. The catalog refreshes when the store confirms."))
                return saved
            console.print(show_status(session.message or "Save failed", False))
            for name in list(session.errors):
                if name == "image":
                    continue
                value = await self.ask(f"{name.capitalize()} ({session.field_message(name)})",
                                       default=session.draft.get(name, ""))
                session.set_field(name, value)
            if not session.errors and not Confirm.ask("Retry saving?", default=True):
                session.cancel()
        return None

    async def edit_product(self, product: Optional[Product] = None):
        session = ProductEditSession(self.client, self.ctx, self.mirror, self.settings)
        if not session.open(product):
            console.print(show_status(session.message, False))
            return
        await self.fill_required(session)
        for label, setter, key in (("Benefit", session.set_benefit, "benefits"),
                                   ("Ingredient", session.set_ingredient, "ingredients")):
            if not Confirm.ask(f"Edit {key}?", default=session.is_new):
                continue
            for i, current in enumerate(session.draft[key]):
                value = await self.ask(f"{label} {i + 1} (blank to skip)", default=current)
                setter(i, value)
        await self.attach_image(session)
        await self.save_loop(session)

    async def edit_about(self):
        session = AboutEditSession(self.client, self.ctx, self.mirror, self.settings)
        if not session.open():
            console.print(show_status(session.message, False))
            return
        await self.fill_required(session)
        await self.attach_image(session)
        await self.save_loop(session)

    # ---------------------------
    # Main menu
    # ---------------------------
    async def menu(self):
        console.clear()
        console.print(create_header(self.ctx))

        while True:
            menu_table = Table.grid(padding=(0, 2))
            menu_table.add_column("Key", style="bold cyan", width=4)
            menu_table.add_column("Option", width=30)
            menu_table.add_column("Key", style="bold cyan", width=4)
            menu_table.add_column("Option", width=30)

            options = [
                ("1", "📦 List products", "6", "🏷️ List categories"),
                ("2", "🔍 Search products", "7", "➕ Add category"),
                ("3", "ℹ️ Show product", "8", "➖ Delete category"),
                ("4", "✏️ New / edit product", "9", "📖 Show about"),
                ("5", "🗑️ Delete product", "10", "📝 Edit about"),
                ("", "", "q", "👋 Quit")
            ]
            for row in options:
                menu_table.add_row(*row)
            console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

            choice = (await self.ask(
                "\nChoose an option",
                completer=WordCompleter([str(i) for i in range(1, 11)] + ["q", "quit", "exit"])
            )).strip()

            if choice == "1":
                tab = await self.ask("Category (blank for all)", completer=self.category_completer())
                show_products(filter_products(self.mirror.products, category=tab or "all"))

            elif choice == "2":
                term = await self.ask("Enter search term", completer=self.product_completer())
                show_products(filter_products(self.mirror.products, query=term))

            elif choice == "3":
                product = self.find_product(await self.ask("Product name or ID", completer=self.product_completer()))
                if product:
                    show_product(product)
                else:
                    console.print(show_status("No such product", False))

            elif choice == "4":
                term = await self.ask("Product to edit (blank for new)", completer=self.product_completer())
                product = self.find_product(term) if term.strip() else None
                if term.strip() and product is None:
                    console.print(show_status("No such product", False))
                else:
                    await self.edit_product(product)

            elif choice == "5":
                product = self.find_product(await self.ask("Product name or ID", completer=self.product_completer()))
                if product is None:
                    console.print(show_status("No such product", False))
                else:
                    err = await delete_product(self.client, self.ctx, product.id)
                    if err is not None:
                        console.print(show_status(self.ctx.t(err.key), False))

            elif choice == "6":
                show_categories(self.mirror)

            elif choice == "7":
                if await self.categories.add(await self.ask("🏷️ Category name")):
                    console.print(show_status("Category added"))
                else:
                    console.print(show_status(self.categories.message, False))

            elif choice == "8":
                name = await self.ask("Category to delete", completer=self.category_completer())
                if await self.categories.delete(name.strip().lower()):
                    console.print(show_status(f"Category '{name}' deleted"))
                elif self.categories.error is not None:
                    console.print(show_status(self.categories.message, False))

            elif choice == "9":
                show_about(self.mirror)

            elif choice == "10":
                await self.edit_about()

            elif choice.lower() in ("q", "quit", "exit"):
                if Confirm.ask("Are you sure you want to quit?"):
                    console.print(Panel.fit("[bold green]Goodbye! 👋[/bold green]", title="Goodbye"))
                    return

            console.print()
            console.rule(style="dim")


def _confirm(question: str) -> bool:
    return Confirm.ask(f"[red]{question}[/red]", default=False)


async def run_console(settings: Settings):
    async with AsyncStoreClient(settings.store_url, api_key=settings.store_token,
                                timeout=settings.timeout) as client:
        ctx = await ViewContext.from_identity(client, language=settings.language, confirm=_confirm)
        mirror = LocalMirror(client, seed_about=ctx.is_admin)
        await mirror.start()
        for collection, err in mirror.load_errors.items():
            console.print(show_status(f"{collection}: {ctx.t(err.key)}", False))
        try:
            await CatalogConsole(client, mirror, ctx, settings).menu()
        finally:
            mirror.close()


# ---------------------------
# One-shot commands
# ---------------------------
def reset_store(client: StoreClient, confirm=_confirm) -> bool:
    if not confirm("This will clear all data. Continue?"):
        return False
    client.reset()
    return True


def seed_about(client: StoreClient) -> bool:
    """Write the default about text unless the store already has one."""
    if any(doc["key"] == ABOUT_KEY for doc in client.get_all(ABOUT)):
        return False
    client.put(ABOUT, ABOUT_KEY, DEFAULT_ABOUT.model_dump())
    return True


def run_command(command: str, settings: Settings):
    client = StoreClient(settings.store_url, api_key=settings.store_token, timeout=settings.timeout)
    try:
        if command == "reset":
            if reset_store(client):
                console.print(show_status("Store reset successfully"))
        elif seed_about(client):
            console.print(show_status("About text seeded"))
        else:
            console.print(show_status("About text already present"))
    except StoreError as e:
        console.print(show_status(f"Store request failed: {e}", False))
        return 1
    return 0


def serve():
    import uvicorn
    from docstore import config

    uvicorn.run("docstore.main:app", host=config.HOST, port=config.PORT, log_level="info")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Lumiere catalog tools")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("console", help="Interactive catalog console (default)")
    subparsers.add_parser("serve", help="Run the document store service")
    subparsers.add_parser("reset", help="Clear every collection (admin token required)")
    subparsers.add_parser("seed", help="Write the default about text if none exists")
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    setup_logging(settings.log_level, console=console)

    if args.command == "serve":
        serve()
        return
    if args.command in ("reset", "seed"):
        sys.exit(run_command(args.command, settings))
    asyncio.run(run_console(settings))


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n\n[bold red]Unexpected error: {e}[/bold red]")
        sys.exit(1)
