"""Category management commands."""

import click
from ledgerrecon.cli.error_handling import handle_domain_error
from ledgerrecon.domain.category import CategoryService
from ledgerrecon.domain.entities import Category, TransactionType
from ledgerrecon.domain.errors import DomainError, NotFoundError


def print_category_tree(categories: list[Category], parent_id: int | None = None, indent: int = 0) -> None:
    """Recursively print category tree."""
    for cat in categories:
        if cat.parent_id != parent_id:
            continue
        prefix = "  " * indent
        aliases = f"  [{', '.join(sorted(cat.raw_label_aliases))}]" if cat.raw_label_aliases else ""
        click.echo(f"{prefix}{cat.name} ({cat.type.value}, ID: {cat.id}){aliases}")
        print_category_tree(categories, cat.id, indent + 1)


@click.group()
def category_group():
    """Manage categories."""
    pass


@category_group.command("list")
@click.pass_context
def list_categories(ctx):
    """List all categories in tree format."""
    db = ctx.obj["db"]
    service = CategoryService(db)

    categories = service.list_categories(ctx.obj["scope"])
    if not categories:
        click.echo("No categories found.")
        return

    click.echo("\nCategories:")
    print_category_tree(categories)


@category_group.command("create")
@click.argument("name")
@click.option("--parent", help="Parent category name (e.g., 'Food & Dining')")
@click.option(
    "--type",
    "category_type",
    type=click.Choice([t.value for t in TransactionType], case_sensitive=False),
    default="expense",
    help="Category type (default: expense)",
)
@click.pass_context
def create_category(ctx, name: str, parent: str | None, category_type: str):
    """Create a new category."""
    db = ctx.obj["db"]
    service = CategoryService(db)

    try:
        category_id = service.create_category(
            scope=ctx.obj["scope"],
            name=name,
            category_type=TransactionType(category_type.lower()),
            parent_path=parent,
        )
        parent_str = f" under '{parent}'" if parent else ""
        click.echo(f"Created category '{name}'{parent_str} (ID: {category_id})")
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)


@category_group.command("alias")
@click.argument("category", metavar="CATEGORY_PATH")
@click.argument("labels", nargs=-1, required=True)
@click.pass_context
def alias_category(ctx, category: str, labels: tuple[str, ...]):
    """Map ledger labels onto a category.

    Examples:
        ledgerrecon category alias "Food & Dining > Groceries" "6100 Groceries"
    """
    db = ctx.obj["db"]
    service = CategoryService(db)

    try:
        found = service.get_category_by_path(ctx.obj["scope"], category)
        if found is None:
            raise NotFoundError(f"Category '{category}' not found")
        aliases = service.add_aliases(found.id, labels)
        click.echo(f"{service.format_category_path(found.id)}: {', '.join(sorted(aliases))}")
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group, name="category")
