"""Command-line interface for Folio.

This module defines the CLI commands using Click framework. Commands run
from the project root (the directory holding folio.yaml and the content
directory).

Commands:
- check: Load all content and report every problem.
- posts: List posts, newest first, optionally for one category.
- pages: List pages.
- show: Print one item's metadata and raw body.
- categories: List categories with post counts.
- new: Create a new post or page source interactively.
- watch: Reload content on every change and report the result.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import click
import questionary
import yaml

from . import __version__
from .collections import ContentCollection
from .config import CONFIG_FILENAME, SiteConfig, load_config
from .content import ContentProcessor, FileSourceLoader
from .errors import ContentLoadError, ProblemKind
from .models import ContentItem, SourceText
from .store import filter_by_category, list_pages, list_posts, load_project
from .utils import slugify


@click.group()
@click.version_option(version=__version__, prog_name="folio")
def cli():
    """Folio content collection tools."""


@cli.command()
def check():
    """Load all content and report every problem."""
    collection = _load_or_exit(Path.cwd())
    click.echo(
        click.style("OK", fg="green", bold=True)
        + f" {len(collection.posts())} posts, {len(collection.pages())} pages"
    )


@cli.command()
@click.option("--category", "-c", default=None, help="Only posts in this category")
def posts(category: str | None):
    """List posts, newest first."""
    project_root = Path.cwd()
    config = _config_or_exit(project_root)
    collection = _load_or_exit(project_root)
    items = (
        list(filter_by_category(collection, category))
        if category is not None
        else list_posts(collection)
    )
    if not items:
        click.echo("No posts found.")
        return
    for item in items:
        date = item.display_date(config.display_date_format)
        click.echo(f"{date}  {item.permalink}  {item.title}")


@cli.command()
def pages():
    """List pages."""
    collection = _load_or_exit(Path.cwd())
    items = list_pages(collection)
    if not items:
        click.echo("No pages found.")
        return
    for item in items:
        click.echo(f"{item.permalink}  {item.title}")


@cli.command()
@click.argument("permalink")
def show(permalink: str):
    """Print an item's metadata and raw body."""
    project_root = Path.cwd()
    config = _config_or_exit(project_root)
    collection = _load_or_exit(project_root)
    item = collection.find(permalink)
    if item is None:
        raise click.ClickException(f"No content at {permalink}")
    click.echo(_describe(item, config))


@cli.command()
def categories():
    """List categories with post counts."""
    collection = _load_or_exit(Path.cwd())
    counts = collection.categories().counts()
    if not counts:
        click.echo("No categories found.")
        return
    for name, count in counts.items():
        click.echo(f"{name} ({count})")


@cli.command()
@click.option("--kind", type=click.Choice(["post", "page"]), default=None)
@click.option("--title", default=None, help="Title of the new item")
@click.option("--category", "categories_", multiple=True, help="Post category (repeatable)")
def new(kind: str | None, title: str | None, categories_: tuple[str, ...]):
    """Create a new post or page source."""
    project_root = Path.cwd()
    config = _config_or_exit(project_root)
    content_dir = project_root / config.content_dir

    if not content_dir.exists():
        raise click.ClickException(
            f"No {config.content_dir}/ directory found. Run this command from a Folio project root."
        )

    interactive = kind is None or title is None
    if kind is None:
        kind = questionary.select(
            "What do you want to create?",
            choices=["post", "page"],
            style=_questionary_style(),
        ).ask()
        if kind is None:
            raise click.Abort()

    if title is None:
        title = questionary.text(
            "Title:",
            validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
            style=_questionary_style(),
        ).ask()
        if title is None:
            raise click.Abort()
    title = title.strip()
    if not title:
        raise click.ClickException("Title cannot be empty")

    names = list(categories_)
    if kind == "post" and not names and interactive:
        answer = questionary.text(
            "Categories (space separated, optional):",
            style=_questionary_style(),
        ).ask()
        if answer is None:
            raise click.Abort()
        names = answer.split()

    now = datetime.now()
    slug = slugify(title)
    front_matter: dict = {"layout": config.layout_for(kind), "title": title}
    if kind == "post":
        front_matter["date"] = now.date()
        if names:
            front_matter["categories"] = names
        rel = Path(config.posts_dir) / f"{now.strftime('%Y-%m-%d')}-{slug}.md"
    else:
        rel = Path(f"{slug}.md")

    target_path = content_dir / rel
    if target_path.exists():
        raise click.ClickException(
            f"File already exists: {target_path.relative_to(project_root)}"
        )

    text = _render_source(front_matter, title, config)
    clash = _permalink_clash(content_dir, config, SourceText(rel.as_posix(), text))
    if clash is not None:
        raise click.ClickException(clash)

    target_path.parent.mkdir(parents=True, exist_ok=True)
    target_path.write_text(text, encoding="utf-8")
    click.echo(f"Created {target_path.relative_to(project_root)}")


@cli.command()
def watch():
    """Reload content on every change."""
    project_root = Path.cwd()
    _config_or_exit(project_root)
    from .watch import ContentWatcher

    watcher = ContentWatcher(project_root)
    click.echo(f"Watching {watcher.content_dir} (Ctrl+C to stop)")
    watcher.start()


def _config_or_exit(project_root: Path) -> SiteConfig:
    try:
        return load_config(project_root)
    except (ValueError, yaml.YAMLError) as exc:
        raise click.ClickException(f"Invalid {CONFIG_FILENAME}: {exc}") from None


def _load_or_exit(project_root: Path) -> ContentCollection:
    """Load the project's content or print every problem and exit 1."""
    _config_or_exit(project_root)
    try:
        return load_project(project_root)
    except FileNotFoundError as exc:
        raise click.ClickException(str(exc)) from None
    except ContentLoadError as exc:
        count = len(exc.problems)
        noun = "problem" if count == 1 else "problems"
        click.echo(
            click.style(f"Content check failed ({count} {noun}):", fg="red", bold=True),
            err=True,
        )
        for problem in exc.problems:
            click.echo(click.style(f"  {problem.source}", fg="yellow"), err=True)
            click.echo(click.style(f"    {problem.kind.value}: {problem.message}", fg="white"), err=True)
        raise SystemExit(1) from None


def _describe(item: ContentItem, config: SiteConfig) -> str:
    lines = [
        f"kind: {item.kind.value}",
        f"title: {item.title}",
        f"permalink: {item.permalink}",
        f"layout: {item.layout}",
        f"source: {item.source}",
    ]
    if item.date is not None:
        lines.append(f"date: {item.display_date(config.display_date_format)}")
    if item.categories:
        lines.append(f"categories: {', '.join(sorted(item.categories))}")
    if item.tags:
        lines.append(f"tags: {', '.join(sorted(item.tags))}")
    for key, value in item.extra_front_matter.items():
        lines.append(f"{key}: {value}")
    lines.append("")
    lines.append(item.body)
    return "\n".join(lines)


def _render_source(front_matter: dict, title: str, config: SiteConfig) -> str:
    delimiter = config.front_matter_delimiter
    block = yaml.safe_dump(front_matter, sort_keys=False, allow_unicode=True)
    return f"{delimiter}\n{block}{delimiter}\n\nWrite about {title} here.\n"


def _permalink_clash(content_dir: Path, config: SiteConfig, candidate: SourceText) -> str | None:
    """Return a message if the candidate would reuse an existing permalink."""
    sources, _ = FileSourceLoader(content_dir, config).read_sources()
    try:
        ContentProcessor(config).load_sources([*sources, candidate])
    except ContentLoadError as exc:
        for problem in exc.of_kind(ProblemKind.DUPLICATE_PERMALINK):
            if candidate.identifier in (problem.source, problem.other_source):
                other = (
                    problem.other_source
                    if problem.source == candidate.identifier
                    else problem.source
                )
                return f"Permalink already used by {other}"
    return None


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
