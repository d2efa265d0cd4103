from datetime import datetime
from pathlib import PurePosixPath

from folio import utils


def test_slugify_and_titleize_strip_date():
    assert utils.slugify("2022-11-14-kotlin-coroutines") == "kotlin-coroutines"
    assert utils.slugify("About Me") == "about-me"
    assert utils.slugify("!!!") == "index"
    assert utils.titleize("2022-11-14-hello-world.md") == "Hello World"
    assert utils.titleize("about.md") == "About"
    assert utils.titleize("my_first-page.markdown") == "My First Page"
    assert utils.strip_date_prefix("2022-11-14-x") == "x"
    assert utils.strip_date_prefix("no-date-here") == "no-date-here"


def test_extract_date_from_name():
    assert utils.extract_date_from_name("2022-11-14-cool") == datetime(2022, 11, 14)
    assert utils.extract_date_from_name("invalid") is None
    assert utils.extract_date_from_name("2022-13-32-post") is None


def test_normalize_permalink_slash_rules():
    assert utils.normalize_permalink("about") == "/about/"
    assert utils.normalize_permalink("/about") == "/about/"
    assert utils.normalize_permalink("/about/") == "/about/"
    assert utils.normalize_permalink("//blog//x//") == "/blog/x/"
    assert utils.normalize_permalink("") == "/"
    assert utils.normalize_permalink("/") == "/"
    assert utils.normalize_permalink("  /About/ ") == "/About/"
    assert utils.normalize_permalink("\\docs\\intro") == "/docs/intro/"
    # File-like paths keep their extension and get no trailing slash
    assert utils.normalize_permalink("/feed.xml") == "/feed.xml"
    assert utils.normalize_permalink("404.html") == "/404.html"


def test_split_terms_accepts_lists_and_strings():
    assert utils.split_terms("kotlin coroutines") == frozenset({"kotlin", "coroutines"})
    assert utils.split_terms(["kotlin", "staff-engineer"]) == frozenset(
        {"kotlin", "staff-engineer"}
    )
    assert utils.split_terms(None) == frozenset()
    assert utils.split_terms(2022) == frozenset({"2022"})
    assert utils.split_terms(["", " x "]) == frozenset({"x"})


def test_first_paragraph_and_heading():
    text = "# Title\n\nFirst para\nwraps here.\n\nSecond paragraph."
    assert utils.first_paragraph(text) == "First para wraps here."
    assert utils.first_paragraph("```kotlin\nfun x()\n```\n\nProse.") == "Prose."
    assert utils.first_paragraph("") == ""
    assert utils.first_paragraph("One <!--more--> Two", separator="<!--more-->") == "One"
    assert utils.first_heading("intro\n# Heading\n") == "Heading"
    assert utils.first_heading("## Only level two") is None


def test_has_extension_is_case_insensitive():
    assert utils.has_extension(PurePosixPath("a/B.MD"), [".md"])
    assert not utils.has_extension(PurePosixPath("notes.txt"), [".md", ".html"])
