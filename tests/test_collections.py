from datetime import datetime, timezone

import pytest

from folio.collections import CategoryIndex, ContentCollection
from folio.models import ContentItem, ContentKind


def post(title, date, source=None, categories=(), tags=()):
    slug = title.lower().replace(" ", "-")
    return ContentItem(
        kind=ContentKind.POST,
        permalink=f"/{slug}/",
        title=title,
        layout="post",
        body=f"{title} body",
        source=source or f"_posts/{slug}.md",
        date=datetime(*date, tzinfo=timezone.utc),
        categories=frozenset(categories),
        tags=frozenset(tags),
    )


def page(title, permalink=None, source=None):
    slug = title.lower().replace(" ", "-")
    return ContentItem(
        kind=ContentKind.PAGE,
        permalink=permalink or f"/{slug}/",
        title=title,
        layout="default",
        body=f"{title} body",
        source=source or f"{slug}.md",
    )


def test_posts_are_newest_first_with_source_tiebreak():
    collection = ContentCollection(
        [
            post("Old", (2021, 1, 1)),
            post("Zed", (2022, 11, 14), source="_posts/b.md"),
            page("About"),
            post("Alpha", (2022, 11, 14), source="_posts/a.md"),
            post("New", (2023, 5, 2)),
        ]
    )
    assert [p.title for p in collection.posts()] == ["New", "Alpha", "Zed", "Old"]
    assert [p.title for p in collection.pages()] == ["About"]
    assert len(collection) == 5
    assert collection[2].title == "About"


def test_pages_keep_insertion_order():
    collection = ContentCollection([page("Zeta"), page("About"), page("Contact")])
    assert [p.title for p in collection.pages()] == ["Zeta", "About", "Contact"]
    assert collection.posts() == ()


def test_find_normalizes_and_misses_quietly():
    about = page("About")
    collection = ContentCollection([about, post("X", (2022, 11, 14))])
    assert collection.find("/about/") is about
    assert collection.find("about") is about
    assert collection.find("/about") is about
    assert collection.find("/missing/") is None
    assert collection.find("") is None
    assert sorted(collection.permalinks()) == ["/about/", "/x/"]


def test_constructor_rejects_duplicate_permalinks():
    with pytest.raises(ValueError, match="a.md and b.md"):
        ContentCollection(
            [page("A", permalink="/same/", source="a.md"), page("B", permalink="/same/", source="b.md")]
        )


def test_category_view_is_lazy_and_restartable():
    x = post("X", (2022, 11, 14), categories=["kotlin"])
    y = post("Y", (2023, 1, 1), categories=["kotlin", "staff-engineer"])
    z = post("Z", (2020, 1, 1), tags=["kotlin"])
    collection = ContentCollection([x, y, z, page("About")])

    view = collection.with_category("kotlin")
    assert list(view) == [y, x]
    assert list(view) == [y, x]
    assert len(view) == 2
    assert view

    empty = collection.with_category("rust")
    assert list(empty) == []
    assert len(empty) == 0
    assert not empty

    assert list(collection.with_tag("kotlin")) == [z]


def test_category_index_counts_sorted_names():
    x = post("X", (2022, 11, 14), categories=["kotlin"])
    y = post("Y", (2023, 1, 1), categories=["kotlin", "career"])
    index = ContentCollection([x, y]).categories()
    assert isinstance(index, CategoryIndex)
    assert list(index) == ["career", "kotlin"]
    assert index["kotlin"] == (y, x)
    assert index.counts() == {"career": 1, "kotlin": 2}
    assert index.get("missing") is None
    assert len(index) == 2


def test_collections_compare_by_items():
    first = ContentCollection([page("About"), post("X", (2022, 11, 14))])
    second = ContentCollection([page("About"), post("X", (2022, 11, 14))])
    assert first == second
    assert first != ContentCollection([page("About")])
    assert first != [page("About")]


def test_items_are_immutable_values():
    item = page("About")
    with pytest.raises(AttributeError):
        item.title = "Changed"
    with pytest.raises(TypeError):
        item.extra_front_matter["x"] = 1
    assert item == page("About")
    assert hash(item) == hash(page("About"))
    assert item.display_date() == ""
    dated = post("X", (2022, 11, 14))
    assert dated.display_date("%Y-%m-%d") == "2022-11-14"
    assert dated.is_post and not dated.is_page


def test_nested_front_matter_values_are_frozen():
    item = ContentItem(
        kind=ContentKind.PAGE,
        permalink="/x/",
        title="X",
        layout="default",
        body="x",
        source="x.md",
        extra_front_matter={"links": ["a", "b"], "hero": {"class": "dark", "sizes": [1, 2]}},
    )
    links = item.extra_front_matter["links"]
    assert links == ("a", "b")
    with pytest.raises(AttributeError):
        links.append("c")
    hero = item.extra_front_matter["hero"]
    with pytest.raises(TypeError):
        hero["class"] = "light"
    assert hero["sizes"] == (1, 2)
    assert dict(hero) == {"class": "dark", "sizes": (1, 2)}
