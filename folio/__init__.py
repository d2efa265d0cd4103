"""Folio content collection model.

This package turns the sources of a small static site (an About page and a
handful of dated blog posts, each a text file with a YAML front-matter block
followed by a markup body) into immutable content items, validates them as a
collection and exposes ordered, filterable views for an external renderer.

Folio never renders markup or HTML. The body of each item is passed through
untouched so that whichever generator sits on top can transform it.

The public operations live in :mod:`folio.store`; the CLI in :mod:`folio.cli`
is a thin driver around them.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
