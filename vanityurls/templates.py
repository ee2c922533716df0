"""HTML templates for the vanity and index pages.

Templates are compiled once at import and shared read-only by every request.
All substituted values are HTML-escaped.
"""

from html import escape
from string import Template

from vanityurls.models import IndexPage, VanityPage

INDEX_TEMPLATE = Template(
    """<!DOCTYPE html>
<html>
<h1>$host</h1>
<ul>
$items
</ul>
</html>
"""
)

INDEX_ITEM_TEMPLATE = Template('<li><a href="https://$handler">$handler</a></li>')

VANITY_TEMPLATE = Template(
    """<!DOCTYPE html>
<html>
<head>
<meta http-equiv="Content-Type" content="text/html; charset=utf-8"/>
<meta name="go-import" content="$import_path $vcs $repo">
<meta name="go-source" content="$import_path $display">
<meta http-equiv="refresh" content="0; url=$repo">
</head>
<body>
Nothing to see here; <a href="$repo">see at $repo</a>.
</body>
</html>
"""
)


def render_index(page: IndexPage) -> str:
    """Render the list of every served import path."""
    items = "".join(
        INDEX_ITEM_TEMPLATE.substitute(handler=escape(h)) for h in page.handlers
    )
    return INDEX_TEMPLATE.substitute(host=escape(page.host), items=items)


def render_vanity(page: VanityPage) -> str:
    """Render the go-import metadata page for a matched route."""
    return VANITY_TEMPLATE.substitute(
        import_path=escape(page.import_path),
        vcs=escape(page.vcs),
        repo=escape(page.repo),
        display=escape(page.display),
    )
