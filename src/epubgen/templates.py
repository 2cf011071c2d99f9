"""Default stylesheet and rendering of user supplied document templates."""

from jinja2 import Environment, StrictUndefined, TemplateError

from epubgen.errors import ConfigurationError

DEFAULT_STYLES = r"""
.epub-author {
    color: #555;
}

.epub-link {
    margin-bottom: 30px;
}

.epub-link a {
    color: #666;
    font-size: 90%;
}

img {
    max-width: 100%;
    height: auto;
}

img.cover {
    display: block;
    max-width: 100%;
    max-height: 100%;
    height: 100%;
    width: auto;
    margin-left: auto;
    margin-right: auto;
}

body.cover, html.cover {
    margin: 0;
    padding: 0;
    height: 100%;
    width: 100%;
    overflow: hidden;
}

table {
    border-collapse: collapse;
    width: 100%;
    font-size: 80%;
}

td, th {
    border: 2px solid #bbb;
    padding: 10px;
}

blockquote {
    margin-left: 10%;
    font-style: italic;
}
"""


def template_environment() -> Environment:
    """Return the Jinja2 environment used for user templates."""
    return Environment(
        autoescape=True,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )


def render_template(name: str, source: str, **context) -> bytes:
    """
    Render a user supplied template with the given context and return the
    UTF-8 encoded result.
    """
    try:
        template = template_environment().from_string(source)
        return template.render(**context).encode("utf-8")
    except TemplateError as error:
        raise ConfigurationError(name, f"template error: {error}") from error
