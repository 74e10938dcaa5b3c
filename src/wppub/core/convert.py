"""Markdown to HTML conversion: ordered regex rewrite passes plus a markdown-it renderer"""

import re

from markdown_it import MarkdownIt


CONVERTERS = ('simple', 'markdown-it')

HEADER_RE = re.compile(r'^(#{1,6})[ \t]+(.+)$', re.MULTILINE)

# Longest marker first; content may not start with the marker itself.
EMPHASIS_RULES = [
    (re.compile(r'\*\*\*(?!\*)(.+?)\*\*\*'), r'<strong><em>\1</em></strong>'),
    (re.compile(r'___(?!_)(.+?)___'), r'<strong><em>\1</em></strong>'),
    (re.compile(r'\*\*(?!\*)(.+?)\*\*'), r'<strong>\1</strong>'),
    (re.compile(r'__(?!_)(.+?)__'), r'<strong>\1</strong>'),
    (re.compile(r'\*(?!\*)(.+?)\*'), r'<em>\1</em>'),
    (re.compile(r'_(?!_)(.+?)_'), r'<em>\1</em>'),
]

STRIKE_RE = re.compile(r'~~(.+?)~~')
INLINE_CODE_RE = re.compile(r'`([^`\n]+)`')
FENCE_RE = re.compile(r'```(\w*)\n(.*?)```', re.DOTALL)
FENCE_PLACEHOLDER_RE = re.compile(r'<pre>\x00(\d+)\x00</pre>')
QUOTE_RE = re.compile(r'^>[ \t]+(.+)$', re.MULTILINE)
RULE_RE = re.compile(r'^(-{3,}|\*{3,}|_{3,})$', re.MULTILINE)
IMAGE_RE = re.compile(r'!\[([^\]]*)\]\(([^)]+)\)')
LINK_RE = re.compile(r'\[([^\]]+)\]\(([^)]+)\)')
BULLET_RE = re.compile(r'^[*-][ \t]+(.+)$', re.MULTILINE)
BULLET_RUN_RE = re.compile(r'<li>.*</li>(?:\n<li>.*</li>)*')
ORDERED_RE = re.compile(r'^\d+\.[ \t]+(.+)$', re.MULTILINE)
TAG_START_RE = re.compile(r'^<[a-zA-Z/!]')
BLANK_RUN_RE = re.compile(r'\n\n+')

_ESCAPES = [('&', '&amp;'), ('<', '&lt;'), ('>', '&gt;'), ('"', '&quot;'), ("'", '&#039;')]


def escape_html(text: str) -> str:
    """Escape text for use inside an HTML element."""
    for char, entity in _ESCAPES:
        text = text.replace(char, entity)
    return text


def _lift_fences(markdown: str) -> tuple[str, list[str]]:
    """Replace fenced code blocks with placeholders; return (text, rendered blocks)."""
    blocks: list[str] = []

    def _render(m: re.Match) -> str:
        lang = m.group(1)
        lang_class = f' class="language-{lang}"' if lang else ''
        blocks.append(f'<pre><code{lang_class}>{escape_html(m.group(2).strip())}</code></pre>')
        return f'<pre>\x00{len(blocks) - 1}\x00</pre>'

    return FENCE_RE.sub(_render, markdown), blocks


def _wrap_paragraphs(html: str) -> str:
    """Wrap bare text lines in <p>, leaving tag lines and blockquote bodies alone."""
    out = []
    in_quote = False
    for line in html.split('\n'):
        if in_quote:
            out.append(line)
            in_quote = '</blockquote>' not in line
        elif not line or TAG_START_RE.match(line):
            out.append(line)
            in_quote = line.startswith('<blockquote>') and '</blockquote>' not in line
        else:
            out.append(f'<p>{line}</p>')
    return '\n'.join(out)


def markdown_to_html(markdown: str) -> str:
    """Convert the supported Markdown subset to HTML.

    Passes run in a fixed order over the whole string. Anything that does not
    match a rule is emitted unchanged, and raw HTML is passed through.
    Ordered list items are emitted as <li> without an <ol> container.
    """
    html, fences = _lift_fences(markdown.replace('\r\n', '\n'))

    html = HEADER_RE.sub(lambda m: f'<h{len(m.group(1))}>{m.group(2)}</h{len(m.group(1))}>', html)
    for pattern, repl in EMPHASIS_RULES:
        html = pattern.sub(repl, html)
    html = STRIKE_RE.sub(r'<del>\1</del>', html)
    html = INLINE_CODE_RE.sub(r'<code>\1</code>', html)

    html = QUOTE_RE.sub(r'<blockquote>\1</blockquote>', html)
    html = html.replace('</blockquote>\n<blockquote>', '\n')
    html = RULE_RE.sub('<hr>', html)

    html = IMAGE_RE.sub(r'<img src="\2" alt="\1">', html)
    html = LINK_RE.sub(r'<a href="\2">\1</a>', html)

    html = BULLET_RE.sub(r'<li>\1</li>', html)
    html = BULLET_RUN_RE.sub(r'<ul>\g<0></ul>', html)
    html = ORDERED_RE.sub(r'<li>\1</li>', html)

    html = _wrap_paragraphs(html)
    html = html.replace('<p></p>', '')
    html = BLANK_RUN_RE.sub('\n\n', html)

    html = FENCE_PLACEHOLDER_RE.sub(lambda m: fences[int(m.group(1))], html)
    return html.strip()


def _make_parser(preset: str) -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name."""
    return MarkdownIt(preset, options_update={"linkify": False})


def render(markdown: str, converter: str = 'simple', preset: str = 'commonmark') -> str:
    """Render a note body to HTML with the selected converter."""
    if converter == 'simple':
        return markdown_to_html(markdown)
    if converter == 'markdown-it':
        try:
            parser = _make_parser(preset)
        except KeyError as e:
            raise ValueError(f"Unknown markdown-it preset '{preset}'") from e
        return parser.render(markdown).strip()
    raise ValueError(f"Unknown converter '{converter}', expected one of: {', '.join(CONVERTERS)}")
