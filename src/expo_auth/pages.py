"""HTML pages shown in the browser during the login relay."""

from html import escape
from typing import Optional

_PAGE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{title}</title>{head}
    <style>
        body {{
            display: flex;
            justify-content: center;
            align-items: center;
            flex-direction: column;
            height: 100vh;
            margin: 0;
            padding: 20px;
            font-family: monospace;
            text-align: center;
        }}
        .error {{ color: red; }}
        .detail {{ background: #fee; padding: 15px; border-radius: 8px; max-width: 600px; }}
        .hint {{ color: #666; font-size: 14px; margin-top: 20px; }}
    </style>
</head>
<body>
{body}
</body>
</html>
"""


def render_error(title: str, message: str, hint: Optional[str] = None) -> str:
    body = f'    <h2 class="error">&#10060; {escape(title)}</h2>\n    <p class="detail">{escape(message)}</p>'
    if hint:
        body += f'\n    <p class="hint">{escape(hint)}</p>'
    return _PAGE.format(title=escape(title), head="", body=body)


def render_status(message: str) -> str:
    body = f'    <div style="font-size: 48px">&#9203;</div>\n    <p>{escape(message)}</p>'
    return _PAGE.format(title="Signing in", head="", body=body)


def render_redirect(target: str, message: str, delay: float) -> str:
    """Status page that navigates to ``target`` after ``delay`` seconds."""
    url = escape(target, quote=True)
    head = (
        f'\n    <meta http-equiv="refresh" content="{delay:g};url={url}">'
    )
    body = (
        f'    <div style="font-size: 48px">&#9989;</div>\n'
        f"    <p>{escape(message)}</p>\n"
        f'    <p class="hint"><a href="{url}">Continue to the app</a></p>'
    )
    return _PAGE.format(title="Redirecting", head=head, body=body)
