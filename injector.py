"""
Insert inline scripts into the served index page.

Gated by a session token and a separate pin. The prefix check only stops
double wrapping; it does not sanitize anything.
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

CLOSING_TAGS = {"head": "</head>", "body": "</body>"}


class ScriptRejected(Exception):
    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.message = message
        self.status = status


def wrap_script(script: str) -> str:
    return f"\n<script>\n{script}\n</script>\n"


def check_script(script) -> None:
    if not isinstance(script, str):
        raise ScriptRejected("Error: Script content is required.", 400)
    if script.startswith("<script>"):
        raise ScriptRejected(
            "Error: Script content should not start with <script> tag.", 403
        )


def inject_script(html: str, script: str, position: str) -> str:
    snippet = wrap_script(script)
    if snippet in html:
        raise ScriptRejected("Error: Script already present.", 400)
    closing = CLOSING_TAGS.get(position)
    if closing is None:
        raise ScriptRejected("Error: Invalid position specified.", 400)
    return html.replace(closing, f"{snippet}{closing}", 1)


def add_script(path: Path, script: str, position: str) -> None:
    """Rewrite the template at ``path`` in place with ``script`` inserted."""
    with open(path, "r", encoding="utf-8") as fh:
        html = fh.read()
    html = inject_script(html, script, position)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(html)
    logger.info("Injected script into %s (%s)", path.name, position)
