# src/perf_enhancer/services/prefilter_service.py
import logging
import re
from typing import List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

Replacement = Tuple[str, str]

GRAVATAR_REPLACEMENTS: List[Replacement] = [
    (f"http://{n}.gravatar.com", f"https://{n}.gravatar.com") for n in range(5)
]

COMMON_REPLACEMENTS: List[Replacement] = [
    ('<meta http-equiv="content-type" content="text/html; charset=utf-8" />', '<meta charset="utf-8" />'),
    (" type='text/javascript'", ""),
    (' type="text/javascript"', ""),
    (" type='text/css'", ""),
    (' type="text/css"', ""),
    (" language='Javascript'", ""),
    (' language="Javascript"', ""),
    ("//<![CDATA[", ""),
    ("//]]>", ""),
    ('async="true"', "async"),
    ('async="async"', "async"),
    ("async='true'", "async"),
    ("async='async'", "async"),
    ("http://youtu.be", "https://youtu.be"),
    ("http://youtube.com", "https://www.youtube.com"),
    ("http://www.youtube.com", "https://www.youtube.com"),
    ("http://vimeo.com", "https://vimeo.com"),
    ("http://www.vimeo.com", "https://vimeo.com"),
    ("http://dailymotion.com", "https://www.dailymotion.com"),
    ("http://www.dailymotion.com", "https://www.dailymotion.com"),
    ("http://facebook.com", "https://www.facebook.com"),
    ("http://www.facebook.com", "https://www.facebook.com"),
    ("http://twitter.com", "https://twitter.com"),
    ("http://www.twitter.com", "https://twitter.com"),
]


class PrefilterService:
    """
    Cheap string level replacements on the raw buffer, applied once before
    parsing: protocol upgrades and redundant attribute stripping.

    Every find string is matched case-insensitively and the replacements are
    applied in order. None of the replacements produces a string another one
    matches, so running the filter twice is the same as running it once.
    """

    def __init__(self, replacements: Optional[Sequence[Replacement]] = None):
        pairs = list(replacements) if replacements is not None else GRAVATAR_REPLACEMENTS + COMMON_REPLACEMENTS
        self._compiled = [(re.compile(re.escape(find), re.IGNORECASE), repl) for find, repl in pairs if find]

    def apply(self, html: str) -> str:
        """Runs every replacement over the buffer."""
        if not html:
            return html

        count = 0
        for pattern, repl in self._compiled:
            # A callable keeps backslashes in `repl` literal
            html, n = pattern.subn(lambda _m, r=repl: r, html)
            count += n

        if count:
            logger.debug("Pre-filter applied %d replacements.", count)
        return html
