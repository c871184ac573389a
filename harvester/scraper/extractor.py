"""Page extraction: turns listing HTML into ordered :class:`PackageRef` pairs.

The listing markup is well formed and very regular, so a single regular
expression scanning top-down for version anchors is enough; no DOM is built.
"""

from __future__ import annotations

import re
from typing import Callable, List
from urllib.parse import unquote

from harvester.scraper.models import PackageRef

#: Signature every page extractor must satisfy.
PageExtractor = Callable[[str], List[PackageRef]]

_VERSION_ANCHOR = re.compile(r'<a class="version" href="/package/([^"]+)">([^<]+)</a>')


def extract_packages(html: str) -> List[PackageRef]:
    """Return every ``(name, version)`` pair in *html*, in order of appearance.

    Scoped names are sometimes percent-encoded in hrefs (``%40scope%2Fname``);
    they are unquoted so the result always carries the raw package name.
    """
    return [
        PackageRef(unquote(match.group(1)), match.group(2).strip())
        for match in _VERSION_ANCHOR.finditer(html)
    ]
