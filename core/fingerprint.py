"""Browser fingerprint header tables sent with every upstream request.

The values must stay byte-identical for upstream acceptance.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

_SEC_CH_UA = '"Google Chrome";v="143", "Chromium";v="143", "Not A(Brand";v="24"'

BROWSER_HEADERS: Mapping[str, str] = MappingProxyType(
    {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/143.0.0.0 Safari/537.36"
        ),
        "Accept": "*/*",
        "Accept-Language": "vi,en;q=0.9",
        "Origin": "https://labs.google",
        "Referer": "https://labs.google/",
        "sec-ch-ua": _SEC_CH_UA,
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"Windows"',
        "sec-fetch-dest": "empty",
        "sec-fetch-mode": "cors",
        "sec-fetch-site": "cross-site",
    }
)

# Channel/copyright/year identity. Replaced wholesale by caller-supplied headers
# on generation calls.
BROWSER_IDENTITY_HEADERS: Mapping[str, str] = MappingProxyType(
    {
        "x-browser-channel": "stable",
        "x-browser-copyright": "Copyright 2025 Google LLC. All Rights reserved.",
        "x-browser-year": "2025",
    }
)

GENERATE_HEADERS: Mapping[str, str] = MappingProxyType(
    {
        "Content-Type": "text/plain;charset=UTF-8",
        "Priority": "u=1, i",
        "X-Browser-Validation": "UujAs0GAwdnCJ9nvrswZ+O+oco0=",
        "X-Client-Data": "CJC2yQEIpbbJAQipncoBCLHhygEIk6HLAQiFoM0BCJGkzwEY86LPAQ==",
    }
)


@dataclass(frozen=True)
class HeaderTables:
    browser: Mapping[str, str] = field(default_factory=lambda: BROWSER_HEADERS)
    identity: Mapping[str, str] = field(default_factory=lambda: BROWSER_IDENTITY_HEADERS)
    generate: Mapping[str, str] = field(default_factory=lambda: GENERATE_HEADERS)


DEFAULT_HEADER_TABLES = HeaderTables()
