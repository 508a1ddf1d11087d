"""Per-scan cookie store emulating a browser session against the portal."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

LOCALE_COOKIE = "localization"
DEFAULT_LOCALE = "sr-Cyrl-RS"


class CookieJar:
    """Accumulates ``Set-Cookie`` directives and replays them as one header.

    Attributes such as ``Path``, ``Domain`` and ``Expires`` are dropped; the
    jar lives for a single scan and has no expiry semantics.
    """

    def __init__(self, locale: str = DEFAULT_LOCALE) -> None:
        self._cookies: dict[str, str] = {}
        self._locale = locale

    def ingest(self, headers: str | Iterable[str] | None) -> None:
        """Store the name/value pair of each raw ``Set-Cookie`` directive."""
        if not headers:
            return
        if isinstance(headers, str):
            headers = [headers]

        for directive in headers:
            pair = directive.split(";", 1)[0].strip()
            if "=" not in pair:
                continue
            name, value = pair.split("=", 1)
            name = name.strip()
            if not name:
                continue
            self._cookies[name] = value.strip()

    def serialize(self) -> str:
        """Return the ``Cookie`` header value, always carrying a locale."""
        cookies = dict(self._cookies)
        if LOCALE_COOKIE not in cookies:
            cookies[LOCALE_COOKIE] = self._locale
        return "; ".join(f"{name}={value}" for name, value in cookies.items())

    def get(self, name: str) -> str | None:
        return self._cookies.get(name)

    def __len__(self) -> int:
        return len(self._cookies)

    def __contains__(self, name: object) -> bool:
        return name in self._cookies


@dataclass
class ScanSession:
    """Ephemeral state shared by the two portal requests of one scan."""

    origin: str
    cookies: CookieJar = field(default_factory=CookieJar)
