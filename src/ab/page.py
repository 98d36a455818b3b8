"""The page being rendered, as seen by experiment resolution.

Page is the in-memory stand-in for a rendered document: its URL and query
string, the visitor's user agent, viewport and device id, the page metadata
(<meta name=... content=...> pairs), the main content region and the body's
CSS classes. Renderers build one per request and read main_html and
body_classes back once resolution is done.
"""

from dataclasses import dataclass, field
from urllib.parse import parse_qs, urlsplit

from src.ab.casing import to_camel_case


@dataclass
class Page:
    url: str
    user_agent: str = ""
    viewport_width: int = 1280
    device_id: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    main_html: str = ""
    body_classes: list[str] = field(default_factory=list)

    @property
    def path(self) -> str:
        return urlsplit(self.url).path or "/"

    @property
    def origin(self) -> str:
        parts = urlsplit(self.url)
        return f"{parts.scheme}://{parts.netloc}"

    def query_param(self, name: str) -> str | None:
        values = parse_qs(urlsplit(self.url).query, keep_blank_values=True).get(name)
        return values[0] if values else None

    def get_metadata(self, name: str) -> str | None:
        value = self.metadata.get(name.lower())
        return value if value else None

    def get_all_metadata(self, prefix: str) -> dict[str, str]:
        """Return tags named "<prefix>-<suffix>" or "<prefix>:<suffix>", keyed by camel-cased suffix."""
        found = {}
        for name, value in self.metadata.items():
            for separator in ("-", ":"):
                head = f"{prefix}{separator}"
                if name.startswith(head) and len(name) > len(head):
                    found[to_camel_case(name[len(head):])] = value
        return found

    def replace_main(self, html: str) -> None:
        self.main_html = html

    def add_body_class(self, name: str) -> None:
        if name not in self.body_classes:
            self.body_classes.append(name)
