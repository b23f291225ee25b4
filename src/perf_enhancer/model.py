# src/perf_enhancer/model.py (Configuration Layer)
import html
import logging
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"", "0", "false", "no", "off", "none", "null"}


def coerce_bool(value: Any) -> bool:
    """Loosely converts settings input ("false", "0", 1, None...) to a bool."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        logger.warning("Unrecognized boolean value %r, treating it as True.", value)
        return True
    return bool(value)


def coerce_non_negative_int(value: Any) -> int:
    """Converts settings input to an int clamped at zero. Garbage becomes 0."""
    if isinstance(value, bool):
        return int(value)
    text = str(value).strip()
    try:
        number = int(text)
    except (TypeError, ValueError):
        try:
            # "7.5", "1e3"; inf and nan overflow or fail here
            number = int(float(text))
        except (TypeError, ValueError, OverflowError):
            logger.warning("Invalid integer value %r, using 0.", value)
            return 0
    return max(0, number)


def clean_patterns(values: Any) -> List[str]:
    """Strips, escapes and de-duplicates a pattern list, keeping the first occurrence."""
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    seen = set()
    out: List[str] = []
    for value in values:
        if value is None:
            continue
        # unescape first so already clean patterns are not escaped twice
        pattern = html.escape(html.unescape(str(value).strip()), quote=True)
        if not pattern or pattern in seen:
            continue
        seen.add(pattern)
        out.append(pattern)
    return out


class EnhancerSettings(BaseModel):
    """
    The flat settings record. Immutable once built; every field tolerates
    loosely typed input (e.g. values straight out of a JSON or form payload).
    """
    model_config = ConfigDict(frozen=True)

    cache_headers: bool = True
    ttl_homepage: int = 60  # seconds
    ttl_inner: int = 180  # seconds
    preload_header: bool = True
    lazy_images: bool = True
    lazy_iframes: bool = True
    move_scripts: bool = True

    # Element ids / classes the pipeline anchors on
    anchor_id: str = "top"
    nobot_anchor_id: str = "nobots"
    lazy_opt_out_class: str = "no-lazy"

    @field_validator(
        "cache_headers", "preload_header", "lazy_images", "lazy_iframes", "move_scripts",
        mode="before",
    )
    @classmethod
    def _sanitize_bool(cls, v):
        return coerce_bool(v)

    @field_validator("ttl_homepage", "ttl_inner", mode="before")
    @classmethod
    def _sanitize_ttl(cls, v):
        return coerce_non_negative_int(v)

    @field_validator("anchor_id", "nobot_anchor_id", "lazy_opt_out_class", mode="before")
    @classmethod
    def _sanitize_identifier(cls, v):
        return str(v or "").strip()


DEFAULT_HUMAN_SCRIPTS = [
    ".adthrive",
    "advanced_ads",
    "advanced-ads",
    "advads_",
    "adroll.com",
    "ads-twitter.com",
    "affiliate-wp",
    "amazon-adsystem.com",
    "bing.com",
    "connect.facebook.net",
    "convertflow",
    "complex.com",
    "facebook.net",
    "googleadservices.com",
    "googlesyndication",
    "googletagmanager.com",
    "gstatic.com",
    "hotjar.com",
    "klaviyo.com",
    "omappapi.com",
    "pinterest.com",
    "quantcast",
    "securepubads",
    "slicewp",
    "stats.wp",
    "taboola.com",
]

DEFAULT_BOT_AGENTS = [
    "Googlebot",
    "Googlebot-Mobile",
    "Googlebot-Image",
    "Googlebot-Video",
    "Chrome-Lighthouse",
    "lighthouse",
    "pagespeed",
    "Google Page Speed Insights",
    "Bingbot",
    "Applebot",
    "PingdomPageSpeed",
    "GTmetrix",
    "PTST",
    "YLT",
    "Phantomas",
]

DEFAULT_PRECONNECTS: Dict[str, List[str]] = {
    "ads-twitter.com": ["https://static.ads-twitter.com"],
    "adroll.com": ["https://s.adroll.com"],
    "adthrive": ["https://ads.adthrive.com"],
    "bing.com": ["https://bat.bing.com"],
    "cdnjs.cloudflare.com": ["https://cdnjs.cloudflare.com"],
    "complex.com": [
        "https://media.complex.com",
        "https://c.amazon-adsystem.com",
        "https://cdn.confiant-integrations.net",
        "https://micro.rubiconproject.com",
    ],
    "convertflow.com": [
        "https://js.convertflow.co",
        "https://app.convertflow.co",
        "https://assets.convertflow.com",
    ],
    "convertkit.com": ["https://f.convertkit.com"],
    "facebook.net": ["https://connect.facebook.net"],
    "google-analytics": ["https://www.google-analytics.com"],
    "googleoptimize": ["https://www.googleoptimize.com"],
    "googlesyndication": [
        "https://adservice.google.com",
        "https://googleads.g.doubleclick.net",
        "https://pagead2.googlesyndication.com",
        "https://securepubads.g.doubleclick.net",
        "https://tpc.googlesyndication.com",
        "https://www.googletagservices.com",
    ],
    "googletagmanager": ["https://www.googletagmanager.com"],
    "gstatic.com": ["https://www.gstatic.com"],
    "hotjar.com": ["https://script.hotjar.com"],
    "klaviyo.com/": [
        "https://www.klaviyo.com",
        "https://a.klaviyo.com",
        "https://static.klaviyo.com",
        "https://static-tracking.klaviyo.com",
    ],
    # OptinMonster
    "omappapi.com": ["https://a.omappapi.com", "https://api.omappapi.com"],
    "quantcast": ["https://cmp.quantcast.com", "https://secure.quantserve.com"],
    # Jetpack
    "stats.wp": ["https://s.w.org", "https://stats.wp.com"],
    "taboola.com": ["https://cdn.taboola.com"],
    "twitter.com": ["https://platform.twitter.com"],
}

# Origins whose preconnect needs crossorigin="anonymous"
CROSSORIGIN_PRECONNECT_KEYS = ("googlesyndication",)


class PatternSets(BaseModel):
    """
    Every substring list consulted by the Matcher. Callers override a field
    outright through the constructor or append to it with `extend()`.

    List patterns are HTML-escaped on the way in (`&` becomes `&amp;`, quotes
    become `&quot;` and `&#x27;`). The markup they are matched against is
    unescaped, so a pattern containing those characters never matches.
    """
    model_config = ConfigDict(frozen=True)

    skip_scripts: List[str] = Field(default_factory=lambda: [
        "plugins/autoptimize",
        "plugins/mai-engine",
        "plugins/wp-rocket",
    ])
    # Zone specific skips. Body scripts like these often render HTML in place.
    skip_scripts_head: List[str] = Field(default_factory=list)
    skip_scripts_body: List[str] = Field(default_factory=lambda: [
        "convertkit",
        ".ck.page",
        "surveymonkey",
    ])
    # Only checked against `src`, too general for inline code.
    src_skips: List[str] = Field(default_factory=lambda: ["cache"])
    inline_skips: List[str] = Field(default_factory=lambda: ["no-js"])
    remove_scripts: List[str] = Field(default_factory=list)
    human_scripts: List[str] = Field(default_factory=lambda: list(DEFAULT_HUMAN_SCRIPTS))
    bot_agents: List[str] = Field(default_factory=lambda: list(DEFAULT_BOT_AGENTS))
    preconnects: Dict[str, List[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_PRECONNECTS.items()}
    )
    styles_to_footer: List[str] = Field(default_factory=list)
    styles_to_remove: List[str] = Field(default_factory=lambda: ["css/classic-themes"])
    lazy_regions: List[str] = Field(default_factory=lambda: ["main", "footer"])

    @field_validator(
        "skip_scripts", "skip_scripts_head", "skip_scripts_body", "src_skips", "inline_skips",
        "remove_scripts", "human_scripts", "styles_to_footer", "styles_to_remove",
        mode="before",
    )
    @classmethod
    def _sanitize_patterns(cls, v):
        return clean_patterns(v)

    @field_validator("bot_agents", "lazy_regions", mode="before")
    @classmethod
    def _sanitize_plain_list(cls, v):
        # Not HTML-escaped: these end up in a JS regex and in tag names.
        if isinstance(v, str):
            v = [v]
        out: List[str] = []
        for item in v or []:
            item = str(item).strip()
            if item and item not in out:
                out.append(item)
        return out

    @field_validator("preconnects", mode="before")
    @classmethod
    def _sanitize_preconnects(cls, v):
        if not v:
            return {}
        out: Dict[str, List[str]] = {}
        for key, origins in dict(v).items():
            key = str(key).strip()
            if not key:
                continue
            if isinstance(origins, str):
                origins = [origins]
            cleaned = [str(o).strip() for o in origins or [] if o and str(o).strip()]
            if cleaned:
                out[key] = list(dict.fromkeys(cleaned))
        return out

    def zone_skips(self, zone: str) -> List[str]:
        """Returns the shared skip list plus the zone specific one ('head' or 'body')."""
        extra = self.skip_scripts_head if zone == "head" else self.skip_scripts_body
        return clean_patterns(self.skip_scripts + extra)

    def extend(self, **extra: Any) -> "PatternSets":
        """
        Returns a copy with extra patterns appended to the named lists.
        Preconnect mappings are merged key by key.
        """
        data = self.model_dump()
        for name, values in extra.items():
            if name not in data:
                raise KeyError(f"Unknown pattern set: '{name}'")
            if name == "preconnects":
                merged = dict(data[name])
                for key, origins in dict(values or {}).items():
                    if isinstance(origins, str):
                        origins = [origins]
                    merged[key] = list(merged.get(key, [])) + list(origins or [])
                data[name] = merged
            else:
                if isinstance(values, str):
                    values = [values]
                data[name] = list(data[name]) + list(values or [])
        return PatternSets(**data)


class HostFeatures(BaseModel):
    """Facts about the hosting site that switch conditional stylesheet rules on."""
    model_config = ConfigDict(frozen=True)

    woocommerce: bool = False
    recipe_maker: bool = False

    @field_validator("woocommerce", "recipe_maker", mode="before")
    @classmethod
    def _sanitize_bool(cls, v):
        return coerce_bool(v)


class EnhancerData(BaseModel):
    """Extra markup supplied by the site owner."""
    model_config = ConfigDict(frozen=True)

    # Script markup placed first among the relocated scripts
    scripts: str = ""

    @field_validator("scripts", mode="before")
    @classmethod
    def _strip(cls, v):
        return str(v or "").strip()


class EnhanceResult(BaseModel):
    """The rewritten markup plus the HTTP headers the host should send with it."""
    html: str
    headers: List[Tuple[str, str]] = Field(default_factory=list)
    changed: bool = False

    def get_headers(self, name: str) -> List[str]:
        """Returns every value of a header, case-insensitive on the name."""
        return [value for key, value in self.headers if key.lower() == name.lower()]
