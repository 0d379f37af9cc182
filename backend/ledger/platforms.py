"""Publishing channels known to the dashboards.

``platform`` is an open string on listings: new channels can appear without
a schema change. Known channels get an icon and label; everything else
(including missing values) lands in the ``other`` bucket.
"""

OTHER = "other"

PLATFORM_CATALOG: dict[str, dict] = {
    "pinterest": {"icon": "📌", "label": "Pinterest"},
    "youtube": {"icon": "📺", "label": "YouTube"},
    "reddit": {"icon": "🔴", "label": "Reddit"},
    "facebook": {"icon": "👥", "label": "Facebook"},
    "linkedin": {"icon": "💼", "label": "LinkedIn"},
    "stripe": {"icon": "💳", "label": "Stripe"},
    OTHER: {"icon": "📝", "label": "Other"},
}

KNOWN_PLATFORMS: tuple[str, ...] = tuple(p for p in PLATFORM_CATALOG if p != OTHER)


def normalize_platform(platform) -> str:
    """Lower-cased, trimmed platform name; empty string when missing."""
    if not platform or not isinstance(platform, str):
        return ""
    return platform.strip().lower()


def bucket_for(platform) -> str:
    name = normalize_platform(platform)
    return name if name in KNOWN_PLATFORMS else OTHER


def platform_meta(platform) -> dict:
    bucket = bucket_for(platform)
    return {"platform": bucket, **PLATFORM_CATALOG[bucket]}


def empty_buckets() -> dict[str, list]:
    """One empty list per known platform plus ``other``, in display order."""
    return {name: [] for name in PLATFORM_CATALOG}
