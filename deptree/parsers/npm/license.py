"""License normalization for npm manifests."""

from typing import Any, Mapping, Optional

PRIVATE_LICENSE = "private"


def _license_type(entry: Any) -> Optional[str]:
    if isinstance(entry, str):
        return entry
    if isinstance(entry, Mapping):
        value = entry.get("type")
        if isinstance(value, str) and value:
            return value
    return None


def extract_license(manifest: Mapping[str, Any]) -> Optional[str]:
    """Return the normalized license of a manifest.

    ``license`` wins over the deprecated ``licenses`` array. Arrays collapse
    to their distinct ``type`` values joined with `` OR ``. A private package
    without a license reports ``"private"``.

    Args:
        manifest: Version document from the registry or a package.json.

    Returns:
        Optional[str]: License expression, or None when absent.
    """
    license_field = manifest.get("license") or manifest.get("licenses")
    if not license_field:
        if manifest.get("private"):
            return PRIVATE_LICENSE
        return None

    if isinstance(license_field, str):
        return license_field

    if isinstance(license_field, (list, tuple)):
        types = []
        for entry in license_field:
            value = _license_type(entry)
            if value and value not in types:
                types.append(value)
        if not types:
            return None
        return types[0] if len(types) == 1 else " OR ".join(types)

    return _license_type(license_field)


__all__ = ["PRIVATE_LICENSE", "extract_license"]
