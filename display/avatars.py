from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel

ProfileLike = Union[BaseModel, Mapping[str, Any], None]


def _field(profile: ProfileLike, name: str) -> Optional[str]:
    if profile is None:
        return None
    if isinstance(profile, BaseModel):
        value = getattr(profile, name, None)
    else:
        value = profile.get(name)
    return value if isinstance(value, str) else None


def get_initials(profile: ProfileLike) -> str:
    """1-2 upper-case initials from full name, then username, then email; '?' otherwise."""
    if profile is None:
        return "?"
    name = _field(profile, "full_name") or _field(profile, "display_name")
    if name and name.strip():
        parts = name.split()
        if len(parts) == 1:
            return parts[0][0].upper()
        return f"{parts[0][0]}{parts[-1][0]}".upper()
    for fallback in ("username", "email"):
        value = _field(profile, fallback)
        if value and value.strip():
            return value.strip()[0].upper()
    return "?"


def get_avatar_display(profile: ProfileLike) -> Dict[str, str]:
    """Either {'type': 'image', 'url', 'alt'} or {'type': 'initials', 'text'}."""
    url = _field(profile, "profile_picture_url") or _field(profile, "avatar_url")
    if url:
        alt = _field(profile, "full_name") or _field(profile, "username") or "User avatar"
        return {"type": "image", "url": url, "alt": alt}
    return {"type": "initials", "text": get_initials(profile)}
