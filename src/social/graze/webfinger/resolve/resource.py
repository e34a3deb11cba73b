"""WebFinger resource resolution.

Normalizes an inbound resource identifier, looks it up in a configuration snapshot and
builds the response: a full JSON Resource Descriptor, a single-relation descriptor, or a
host announcement for the OpenID Connect issuer relation.
"""

from typing import Dict, Final, List, Optional, Union
from urllib.parse import urlparse

from pydantic import BaseModel

from social.graze.webfinger.model.store import (
    ACCT_PREFIX,
    AttributeSet,
    ConfigStore,
    Snapshot,
)

PROFILE_PAGE_REL: Final = "http://webfinger.net/rel/profile-page"
AVATAR_REL: Final = "http://webfinger.net/rel/avatar"
OPENID_ISSUER_REL: Final = "http://openid.net/specs/connect/1.0/issuer"
TAILSCALE_REL: Final = "https://tailscale.com/rel"
GITHUB_REL: Final = "https://github.com"
MASTODON_REL: Final = "https://mastodon.social"

RELATIONS: Final[Dict[str, str]] = {
    "profile": PROFILE_PAGE_REL,
    "avatar": AVATAR_REL,
    "openid": OPENID_ISSUER_REL,
    "tailscale": TAILSCALE_REL,
    "github": GITHUB_REL,
    "mastodon": MASTODON_REL,
}
"""
Recognized attribute names and the relation URI each is published under.

Iteration order is the order links appear in a full document.
"""

RELATION_ATTRIBUTES: Final[Dict[str, str]] = {
    rel: name for name, rel in RELATIONS.items()
}


class Link(BaseModel):
    """A single WebFinger link."""

    rel: str
    href: str


class WebFingerDocument(BaseModel):
    """JSON Resource Descriptor returned for a resolved account."""

    subject: str
    links: List[Link] = []
    properties: Dict[str, str] = {}

    def to_jrd(self) -> dict:
        """Serialize for the wire, leaving `properties` out when there are none."""
        return self.model_dump(exclude={"properties"} if not self.properties else None)


class IssuerAnnouncement(BaseModel):
    """
    Result of an OpenID Connect issuer query.

    Answered with an empty 204 response whose `Host` header carries the issuer host.
    """

    subject: str
    issuer: str
    host: str


Resolution = Union[WebFingerDocument, IssuerAnnouncement]


class ResolutionError(Exception):
    """
    Raised when a query cannot be resolved.

    Always surfaces as a not-found response; never retried.
    """

    @staticmethod
    def no_default() -> "ResolutionError":
        """No resource was given and no default subject is configured."""
        return ResolutionError("No default user specified")

    @staticmethod
    def resource_not_found() -> "ResolutionError":
        """The resource is not in the configuration."""
        return ResolutionError("Resource not found")

    @staticmethod
    def relation_not_found() -> "ResolutionError":
        """The requested relation is unknown or has no value for the resource."""
        return ResolutionError("Requested rel not found")


def normalize_resource(resource: Optional[str], snapshot: Snapshot) -> str:
    """Normalize a resource identifier.

    An empty or missing resource is replaced by the snapshot's default subject. A leading
    `acct:` (exact, case-sensitive) is then removed.

    Args:
        resource: Raw `resource` query value, possibly None
        snapshot: Snapshot supplying the default subject

    Returns:
        The identifier to look up

    Raises:
        ResolutionError: If no resource was given and no default is configured
    """
    if not resource:
        resource = snapshot.default_subject
    if not resource:
        raise ResolutionError.no_default()
    return resource.removeprefix(ACCT_PREFIX)


def issuer_host(value: str) -> Optional[str]:
    """Return the host (with port, without userinfo) of an issuer URI, or None."""
    try:
        parsed = urlparse(value)
    except ValueError:
        return None
    host = parsed.netloc.rpartition("@")[2]
    return host or None


def build_document(identifier: str, attributes: AttributeSet) -> WebFingerDocument:
    """Build the full document for an account.

    Recognized attributes become links in table order; any other attribute becomes a
    property. Empty values are left out entirely.
    """
    links = [
        Link(rel=rel, href=attributes[name])
        for name, rel in RELATIONS.items()
        if attributes.get(name)
    ]
    properties = {
        name: value
        for name, value in attributes.items()
        if name not in RELATIONS and value
    }
    return WebFingerDocument(
        subject=f"{ACCT_PREFIX}{identifier}", links=links, properties=properties
    )


def resolve_resource(
    snapshot: Snapshot, resource: Optional[str], rel: Optional[str] = None
) -> Resolution:
    """Resolve a query against one snapshot.

    Args:
        snapshot: Configuration to resolve against
        resource: Raw `resource` query value
        rel: Optional relation filter

    Returns:
        WebFingerDocument for full and filtered lookups, IssuerAnnouncement for the OpenID
        Connect issuer relation

    Raises:
        ResolutionError: If the resource, the default or the filtered relation is missing
    """
    identifier = normalize_resource(resource, snapshot)

    attributes = snapshot.get(identifier)
    if attributes is None:
        raise ResolutionError.resource_not_found()

    subject = f"{ACCT_PREFIX}{identifier}"

    if not rel:
        return build_document(identifier, attributes)

    if rel == OPENID_ISSUER_REL:
        issuer = attributes.get("openid", "")
        host = issuer_host(issuer) if issuer else None
        if host is None:
            raise ResolutionError.relation_not_found()
        return IssuerAnnouncement(subject=subject, issuer=issuer, host=host)

    name = RELATION_ATTRIBUTES.get(rel)
    href = attributes.get(name, "") if name is not None else ""
    if not href:
        raise ResolutionError.relation_not_found()
    return WebFingerDocument(subject=subject, links=[Link(rel=rel, href=href)])


class ResolutionEngine:
    """
    Resolves queries against the active snapshot of a ConfigStore.

    Each call reads the snapshot exactly once, so a reload landing mid-request cannot mix
    old and new configuration. The engine holds no state of its own.
    """

    def __init__(self, store: ConfigStore) -> None:
        self._store = store

    @property
    def store(self) -> ConfigStore:
        return self._store

    def resolve(self, resource: Optional[str], rel: Optional[str] = None) -> Resolution:
        return resolve_resource(self._store.current(), resource, rel)
