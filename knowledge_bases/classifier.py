"""
White list based KB classifier

URIs are compared against the configured KB namespaces after removing the
scheme and, optionally, a single leading subdomain label. Matching is
anchored at the start of the canonicalized string, so a KB namespace that
only shows up inside the path of another domain never matches.
"""
from typing import Iterable, List, Optional, Tuple

from knowledge_bases.base import UriKBClassifier
from logger import get_logger

logger = get_logger(__name__)

SCHEMES = ("http://", "https://")


def strip_scheme(uri: str) -> str:
    """Remove a leading http:// or https://"""
    for scheme in SCHEMES:
        if uri.startswith(scheme):
            return uri[len(scheme):]
    return uri


def strip_subdomain(uri: str) -> Optional[str]:
    """
    Remove exactly one leading subdomain label from a scheme-less URI.

    Example:
        "en.dbpedia.org/resource/China" -> "dbpedia.org/resource/China"
        "dbpedia.org/resource/China" -> None (no subdomain)

    Returns:
        The stripped string or None if the authority has no label in front
        of its registrable domain.
    """
    slash = uri.find('/')
    authority = uri if slash < 0 else uri[:slash]
    if authority.count('.') < 2:
        return None

    remainder = uri[authority.index('.') + 1:]
    remaining_authority = authority[authority.index('.') + 1:]
    if not remaining_authority or remaining_authority.startswith('.'):
        return None
    return remainder


def canonicalize(uri: str) -> List[str]:
    """All canonical forms a URI is compared with"""
    stripped = strip_scheme(uri)
    forms = [stripped]
    without_subdomain = strip_subdomain(stripped)
    if without_subdomain is not None:
        forms.append(without_subdomain)
    return forms


class SimpleWhiteListBasedUriKBClassifier(UriKBClassifier):
    """Prefix based classifier over a fixed list of KB namespaces"""

    def __init__(self, kb_namespaces: Iterable[str]):
        descriptors = []
        for namespace in kb_namespaces or ():
            if not namespace:
                continue
            descriptor = strip_scheme(namespace.strip())
            if descriptor and descriptor not in descriptors:
                descriptors.append(descriptor)
        self.descriptors: Tuple[str, ...] = tuple(descriptors)

        if not self.descriptors:
            logger.warning("KB classifier created without any well-known KB; no URI will be classified as KB URI")
        else:
            logger.debug(f"KB classifier created for {len(self.descriptors)} namespaces")

    def is_kb_uri(self, uri: Optional[str]) -> bool:
        if not uri:
            return False

        for candidate in canonicalize(uri):
            for descriptor in self.descriptors:
                if candidate.startswith(descriptor):
                    return True
        return False
