"""
Static fallback retriever correcting common URI mistakes of annotators
"""
import re
from typing import Optional, Set
from urllib.parse import quote, unquote

from sameas.base import SameAsRetriever

# Characters left untouched when re-encoding a URI
URI_SAFE_CHARACTERS = ":/?#[]@!$&'()*+,;=%~"

DBPEDIA_PAGE_PATTERN = re.compile(r'^(https?://(?:[a-z-]+\.)?dbpedia\.org)/page/', re.IGNORECASE)
DBPEDIA_HTTPS_PATTERN = re.compile(r'^https://((?:[a-z-]+\.)?dbpedia\.org/)', re.IGNORECASE)


class ErrorFixingSameAsRetriever(SameAsRetriever):
    """
    Adds corrected variants of a URI:
    - the percent-decoded form of an encoded URI
    - the percent-encoded form of a URI containing unsafe characters
    - the resource URI of a DBpedia HTML page link
    - the http form of an https DBpedia URI
    """

    def fix_uri(self, uri: str) -> Set[str]:
        variants = set()

        if '%' in uri:
            decoded = unquote(uri)
            if decoded != uri:
                variants.add(decoded)

        encoded = quote(uri, safe=URI_SAFE_CHARACTERS)
        if encoded != uri:
            variants.add(encoded)

        for variant in list(variants) + [uri]:
            resource = DBPEDIA_PAGE_PATTERN.sub(r'\1/resource/', variant)
            if resource != variant:
                variants.add(resource)

        for variant in list(variants) + [uri]:
            plain = DBPEDIA_HTTPS_PATTERN.sub(r'http://\1', variant)
            if plain != variant:
                variants.add(plain)

        variants.discard(uri)
        return variants

    async def retrieve_same_uris(self, uri: Optional[str]) -> Set[str]:
        if not uri:
            return set()
        result = {uri}
        result.update(self.fix_uri(uri))
        return result
