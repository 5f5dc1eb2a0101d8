"""
Class hierarchy loading

Reads RDF files with rdflib and merges their subclass statements into a
ClassHierarchy. Configuration lists the files as flattened
(file, encoding, base URI) triples.
"""
import codecs
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import rdflib
from rdflib import OWL, RDF, RDFS, URIRef
from rdflib.util import guess_format

from class_hierarchy.graph import ClassHierarchy
from exceptions import ConfigurationError, LoadError
from logger import get_logger

logger = get_logger(__name__)

# Serialization names accepted in place of a character encoding
RDF_LANGUAGES = {
    'RDF/XML': 'xml',
    'RDF/XML-ABBREV': 'xml',
    'RDFXML': 'xml',
    'XML': 'xml',
    'TTL': 'turtle',
    'TURTLE': 'turtle',
    'N3': 'n3',
    'N-TRIPLE': 'nt',
    'N-TRIPLES': 'nt',
    'NTRIPLES': 'nt',
    'NT': 'nt',
    'N-QUADS': 'nquads',
    'NQUADS': 'nquads',
    'TRIG': 'trig',
    'JSON-LD': 'json-ld',
    'JSONLD': 'json-ld',
}

CLASS_TYPES = (RDFS.Class, OWL.Class)


class ClassHierarchyLoader:
    """Parses hierarchy files and merges them into a shared graph"""

    def _resolve_format(self, file: Path, encoding: str) -> Tuple[str, str]:
        """
        Determine character encoding and RDF serialization of a file.

        The encoding token is either a serialization name (the file is then
        read as UTF-8) or a character encoding (the serialization is then
        guessed from the file extension, RDF/XML by default).
        """
        token = (encoding or '').strip()
        rdf_format = RDF_LANGUAGES.get(token.upper())
        if rdf_format:
            return 'utf-8', rdf_format

        try:
            char_encoding = codecs.lookup(token).name
        except LookupError as e:
            raise LoadError(
                f"Unknown encoding or RDF language \"{encoding}\"",
                file=str(file), encoding=encoding, original_error=e
            )
        return char_encoding, guess_format(str(file)) or 'xml'

    def load_class_hierarchy(
        self,
        file: Union[str, Path],
        encoding: str,
        base_uri: Optional[str],
        hierarchy: ClassHierarchy
    ) -> int:
        """
        Load one hierarchy file into the given graph

        Args:
            file: Path of the RDF file
            encoding: Character encoding or RDF serialization name
            base_uri: Base URI used to resolve relative references
            hierarchy: Graph the statements are merged into

        Returns:
            Number of subclass edges read from the file

        Raises:
            LoadError: If the file can not be read or parsed. Nothing is
                merged in that case.
        """
        path = Path(file)
        char_encoding, rdf_format = self._resolve_format(path, encoding)

        try:
            with open(path, 'r', encoding=char_encoding) as f:
                data = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise LoadError(
                f"Couldn't read class hierarchy file \"{path}\"",
                file=str(path), encoding=encoding, base_uri=base_uri, original_error=e
            )

        graph = rdflib.Graph()
        try:
            graph.parse(data=data, format=rdf_format, publicID=base_uri or None)
        except Exception as e:
            raise LoadError(
                f"Couldn't parse class hierarchy file \"{path}\" as {rdf_format}",
                file=str(path), encoding=encoding, base_uri=base_uri, original_error=e
            )

        loaded = ClassHierarchy()
        for class_type in CLASS_TYPES:
            for subject in graph.subjects(RDF.type, class_type):
                if isinstance(subject, URIRef):
                    loaded.add_class(str(subject))

        edges = 0
        for sub_class, super_class in graph.subject_objects(RDFS.subClassOf):
            if isinstance(sub_class, URIRef) and isinstance(super_class, URIRef):
                loaded.add_sub_class_of(str(sub_class), str(super_class))
                edges += 1

        for class_a, class_b in graph.subject_objects(OWL.equivalentClass):
            if isinstance(class_a, URIRef) and isinstance(class_b, URIRef):
                loaded.add_equivalent_classes(str(class_a), str(class_b))
                edges += 2

        hierarchy.merge(loaded)
        logger.info(f"Loaded {edges} subclass relations of {len(loaded)} classes from \"{path}\"")
        return edges


def load_class_hierarchies(
    tokens: Sequence[str],
    hierarchy: Optional[ClassHierarchy] = None,
    loader: Optional[ClassHierarchyLoader] = None
) -> ClassHierarchy:
    """
    Load every (file, encoding, base URI) triple of a flat token list.

    Failing triples are logged and skipped, so the result may be partial or
    empty.
    """
    hierarchy = hierarchy if hierarchy is not None else ClassHierarchy()
    loader = loader or ClassHierarchyLoader()
    tokens = list(tokens or [])

    complete = len(tokens) - len(tokens) % 3
    if complete != len(tokens):
        error = ConfigurationError(
            f"Class hierarchy configuration has {len(tokens)} tokens, ignoring the "
            f"incomplete trailing triple {tokens[complete:]}",
            key="class_hierarchy_files"
        )
        logger.warning(str(error))

    for i in range(0, complete, 3):
        file, encoding, base_uri = tokens[i], tokens[i + 1], tokens[i + 2]
        try:
            loader.load_class_hierarchy(file, encoding, base_uri, hierarchy)
        except LoadError as e:
            logger.error(
                f"Got an exception while trying to load the class hierarchy from the file \"{file}\" "
                f"encoded with \"{encoding}\" using the base URI \"{base_uri}\": {e}"
            )

    return hierarchy
