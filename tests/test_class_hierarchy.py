"""
Test class hierarchy loading and subsumption queries
"""
import pytest

from class_hierarchy import (
    ClassHierarchy,
    ClassHierarchyLoader,
    SimpleSubClassInferencer,
    load_class_hierarchies
)
from exceptions import LoadError

EX = "http://example.org/ontology/"

TURTLE_HIERARCHY = f"""
@prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .
@prefix owl: <http://www.w3.org/2002/07/owl#> .
@prefix ex: <{EX}> .

ex:Agent a owl:Class .
ex:Person rdfs:subClassOf ex:Agent .
ex:Athlete rdfs:subClassOf ex:Person .
ex:Human owl:equivalentClass ex:Person .
"""

RDF_XML_HIERARCHY = f"""<?xml version="1.0" encoding="UTF-8"?>
<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#"
         xmlns:rdfs="http://www.w3.org/2000/01/rdf-schema#">
  <rdf:Description rdf:about="{EX}Organisation">
    <rdfs:subClassOf rdf:resource="{EX}Agent"/>
  </rdf:Description>
  <rdf:Description rdf:about="{EX}Company">
    <rdfs:subClassOf rdf:resource="{EX}Organisation"/>
  </rdf:Description>
</rdf:RDF>
"""


@pytest.fixture
def turtle_file(tmp_path):
    path = tmp_path / "hierarchy.ttl"
    path.write_text(TURTLE_HIERARCHY, encoding="utf-8")
    return path


@pytest.fixture
def rdf_xml_file(tmp_path):
    path = tmp_path / "hierarchy.owl"
    path.write_text(RDF_XML_HIERARCHY, encoding="utf-8")
    return path


@pytest.fixture
def inferencer(turtle_file, rdf_xml_file):
    hierarchy = load_class_hierarchies([
        str(turtle_file), "TTL", EX,
        str(rdf_xml_file), "UTF-8", EX
    ])
    return SimpleSubClassInferencer(hierarchy)


def test_transitive_subclass(inferencer):
    assert inferencer.is_sub_class_of(EX + "Athlete", EX + "Person")
    assert inferencer.is_sub_class_of(EX + "Athlete", EX + "Agent")
    assert inferencer.is_sub_class_of(EX + "Company", EX + "Agent")
    assert not inferencer.is_sub_class_of(EX + "Agent", EX + "Athlete")
    assert not inferencer.is_sub_class_of(EX + "Company", EX + "Person")


def test_reflexivity(inferencer):
    assert inferencer.is_sub_class_of(EX + "Agent", EX + "Agent")
    assert not inferencer.is_sub_class_of(EX + "Agent", EX + "Agent", reflexive=False)
    # Equivalent classes form a cycle
    assert inferencer.is_sub_class_of(EX + "Person", EX + "Person", reflexive=False)


def test_equivalent_classes(inferencer):
    assert inferencer.is_sub_class_of(EX + "Human", EX + "Person")
    assert inferencer.is_sub_class_of(EX + "Person", EX + "Human")
    assert inferencer.is_sub_class_of(EX + "Athlete", EX + "Human")


def test_unknown_and_missing_classes(inferencer):
    assert inferencer.is_sub_class_of(EX + "Unknown", EX + "Unknown")
    assert not inferencer.is_sub_class_of(EX + "Unknown", EX + "Agent")
    assert not inferencer.is_sub_class_of(None, EX + "Agent")


def test_infer_sub_and_super_classes(inferencer):
    assert inferencer.infer_super_classes(EX + "Athlete") == {
        EX + "Athlete", EX + "Person", EX + "Human", EX + "Agent"
    }
    assert inferencer.infer_sub_classes(EX + "Organisation") == {EX + "Organisation", EX + "Company"}


def test_hierarchy_is_frozen_after_inferencer_creation(inferencer):
    assert inferencer.hierarchy.frozen
    with pytest.raises(RuntimeError):
        inferencer.hierarchy.add_sub_class_of(EX + "A", EX + "B")


def test_broken_file_among_valid_files(tmp_path, turtle_file, rdf_xml_file):
    """A file that can not be parsed is skipped, the others are loaded"""
    broken = tmp_path / "broken.ttl"
    broken.write_text("this is @not turtle <<<", encoding="utf-8")

    hierarchy = load_class_hierarchies([
        str(turtle_file), "TTL", EX,
        str(broken), "TTL", EX,
        str(tmp_path / "missing.owl"), "UTF-8", EX,
        str(rdf_xml_file), "UTF-8", EX
    ])
    inferencer = SimpleSubClassInferencer(hierarchy)

    assert inferencer.is_sub_class_of(EX + "Athlete", EX + "Agent")
    assert inferencer.is_sub_class_of(EX + "Company", EX + "Agent")


def test_incomplete_trailing_triple_is_ignored(turtle_file):
    hierarchy = load_class_hierarchies([str(turtle_file), "TTL", EX, "dangling.ttl", "TTL"])
    assert EX + "Athlete" in hierarchy


def test_empty_configuration():
    hierarchy = load_class_hierarchies([])
    assert len(hierarchy) == 0
    assert not SimpleSubClassInferencer(hierarchy).is_sub_class_of(EX + "A", EX + "B")


def test_loader_raises_load_error_without_merging(tmp_path):
    broken = tmp_path / "broken.ttl"
    broken.write_text(f"<{EX}A> <http://www.w3.org/2000/01/rdf-schema#subClassOf> ", encoding="utf-8")
    hierarchy = ClassHierarchy()

    with pytest.raises(LoadError) as exc_info:
        ClassHierarchyLoader().load_class_hierarchy(broken, "TURTLE", EX, hierarchy)

    assert exc_info.value.file == str(broken)
    assert len(hierarchy) == 0


def test_unknown_encoding(turtle_file):
    with pytest.raises(LoadError):
        ClassHierarchyLoader().load_class_hierarchy(turtle_file, "NOT-AN-ENCODING", EX, ClassHierarchy())


def test_relative_references_use_base_uri(tmp_path):
    path = tmp_path / "relative.ttl"
    path.write_text(
        "<Child> <http://www.w3.org/2000/01/rdf-schema#subClassOf> <Parent> .\n",
        encoding="utf-8"
    )
    hierarchy = load_class_hierarchies([str(path), "TTL", EX])

    assert EX + "Parent" in hierarchy.direct_super_classes(EX + "Child")


def test_duplicate_edges_are_ignored():
    hierarchy = ClassHierarchy()
    hierarchy.add_sub_class_of("a", "b")
    hierarchy.add_sub_class_of("a", "b")
    assert hierarchy.edge_count() == 1
