"""
Member content extraction: content quad, types, relationship resolution.
"""

import unittest

from rdflib import BNode, Literal, URIRef

from explorer.errors import MalformedMember
from explorer.materializer import ContentMaterializer
from explorer.models import Relationship

from fixtures import AS, CONTENT, RELATIONSHIP, TYPES, FakeProvider, add_member

MEMBER = "https://pod.example/log/1/member"
REL_ROWS = [{
    "subject": URIRef("https://pod.example/alice"),
    "relationship": URIRef("http://xmlns.com/foaf/0.1/knows"),
    "object": URIRef("https://pod.example/bob"),
}]


class TestContentMaterializer(unittest.TestCase):
    def setUp(self):
        self.provider = FakeProvider()
        self.materializer = ContentMaterializer(self.provider)

    def test_full_member(self):
        activity = add_member(self.provider, MEMBER, target="https://pod.example/inbox")

        member = self.materializer.materialize(MEMBER)

        self.assertEqual(member.id, activity)
        self.assertEqual(member.url, MEMBER)
        self.assertEqual(member.actor_url, "https://pod.example/alice")
        self.assertEqual(member.actor_name, "Alice")
        self.assertEqual(member.target_url, "https://pod.example/inbox")
        self.assertEqual(member.target_name, "Target")
        self.assertIsNone(member.context)
        self.assertEqual(member.types, (AS + "Create",))
        self.assertEqual(member.object_types, (AS + "Note",))
        self.assertIsNone(member.object_relationship)

    def test_optional_fields_absent(self):
        self.provider.on(CONTENT, MEMBER, [{"id": URIRef(MEMBER + "#a"), "actorUrl": URIRef("https://pod.example/alice"),
                                            "object": URIRef(MEMBER + "#o")}])
        member = self.materializer.materialize(MEMBER)
        self.assertIsNone(member.actor_name)
        self.assertIsNone(member.target_url)
        self.assertEqual(member.types, ())

    def test_every_sub_query_is_scoped_to_member_document(self):
        add_member(self.provider, MEMBER, object_types=(AS + "Relationship",), relationship_rows=REL_ROWS)
        self.materializer.materialize(MEMBER)

        self.assertEqual(len(self.provider.calls), 4)
        for _, sources, options in self.provider.calls:
            self.assertEqual(sources, [MEMBER])
            self.assertTrue(options.lenient)
            self.assertFalse(options.follow_links)

    def test_relationship_resolved_when_exactly_one_binding(self):
        add_member(self.provider, MEMBER, object_types=(AS + "Relationship",), relationship_rows=REL_ROWS)
        member = self.materializer.materialize(MEMBER)
        self.assertEqual(member.object_relationship, Relationship(
            subject="https://pod.example/alice",
            relationship="http://xmlns.com/foaf/0.1/knows",
            object="https://pod.example/bob",
        ))

    def test_relationship_absent_when_zero_bindings(self):
        add_member(self.provider, MEMBER, object_types=(AS + "Relationship",), relationship_rows=[])
        with self.assertLogs("explorer.materializer", level="WARNING"):
            member = self.materializer.materialize(MEMBER)
        self.assertIsNone(member.object_relationship)

    def test_relationship_absent_when_several_bindings(self):
        rows = REL_ROWS + [dict(REL_ROWS[0], object=URIRef("https://pod.example/carol"))]
        add_member(self.provider, MEMBER, object_types=(AS + "Relationship",), relationship_rows=rows)
        with self.assertLogs("explorer.materializer", level="WARNING"):
            member = self.materializer.materialize(MEMBER)
        self.assertIsNone(member.object_relationship)

    def test_relationship_not_queried_for_other_objects(self):
        add_member(self.provider, MEMBER, relationship_rows=REL_ROWS)
        member = self.materializer.materialize(MEMBER)
        self.assertIsNone(member.object_relationship)
        self.assertEqual(len(self.provider.calls), 3)

    def test_missing_actor_is_malformed(self):
        self.provider.on(CONTENT, MEMBER, [{"id": URIRef(MEMBER + "#a"), "object": URIRef(MEMBER + "#o")}])
        with self.assertRaises(MalformedMember) as cm:
            self.materializer.materialize(MEMBER)
        self.assertEqual(cm.exception.missing, ("actorUrl",))
        self.assertEqual(len(self.provider.calls), 1)

    def test_no_content_is_malformed(self):
        with self.assertRaises(MalformedMember) as cm:
            self.materializer.materialize(MEMBER)
        self.assertEqual(cm.exception.missing, ("actorUrl", "object"))

    def test_several_content_bindings_pick_first_and_warn(self):
        rows = [
            {"id": URIRef(MEMBER + "#a"), "actorUrl": URIRef("https://pod.example/zed"), "object": URIRef(MEMBER + "#o")},
            {"id": URIRef(MEMBER + "#a"), "actorUrl": URIRef("https://pod.example/alice"), "object": URIRef(MEMBER + "#o"),
             "actorName": Literal("Alice")},
            {"id": URIRef(MEMBER + "#a"), "actorUrl": URIRef("https://pod.example/bob"), "object": URIRef(MEMBER + "#o"),
             "actorName": Literal("Bob")},
        ]
        self.provider.on(CONTENT, MEMBER, rows)
        self.provider.on(TYPES, MEMBER, [])

        with self.assertLogs("explorer.materializer", level="WARNING") as logs:
            first = self.materializer.materialize(MEMBER)
        self.assertIn("Found 3 results for content", logs.output[0])
        self.assertEqual(first.actor_url, "https://pod.example/alice")

        self.provider.routes[0] = (CONTENT, MEMBER, None, list(reversed(rows)))
        with self.assertLogs("explorer.materializer", level="WARNING"):
            again = self.materializer.materialize(MEMBER)
        self.assertEqual(again, first)

    def test_literal_object_keeps_member_without_enrichment(self):
        self.provider.on(CONTENT, MEMBER, [{"id": URIRef(MEMBER + "#a"), "actorUrl": URIRef("https://pod.example/alice"),
                                            "object": Literal("hello world")}])
        self.provider.on(TYPES, MEMBER, [{"type": URIRef(AS + "Create")}], subject=MEMBER + "#a")

        with self.assertLogs("explorer.materializer", level="WARNING") as logs:
            member = self.materializer.materialize(MEMBER)

        self.assertEqual(len(logs.records), 1)
        self.assertIn("literal", logs.output[0])
        self.assertEqual(member.object, "hello world")
        self.assertEqual(member.types, (AS + "Create",))
        self.assertEqual(member.object_types, ())
        self.assertIsNone(member.object_relationship)
        # content + activity types only
        self.assertEqual(len(self.provider.calls), 2)

    def test_blank_node_terms_are_bound_not_interpolated(self):
        activity, obj = BNode("act1"), BNode("rel1")
        self.provider.on(CONTENT, MEMBER, [{"id": activity, "actorUrl": URIRef("https://pod.example/alice"),
                                            "object": obj}])
        self.provider.on(TYPES, MEMBER, [{"type": URIRef(AS + "Add")}], subject=str(activity))
        self.provider.on(TYPES, MEMBER, [{"type": URIRef(AS + "Relationship")}], subject=str(obj))
        self.provider.on(RELATIONSHIP, MEMBER, REL_ROWS)

        member = self.materializer.materialize(MEMBER)

        self.assertEqual(member.id, MEMBER)
        self.assertEqual(member.object, "_:rel1")
        self.assertEqual(member.types, (AS + "Add",))
        self.assertEqual(member.object_types, (AS + "Relationship",))
        self.assertEqual(member.object_relationship.object, "https://pod.example/bob")
        self.assertEqual(self.provider.bound[1:], [{"subject": activity}, {"subject": obj}, {"node": obj}])
        for query, _, _ in self.provider.calls:
            self.assertNotIn("<_:", query)
            self.assertNotIn("<rel1>", query)


if __name__ == "__main__":
    unittest.main()
