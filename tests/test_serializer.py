import json
import unittest
from datetime import datetime, timezone

from feedback_forms.forms.builder import FormBuilder
from feedback_forms.forms.schema import FormField
from feedback_forms.forms.serializer import (
    SCHEMA_VERSION,
    SchemaImportError,
    dumps,
    export_dict,
    export_schema,
    import_schema,
)


def _sample_fields():
    builder = FormBuilder()
    name = builder.add_field("text")
    builder.update_field(name.id, {"label": "Your name", "required": True, "description": "As on badge"})
    builder.add_field("textarea")
    talk = builder.add_field("radio")
    builder.update_field(talk.id, {"options": ["Keynote", "Panel"], "required": True})
    builder.add_field("checkbox")
    builder.add_field("select")
    rating = builder.add_field("rating")
    builder.update_field(rating.id, {"maxRating": 10})
    builder.reorder_fields(5, 0)
    return builder.fields


class SchemaSerializerTests(unittest.TestCase):
    def test_export_metadata(self):
        fields = _sample_fields()
        now = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        doc = export_dict(fields, now=now)
        self.assertEqual(
            doc["metadata"],
            {
                "createdAt": "2026-03-01T12:00:00+00:00",
                "version": SCHEMA_VERSION,
                "fieldCount": 6,
                "requiredFields": 2,
            },
        )
        self.assertEqual(SCHEMA_VERSION, "1.0.0")

    def test_export_uses_json_attribute_names(self):
        doc = export_dict(_sample_fields())
        rating = doc["fields"][0]
        self.assertEqual(rating["type"], "RATING")
        self.assertEqual(rating["maxRating"], 10)
        self.assertNotIn("max_rating", rating)
        text = doc["fields"][1]
        self.assertNotIn("options", text)
        self.assertEqual(text["description"], "As on badge")

    def test_metadata_recomputed_each_export(self):
        fields = _sample_fields()
        self.assertEqual(export_schema(fields[:2]).metadata.field_count, 2)
        self.assertEqual(export_schema(fields).metadata.field_count, 6)

    def test_round_trip(self):
        fields = _sample_fields()
        self.assertEqual(import_schema(dumps(fields)), fields)
        self.assertEqual(import_schema(export_dict(fields)), fields)
        self.assertEqual(import_schema(dumps(fields).encode("utf-8")), fields)

    def test_round_trip_keeps_empty_strings(self):
        fields = [FormField(id="a", label="Note", type="TEXTAREA", placeholder="", description="")]
        self.assertEqual(import_schema(dumps(fields)), fields)

    def test_import_without_metadata(self):
        doc = {"fields": [{"id": "a", "label": "Name", "type": "text", "required": True}]}
        fields = import_schema(doc)
        self.assertEqual(fields[0].type, "TEXT")
        self.assertTrue(fields[0].required)

    def test_import_rejects_unknown_type(self):
        doc = {"fields": [{"id": "a", "label": "Upload", "type": "FILE"}]}
        with self.assertRaises(SchemaImportError) as ctx:
            import_schema(doc)
        self.assertTrue(any("fields.0.type" in line for line in ctx.exception.errors))

    def test_import_rejects_duplicate_ids(self):
        doc = {
            "fields": [
                {"id": "a", "label": "One", "type": "TEXT"},
                {"id": "a", "label": "Two", "type": "TEXT"},
            ]
        }
        with self.assertRaises(SchemaImportError):
            import_schema(doc)

    def test_import_rejects_bad_json(self):
        with self.assertRaises(SchemaImportError):
            import_schema("{not json")

    def test_dumps_is_pretty_json(self):
        text = dumps(_sample_fields())
        self.assertIn('\n  "fields"', text)
        self.assertEqual(json.loads(text)["metadata"]["version"], "1.0.0")
