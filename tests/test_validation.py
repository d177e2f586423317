import unittest
from unittest.mock import patch

from feedback_forms.forms.schema import FormField
from feedback_forms.forms.validation import EMPTY_FORM_ERROR, title_errors, validate_field, validate_form


def _field(**kwargs):
    data = {"id": "f1", "label": "Question", "type": "TEXT"}
    data.update(kwargs)
    return FormField.model_validate(data)


class FieldValidationTests(unittest.TestCase):
    def test_text_field_valid(self):
        result = validate_field(_field())
        self.assertTrue(result.is_valid)
        self.assertEqual(result.errors, [])

    def test_blank_label(self):
        result = validate_field(_field(label="   "))
        self.assertFalse(result.is_valid)
        self.assertEqual(result.errors, ["Field label is required"])

    def test_choice_needs_two_options(self):
        result = validate_field(_field(type="RADIO", options=["A"]))
        self.assertFalse(result.is_valid)
        self.assertIn("at least 2 options", result.errors[0])

    def test_choice_without_options(self):
        for field_type in ("RADIO", "CHECKBOX", "SELECT"):
            result = validate_field(_field(type=field_type))
            self.assertEqual(result.errors, ["Choice fields must have at least 2 options"])

    def test_blank_option(self):
        result = validate_field(_field(type="SELECT", options=["A", " "]))
        self.assertEqual(result.errors, ["All options must have text"])

    def test_options_ignored_for_text(self):
        self.assertTrue(validate_field(_field(options=["only"])).is_valid)

    def test_rating_scale(self):
        self.assertIn("must be between 2 and 10", validate_field(_field(type="RATING", maxRating=1)).errors[0])
        self.assertFalse(validate_field(_field(type="RATING", maxRating=11)).is_valid)
        self.assertTrue(validate_field(_field(type="RATING", maxRating=5)).is_valid)
        self.assertTrue(validate_field(_field(type="RATING")).is_valid)

    def test_zero_rating_scale_is_not_defaulted(self):
        result = validate_field(_field(type="RATING", maxRating=0))
        self.assertEqual(result.errors, ["Rating scale must be between 2 and 10"])

    def test_label_length(self):
        self.assertTrue(validate_field(_field(label="x" * 200)).is_valid)
        result = validate_field(_field(label="x" * 201))
        self.assertEqual(result.errors, ["Label must be less than 200 characters"])

    def test_placeholder_length(self):
        self.assertTrue(validate_field(_field(placeholder="p" * 100)).is_valid)
        result = validate_field(_field(placeholder="p" * 101))
        self.assertEqual(result.errors, ["Placeholder must be less than 100 characters"])

    def test_description_length(self):
        self.assertTrue(validate_field(_field(description="d" * 500)).is_valid)
        result = validate_field(_field(description="d" * 501))
        self.assertEqual(result.errors, ["Description must be less than 500 characters"])

    def test_does_not_mutate(self):
        field = _field(type="RADIO", options=["A"])
        before = field.model_dump()
        validate_field(field)
        self.assertEqual(field.model_dump(), before)


class FormValidationTests(unittest.TestCase):
    def test_empty_form(self):
        result = validate_form([])
        self.assertFalse(result.is_valid)
        self.assertEqual(result.errors, [EMPTY_FORM_ERROR])
        self.assertEqual(EMPTY_FORM_ERROR, "Form must have at least one field")

    def test_errors_prefixed_in_order(self):
        fields = [
            _field(id="a"),
            _field(id="b", label=""),
            _field(id="c", type="RADIO", options=["A"]),
        ]
        result = validate_form(fields)
        self.assertFalse(result.is_valid)
        self.assertEqual(
            result.errors,
            [
                "Field 2: Field label is required",
                "Field 3: Choice fields must have at least 2 options",
            ],
        )

    def test_errors_accumulate_per_field(self):
        result = validate_form([_field(label="", type="CHECKBOX", options=["", "B"])])
        self.assertEqual(
            result.errors,
            ["Field 1: Field label is required", "Field 1: All options must have text"],
        )

    def test_field_limit(self):
        fields = [_field(id=f"f{i}") for i in range(3)]
        result = validate_form(fields, max_fields=2)
        self.assertEqual(result.errors, ["Form cannot have more than 2 fields"])
        self.assertTrue(validate_form(fields, max_fields=3).is_valid)

    def test_field_limit_read_from_settings_once(self):
        with patch("feedback_forms.forms.validation.Settings") as settings_cls:
            self.assertTrue(validate_form([_field()]).is_valid)
        settings_cls.assert_not_called()

    def test_duplicate_ids(self):
        result = validate_form([_field(id="x"), _field(id="x")])
        self.assertEqual(result.errors, ["Field 2: Field ID must be unique"])

    def test_json_shape(self):
        dumped = validate_form([]).model_dump(by_alias=True)
        self.assertEqual(dumped, {"isValid": False, "errors": [EMPTY_FORM_ERROR]})

    def test_length_errors_are_prefixed(self):
        result = validate_form([_field(id="a"), _field(id="b", label="x" * 201)])
        self.assertEqual(result.errors, ["Field 2: Label must be less than 200 characters"])


class TitleValidationTests(unittest.TestCase):
    def test_absent_title_allowed(self):
        self.assertEqual(title_errors(None), [])

    def test_bounds(self):
        self.assertEqual(title_errors("abc"), [])
        self.assertEqual(title_errors("t" * 100), [])
        self.assertEqual(title_errors("ab"), ["Title must be at least 3 characters"])
        self.assertEqual(title_errors("  ab  "), ["Title must be at least 3 characters"])
        self.assertEqual(title_errors("t" * 101), ["Title must be less than 100 characters"])
