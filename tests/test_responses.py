import unittest

from feedback_forms.forms.responses import (
    HANDLERS,
    REQUIRED_MESSAGE,
    clean_responses,
    default_responses,
    default_value,
    render_field,
    render_form,
    validate_response,
    validate_responses,
)
from feedback_forms.forms.schema import FIELD_TYPES, FormField


def _field(field_type, **kwargs):
    data = {"id": f"{field_type.lower()}_1", "label": field_type.title(), "type": field_type}
    if field_type in ("RADIO", "CHECKBOX", "SELECT"):
        data["options"] = ["A", "B", "C"]
    data.update(kwargs)
    return FormField.model_validate(data)


class HandlerRegistryTests(unittest.TestCase):
    def test_every_type_has_a_handler(self):
        self.assertEqual(set(HANDLERS), set(FIELD_TYPES))

    def test_default_values(self):
        self.assertEqual(default_value(_field("TEXT")), "")
        self.assertEqual(default_value(_field("TEXTAREA")), "")
        self.assertEqual(default_value(_field("RADIO")), "")
        self.assertEqual(default_value(_field("SELECT")), "")
        self.assertEqual(default_value(_field("CHECKBOX")), [])
        self.assertIsNone(default_value(_field("RATING")))

    def test_default_responses_cover_all_fields(self):
        fields = [_field("TEXT"), _field("CHECKBOX"), _field("RATING")]
        self.assertEqual(default_responses(fields), {"text_1": "", "checkbox_1": [], "rating_1": None})

    def test_render_kinds(self):
        kinds = {t: render_field(_field(t)).kind for t in FIELD_TYPES}
        self.assertEqual(
            kinds,
            {
                "TEXT": "input",
                "TEXTAREA": "textarea",
                "RADIO": "radio",
                "CHECKBOX": "checkbox",
                "SELECT": "select",
                "RATING": "rating",
            },
        )

    def test_render_fills_defaults_and_scale(self):
        rating = render_field(_field("RATING"))
        self.assertEqual(rating.max_rating, 5)
        self.assertIsNone(rating.value)
        checkbox = render_field(_field("CHECKBOX"))
        self.assertEqual(checkbox.value, [])
        self.assertEqual(checkbox.options, ["A", "B", "C"])
        self.assertIsNone(checkbox.max_rating)

    def test_render_form_uses_given_values(self):
        fields = [_field("TEXT"), _field("RATING", maxRating=7)]
        controls = render_form(fields, {"text_1": "hello", "rating_1": 3})
        self.assertEqual([c.value for c in controls], ["hello", 3])
        self.assertEqual(controls[1].max_rating, 7)


class ResponseValidationTests(unittest.TestCase):
    def test_required_text(self):
        field = _field("TEXT", required=True)
        self.assertEqual(validate_response(field, ""), [REQUIRED_MESSAGE])
        self.assertEqual(validate_response(field, "   "), [REQUIRED_MESSAGE])
        self.assertEqual(validate_response(field, None), [REQUIRED_MESSAGE])
        self.assertEqual(validate_response(field, "Alice"), [])

    def test_required_checkbox(self):
        field = _field("CHECKBOX", required=True)
        self.assertEqual(validate_response(field, []), [REQUIRED_MESSAGE])
        self.assertEqual(validate_response(field, ["A"]), [])

    def test_checkbox_shape(self):
        field = _field("CHECKBOX")
        self.assertEqual(validate_response(field, ["A", "Z"]), ["Invalid option: Z"])
        self.assertEqual(validate_response(field, ["A", "A"]), ["Each option can only be selected once"])
        self.assertEqual(validate_response(field, "A"), ["Answer must be a list of options"])

    def test_single_choice(self):
        for field_type in ("RADIO", "SELECT"):
            field = _field(field_type, required=True)
            self.assertEqual(validate_response(field, "B"), [])
            self.assertEqual(validate_response(field, ""), [REQUIRED_MESSAGE])
            self.assertEqual(validate_response(field, "Z"), ["Please select one of the available options"])
            self.assertEqual(validate_response(field, ["A"]), ["Answer must be a single option"])

    def test_rating(self):
        field = _field("RATING", required=True, maxRating=4)
        self.assertEqual(validate_response(field, 4), [])
        self.assertEqual(validate_response(field, 1), [])
        self.assertEqual(validate_response(field, 0), [REQUIRED_MESSAGE])
        self.assertEqual(validate_response(field, None), [REQUIRED_MESSAGE])
        self.assertEqual(validate_response(field, 5), ["Rating must be between 1 and 4"])
        self.assertEqual(validate_response(field, -1), ["Rating must be between 1 and 4"])
        self.assertEqual(validate_response(field, "3"), ["Rating must be a whole number"])
        self.assertEqual(validate_response(field, True), ["Rating must be a whole number"])

    def test_zero_scale_rating_accepts_nothing(self):
        field = _field("RATING", maxRating=0)
        self.assertEqual(render_field(field).max_rating, 0)
        self.assertEqual(validate_response(field, 3), ["Rating must be between 1 and 0"])

    def test_optional_empty_always_passes(self):
        for field_type in FIELD_TYPES:
            field = _field(field_type)
            self.assertEqual(validate_response(field, None), [], field_type)
            self.assertEqual(validate_response(field, default_value(field)), [], field_type)

    def test_optional_answer_still_checked(self):
        self.assertEqual(
            validate_response(_field("RADIO"), "nope"),
            ["Please select one of the available options"],
        )

    def test_validate_responses_whole_form(self):
        fields = [_field("TEXT", label="Name", required=True), _field("RATING", label="Venue")]
        result = validate_responses(fields, {"rating_1": 9, "ghost": "x"})
        self.assertFalse(result.is_valid)
        self.assertEqual(
            result.errors,
            ["Unknown field: ghost", "Name: This field is required", "Venue: Rating must be between 1 and 5"],
        )
        self.assertTrue(validate_responses(fields, {"text_1": "Bob"}).is_valid)

    def test_clean_responses(self):
        fields = [_field("TEXT"), _field("CHECKBOX"), _field("RATING"), _field("SELECT")]
        cleaned = clean_responses(
            fields,
            {"text_1": "  hi  ", "checkbox_1": [], "rating_1": 3, "select_1": ""},
        )
        self.assertEqual(cleaned, {"text_1": "hi", "rating_1": 3})
