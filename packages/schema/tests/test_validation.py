"""
End-to-end validation scenarios: primitives, coercion, objects, collections,
custom messages, optional fields, transforms and refinements.
"""

from datetime import date, datetime

import pytest

from dataknobs_schema import (
    NEVER,
    ArraySchema,
    BooleanSchema,
    DateSchema,
    IssueCode,
    MapSchema,
    NumberSchema,
    ObjectSchema,
    SetSchema,
    StringSchema,
    ValidationContext,
    ValidationError,
    parse,
    safe_parse,
    safe_parse_many,
)


def must_upper_case(data: str, ctx: ValidationContext) -> str:
    if data != data.upper():
        ctx.add_issue("username harus uppercase", IssueCode.CUSTOM)
        return NEVER
    return data


class TestPrimitives:
    """Test validation of primitive values."""

    def test_string_in_range_returned_unchanged(self):
        """Test a string within length bounds is returned as-is."""
        schema = StringSchema().min(3).max(100)
        assert schema.parse("dani") == "dani"
        assert parse(schema, "dan") == "dan"
        assert parse(schema, "d" * 100) == "d" * 100

    def test_string_outside_range(self):
        """Test too short and too long strings."""
        schema = StringSchema().min(3).max(100)

        with pytest.raises(ValidationError) as exc_info:
            schema.parse("da")
        assert [i.code for i in exc_info.value.issues] == [IssueCode.TOO_SMALL]

        with pytest.raises(ValidationError) as exc_info:
            schema.parse("d" * 101)
        assert [i.code for i in exc_info.value.issues] == [IssueCode.TOO_BIG]

    def test_email_number_boolean(self):
        """Test email, boolean and bounded number schemas."""
        with pytest.raises(ValidationError) as exc_info:
            StringSchema().email().parse("dani@example")
        assert exc_info.value.issues[0].code == IssueCode.INVALID_FORMAT
        assert exc_info.value.issues[0].message == "Invalid email"

        assert BooleanSchema().parse(True) is True
        assert NumberSchema().min(1000).max(1000000).parse(10000) == 10000

    def test_type_mismatch(self):
        """Test values of the wrong type without coercion."""
        result = NumberSchema().safe_parse("10000")
        assert not result.success
        issue = result.issues[0]
        assert issue.code == IssueCode.INVALID_TYPE
        assert issue.message == "Expected number, received string"
        assert issue.params == {"expected": "number", "received": "string"}

        assert not NumberSchema().safe_parse(True).success
        assert not NumberSchema().safe_parse(float("nan")).success
        assert not BooleanSchema().safe_parse(1).success
        assert not StringSchema().safe_parse(None).success

    def test_all_string_checks_accumulate(self):
        """Test every failing check is reported, not just the first."""
        schema = StringSchema().email().min(3).max(100)

        with pytest.raises(ValidationError) as exc_info:
            schema.parse("dn")

        codes = [issue.code for issue in exc_info.value.issues]
        assert codes == [IssueCode.INVALID_FORMAT, IssueCode.TOO_SMALL]

    def test_safe_parse_success(self):
        """Test safe_parse returns data on success."""
        schema = StringSchema().email().min(3).max(100)
        result = safe_parse(schema, "dani@example.com")

        assert result.success
        assert result
        assert result.data == "dani@example.com"
        assert result.issues == []
        assert result.error is None


class TestCoercion:
    """Test coercion toward primitive kinds."""

    def test_coerce_primitives(self):
        """Test string, boolean and number coercion."""
        assert StringSchema(coerce=True).min(3).max(100).parse(12345) == "12345"
        assert BooleanSchema(coerce=True).parse("true") is True
        assert BooleanSchema(coerce=True).parse("false") is False

        price = NumberSchema(coerce=True).min(1000).max(1000000).parse("10000")
        assert price == 10000
        assert isinstance(price, int)

    def test_coerced_value_still_checked(self):
        """Test constraints run against the coerced value."""
        result = NumberSchema(coerce=True).min(1000).safe_parse("12")
        assert not result.success
        assert result.issues[0].code == IssueCode.TOO_SMALL

    def test_impossible_coercion_skips_constraints(self):
        """Test a failed coercion records one issue and skips checks."""
        result = NumberSchema(coerce=True).min(1000).max(5).safe_parse("abc")
        assert not result.success
        assert len(result.issues) == 1
        assert result.issues[0].code == IssueCode.INVALID_TYPE

    def test_date_coercion_and_bounds(self):
        """Test date strings and dates within bounds."""
        schema = DateSchema(coerce=True).min(date(1980, 1, 1)).max(date(2020, 1, 1))

        assert schema.parse("1980-01-01") == datetime(1980, 1, 1)
        assert schema.parse(date(1990, 1, 1)) == datetime(1990, 1, 1)

        result = schema.safe_parse("1979-12-31")
        assert not result.success
        assert result.issues[0].code == IssueCode.TOO_SMALL
        assert result.issues[0].message == "Date must be greater than or equal to 1980-01-01T00:00:00"

    def test_invalid_date_string(self):
        """Test unparseable date strings."""
        result = DateSchema(coerce=True).safe_parse("not a date")
        assert not result.success
        assert result.issues[0].code == IssueCode.INVALID_DATE


class TestObjects:
    """Test object schemas."""

    def test_unknown_keys_dropped(self):
        """Test keys not in the shape are not copied to the output."""
        schema = ObjectSchema({
            "username": StringSchema().email(),
            "password": StringSchema().min(6).max(20),
        })
        request = {
            "username": "dani@test.com",
            "password": "rahasia",
            "ignore": "ignore",
            "name": "Dani Yudistira",
        }

        result = schema.parse(request)
        assert result == {"username": "dani@test.com", "password": "rahasia"}
        assert "ignore" in request  # input untouched

    def test_nested_object(self, address_schema):
        """Test a nested object is validated recursively."""
        schema = ObjectSchema({
            "id": StringSchema().max(100),
            "name": StringSchema().max(100),
            "address": address_schema,
        })
        request = {
            "id": "123",
            "name": "Dani Yudistira Maulana",
            "address": {
                "street": "Jalan Belum Jadi",
                "city": "Jakarta",
                "zip": "123123",
                "country": "Indonesia",
            },
        }
        assert schema.parse(request) == request

        request["address"]["zip"] = "12345678901"
        result = schema.safe_parse(request)
        assert not result.success
        assert result.issues[0].path == ("address", "zip")
        assert result.issues[0].location == "address.zip"

    def test_custom_messages(self, login_schema):
        """Test custom messages replace the defaults."""
        with pytest.raises(ValidationError) as exc_info:
            login_schema.parse({"username": "dani", "password": "12"})

        error = exc_info.value
        assert [(i.path, i.message) for i in error.issues] == [
            (("username",), "username harus email"),
            (("password",), "password min harus 6 karakter"),
        ]
        assert error.flatten() == {
            "form_errors": [],
            "field_errors": {
                "username": ["username harus email"],
                "password": ["password min harus 6 karakter"],
            },
        }

    def test_optional_field(self):
        """Test an absent optional field is omitted from the output."""
        schema = ObjectSchema({
            "username": StringSchema().email(),
            "password": StringSchema().min(6).max(20),
            "firstName": StringSchema().min(3).max(100),
            "lastName": StringSchema().min(3).max(100).optional(),
        })
        request = {
            "username": "dani@example.com",
            "password": "rahasia",
            "firstName": "Dani",
        }

        assert schema.parse(request) == request

        result = schema.safe_parse({**request, "lastName": "Yu"})
        assert not result.success
        assert result.issues[0].path == ("lastName",)

    def test_error_accumulation(self):
        """Test one issue per violation, in declaration order."""
        schema = ObjectSchema({
            "username": StringSchema().min(3),
            "age": NumberSchema().max(120),
            "email": StringSchema().email(),
            "password": StringSchema().min(6),
        })

        result = schema.safe_parse({"username": "ab", "age": 200})

        assert not result.success
        assert [(i.path, i.code) for i in result.issues] == [
            (("username",), IssueCode.TOO_SMALL),
            (("age",), IssueCode.TOO_BIG),
            (("email",), IssueCode.REQUIRED),
            (("password",), IssueCode.REQUIRED),
        ]


class TestCollections:
    """Test array, set and map schemas."""

    def test_array(self):
        """Test an array of emails."""
        schema = ArraySchema(StringSchema().email()).min(1).max(10)
        request = ["dani@example.com", "dian@example.com"]
        assert schema.parse(request) == request

    def test_array_element_issue_path(self):
        """Test element issues carry their index."""
        schema = ArraySchema(StringSchema().email()).min(1).max(10)
        result = schema.safe_parse(["dani@example.com", "dian"])
        assert not result.success
        assert result.issues[0].path == (1,)
        assert result.issues[0].location == "[1]"

    def test_set_deduplicates(self):
        """Test duplicate elements collapse before size checks."""
        schema = SetSchema(StringSchema().email()).min(1).max(10)
        result = schema.parse([
            "dani@example.com",
            "dian@example.com",
            "dian@example.com",
        ])
        assert result == {"dani@example.com", "dian@example.com"}

        single = SetSchema(StringSchema().email()).min(1).max(1)
        assert single.parse(["dian@example.com", "dian@example.com"]) == {"dian@example.com"}

    def test_set_from_python_set(self):
        """Test a real set is accepted."""
        schema = SetSchema(StringSchema().email()).min(1).max(10)
        request = {"dani@example.com", "dian@example.com"}
        assert schema.parse(request) == request

    def test_map(self):
        """Test keys and values are checked independently."""
        schema = MapSchema(StringSchema(), StringSchema().email())
        request = {"dani": "dani@example.com", "dian": "dian@emxaple.com"}
        assert schema.parse(request) == request

        result = schema.safe_parse({"dani": "dani@example.com", "dian": "dian"})
        assert not result.success
        assert result.issues[0].path == ("dian", "value")

    def test_map_key_issues(self):
        """Test malformed keys are reported under the key."""
        schema = MapSchema(StringSchema().min(3), StringSchema())
        result = schema.safe_parse({"ab": "x"})
        assert not result.success
        assert result.issues[0].path == ("ab", "key")
        assert result.issues[0].code == IssueCode.TOO_SMALL

    def test_map_key_and_value_issues(self):
        """Test a bad key and a bad value in one entry are both reported."""
        schema = MapSchema(StringSchema().min(3), StringSchema().email())
        result = schema.safe_parse({"ab": "dian", "dani": "dani@example.com"})
        assert [issue.path for issue in result.issues] == [("ab", "key"), ("ab", "value")]
        assert [issue.location for issue in result.issues] == ["ab.key", "ab.value"]


class TestTransforms:
    """Test transforms and refinements."""

    def test_transform(self):
        """Test a transform replaces the validated value."""
        schema = StringSchema().email().transform(lambda data: data.upper())
        assert schema.parse("dani@example.com") == "DANI@EXAMPLE.COM"

    def test_transform_skipped_when_invalid(self):
        """Test transforms do not run on invalid values."""
        calls = []
        schema = StringSchema().email().transform(lambda data: calls.append(data))
        assert not schema.safe_parse("dani").success
        assert calls == []

    def test_refinement_with_context(self):
        """Test a transform reporting an issue through the context."""
        schema = ObjectSchema({
            "username": StringSchema().email().transform(must_upper_case),
            "password": StringSchema().min(6).max(20),
        })

        request = {"username": "DANI@EXAMPLE.COM", "password": "rahasia"}
        assert schema.parse(request) == request

        with pytest.raises(ValidationError) as exc_info:
            schema.parse({"username": "dani@example.com", "password": "rahasia"})

        issue = exc_info.value.issues[0]
        assert issue.code == IssueCode.CUSTOM
        assert issue.message == "username harus uppercase"
        assert issue.path == ("username",)

    def test_batch_parse(self):
        """Test validating several values with one schema."""
        schema = NumberSchema(coerce=True).positive()
        results = safe_parse_many(schema, ["1", "-2", "3"])
        assert [r.success for r in results] == [True, False, True]

        results = safe_parse_many(schema, ["1", "-2", "3"], stop_on_error=True)
        assert len(results) == 2
