"""Unit tests for ParamSchema construction and compiled validators."""

import pytest

from declmcp.lib.exceptions import ParamValidationError
from declmcp.logic.compiler.core.schema_compiler import build_param_schema, compile_schema
from declmcp.logic.compiler.models.param_schema import ParamSchema, SchemaKind, StringFormat

WEATHER_MODULE = '''
class WeatherParams(TypedDict):
    city: Annotated[str, Param(min_length=2)]
    days: NotRequired[Annotated[int, Field(ge=1, le=14)]]
    units: Literal["metric", "imperial"]
    note: str | None
'''


class TestBuildParamSchema:
    """Test TypeNode to ParamSchema conversion."""

    def test_object_schema(self, build_type):
        """Test object properties, optionality and constraints."""
        schema = build_param_schema(build_type("WeatherParams", WEATHER_MODULE))

        assert schema.kind == SchemaKind.OBJECT
        assert schema.title == "WeatherParams"
        assert list(schema.properties) == ["city", "days", "units", "note"]
        assert schema.required_properties() == ["city", "units"]
        assert schema.properties["city"].constraints.min_length == 2
        assert schema.properties["days"].constraints.minimum == 1
        assert schema.properties["units"].kind == SchemaKind.ENUM
        assert schema.properties["units"].values == ["metric", "imperial"]
        assert schema.properties["note"].kind == SchemaKind.UNION

    def test_literal_none_is_null(self, build_type):
        """Test None annotations."""
        assert build_param_schema(build_type("None")).kind == SchemaKind.NULL

    def test_union_of_literals_is_enum(self, build_type):
        """Test Literal["a"] | Literal["b"] merges into one enum."""
        schema = build_param_schema(build_type('Literal["a"] | Literal["b"]'))
        assert schema.kind == SchemaKind.ENUM
        assert schema.values == ["a", "b"]

    def test_unknown_format_dropped(self, build_type):
        """Test formats outside the known set are ignored."""
        schema = build_param_schema(build_type('Annotated[str, Param(format="hostname")]'))
        assert schema.constraints.format is None

    def test_list_length_becomes_item_count(self, build_type):
        """Test min_length on a list constrains the number of items."""
        schema = build_param_schema(build_type("Annotated[list[str], Param(min_length=1)]"))
        assert schema.constraints.min_items == 1
        assert schema.constraints.min_length is None

    def test_unrepresentable_types_are_any(self, build_type):
        """Test callables and unknown names."""
        assert build_param_schema(build_type("Callable[[], int]")).kind == SchemaKind.ANY
        assert build_param_schema(build_type("ExternalModel")).kind == SchemaKind.ANY

    def test_any_paths(self, build_type):
        """Test detection of unconstrained positions."""
        module = '''
        class Query(TypedDict):
            text: str
            extra: Any
            tags: list[Any]
        '''
        schema = build_param_schema(build_type("Query", module))
        assert schema.any_paths() == ["extra", "tags[]"]


class TestCompiledValidator:
    """Test validation through the compiled TypeAdapter."""

    @pytest.fixture
    def validator(self, build_type):
        return compile_schema(build_param_schema(build_type("WeatherParams", WEATHER_MODULE)), name="get_weather.params")

    def test_valid_input(self, validator):
        """Test a valid object validates into a plain dict."""
        value = {"city": "Oslo", "units": "metric", "note": None}
        assert validator.validate(value) == value
        assert validator.is_valid({"city": "Oslo", "units": "imperial", "days": 3, "note": "x"})

    def test_missing_required_field(self, validator):
        """Test required properties."""
        errors = validator.errors({"units": "metric", "note": None})
        assert [error["path"] for error in errors] == ["city"]

    def test_constraint_violations(self, validator):
        """Test length, range and enum constraints."""
        assert not validator.is_valid({"city": "O", "units": "metric", "note": None})
        assert not validator.is_valid({"city": "Oslo", "units": "metric", "note": None, "days": 30})
        assert not validator.is_valid({"city": "Oslo", "units": "kelvin", "note": None})

    def test_strict_primitives(self, validator):
        """Test that numeric strings are not coerced."""
        assert not validator.is_valid({"city": "Oslo", "units": "metric", "note": None, "days": "3"})

    def test_validate_raises_with_field_errors(self, validator):
        """Test ParamValidationError carries per-field messages."""
        with pytest.raises(ParamValidationError) as exc_info:
            validator.validate({"city": 5, "units": "metric", "note": None})

        assert "city" in exc_info.value.field_errors
        assert exc_info.value.details["schema_name"] == "get_weather.params"

    def test_json_schema(self, validator):
        """Test the exported JSON Schema."""
        schema = validator.json_schema()
        assert schema["type"] == "object"
        assert set(schema["required"]) == {"city", "units"}
        assert schema["properties"]["city"]["minLength"] == 2

    def test_empty_object(self):
        """Test the default params schema."""
        validator = compile_schema(ParamSchema.empty_object())
        assert validator.validate({}) == {}
        assert validator.any_paths == []


class TestStringFormats:
    """Test format constraints."""

    def _validator(self, fmt: StringFormat):
        schema = ParamSchema(kind=SchemaKind.STRING, constraints={"format": fmt})
        return compile_schema(schema, name=f"{fmt.value}.value")

    def test_email(self):
        validator = self._validator(StringFormat.EMAIL)
        assert validator.is_valid("someone@mail.org")
        assert not validator.is_valid("not-an-email")

    def test_uuid(self):
        validator = self._validator(StringFormat.UUID)
        assert validator.is_valid("12345678-1234-5678-1234-567812345678")
        assert not validator.is_valid("1234")

    def test_url(self):
        validator = self._validator(StringFormat.URL)
        assert validator.is_valid("https://example.com/path")
        assert not validator.is_valid("no scheme here")
        assert validator.json_schema()["format"] == "uri"

    def test_ip_addresses(self):
        assert self._validator(StringFormat.IPV4).is_valid("10.0.0.1")
        assert not self._validator(StringFormat.IPV4).is_valid("::1")
        assert self._validator(StringFormat.IPV6).is_valid("::1")

    def test_date_time(self):
        validator = self._validator(StringFormat.DATE_TIME)
        assert validator.is_valid("2024-05-01T10:00:00Z")
        assert not validator.is_valid("yesterday")

    def test_date_time_requires_time(self):
        validator = self._validator(StringFormat.DATE_TIME)
        assert validator.is_valid("2024-05-01 10:00:00+02:00")
        assert not validator.is_valid("2024-01-01")
