"""Unit tests for the structural type builder."""

from declmcp.logic.compiler.models.type_nodes import TypeTag


class TestPrimitiveAndContainerTypes:
    """Test builtin annotations."""

    def test_primitives(self, build_type):
        """Test builtin scalar names."""
        assert build_type("str").primitive == "string"
        assert build_type("int").primitive == "integer"
        assert build_type("float").primitive == "number"
        assert build_type("bool").primitive == "boolean"
        assert build_type("datetime").primitive == "datetime"
        assert build_type("typing.Any").primitive == "any"

    def test_list_and_dict(self, build_type):
        """Test arrays and records."""
        array = build_type("list[int]")
        assert array.tag == TypeTag.ARRAY
        assert array.items.primitive == "integer"

        record = build_type("dict[str, float]")
        assert record.tag == TypeTag.RECORD
        assert record.items.primitive == "number"

    def test_set_is_unique_array(self, build_type):
        """Test sets become arrays with unique items."""
        node = build_type("set[str]")
        assert node.tag == TypeTag.ARRAY
        assert node.constraints == {"unique_items": True}

    def test_variadic_tuple_is_array(self, build_type):
        """Test tuple[T, ...] is a homogeneous array."""
        node = build_type("tuple[int, ...]")
        assert node.tag == TypeTag.ARRAY
        assert node.items.primitive == "integer"

    def test_callable(self, build_type):
        """Test callables are kept as their own tag."""
        assert build_type("Callable[..., int]").tag == TypeTag.CALLABLE

    def test_unknown_name(self, build_type):
        """Test names not defined in the module stay unknown."""
        node = build_type("SomethingImported")
        assert node.tag == TypeTag.UNKNOWN
        assert node.raw == "SomethingImported"


class TestUnions:
    """Test unions and optional types."""

    def test_pipe_union_with_none_is_optional(self, build_type):
        """Test X | None marks the node optional."""
        node = build_type("str | None")
        assert node.tag == TypeTag.UNION
        assert node.optional is True
        assert len(node.options) == 2

    def test_optional(self, build_type):
        """Test Optional[X]."""
        assert build_type("Optional[int]").optional is True

    def test_nested_unions_flatten(self, build_type):
        """Test Union[A, Union[B, C]] has three options."""
        node = build_type("Union[int, Union[str, bool]]")
        assert [option.primitive for option in node.options] == ["integer", "string", "boolean"]

    def test_literal_union(self, build_type):
        """Test a multi-value literal."""
        node = build_type('Literal["a", "b"]')
        assert node.tag == TypeTag.LITERAL
        assert node.values == ("a", "b")


class TestAnnotatedConstraints:
    """Test Param/Field metadata."""

    def test_param_keywords(self, build_type):
        """Test constraint keywords are collected."""
        node = build_type('Annotated[str, Param(min_length=3, format="email", description="Contact")]')
        assert node.constraints == {"min_length": 3, "format": "email"}
        assert node.description == "Contact"

    def test_field_alias_keywords(self, build_type):
        """Test pydantic Field keywords map onto constraint names."""
        node = build_type("Annotated[int, Field(ge=1, le=10)]")
        assert node.constraints == {"minimum": 1, "maximum": 10}

    def test_string_metadata_is_description(self, build_type):
        """Test a bare string in Annotated."""
        assert build_type('Annotated[int, "Number of days"]').description == "Number of days"

    def test_iparam_class(self, build_type):
        """Test a class extending IParam used as metadata."""
        module = '''
        class CityParam(IParam):
            type: Literal["string"]
            description: Literal["City name"]
            min: Literal[2]
            max: Literal[64]
        '''
        node = build_type("Annotated[str, CityParam]", module)
        assert node.constraints == {"min_length": 2, "max_length": 64}
        assert node.description == "City name"

    def test_iparam_numeric_bounds(self, build_type):
        """Test min/max on numeric IParam types are value bounds."""
        module = '''
        class Days(IParam):
            type: Literal["integer"]
            min: Literal[1]
            max: Literal[14]
            required: Literal[False]
        '''
        node = build_type("Days", module)
        assert node.primitive == "integer"
        assert node.constraints == {"minimum": 1, "maximum": 14}
        assert node.optional is True


class TestClasses:
    """Test object shapes declared as classes."""

    def test_typed_dict_fields(self, build_type):
        """Test fields, defaults and NotRequired."""
        module = '''
        class WeatherParams(TypedDict):
            """Weather query."""
            city: str
            """City to look up."""
            days: NotRequired[int]
            units: Literal["metric", "imperial"] = "metric"
        '''
        node = build_type("WeatherParams", module)
        assert node.tag == TypeTag.OBJECT
        assert node.name == "WeatherParams"
        assert node.description == "Weather query."
        city, days, units = node.fields
        assert (city.name, city.optional, city.description) == ("city", False, "City to look up.")
        assert days.optional is True
        assert units.optional is True

    def test_total_false(self, build_type):
        """Test total=False makes every field optional."""
        module = '''
        class Filters(TypedDict, total=False):
            tag: str
            limit: int
        '''
        assert all(member.optional for member in build_type("Filters", module).fields)

    def test_inherited_fields(self, build_type):
        """Test fields of module-local bases come first."""
        module = '''
        class Base(TypedDict):
            id: str

        class Child(Base):
            name: str
        '''
        assert [member.name for member in build_type("Child", module).fields] == ["id", "name"]

    def test_recursive_class_is_reference(self, build_type):
        """Test self-referencing classes terminate."""
        module = '''
        class Node(TypedDict):
            value: int
            children: list["Node"]
        '''
        node = build_type("Node", module)
        children = node.get_field("children")
        assert children.type.tag == TypeTag.ARRAY
        assert children.type.items.tag == TypeTag.REFERENCE
        assert children.type.items.name == "Node"

    def test_classvar_skipped(self, build_type):
        """Test ClassVar members are not fields."""
        module = '''
        class Shape(TypedDict):
            kind: ClassVar[str]
            size: int
        '''
        assert [member.name for member in build_type("Shape", module).fields] == ["size"]

    def test_type_alias(self, build_type):
        """Test TypeAlias declarations resolve."""
        module = '''
        Units: TypeAlias = Literal["metric", "imperial"]
        '''
        assert build_type("Units", module).values == ("metric", "imperial")
