"""Unit tests for static data extraction."""

from declmcp.logic.compiler.core.static_data import NOT_STATIC, extract_static, is_static
from declmcp.logic.compiler.models.type_nodes import FieldNode, TypeNode, TypeTag, literal, primitive


class TestExtractStatic:
    """Test literal shapes and their values."""

    def test_single_literals(self):
        """Test scalar literal values."""
        assert extract_static(literal("x")) == "x"
        assert extract_static(literal(42)) == 42
        assert extract_static(literal(-1.5)) == -1.5
        assert extract_static(literal(True)) is True
        assert extract_static(literal(None)) is None

    def test_literal_union_is_not_static(self):
        """Test that a multi-value literal has no single value."""
        assert extract_static(literal("a", "b")) is NOT_STATIC

    def test_tuple_of_literals(self, build_type):
        """Test fixed-length tuples keep element order."""
        node = build_type('tuple[Literal[1], Literal["a"]]')
        assert extract_static(node) == [1, "a"]

    def test_object_of_literals(self, build_type):
        """Test dict display annotations become mappings."""
        node = build_type('{"apiVersion": Literal["2.0"], "nested": {"on": Literal[True]}}')
        assert extract_static(node) == {"apiVersion": "2.0", "nested": {"on": True}}

    def test_object_from_class(self, build_type):
        """Test object shapes declared as classes in the same module."""
        module = '''
        class Config:
            mode: Literal["fast"]
            level: Literal[3]
        '''
        assert extract_static(build_type("Config", module)) == {"mode": "fast", "level": 3}

    def test_all_or_nothing(self, build_type):
        """Test a single non-literal member makes the whole value non-static."""
        assert extract_static(build_type('{"a": Literal[1], "b": str}')) is NOT_STATIC
        assert extract_static(build_type('tuple[Literal[1], int]')) is NOT_STATIC

    def test_non_literal_shapes(self):
        """Test primitives, arrays and unknown types."""
        assert extract_static(primitive("string")) is NOT_STATIC
        assert extract_static(TypeNode(tag=TypeTag.ARRAY, items=literal(1))) is NOT_STATIC
        assert extract_static(TypeNode(tag=TypeTag.UNKNOWN, raw="Foo")) is NOT_STATIC

    def test_empty_object(self):
        """Test an object with no fields is the empty mapping."""
        assert extract_static(TypeNode(tag=TypeTag.OBJECT)) == {}

    def test_nested_failure_propagates(self):
        """Test nested non-literal fields."""
        inner = TypeNode(tag=TypeTag.OBJECT, fields=(FieldNode("x", primitive("integer")),))
        outer = TypeNode(tag=TypeTag.OBJECT, fields=(FieldNode("inner", inner),))
        assert extract_static(outer) is NOT_STATIC


class TestNotStatic:
    """Test the sentinel."""

    def test_sentinel_is_falsy_singleton(self):
        """Test NOT_STATIC behaves as a unique falsy marker."""
        assert not NOT_STATIC
        assert type(NOT_STATIC)() is NOT_STATIC
        assert repr(NOT_STATIC) == "NOT_STATIC"

    def test_is_static(self):
        """Test falsy literal values still count as static."""
        assert is_static(0)
        assert is_static(None)
        assert is_static("")
        assert not is_static(NOT_STATIC)
