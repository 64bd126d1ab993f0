"""
Tests for field values: parsing, cloning and visitor dispatch.

Run with: pytest vrml97/tests/test_fields.py -v
"""

import pytest

from vrml97.context import ParserContext
from vrml97.errors import InvalidFieldException, UnexpectedEndOfInput
from vrml97.fields import (
    FIELD_TYPES, FieldVisitor, MFColor, MFFloat, MFInt32, MFNode, MFString,
    MFVec3f, SFBool, SFColor, SFDouble, SFFloat, SFImage, SFInt32, SFNode,
    SFRotation, SFString, SFTime, SFVec2f, SFVec3f, SFVec4f,
)
from vrml97.lexer import tokenize
from vrml97.options import ParserOptions
from vrml97.parser import parse


def context(text):
    return ParserContext(tokenize(text))


def parse_value(field_cls, text):
    ctx = context(text)
    value = field_cls.parse(ctx)
    assert ctx.at_end()
    return value


class TestSingleValueFields:
    """SF* literal syntax."""

    def test_bool(self):
        assert parse_value(SFBool, "TRUE") == SFBool(True)
        assert parse_value(SFBool, "FALSE") == SFBool(False)

    def test_bool_rejects_other_words(self):
        with pytest.raises(InvalidFieldException):
            parse_value(SFBool, "yes")

    def test_int32(self):
        assert parse_value(SFInt32, "-42") == SFInt32(-42)
        assert parse_value(SFInt32, "0x1F") == SFInt32(31)

    def test_int32_range(self):
        assert parse_value(SFInt32, "2147483647") == SFInt32(2147483647)
        assert parse_value(SFInt32, "-2147483648") == SFInt32(-2147483648)
        assert parse_value(SFInt32, "0xFFFFFFFF") == SFInt32(0xFFFFFFFF)

    def test_int32_out_of_range(self):
        for text in ("99999999999", "2147483648", "-2147483649", "0x100000000"):
            with pytest.raises(InvalidFieldException) as exc:
                parse_value(SFInt32, text)
            assert exc.value.token.value == text

    def test_int32_rejects_float(self):
        with pytest.raises(InvalidFieldException) as exc:
            parse_value(SFInt32, "1.5")
        assert "integer" in exc.value.message

    def test_float_types(self):
        assert parse_value(SFFloat, "0.25") == SFFloat(0.25)
        assert parse_value(SFFloat, "3") == SFFloat(3.0)
        assert parse_value(SFDouble, "1e-3") == SFDouble(0.001)
        assert parse_value(SFTime, "-1") == SFTime(-1.0)

    def test_float_out_of_range(self):
        with pytest.raises(InvalidFieldException) as exc:
            parse_value(SFFloat, "1e999")
        assert "out of range" in exc.value.message
        with pytest.raises(InvalidFieldException):
            parse_value(SFVec2f, "0 -1e400")

    def test_string(self):
        assert parse_value(SFString, '"a \\"b\\""') == SFString('a "b"')

    def test_string_requires_quotes(self):
        with pytest.raises(InvalidFieldException):
            parse_value(SFString, "bare")

    def test_vectors(self):
        assert parse_value(SFVec2f, "1 -2") == SFVec2f(1.0, -2.0)
        assert parse_value(SFVec3f, "1 2 3") == SFVec3f(1.0, 2.0, 3.0)
        assert parse_value(SFVec4f, "1 2 3 4") == SFVec4f(1.0, 2.0, 3.0, 4.0)

    def test_commas_between_components(self):
        assert parse_value(SFVec3f, "1, 2, 3") == SFVec3f(1.0, 2.0, 3.0)

    def test_rotation(self):
        rotation = parse_value(SFRotation, "0 0 1 1.57")
        assert rotation == SFRotation(0.0, 0.0, 1.0, 1.57)
        assert rotation.angle == 1.57

    def test_rotation_axis_not_normalized(self):
        assert parse_value(SFRotation, "0 0 2 1").z == 2.0

    def test_color_not_clamped(self):
        color = parse_value(SFColor, "1.5 -0.2 0")
        assert (color.red, color.green, color.blue) == (1.5, -0.2, 0.0)

    def test_image(self):
        image = parse_value(SFImage, "2 1 3 0xFF0000 0x00FF00")
        assert (image.width, image.height, image.components) == (2, 1, 3)
        assert image.pixels == [0xFF0000, 0x00FF00]

    def test_empty_image(self):
        assert parse_value(SFImage, "0 0 0") == SFImage(0, 0, 0, [])

    def test_image_bad_components(self):
        with pytest.raises(InvalidFieldException):
            parse_value(SFImage, "1 1 7 0")

    def test_image_too_few_pixels(self):
        with pytest.raises(UnexpectedEndOfInput):
            parse_value(SFImage, "2 2 1 0 0 0")

    def test_null_node(self):
        assert parse_value(SFNode, "NULL") == SFNode(None)

    def test_node_value(self):
        value = parse_value(SFNode, "Sphere { radius 2 }")
        assert value.node.type_name == "Sphere"
        assert value.node["radius"] == SFFloat(2.0)


class TestMalformedValues:
    """A short or wrong value raises at the offending token."""

    def test_short_rotation(self):
        ctx = context("1 0 0 scale")
        with pytest.raises(InvalidFieldException) as exc:
            SFRotation.parse(ctx)
        assert exc.value.token.value == "scale"
        assert ctx.peek().value == "scale"

    def test_short_rotation_at_end(self):
        with pytest.raises(UnexpectedEndOfInput):
            parse_value(SFRotation, "1 0 0")

    def test_string_where_number_expected(self):
        with pytest.raises(InvalidFieldException) as exc:
            parse_value(SFVec2f, '1 "two"')
        assert "string 'two'" in exc.value.message


class TestMultiValueFields:
    """MF* literal syntax."""

    def test_bracketed_list(self):
        value = parse_value(MFVec3f, "[1 0 0, 0 1 0]")
        assert len(value) == 2
        assert value[0] == SFVec3f(1.0, 0.0, 0.0)
        assert value[1] == SFVec3f(0.0, 1.0, 0.0)

    def test_single_bare_value(self):
        value = parse_value(MFVec3f, "1 2 3")
        assert list(value) == [SFVec3f(1.0, 2.0, 3.0)]

    def test_empty_list(self):
        assert len(parse_value(MFFloat, "[]")) == 0

    def test_trailing_comma(self):
        assert len(parse_value(MFVec3f, "[1 0 0, 0 1 0,]")) == 2

    def test_ints(self):
        value = parse_value(MFInt32, "[1, -2, 0x10]")
        assert [v.value for v in value] == [1, -2, 16]

    def test_strings(self):
        value = parse_value(MFString, '["a.wrl" "b.wrl"]')
        assert [v.value for v in value] == ["a.wrl", "b.wrl"]

    def test_unclosed_list(self):
        with pytest.raises(UnexpectedEndOfInput):
            parse_value(MFFloat, "[1 2 3")

    def test_wrong_element(self):
        with pytest.raises(InvalidFieldException):
            parse_value(MFColor, "[1 0 0, TRUE]")

    def test_nodes(self):
        value = parse_value(MFNode, "[Box { }, Sphere { }]")
        assert [node.type_name for node in value.nodes] == ["Box", "Sphere"]

    def test_null_not_allowed_in_mfnode(self):
        with pytest.raises(InvalidFieldException):
            parse_value(MFNode, "[Box { } NULL]")

    def test_append_checks_element_type(self):
        value = MFVec3f()
        value.append(SFVec3f(1, 2, 3))
        with pytest.raises(TypeError):
            value.append(SFVec2f(1, 2))
        assert len(value) == 1

    def test_constructor_checks_element_type(self):
        with pytest.raises(TypeError):
            MFFloat([SFFloat(1.0), SFDouble(2.0)])

    def test_equality(self):
        assert MFFloat([SFFloat(1.0)]) == MFFloat([SFFloat(1.0)])
        assert MFFloat([SFFloat(1.0)]) != MFFloat([SFFloat(2.0)])
        assert MFFloat() != MFInt32()


class TestClone:
    """clone() gives an independent deep copy."""

    def test_clone_equal(self):
        original = parse_value(MFVec3f, "[1 0 0, 0 1 0]")
        assert original.clone() == original

    def test_clone_independent(self):
        original = parse_value(MFVec3f, "[1 0 0, 0 1 0]")
        copy = original.clone()
        copy[0].x = 5.0
        copy.append(SFVec3f(0, 0, 1))
        assert original[0].x == 1.0
        assert len(original) == 2

    def test_clone_image_pixels(self):
        original = SFImage(1, 1, 1, [7])
        copy = original.clone()
        copy.pixels.append(8)
        assert original.pixels == [7]

    def test_clone_keeps_shared_nodes_shared(self):
        scene = parse("DEF A Box { } Group { children [USE A, USE A] }")
        children = scene.nodes[1]["children"]
        copy = children.clone()
        assert copy.nodes[0] is copy.nodes[1]
        assert copy.nodes[0] is not scene.nodes[0]
        assert copy == children

    def test_clone_tree_nested_to_max_depth(self):
        depth = ParserOptions().max_depth
        scene = parse("Group { children [ " * depth + "]}" * depth)
        node = scene.nodes[0].clone()
        assert node is not scene.nodes[0]
        levels = 0
        while node is not None:
            levels += 1
            children = node["children"].nodes
            node = children[0] if children else None
        assert levels == depth

    def test_clone_script_interface_independent(self):
        scene = parse("Script { field SFInt32 total 5 }")
        original = scene.nodes[0]
        copy = original.clone()
        assert copy == original
        copy.interface.fields["total"].default.value = 9
        copy["total"].value = 9
        assert original.interface.fields["total"].default == SFInt32(5)
        assert original["total"] == SFInt32(5)


class TestVisitor:
    """Double dispatch from field values to FieldVisitor methods."""

    def test_every_type_has_its_own_method(self):
        methods = {cls.visit_method for cls in FIELD_TYPES.values()}
        assert len(FIELD_TYPES) == 28
        assert len(methods) == 28
        assert all(hasattr(FieldVisitor, name) for name in methods)

    def test_type_names(self):
        assert all(cls.type_name == name for name, cls in FIELD_TYPES.items())

    def test_dispatch(self):
        class Describer(FieldVisitor):
            def visit_sf_rotation(self, field):
                return f"rotation by {field.angle}"

            def visit_mf_vec3f(self, field):
                return f"{len(field)} points"

            def generic_visit(self, field):
                return field.type_name

        describer = Describer()
        assert SFRotation(0, 1, 0, 0.5).accept_visitor(describer) == "rotation by 0.5"
        assert MFVec3f([SFVec3f()]).accept_visitor(describer) == "1 points"
        assert SFBool(True).accept_visitor(describer) == "SFBool"

    def test_unhandled_type_raises(self):
        with pytest.raises(NotImplementedError):
            SFBool(True).accept_visitor(FieldVisitor())
