"""Tests for markup sanitizing and color validation."""
import pytest

from app.services.sanitizer import is_valid_color, normalize_color, sanitize, sanitize_envelope

def test_allowed_markup_is_kept():
    assert sanitize("<b>Al</b>ice") == "<b>Al</b>ice"
    assert sanitize("<marquee>wow</marquee>") == "<marquee>wow</marquee>"

def test_disallowed_tags_are_stripped():
    out = sanitize("<script>alert(1)</script>hi")
    assert "<script" not in out
    assert out.endswith("hi")

def test_event_handler_attributes_are_stripped():
    out = sanitize('<img src="https://example.com/a.png" width="10" onerror="alert(1)">')
    assert "onerror" not in out
    assert 'src="https://example.com/a.png"' in out
    assert 'width="10"' in out

def test_only_http_links_survive():
    assert "javascript" not in sanitize('<a href="javascript:alert(1)">x</a>')
    assert 'href="https://example.com"' in sanitize('<a href="https://example.com">x</a>')

def test_style_keeps_only_color_properties():
    out = sanitize('<span style="color: red; position: absolute; font-size: 12px">x</span>')
    assert "color: red" in out
    assert "font-size: 12px" in out
    assert "position" not in out

def test_style_not_allowed_on_other_tags():
    assert "style" not in sanitize('<p style="color: red">x</p>')

@pytest.mark.parametrize("text", [
    "plain",
    "<b>Al</b>ice",
    "a & b < c",
    "<script>x</script><i>y</i>",
    '<div style="background-color: #fff; margin: 0">z</div>',
    '<a href="http://e.com" title="t">l</a><!-- c -->',
])
def test_sanitize_is_idempotent(text):
    once = sanitize(text)
    assert sanitize(once) == once

@pytest.mark.parametrize("value", ["#fff", "#A1B2C3", "rgb(1, 2, 3)", "rgba(0,0,0,0.5)", "rgba(255, 255, 255, 1)"])
def test_valid_colors(value):
    assert is_valid_color(value)
    assert normalize_color(value, "#000000") == value

@pytest.mark.parametrize("value", ["notacolor", "#ffff", "red", "rgb(1,2)", "#fff; background: url(x)", 12])
def test_invalid_colors_fall_back_to_default(value):
    assert not is_valid_color(value)
    assert normalize_color(value, "#000000") == "#000000"

def test_empty_color_is_left_empty():
    assert normalize_color("", "#000000") == ""
    assert normalize_color(None, "#000000") is None

def test_sanitize_envelope_touches_only_known_fields():
    env = {
        "type": "change",
        "username": "<script>x</script>bob",
        "oldUn": "<b>al</b>",
        "color": "bogus",
        "extra": "<script>kept</script>",
    }
    out = sanitize_envelope(env, "#000000")

    assert out["username"] == "xbob"
    assert out["oldUn"] == "<b>al</b>"
    assert out["color"] == "#000000"
    assert out["extra"] == env["extra"]
    assert env["color"] == "bogus"

def test_sanitize_envelope_coerces_non_strings():
    assert sanitize_envelope({"message": 42}, "#000000")["message"] == "42"
