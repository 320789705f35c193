from __future__ import annotations

import pytest

from ipban_webui.app.core.errors import InvalidInput
from ipban_webui.app.services.config_document import (
    ConfigDocument,
    EndTag,
    StartTag,
    decode_attribute,
    encode_attribute,
)

from conftest import SAMPLE_CONFIG


def test_serialize_reproduces_input_exactly():
    text = SAMPLE_CONFIG.replace("\n", "\r\n")
    text = text.replace(
        "<configuration>",
        "<!DOCTYPE configuration [ <!ELEMENT configuration ANY> ]>\n<configuration>",
    )
    text = text.replace("<nlog>", "<![CDATA[ <not a tag> ]]><nlog>")
    doc = ConfigDocument.parse(text)
    assert doc.serialize() == text


def test_tokens_distinguish_tags():
    doc = ConfigDocument.parse('<a x="1"><b/></a>')
    kinds = [type(t) for t in doc.tokens]
    assert kinds == [StartTag, StartTag, EndTag]
    assert doc.tokens[1].self_closing is True


def test_malformed_document_rejected():
    with pytest.raises(InvalidInput):
        ConfigDocument.parse("<configuration><appSettings></configuration>")
    with pytest.raises(InvalidInput):
        ConfigDocument.parse("")


def test_get_values_first_match_and_missing_keys():
    doc = ConfigDocument.parse(SAMPLE_CONFIG)
    values = doc.get_values(["BanTime", "FirewallRulePrefix", "Whitelist", "CycleTime"])
    assert values == {"BanTime": "1.00:00:00", "FirewallRulePrefix": "IPBan_", "Whitelist": ""}


def test_only_direct_children_of_first_section_are_settings():
    text = (
        "<configuration>"
        "<appSettings>"
        '<add key="ExpireTime" />'
        '<add key="ExpireTime" value="1" />'
        '<group><add key="CycleTime" value="nested" /></group>'
        "</appSettings>"
        '<appSettings><add key="BanTime" value="second-section" /></appSettings>'
        "</configuration>"
    )
    doc = ConfigDocument.parse(text)
    assert doc.get_values(["ExpireTime", "CycleTime", "BanTime"]) == {"ExpireTime": "1"}


def test_with_values_changes_only_the_value_attribute():
    doc = ConfigDocument.parse(SAMPLE_CONFIG)
    updated = doc.with_values({"FirewallRulePrefix": "X", "BanTime": "2.00:00:00", "NotAKey": "Y"})
    expected = SAMPLE_CONFIG.replace("value='IPBan_'", "value='X'").replace(
        'value="1.00:00:00"', 'value="2.00:00:00"'
    )
    assert updated.serialize() == expected
    # the source document is untouched
    assert doc.serialize() == SAMPLE_CONFIG


def test_with_values_escapes_for_the_existing_quote():
    doc = ConfigDocument.parse(SAMPLE_CONFIG)
    updated = doc.with_values({"Whitelist": 'a<b & "c"', "FirewallRulePrefix": "it's"})
    text = updated.serialize()
    assert 'value="a&lt;b &amp; &quot;c&quot;"' in text
    assert "value='it&apos;s'" in text
    reparsed = ConfigDocument.parse(text)
    assert reparsed.get_values(["Whitelist", "FirewallRulePrefix"]) == {
        "Whitelist": 'a<b & "c"',
        "FirewallRulePrefix": "it's",
    }


def test_attribute_round_trip_keeps_newlines():
    encoded = encode_attribute("line1\nline2\tend", '"')
    assert "\n" not in encoded
    assert decode_attribute(encoded) == "line1\nline2\tend"


def test_decode_normalises_literal_whitespace():
    assert decode_attribute("a\r\nb\tc&#x41;&amp;") == "a b cA&"


ENTITY_CONFIG = (
    '<?xml version="1.0"?>\n'
    "<!DOCTYPE configuration [\n"
    '  <!ENTITY prefix "IPBan_">\n'
    "  <!ENTITY day '1.00:00:00'>\n"
    '  <!ENTITY full "&prefix;Rule">\n'
    "]>\n"
    "<configuration>\n"
    "  <appSettings>\n"
    '    <add key="FirewallRulePrefix" value="&prefix;" />\n'
    '    <add key="BanTime" value="&day;" extra="&full;" />\n'
    "  </appSettings>\n"
    "</configuration>\n"
)


def test_internal_entities_are_expanded():
    doc = ConfigDocument.parse(ENTITY_CONFIG)
    assert doc.get_values(["FirewallRulePrefix", "BanTime"]) == {
        "FirewallRulePrefix": "IPBan_",
        "BanTime": "1.00:00:00",
    }
    _, tag = doc.find_setting("BanTime")
    assert tag.attribute("extra").value == "IPBan_Rule"


def test_with_values_next_to_entity_references():
    doc = ConfigDocument.parse(ENTITY_CONFIG)
    updated = doc.with_values({"BanTime": "2.00:00:00"})
    assert updated.serialize() == ENTITY_CONFIG.replace('value="&day;"', 'value="2.00:00:00"')
    _, tag = updated.find_setting("BanTime")
    assert tag.attribute("extra").value == "IPBan_Rule"
    assert tag.raw[tag.attribute("extra").start:tag.attribute("extra").end] == "&full;"
    assert updated.get_values(["FirewallRulePrefix"]) == {"FirewallRulePrefix": "IPBan_"}


def test_undeclared_entity_is_rejected():
    with pytest.raises(InvalidInput):
        ConfigDocument.parse('<configuration><appSettings><add key="BanTime" value="&nope;"/></appSettings></configuration>')
