"""Tests for JSON extraction from model output."""

import pytest

from arthastra.services.ai.errors import MalformedModelOutput
from arthastra.services.ai.output_parser import parse_model_json


class TestParseModelJson:

    def test_plain_object(self):
        assert parse_model_json('{"a": 1}') == {"a": 1}

    def test_markdown_fence(self):
        text = '```json\n{"selectedAgent": "RECOVERY", "reason": "x"}\n```'
        assert parse_model_json(text)["selectedAgent"] == "RECOVERY"

    def test_prose_around_nested_object(self):
        text = 'Sure! Here you go: {"analysis": [{"id": "1", "actions": [{"impact": 20}]}], "roadmap": "r"} Hope it helps.'
        data = parse_model_json(text)
        assert data["analysis"][0]["actions"][0]["impact"] == 20

    @pytest.mark.parametrize("text", ["", "no json here", "{not: valid}", "[1, 2]"])
    def test_malformed(self, text):
        with pytest.raises(MalformedModelOutput) as info:
            parse_model_json(text)
        assert str(info.value).startswith("Failed to parse JSON from response")

    def test_raw_text_kept(self):
        with pytest.raises(MalformedModelOutput) as info:
            parse_model_json("nothing")
        assert info.value.raw_text == "nothing"
