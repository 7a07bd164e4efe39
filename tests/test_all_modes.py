"""Behaviour every mode handler shares."""

from __future__ import annotations

import orjson
import pytest

from deepthinking.modes.types import ErrorCode, ModeEnhancements, ThinkingMode

ALL_MODES = [m.value for m in ThinkingMode]


@pytest.mark.parametrize("mode", ALL_MODES)
class TestCommonValidation:
    """Structural checks run before any mode-specific validation."""

    def test_empty_thought(self, factory, make_input, mode: str) -> None:
        result = factory.validate(make_input(mode, thought="  "))
        assert not result.valid
        assert result.error_codes == [ErrorCode.EMPTY_THOUGHT.value]

    def test_number_beyond_total(self, factory, make_input, mode: str) -> None:
        result = factory.validate(make_input(mode, number=4, total=3))
        assert result.error_codes == [ErrorCode.INVALID_THOUGHT_NUMBER.value]
        assert result.errors[0].message == "Thought number (4) exceeds total thoughts (3)"

    def test_minimal_input_is_valid(self, factory, make_input, mode: str) -> None:
        assert factory.validate(make_input(mode)).valid

    def test_unknown_thought_type_warns(self, factory, make_input, mode: str) -> None:
        result = factory.validate(make_input(mode, thoughtType="interpretive_dance"))
        assert result.valid
        if mode != ThinkingMode.CUSTOM.value:
            assert any("interpretive_dance" in m for m in result.warning_messages)


@pytest.mark.parametrize("mode", ALL_MODES)
class TestConstruction:
    """Thought construction and feedback from minimal input."""

    def test_create_and_enhance(self, factory, make_input, mode: str) -> None:
        thought = factory.create_thought(make_input(mode, number=2, total=3), "session-1")
        assert thought.mode.value == mode
        assert thought.session_id == "session-1"
        assert thought.thought_number == 2
        assert thought.next_thought_needed is True

        enhancements = factory.get_enhancements(thought)
        assert isinstance(enhancements, ModeEnhancements)
        assert all(isinstance(m, ThinkingMode) for m in enhancements.related_modes)

    def test_serializable(self, factory, make_input, mode: str) -> None:
        thought = factory.create_thought(make_input(mode), "s")
        payload = orjson.loads(orjson.dumps(thought.to_dict()))
        assert payload["mode"] == mode
        assert payload["content"] == "Reasoning step"
        orjson.dumps(factory.get_enhancements(thought).to_dict())

    def test_ids_are_unique(self, factory, make_input, mode: str) -> None:
        first = factory.create_thought(make_input(mode), "s")
        second = factory.create_thought(make_input(mode), "s")
        assert first.id != second.id
