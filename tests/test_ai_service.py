from unittest.mock import Mock, patch

from relay.services.ai_service import build_system_instruction, build_turns, generate_reply
from relay.services.llm import LLMProviderError, LLMResponse
from relay.services.mode_service import Mode
from relay.services.result import GENERATION_EMPTY, GENERATION_ERROR
from relay.services.session_store import ChatTurn


class TestBuildSystemInstruction:
    def test_includes_budget(self):
        assert "50個字以內" in build_system_instruction(Mode.DEFAULT, 50)

    def test_style_differs_per_mode(self):
        instructions = {build_system_instruction(mode, 20) for mode in Mode}
        assert len(instructions) == len(Mode)


class TestBuildTurns:
    def test_history_then_new_user_turn(self):
        history = [ChatTurn("user", "早"), ChatTurn("assistant", "早安。")]
        assert build_turns(history, "吃了嗎") == [
            {"role": "user", "text": "早"},
            {"role": "assistant", "text": "早安。"},
            {"role": "user", "text": "吃了嗎"},
        ]


class TestGenerateReply:
    def test_success_strips_content(self):
        provider = Mock()
        provider.generate.return_value = LLMResponse(content="  好喔  ", model="m")

        result = generate_reply("嗨", mode=Mode.DEFAULT, history=[], budget=20, provider=provider, max_output_tokens=100)

        assert result.ok is True
        assert result.value == "好喔"
        assert provider.generate.call_args.kwargs["max_output_tokens"] == 100

    def test_provider_error(self):
        provider = Mock()
        provider.generate.side_effect = LLMProviderError("Gemini HTTP 500", status_code=500)

        result = generate_reply("嗨", mode=Mode.DEFAULT, history=[], budget=20, provider=provider)

        assert result.ok is False
        assert result.error_code == GENERATION_ERROR

    def test_empty_output(self):
        provider = Mock()
        provider.generate.return_value = LLMResponse(content="", model="m")

        result = generate_reply("嗨", mode=Mode.DEFAULT, history=[], budget=20, provider=provider)

        assert result.error_code == GENERATION_EMPTY

    @patch("relay.services.ai_service.get_llm_provider")
    def test_uses_configured_provider_by_default(self, mock_get_provider):
        mock_get_provider.return_value.generate.return_value = LLMResponse(content="嗯。", model="m")

        result = generate_reply("嗨", mode=Mode.LIGHT, history=[], budget=20)

        assert result.value == "嗯。"
        mock_get_provider.assert_called_once()
