"""
Tests for the translate_json command line.

The provider factory and translator are replaced with fakes so the whole
command runs without a model server.
"""

import json

import pytest
import translate_json


@pytest.fixture
def input_file(tmp_path):
    path = tmp_path / "strings.json"
    path.write_text(json.dumps({"title": "Hello", "body": "Welcome back", "id": "s-1"}), encoding="utf-8")
    return path


@pytest.fixture
def use_translator(monkeypatch):
    """Route the CLI to the given fake translator."""
    def install(translator):
        monkeypatch.setattr(translate_json, "create_llm_provider", lambda *args, **kwargs: object())
        monkeypatch.setattr(translate_json, "LLMJsonTranslator", lambda provider: translator)
        return translator
    return install


class TestMain:
    """Test translate_json.main."""

    def test_translates_to_default_output(self, input_file, use_translator, prefix_translator, capsys):
        use_translator(prefix_translator)

        code = translate_json.main(["-i", str(input_file), "-tl", "French"])

        assert code == 0
        output = input_file.parent / "strings_french.json"
        assert json.loads(output.read_text(encoding="utf-8")) == {
            "title": "FR:Hello", "body": "FR:Welcome back", "id": "s-1"
        }
        assert "Completed without issues" in capsys.readouterr().out

    def test_existing_output_not_overwritten(self, input_file, use_translator, prefix_translator):
        use_translator(prefix_translator)
        existing = input_file.parent / "strings_french.json"
        existing.write_text("{}", encoding="utf-8")

        assert translate_json.main(["-i", str(input_file), "-tl", "French"]) == 0

        assert existing.read_text(encoding="utf-8") == "{}"
        assert (input_file.parent / "strings_french (1).json").exists()

    def test_options_forwarded(self, input_file, tmp_path, use_translator, identity_translator):
        use_translator(identity_translator)

        translate_json.main([
            "-i", str(input_file), "-o", str(tmp_path / "out.json"),
            "-sl", "English", "-tl", "German", "--topic", "onboarding", "--protect", "body",
        ])

        call = identity_translator.calls[0]
        assert call["target_language"] == "German"
        assert call["topic"] == "onboarding"
        assert identity_translator.sent_values == ["Hello"]

    def test_total_outage_exit_code(self, input_file, use_translator, make_translator):
        use_translator(make_translator(fail_when=lambda request_map: True))

        assert translate_json.main(["-i", str(input_file)]) == 1

    def test_invalid_batch_size(self, input_file, use_translator, identity_translator):
        use_translator(identity_translator)

        assert translate_json.main(["-i", str(input_file), "--batch-size", "0"]) == 2
        assert identity_translator.calls == []

    def test_missing_input_file(self, tmp_path, use_translator, identity_translator):
        use_translator(identity_translator)

        assert translate_json.main(["-i", str(tmp_path / "missing.json")]) == 1

    def test_openai_requires_api_key(self, input_file):
        with pytest.raises(SystemExit):
            translate_json.main(["-i", str(input_file), "--provider", "openai", "--api_key", ""])


class TestBuildParser:

    def test_defaults(self):
        args = translate_json.build_parser().parse_args(["-i", "in.json"])

        assert args.output is None
        assert args.api_endpoint is None
        assert args.protect == []
        assert args.verbose is False
