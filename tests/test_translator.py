import json

import pytest

from config import Config
from payload import AlgorithmData
from translator import (
    AUDIO_FALLBACK,
    FALLBACK_MODELS,
    GeminiTranslator,
    TranslatorError,
    build_query,
    extract_json,
)

from conftest import ARRAY_PAYLOAD, make_algorithm


class FakeModelInfo:
    def __init__(self, name, methods=("generateContent",)):
        self.name = name
        self.supported_generation_methods = list(methods)


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeGenAI:
    """Stands in for the google.generativeai module."""

    def __init__(self, reply="", models=None, fail=False, list_fails=False):
        self.reply = reply
        self.models = models if models is not None else []
        self.fail = fail
        self.list_fails = list_fails
        self.prompts = []
        self.used_models = []

    def list_models(self):
        if self.list_fails:
            raise ConnectionError("offline")
        return list(self.models)

    def GenerativeModel(self, name):
        self.used_models.append(name)
        return self

    def generate_content(self, prompt):
        self.prompts.append(prompt)
        if self.fail:
            raise ConnectionError("quota exceeded")
        return FakeResponse(self.reply)


ALGORITHM_JSON = json.dumps({
    "name": "Bubble Sort",
    "description": "Swap neighbours until sorted.",
    "steps": [{"step": 1, "description": "Compare 4 and 2", "code": "if a[0] > a[1]",
               "explanation": "4 is larger"}],
    "pseudocode": "repeat\n  swap",
    "timeComplexity": "O(n^2)",
    "spaceComplexity": "O(1)",
    "visualizationData": ARRAY_PAYLOAD,
})


@pytest.mark.parametrize("custom, expected", [
    ("", "sort"),
    ("5, 3, 8", "sort with array [5, 3, 8]"),
    ("5x, -, 7", "sort with graph 5x, -, 7"),
    ("A-B, B-C", "sort with graph A-B, B-C"),
    ("12abc", "sort with graph 12abc"),
    ("4,,  9 ,", "sort with array [4, 9]"),
    (" , ", "sort"),
])
def test_build_query(custom, expected):
    assert build_query("  sort ", custom) == expected


def test_extract_json_takes_outermost_object():
    text = 'Sure! Here it is:\n```json\n{"a": {"b": 1}}\n```\nEnjoy.'
    assert extract_json(text) == {"a": {"b": 1}}


@pytest.mark.parametrize("text", ["no json here", "{not: valid}", ""])
def test_extract_json_rejects_bad_replies(text):
    with pytest.raises(TranslatorError):
        extract_json(text)


def test_search_parses_reply():
    genai = FakeGenAI(reply="Here you go " + ALGORITHM_JSON, models=[
        FakeModelInfo("models/gemini-pro"),
        FakeModelInfo("models/gemini-1.5-flash"),
    ])
    data = GeminiTranslator(client=genai).search("bubble sort with array [4, 2, 3, 2, 1]")
    assert isinstance(data, AlgorithmData)
    assert data.name == "Bubble Sort"
    assert data.steps[0].description == "Compare 4 and 2"
    assert data.visualization.kind == "array"
    assert genai.used_models == ["models/gemini-1.5-flash"]
    assert "bubble sort with array [4, 2, 3, 2, 1]" in genai.prompts[0]


def test_model_resolution():
    embed_only = FakeModelInfo("models/embedding-001", methods=("embedContent",))
    genai = FakeGenAI(models=[embed_only, FakeModelInfo("models/gemini-pro")])
    assert GeminiTranslator(client=genai).resolve_model() == "models/gemini-pro"

    genai = FakeGenAI(models=[embed_only])
    assert GeminiTranslator(client=genai).resolve_model() == FALLBACK_MODELS[0]

    genai = FakeGenAI(list_fails=True)
    assert GeminiTranslator(client=genai).resolve_model() == FALLBACK_MODELS[0]

    assert GeminiTranslator(client=FakeGenAI(), model_name="pinned").resolve_model() == "pinned"


def test_search_wraps_model_failure():
    translator = GeminiTranslator(client=FakeGenAI(fail=True), model_name="m")
    with pytest.raises(TranslatorError, match="Failed to generate algorithm data"):
        translator.search("dijkstra")


def test_search_rejects_unparseable_reply():
    translator = GeminiTranslator(client=FakeGenAI(reply="I cannot help."), model_name="m")
    with pytest.raises(TranslatorError):
        translator.search("dijkstra")


def test_search_rejects_empty_query():
    with pytest.raises(ValueError):
        GeminiTranslator(client=FakeGenAI()).search("   ")


def test_missing_api_key(monkeypatch):
    monkeypatch.delenv(Config.gemini_api_key_env, raising=False)
    translator = GeminiTranslator()
    assert not translator.configured
    with pytest.raises(TranslatorError, match="API key not found"):
        translator.search("bfs")


def test_audio_script_uses_algorithm_details():
    genai = FakeGenAI(reply="  Let's talk about bubble sort.  ")
    script = GeminiTranslator(client=genai, model_name="m").generate_audio_script(
        make_algorithm(ARRAY_PAYLOAD))
    assert script == "Let's talk about bubble sort."
    assert "Bubble Sort" in genai.prompts[0]
    assert "O(n^2)" in genai.prompts[0]


@pytest.mark.parametrize("genai", [FakeGenAI(fail=True), FakeGenAI(reply="   ")])
def test_audio_script_falls_back(genai):
    translator = GeminiTranslator(client=genai, model_name="m")
    assert translator.generate_audio_script(make_algorithm(ARRAY_PAYLOAD)) == AUDIO_FALLBACK
