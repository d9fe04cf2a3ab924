"""
translator.py — Natural Language → AlgorithmData
=================================================
Asks Gemini to explain an algorithm as a JSON document the visualizer
can load: name, description, steps, pseudocode, complexity and a
visualization payload.

    translator = GeminiTranslator()
    data = translator.search(build_query("bubble sort", "5,3,8,1"))

Design decisions:
  - google.generativeai is imported on first use, so the rest of the app
    (and the test suite) runs without the package configured.
  - The model is chosen once per translator: Config.gemini_model if set,
    otherwise the first listed model that supports generateContent,
    preferring flash / lite models for their quotas.
  - The reply is free text; the first `{` to the last `}` is taken as the
    JSON document.  Anything that fails there raises TranslatorError.
  - generate_audio_script() never raises for a model failure: it returns
    a short apology instead, because the audio panel is optional.
"""

import json
import logging
import re
from typing import Any, List, Optional

from config import Config
from payload.types import AlgorithmData

logger = logging.getLogger(__name__)

FALLBACK_MODELS = ["gemini-1.5-flash", "gemini-1.5-pro", "gemini-pro"]
AUDIO_FALLBACK = "Unable to generate audio explanation at this time."

_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")
_LEADING_INT = re.compile(r"^[+-]?\d+")


class TranslatorError(RuntimeError):
    """The model could not be reached or its reply could not be used."""


# ---------------------------------------------------------------------------
# Query building
# ---------------------------------------------------------------------------
def build_query(query: str, custom_data: str = "") -> str:
    """
    Fold the optional custom data box into the query text.

    `A-B, B-C` (anything with a dash or a letter) is passed on as a graph;
    `5, 3, 8` becomes ` with array [5, 3, 8]`.  Entries that do not start
    with an integer are skipped; if none are left the query is unchanged.
    """
    query = query.strip()
    custom = (custom_data or "").strip()
    if not custom:
        return query
    if "-" in custom or re.search(r"[A-Za-z]", custom):
        return f"{query} with graph {custom}"

    numbers: List[int] = []
    for part in custom.split(","):
        match = _LEADING_INT.match(part.strip())
        if match:
            numbers.append(int(match.group()))
    if not numbers:
        return query
    return f"{query} with array [{', '.join(str(n) for n in numbers)}]"


def extract_json(text: str) -> Any:
    match = _JSON_BLOCK.search(text or "")
    if not match:
        raise TranslatorError("Could not parse algorithm data from response")
    try:
        return json.loads(match.group())
    except json.JSONDecodeError as exc:
        raise TranslatorError(f"Model returned malformed JSON: {exc}") from exc


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------
SEARCH_PROMPT = """
You are an expert in Data Structures and Algorithms.
Based on the user's natural language query: "{query}"

Please provide a comprehensive response in the following JSON format:

{{
  "name": "Algorithm Name",
  "description": "Clear description of what the algorithm does",
  "steps": [
    {{
      "step": 1,
      "description": "Step description",
      "code": "pseudocode snippet for this step",
      "explanation": "Detailed explanation"
    }}
  ],
  "pseudocode": "Complete pseudocode for the algorithm",
  "timeComplexity": "Time complexity analysis (e.g., O(n log n))",
  "spaceComplexity": "Space complexity analysis (e.g., O(1))",
  "visualizationData": {{
    "type": "array|graph|tree|linkedlist",
    "data": [sample data for visualization]
  }}
}}

IMPORTANT INSTRUCTIONS:
1. If the query contains a specific array (like "with array [4,2,3,2,1]"), use THAT EXACT array in visualizationData
2. Break the algorithm into clear, executable steps showing how it works with the given data
3. Each step should show the current state of the data after that operation
4. Provide accurate complexity analysis
5. Write clear, educational pseudocode
6. Explain each step in detail with the actual values being processed

For sorting algorithms show each comparison and swap and the array after each pass.
For searching algorithms show the element being checked and how the search space shrinks.

For graph algorithms, provide visualization data in adjacency list format:
{{
  "type": "graph",
  "data": {{
    "A": ["B", "C"],
    "B": ["A", "D"],
    "C": ["A", "D"],
    "D": ["B", "C"]
  }}
}}

For linked list algorithms, provide visualization data in this format:
{{
  "type": "linkedlist",
  "data": {{
    "nodes": [
      {{"value": 1, "id": "node1"}},
      {{"value": 2, "id": "node2"}},
      {{"value": 3, "id": "node3"}}
    ],
    "connections": [
      {{"from": "node1", "to": "node2"}},
      {{"from": "node2", "to": "node3"}}
    ],
    "head": "node1",
    "tail": "node3"
  }}
}}

For array algorithms, provide array data for step-by-step visualization:
{{
  "type": "array",
  "data": [4, 2, 3, 2, 1]
}}
"""

AUDIO_PROMPT = """
Create a clear, educational audio script for explaining the algorithm "{name}".

The script should:
1. Be conversational and easy to understand
2. Explain the algorithm in 2-3 minutes
3. Cover the main concept, steps, and complexity
4. Be suitable for text-to-speech conversion

Algorithm details:
- Description: {description}
- Time Complexity: {time}
- Space Complexity: {space}

Write the script as if you're teaching a student.
"""


# ---------------------------------------------------------------------------
# Translator
# ---------------------------------------------------------------------------
class GeminiTranslator:
    """
    Attributes:
        api_key    : Gemini key; defaults to the env var named in Config.
        model_name : Resolved model, filled on first use.
    """

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None,
                 client: Any = None):
        self.api_key = api_key or Config.api_key()
        self.model_name = model_name or Config.gemini_model
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.api_key) or self._client is not None

    def _genai(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise TranslatorError(
                    f"API key not found. Please set {Config.gemini_api_key_env} in your environment"
                )
            import google.generativeai as genai
            genai.configure(api_key=self.api_key)
            self._client = genai
        return self._client

    def resolve_model(self) -> str:
        if self.model_name:
            return self.model_name
        genai = self._genai()
        try:
            usable = [m for m in genai.list_models()
                      if "generateContent" in getattr(m, "supported_generation_methods", ())]
        except Exception as exc:
            logger.warning("could not list Gemini models (%s); using %s", exc, FALLBACK_MODELS[0])
            usable = []
        preferred = [m for m in usable if "flash" in m.name or "lite" in m.name]
        chosen = preferred or usable
        self.model_name = chosen[0].name if chosen else FALLBACK_MODELS[0]
        logger.info("using Gemini model %s", self.model_name)
        return self.model_name

    def _generate(self, prompt: str) -> str:
        genai = self._genai()
        model = genai.GenerativeModel(self.resolve_model())
        response = model.generate_content(prompt)
        return getattr(response, "text", "") or ""

    def search(self, query: str) -> AlgorithmData:
        """Ask the model about `query` and parse the reply."""
        if not query.strip():
            raise ValueError("query must not be empty")
        self._genai()
        try:
            text = self._generate(SEARCH_PROMPT.format(query=query))
        except Exception as exc:
            logger.exception("Gemini request failed for %r", query)
            raise TranslatorError("Failed to generate algorithm data") from exc
        try:
            return AlgorithmData.from_dict(extract_json(text))
        except ValueError as exc:
            raise TranslatorError(str(exc)) from exc

    def generate_audio_script(self, data: AlgorithmData) -> str:
        prompt = AUDIO_PROMPT.format(
            name=data.name,
            description=data.description,
            time=data.time_complexity,
            space=data.space_complexity,
        )
        try:
            return self._generate(prompt).strip() or AUDIO_FALLBACK
        except Exception:
            logger.exception("audio script generation failed for %r", data.name)
            return AUDIO_FALLBACK
