"""Test doubles for the generative and OCR clients."""
import json
import dataclasses
import re

from grantaudit.config.settings import AppSettings, ModelConfiguration
from grantaudit.utils.exceptions import LLMError

CHUNK_PATTERN = re.compile(r"<<<\n(.*)\n>>>", re.DOTALL)

CONFIGURATIONS = [
    ModelConfiguration(name="primary", model="model-a", strict_schema=True),
    ModelConfiguration(name="fallback", model="model-b", strict_schema=False),
]


def make_settings(**overrides) -> AppSettings:
    """Packaged settings with test overrides."""
    return dataclasses.replace(AppSettings.load(), **overrides)


def chunk_of(prompt: str) -> str:
    return CHUNK_PATTERN.search(prompt).group(1)


def payload(*records) -> str:
    return json.dumps({"transactions": list(records)})


def record(narration, amount, direction="DEBIT", date="01/04/2024"):
    return {"date": date, "narration": narration, "amount": amount, "direction": direction,
            "gstNo": None, "voucherNo": None}


class ScriptedClient:
    """Returns (or raises) the scripted responses in call order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def generate(self, instruction, contents, configuration, response_schema=None):
        self.calls.append((configuration.name, contents))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class RowEchoClient:
    """
    Reads rows shaped like "NARRATION AMOUNT DEBIT" from the chunk in the
    prompt and returns them as JSON; chunks longer than `max_chars` fail.
    """

    def __init__(self, max_chars: int = 10_000):
        self.max_chars = max_chars
        self.prompts = []

    def generate(self, instruction, contents, configuration, response_schema=None):
        self.prompts.append(contents)
        text = chunk_of(contents)
        if len(text) > self.max_chars:
            raise LLMError("response truncated")
        records = []
        for line in text.splitlines():
            parts = line.split()
            if len(parts) >= 3 and parts[-1] in ("DEBIT", "CREDIT"):
                records.append(record(" ".join(parts[:-2]), float(parts[-2]), parts[-1]))
        return payload(*records)


class FakeOcr:
    def __init__(self, text: str = "", error: Exception = None):
        self.text = text
        self.error = error
        self.calls = []

    def recognize(self, document, mime_type):
        self.calls.append(mime_type)
        if self.error:
            raise self.error
        return self.text
