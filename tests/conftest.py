"""
Pytest configuration and shared fixtures.

The embedding model and the LLM are replaced by deterministic fakes so the
suite runs offline.
"""
import asyncio
import io
import os
import re
import time

import numpy as np
import pandas as pd
import pytest

TRIP_SHEET = "Trip Data"
CHECKIN_SHEET = "Checked in User ID's"
DEMOGRAPHICS_SHEET = "Customer Demographics"


class FakeEmbedder:
    """
    Bag-of-words embedder. Every distinct token gets its own dimension, so
    texts that share words are closer than texts that don't.
    """

    DIM = 512

    def __init__(self):
        self.vocab = {}
        self.document_calls = 0
        self.query_calls = 0

    def _vector(self, text):
        vec = np.zeros(self.DIM, dtype="float32")
        for token in re.findall(r"[a-z0-9]+", text.lower()):
            if token not in self.vocab:
                self.vocab[token] = len(self.vocab) % self.DIM
            vec[self.vocab[token]] += 1.0
        return vec

    async def embed_documents(self, texts):
        self.document_calls += 1
        if not texts:
            return np.zeros((0, self.DIM), dtype="float32")
        return np.vstack([self._vector(t) for t in texts])

    async def embed_query(self, text):
        self.query_calls += 1
        return self._vector(text)


class FakeLLM:
    """Records every message list it is given and answers 'answer N'."""

    def __init__(self, fail=False, delay=0.0):
        self.calls = []
        self.fail = fail
        self.delay = delay

    async def chat(self, model, messages, **kwargs):
        self.calls.append({"model": model, "messages": list(messages), "kwargs": kwargs})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("model unavailable")
        return f"answer {len(self.calls)}"


def make_workbook(sheets):
    """{sheet name: list of row dicts} -> .xlsx bytes."""
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        for name, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=name, index=False)
    return buf.getvalue()


def scenario_sheets():
    """One trip on 2023-01-01 (serial 44927), checked in by U1 aged 30."""
    return {
        TRIP_SHEET: [
            {
                "Trip ID": "T1",
                "Booking User ID": "B9",
                "Pick Up Address": "Airport Blvd",
                "Drop Off Address": "6th Street",
                "Total Passengers": 8,
                "Trip Date and Time": 44927,
            }
        ],
        CHECKIN_SHEET: [{"Trip ID": "T1", "User ID": "U1"}],
        DEMOGRAPHICS_SHEET: [{"User ID": "U1", "Age": 30}],
    }


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def scenario_workbook():
    return make_workbook(scenario_sheets())


def _local_zone(name):
    old = os.environ.get("TZ")
    os.environ["TZ"] = name
    time.tzset()
    yield
    if old is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = old
    time.tzset()


@pytest.fixture
def utc_local_time():
    """Run the test with the process's local zone set to UTC."""
    yield from _local_zone("UTC")


@pytest.fixture
def central_local_time():
    """Run the test six hours behind UTC (POSIX zone string, no tz database needed)."""
    yield from _local_zone("CST6")
