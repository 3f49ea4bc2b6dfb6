"""Tests for grounded search result handling."""
from __future__ import annotations

from types import SimpleNamespace

from jobnado.grounded import GroundedResult, GroundedSearchClient


def chunk(title, uri):
    return SimpleNamespace(web=SimpleNamespace(title=title, uri=uri) if uri is not None else None)


def response(text, chunks):
    meta = SimpleNamespace(grounding_chunks=chunks)
    return SimpleNamespace(text=text, candidates=[SimpleNamespace(grounding_metadata=meta)])


class FakeModels:
    def __init__(self, resp):
        self.resp = resp
        self.calls = []

    def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        return self.resp


def test_search_enables_google_search_tool():
    models = FakeModels(response("Title: X", []))
    client = GroundedSearchClient("key", "search-model", client=SimpleNamespace(models=models))
    result = client.search("find jobs")
    assert result.text == "Title: X"
    call = models.calls[0]
    assert call["model"] == "search-model"
    assert call["contents"] == "find jobs"
    assert call["config"].tools[0].google_search is not None


def test_sources_are_read_from_grounding_chunks():
    resp = response("t", [chunk("Acme Careers", "https://acme.example/1"), chunk("No link", ""), chunk("x", None)])
    sources = GroundedResult("t", response=resp).sources
    assert [(s.title, s.uri) for s in sources] == [("Acme Careers", "https://acme.example/1")]


def test_sources_empty_without_metadata():
    assert GroundedResult("t", response=SimpleNamespace(candidates=[])).sources == []
    assert GroundedResult("t", response=None).sources == []


def test_none_text_becomes_empty_string():
    models = FakeModels(SimpleNamespace(text=None, candidates=None))
    result = GroundedSearchClient("k", "m", client=SimpleNamespace(models=models)).search("p")
    assert result.text == ""
    assert result.sources == []
