# tests/test_api.py
from fastapi.testclient import TestClient

from skeptic import api
from skeptic.api import app
from skeptic.analyzer import AnalysisParseError, AnalysisUnavailable
from skeptic.fetcher import FetchError
from skeptic.schemas import Analysis, RawDocument

client = TestClient(app)

PAGE = """<html><head><title>Council approves budget</title>
<script>if (a < b) { track() }</script></head>
<body><article><p>The council voted 7-2 on Tuesday to approve the budget.</p></article></body></html>"""

ARTICLE = {
    "title": "Council approves budget",
    "content": "The council voted 7-2 on Tuesday to approve the budget.",
    "url": "https://news.example.com/a",
    "preview": "The council voted 7-2 on Tuesday to approve the budget.",
}

ANALYSIS = {
    "claims": [{"claim": "Budget passed 7-2", "confidence": "High", "evidence": "Minutes", "type": "Factual"}],
    "credibilityScore": 7,
    "verificationQuestions": ["Who voted against?"],
    "recommendations": ["Read the minutes"],
}

def _serve(monkeypatch, html):
    async def fake_fetch(url, **kw):
        return RawDocument(url=url, html=html)
    monkeypatch.setattr(api, "fetch_html", fake_fetch)

def test_healthz():
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.json().get("ok") is True

def test_fetch_article(monkeypatch):
    _serve(monkeypatch, PAGE)
    r = client.post("/fetch-article", json={"url": "https://news.example.com/a"})
    assert r.status_code == 200
    body = r.json()
    assert body["title"] == "Council approves budget"
    assert body["content"] == ARTICLE["content"]
    assert body["preview"] == body["content"]
    assert "author" not in body

def test_fetch_article_nothing_extractable(monkeypatch):
    _serve(monkeypatch, "<html><div>nothing</div></html>")
    r = client.post("/fetch-article", json={"url": "https://news.example.com/a"})
    assert r.status_code == 422
    assert r.json()["detail"] == "Could not extract article content from this URL"

def test_fetch_article_invalid_url():
    r = client.post("/fetch-article", json={"url": "not a url"})
    assert r.status_code == 400

def test_fetch_article_upstream_status(monkeypatch):
    async def fake_fetch(url, **kw):
        raise FetchError(404, "Failed to fetch article: 404 Not Found")
    monkeypatch.setattr(api, "fetch_html", fake_fetch)
    r = client.post("/fetch-article", json={"url": "https://news.example.com/gone"})
    assert r.status_code == 404
    assert "404" in r.json()["detail"]

def test_fetch_article_transport_failure(monkeypatch):
    async def fake_fetch(url, **kw):
        raise FetchError(None, "Failed to fetch article: timed out")
    monkeypatch.setattr(api, "fetch_html", fake_fetch)
    r = client.post("/fetch-article", json={"url": "https://slow.example.com/"})
    assert r.status_code == 502

def test_analyze_article(monkeypatch):
    monkeypatch.setattr(api, "analyze_article", lambda article: Analysis(**ANALYSIS))
    r = client.post("/analyze-article", json={"article": ARTICLE})
    assert r.status_code == 200
    assert r.json()["analysis"]["credibilityScore"] == 7

def test_analyze_article_empty_content():
    r = client.post("/analyze-article", json={"article": dict(ARTICLE, content="", preview="")})
    assert r.status_code == 400

def test_analyze_article_without_key(monkeypatch):
    def unavailable(article):
        raise AnalysisUnavailable("OPENAI_API_KEY environment variable is required")
    monkeypatch.setattr(api, "analyze_article", unavailable)
    r = client.post("/analyze-article", json={"article": ARTICLE})
    assert r.status_code == 503

def test_analyze_article_unparseable_reply(monkeypatch):
    def bad_reply(article):
        raise AnalysisParseError("reply is not JSON")
    monkeypatch.setattr(api, "analyze_article", bad_reply)
    r = client.post("/analyze-article", json={"article": ARTICLE})
    assert r.status_code == 502
    assert r.json()["detail"] == "Failed to parse AI analysis response"

def test_analyze_article_unexpected_failure(monkeypatch):
    def broken(article):
        raise RuntimeError("upstream exploded")
    monkeypatch.setattr(api, "analyze_article", broken)
    r = client.post("/analyze-article", json={"article": ARTICLE})
    assert r.status_code == 500

def test_analyze_url(monkeypatch):
    _serve(monkeypatch, PAGE)
    seen = {}
    def fake_analyze(article):
        seen["title"] = article.title
        return Analysis(**ANALYSIS)
    monkeypatch.setattr(api, "analyze_article", fake_analyze)
    r = client.post("/analyze-url", json={"url": "https://news.example.com/a"})
    assert r.status_code == 200
    body = r.json()
    assert seen["title"] == "Council approves budget"
    assert body["article"]["url"] == "https://news.example.com/a"
    assert body["analysis"]["claims"][0]["claim"] == "Budget passed 7-2"

def test_export_text():
    r = client.post("/export?format=text", json={"article": ARTICLE, "analysis": ANALYSIS})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/plain")
    assert ".txt" in r.headers["content-disposition"]
    assert "Author: Not specified" in r.text

def test_export_json():
    r = client.post("/export", json={"article": ARTICLE, "analysis": ANALYSIS})
    assert r.status_code == 200
    assert ".json" in r.headers["content-disposition"]
    assert r.json()["article"]["title"] == "Council approves budget"
    assert r.json()["exportedAt"].endswith("Z")

def test_export_unknown_format():
    r = client.post("/export?format=pdf", json={"article": ARTICLE, "analysis": ANALYSIS})
    assert r.status_code == 422

def test_share_and_copy():
    r = client.post("/share", json={"article": ARTICLE, "analysis": ANALYSIS})
    assert r.status_code == 200
    assert r.json()["text"].endswith("Key findings: Budget passed 7-2")
    r = client.post("/copy", json={"article": ARTICLE, "analysis": ANALYSIS})
    assert "• Who voted against?" in r.json()["text"]
