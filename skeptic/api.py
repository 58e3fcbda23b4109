from fastapi import FastAPI, Body, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from datetime import datetime, timezone
import logging

from .schemas import (
    ArticleRecord, FetchRequest, AnalyzeRequest, AnalyzeResponse,
    AnalyzeUrlResponse, ExportRequest, ShareResponse, Analysis,
)
from .fetcher import fetch_html, InvalidURL, FetchError
from .extractor import extract_article, EmptyExtraction
from .analyzer import analyze_article, AnalysisUnavailable, AnalysisParseError
from . import report

log = logging.getLogger("uvicorn.error")

app = FastAPI(title="Digital Skeptic API", version="1.0.0")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], allow_credentials=False,
    allow_methods=["*"], allow_headers=["*"],
)

# -------------------- Helpers --------------------

async def _article_from_url(url: str) -> ArticleRecord:
    try:
        doc = await fetch_html(url)
    except InvalidURL as e:
        raise HTTPException(status_code=400, detail=str(e))
    except FetchError as e:
        # upstream 4xx/5xx is passed through, transport failures are a bad gateway
        raise HTTPException(status_code=e.status_code or 502, detail=e.reason)

    try:
        return extract_article(doc.html, doc.url)
    except EmptyExtraction as e:
        raise HTTPException(status_code=422, detail=str(e))

def _analyze(article: ArticleRecord) -> Analysis:
    try:
        return analyze_article(article)
    except AnalysisParseError:
        raise HTTPException(status_code=502, detail="Failed to parse AI analysis response")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AnalysisUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception:
        log.exception("analysis error")
        raise HTTPException(status_code=500, detail="Failed to analyze article")

# -------------------- Endpoints --------------------

@app.get("/healthz")
def healthz():
    return {"ok": True, "time": datetime.now(timezone.utc).isoformat()}

@app.post("/fetch-article", response_model=ArticleRecord, response_model_exclude_none=True,
          tags=["ingest"], summary="Fetch & extract article content by URL")
async def fetch_article(payload: FetchRequest = Body(...)):
    return await _article_from_url(payload.url)

@app.post("/analyze-article", response_model=AnalyzeResponse)
def analyze(payload: AnalyzeRequest = Body(...)):
    return AnalyzeResponse(analysis=_analyze(payload.article))

@app.post("/analyze-url", response_model=AnalyzeUrlResponse, response_model_exclude_none=True)
async def analyze_url(payload: FetchRequest = Body(...)):
    article = await _article_from_url(payload.url)
    analysis = await run_in_threadpool(_analyze, article)
    return AnalyzeUrlResponse(article=article, analysis=analysis)

@app.post("/export")
def export(payload: ExportRequest = Body(...),
           format: str = Query("json", pattern="^(json|text)$")):
    now = datetime.now(timezone.utc)
    if format == "json":
        body, ext, media = report.export_json(payload.article, payload.analysis, now), "json", "application/json"
    else:
        body, ext, media = report.export_text(payload.article, payload.analysis, now), "txt", "text/plain"
    filename = report.export_filename(ext, now)
    return Response(
        content=body,
        media_type=media,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

@app.post("/copy", response_model=ShareResponse)
def copy(payload: ExportRequest = Body(...)):
    return ShareResponse(text=report.copy_text(payload.article, payload.analysis))

@app.post("/share", response_model=ShareResponse)
def share(payload: ExportRequest = Body(...)):
    return ShareResponse(text=report.share_text(payload.article, payload.analysis))
