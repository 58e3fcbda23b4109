from __future__ import annotations
import json
from datetime import datetime, timezone
from typing import List, Optional

from .fetcher import source_domain
from .schemas import Analysis, ArticleRecord

APP_NAME = "Digital Skeptic AI"
NOT_SPECIFIED = "Not specified"

def export_filename(ext: str, when: datetime) -> str:
    return f"digital-skeptic-analysis-{when.date().isoformat()}.{ext}"

def _score(v: Optional[float]) -> str:
    """ "7/10", or "N/A" when the model gave no score """
    if v is None:
        return "N/A"
    n = str(int(v)) if float(v).is_integer() else f"{v:g}"
    return f"{n}/10"

def credibility_label(v: Optional[float]) -> str:
    if v is None:
        return "Not rated"
    if v >= 8:
        return "High Credibility"
    if v >= 6:
        return "Moderate Credibility"
    if v >= 4:
        return "Low Credibility"
    return "Very Low Credibility"

def _iso_utc(when: datetime) -> str:
    # same shape as JavaScript toISOString(), e.g. 2024-03-05T14:30:00.000Z
    when = when.astimezone(timezone.utc)
    return when.strftime("%Y-%m-%dT%H:%M:%S.") + f"{when.microsecond // 1000:03d}Z"

def export_json(article: ArticleRecord, analysis: Analysis, when: datetime) -> str:
    data = {
        "article": article.model_dump(exclude_none=True),
        "analysis": analysis.model_dump(),
        "exportedAt": _iso_utc(when),
        "url": article.url,
    }
    return json.dumps(data, indent=2, ensure_ascii=False)

def export_text(article: ArticleRecord, analysis: Analysis, when: datetime) -> str:
    """ Plain-text report, one section per part of the analysis """
    out: List[str] = [
        f"{APP_NAME.upper()} - ANALYSIS REPORT",
        f"Generated: {when.strftime('%Y-%m-%d %H:%M:%S')}",
        "=" * 50,
        "",
        "ARTICLE INFORMATION",
        f"Title: {article.title}",
        f"Author: {article.author or NOT_SPECIFIED}",
        f"URL: {article.url}",
        f"Source: {source_domain(article.url) or NOT_SPECIFIED}",
        f"Content Length: {len(article.content):,} characters",
        "",
        f"CREDIBILITY SCORE: {_score(analysis.credibilityScore)}",
        credibility_label(analysis.credibilityScore),
        "",
    ]

    out += ["CORE CLAIMS", "-" * 20]
    for i, c in enumerate(analysis.claims, 1):
        out.append(f"{i}. {c.claim}")
        out.append(f"   Confidence: {c.confidence} | Type: {c.type}")
        out.append(f"   Evidence: {c.evidence}")
        out.append("")

    tone = analysis.tone
    out += [
        "TONE ANALYSIS",
        "-" * 20,
        f"Overall: {tone.overall}",
        f"Sentiment: {tone.sentiment}",
        f"Objectivity: {_score(tone.objectivity)}",
        f"Emotional Language: {', '.join(tone.emotionalLanguage)}",
        f"Bias Indicators: {', '.join(tone.biasIndicators)}",
        "",
    ]

    out += ["RED FLAGS", "-" * 20]
    for i, f in enumerate(analysis.redFlags, 1):
        out.append(f"{i}. {f.flag} ({f.severity})")
        out.append(f"   {f.description}")
        out.append("")

    out += ["VERIFICATION QUESTIONS", "-" * 20]
    out += [f"{i}. {q}" for i, q in enumerate(analysis.verificationQuestions, 1)]
    out.append("")

    out += ["RECOMMENDATIONS", "-" * 20]
    out += [f"{i}. {r}" for i, r in enumerate(analysis.recommendations, 1)]
    return "\n".join(out) + "\n"

def copy_text(article: ArticleRecord, analysis: Analysis) -> str:
    out = [
        f"{APP_NAME} Analysis",
        "",
        f"Article: {article.title}",
        f"URL: {article.url}",
        f"Credibility Score: {_score(analysis.credibilityScore)} ({credibility_label(analysis.credibilityScore)})",
        "",
        "Key Claims:",
    ]
    out += [f"• {c.claim} ({c.confidence} confidence)" for c in analysis.claims]
    out += ["", "Verification Questions:"]
    out += [f"• {q}" for q in analysis.verificationQuestions]
    out += ["", "Recommendations:"]
    out += [f"• {r}" for r in analysis.recommendations]
    return "\n".join(out) + "\n"

def share_text(article: ArticleRecord, analysis: Analysis) -> str:
    finding = analysis.claims[0].claim if analysis.claims else "Multiple claims identified"
    return (
        f'I analyzed "{article.title}" with {APP_NAME}. '
        f"Credibility Score: {_score(analysis.credibilityScore)}. "
        f"Key findings: {finding}"
    )
