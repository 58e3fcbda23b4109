from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

# fetched page, thrown away once the article is extracted
class RawDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    html: str

# what the extractor hands to the analyzer and the UI
class ArticleRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    content: str
    author: Optional[str] = None   # None means "not specified", never ""
    url: str
    preview: str

# what the user sends to /fetch-article and /analyze-url
class FetchRequest(BaseModel):
    url: str

class Claim(BaseModel):
    claim: str
    confidence: str = ""           # High | Medium | Low
    evidence: str = ""
    type: str = ""                 # Factual | Opinion | Statistical

class Tone(BaseModel):
    overall: str = ""
    sentiment: str = ""            # Positive | Negative | Neutral
    objectivity: Optional[float] = None     # 1-10
    emotionalLanguage: List[str] = []
    biasIndicators: List[str] = []

class RedFlag(BaseModel):
    flag: str
    severity: str = ""             # High | Medium | Low
    description: str = ""

class Entities(BaseModel):
    people: List[str] = []
    organizations: List[str] = []
    locations: List[str] = []
    topics: List[str] = []

class CounterArgument(BaseModel):
    argument: str
    reasoning: str = ""

# structured credibility analysis returned by the LLM
class Analysis(BaseModel):
    claims: List[Claim] = []
    tone: Tone = Field(default_factory=Tone)
    redFlags: List[RedFlag] = []
    verificationQuestions: List[str] = []
    entities: Entities = Field(default_factory=Entities)
    counterArguments: List[CounterArgument] = []
    credibilityScore: Optional[float] = None   # 1-10
    recommendations: List[str] = []

class AnalyzeRequest(BaseModel):
    article: ArticleRecord

class AnalyzeResponse(BaseModel):
    analysis: Analysis

class AnalyzeUrlResponse(BaseModel):
    article: ArticleRecord
    analysis: Analysis

# body for /export, /copy and /share
class ExportRequest(BaseModel):
    article: ArticleRecord
    analysis: Analysis

class ShareResponse(BaseModel):
    text: str
