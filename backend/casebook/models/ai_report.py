from pydantic import BaseModel, ConfigDict, Field

THREAT_LEVELS = ("Low", "Medium", "High", "Critical")


class AIReport(BaseModel):
    """Structured assessment returned by the summarization service."""

    model_config = ConfigDict(populate_by_name=True)

    summary: str = ""
    threat_level: str = Field(default="", alias="threatLevel")  # Low/Medium/High/Critical, free text in practice
    key_indicators: list[str] = Field(default_factory=list, alias="keyIndicators")
    gap_analysis: list[str] = Field(default_factory=list, alias="gapAnalysis")
    recommendations: list[str] = Field(default_factory=list)
